"""Linux RTC Backend - kernel character device implementation.

This module provides access to /dev/rtc* devices through the ioctl interface
of <linux/rtc.h>.
"""

import fcntl
import logging
import struct

from .. import RTCDeviceError
from .base import AlarmRecord, RTCDevice, RTCTime

logger = logging.getLogger("rtcwake.backends.linux")

# ioctl request numbers (LP64)
RTC_RD_TIME = 0x80247009
RTC_WKALM_SET = 0x4028700F
RTC_WKALM_RD = 0x80287010

# struct rtc_time and struct rtc_wkalrm
RTC_TIME_STRUCT = struct.Struct("9i")
RTC_WKALRM_STRUCT = struct.Struct("2B9i")
# unsigned long returned by read()
RTC_STATUS_STRUCT = struct.Struct("L")


class LinuxRTC(RTCDevice):
    """Interface to a Linux RTC character device.

    The device is opened read/write on construction and stays open until
    close() is called or the context manager exits.

    Args:
        path: RTC device node (e.g. /dev/rtc0)

    Raises:
        RTCDeviceError: If the device cannot be opened

    Example:
        >>> with LinuxRTC("/dev/rtc0") as rtc:
        ...     print(rtc.read_time())
        ...     print(rtc.read_alarm().enabled)
    """

    def __init__(self, path: str):
        super().__init__(path)
        try:
            self._file = open(path, "r+b", buffering=0)
        except OSError as e:
            raise RTCDeviceError(f"{path}: {e.strerror}") from e

        logger.debug("Opened RTC device %s (fd %i)", path, self._file.fileno())

    def close(self):
        if not self._file.closed:
            self._file.close()
            logger.debug("Closed RTC device %s", self.path)

    def _ioctl(self, request: int, buf: bytearray, name: str):
        try:
            fcntl.ioctl(self._file.fileno(), request, buf)
        except OSError as e:
            raise RTCDeviceError(f"{self.path}: {name}: {e.strerror}") from e

    def read_time(self) -> RTCTime:
        buf = bytearray(RTC_TIME_STRUCT.size)
        self._ioctl(RTC_RD_TIME, buf, "RTC_RD_TIME")
        return RTCTime._make(RTC_TIME_STRUCT.unpack(buf))

    def read_alarm(self) -> AlarmRecord:
        buf = bytearray(RTC_WKALRM_STRUCT.size)
        self._ioctl(RTC_WKALM_RD, buf, "RTC_WKALM_RD")
        enabled, pending, *tm = RTC_WKALRM_STRUCT.unpack(buf)
        return AlarmRecord(bool(enabled), bool(pending), RTCTime._make(tm))

    def set_alarm(self, alarm: AlarmRecord):
        buf = bytearray(RTC_WKALRM_STRUCT.size)
        RTC_WKALRM_STRUCT.pack_into(buf, 0, alarm.enabled, alarm.pending, *alarm.time)
        self._ioctl(RTC_WKALM_SET, buf, "RTC_WKALM_SET")

    def read_status(self) -> int:
        try:
            buf = self._file.read(RTC_STATUS_STRUCT.size)
        except OSError as e:
            raise RTCDeviceError(f"{self.path}: read: {e.strerror}") from e

        if buf is None or len(buf) != RTC_STATUS_STRUCT.size:
            raise RTCDeviceError(f"{self.path}: short read")
        return RTC_STATUS_STRUCT.unpack(buf)[0]
