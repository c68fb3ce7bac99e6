"""Base class for RTC device backends.

This module provides the abstract base class for real-time clocks with wake
alarm capabilities, together with the register structures exchanged with them.
"""

import contextlib
import typing

# Alarm fired bit of the status word read from the RTC device
RTC_AF = 0x20


class RTCTime(typing.NamedTuple):
    """Broken-down calendar time, mirrors the kernel struct rtc_time.

    Months are counted from 0 and years from 1900, as in struct tm.
    """

    tm_sec: int = 0
    tm_min: int = 0
    tm_hour: int = 0
    tm_mday: int = 0
    tm_mon: int = 0
    tm_year: int = 0
    tm_wday: int = 0
    tm_yday: int = 0
    tm_isdst: int = 0


class AlarmRecord(typing.NamedTuple):
    """Wake alarm register set, mirrors the kernel struct rtc_wkalrm."""

    enabled: bool = False
    pending: bool = False
    time: RTCTime = RTCTime()


class RTCDevice(contextlib.AbstractContextManager):
    """Base class for real-time clocks with a wake alarm.

    This abstract base class defines the common interface used by the clock
    reconciler, the alarm programmer and the sleep dispatcher. Subclasses
    implement platform-specific access.

    Common interface:
    - RTC calendar time read
    - Wake alarm read/write
    - Blocking status read for alarm interrupts

    Args:
        path: Path identifying the device
    """

    def __init__(self, path: str):
        self.path = path

    def __exit__(self, *_) -> None:
        self.close()

    def close(self):
        """Release the device. Subclasses holding resources override this."""
        pass

    def read_time(self) -> RTCTime:
        """Read the current RTC calendar time.

        Returns:
            Calendar time as stored in the RTC registers.
        """
        raise NotImplementedError

    def read_alarm(self) -> AlarmRecord:
        """Read the wake alarm.

        Returns:
            Alarm record including its enabled flag.
        """
        raise NotImplementedError

    def set_alarm(self, alarm: AlarmRecord):
        """Write the wake alarm.

        Args:
            alarm: Alarm record, enabled=False disables the alarm.
        """
        raise NotImplementedError

    def read_status(self) -> int:
        """Block until the RTC reports an interrupt.

        Returns:
            Status word; RTC_AF is set when the alarm fired.
        """
        raise NotImplementedError
