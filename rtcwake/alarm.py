"""Wake alarm inquiry, cancellation and arming."""

import datetime
import logging
import os
import time

from . import WakeRequest
from .backends.base import AlarmRecord, RTCDevice
from .clock import calendar_to_epoch, epoch_to_calendar

logger = logging.getLogger("rtcwake.alarm")

# Delay after arming, lets the notice reach the console before suspending
ARM_SETTLE_S = 0.01


def show_alarm(rtc: RTCDevice, tz: datetime.tzinfo) -> int | None:
    """Get the currently programmed wake alarm.

    Args:
        rtc: Open RTC device
        tz: Timezone the RTC calendar time is expressed in

    Returns:
        Unix timestamp of the wake alarm, or None if the alarm is disabled.

    Raises:
        TimeConversionError: If the alarm holds an invalid calendar time
    """
    alarm = rtc.read_alarm()
    logger.debug("Read alarm %s", alarm)
    if not alarm.enabled:
        return None
    return calendar_to_epoch(alarm.time, tz)


def disable_alarm(rtc: RTCDevice):
    """Disable the wake alarm, keeping its programmed time."""
    alarm = rtc.read_alarm()
    rtc.set_alarm(alarm._replace(enabled=False))
    logger.info("Wake alarm on %s disabled", rtc.path)


def arm_alarm(rtc: RTCDevice, request: WakeRequest, target: int):
    """Program and enable the wake alarm.

    The target is converted to calendar time in the request's basis and
    written to the RTC. File systems are synced afterwards, as the caller is
    likely to suspend the machine next.

    Args:
        rtc: Open RTC device
        request: Resolved wake request
        target: Wake time as unix timestamp in RTC terms

    Raises:
        TimeConversionError: If target cannot be expressed as calendar time
    """
    alarm = AlarmRecord(enabled=True, pending=False, time=epoch_to_calendar(target, request.tz))
    rtc.set_alarm(alarm)
    logger.debug("Wrote alarm %s", alarm)
    os.sync()

    print(f'wakeup using "{request.mode}" from {request.device} at {time.ctime(target)}', flush=True)
    time.sleep(ARM_SETTLE_S)
