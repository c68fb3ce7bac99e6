"""Clock reconciliation between system time and RTC time.

The RTC keeps broken-down calendar time in either UTC or local time, and may
drift away from the system clock. All wake times are therefore computed in
RTC terms: the current RTC time is read, and user supplied timestamps are
shifted by the measured RTC/system offset.
"""

import dataclasses
import datetime
import logging
import pathlib
import time
from zoneinfo import ZoneInfo

from dateutil import tz as dateutil_tz

from . import (
    WAKE_MARGIN_S,
    Basis,
    SystemFileError,
    TimeConversionError,
    UsageError,
    WakeRequest,
    WakeTimeError,
)
from .backends.base import RTCDevice, RTCTime

logger = logging.getLogger("rtcwake.clock")


def detect_basis(path: str) -> Basis:
    """Detect the RTC time basis from an adjtime file.

    The third line of /etc/adjtime holds either "UTC" or "LOCAL"; any
    occurrence of "UTC" is taken as the RTC running in UTC.

    Args:
        path: Path to the adjtime file

    Returns:
        Basis.UTC if the file contains "UTC", Basis.LOCAL otherwise
        (including when the file doesn't exist).

    Raises:
        SystemFileError: If the file exists but can't be read
    """
    try:
        content = pathlib.Path(path).read_text(errors="replace")
    except FileNotFoundError:
        logger.debug("adjtime file %s not found, assuming local time", path)
        return Basis.LOCAL
    except OSError as e:
        raise SystemFileError(f"{path}: {e.strerror}") from e

    return Basis.UTC if "UTC" in content else Basis.LOCAL


def basis_tz(basis: Basis, tz_name: str | None = None) -> datetime.tzinfo:
    """Get the timezone used for calendar conversions of a basis.

    Args:
        basis: RTC time basis
        tz_name: IANA timezone name for local time (e.g. "Europe/Berlin"),
                 defaults to the system timezone

    Returns:
        UTC for Basis.UTC, the configured or system local timezone otherwise.
    """
    if basis == Basis.UTC:
        return datetime.UTC

    if tz_name:
        try:
            return ZoneInfo(tz_name)
        except Exception as e:
            logger.warning("Invalid timezone '%s' in config: %s, using system timezone", tz_name, e)

    return dateutil_tz.tzlocal()


def calendar_to_epoch(tm: RTCTime, tz: datetime.tzinfo) -> int:
    """Convert an RTC calendar time to a unix timestamp.

    Args:
        tm: Calendar time as stored in the RTC
        tz: Timezone the calendar time is expressed in

    Returns:
        Unix timestamp in whole seconds.

    Raises:
        TimeConversionError: If tm does not describe a representable time
    """
    try:
        ts = datetime.datetime(
            year=tm.tm_year + 1900,
            month=tm.tm_mon + 1,
            day=tm.tm_mday,
            hour=tm.tm_hour,
            minute=tm.tm_min,
            second=tm.tm_sec,
            tzinfo=tz,
        )
        return int(ts.timestamp())
    except (ValueError, OverflowError) as e:
        raise TimeConversionError(f"invalid calendar time {tuple(tm)}: {e}") from e


def epoch_to_calendar(ts: int, tz: datetime.tzinfo) -> RTCTime:
    """Convert a unix timestamp to an RTC calendar time.

    Args:
        ts: Unix timestamp
        tz: Timezone to express the calendar time in

    Returns:
        Calendar time suitable for writing to the RTC.

    Raises:
        TimeConversionError: If ts is outside of the representable range
    """
    try:
        dt = datetime.datetime.fromtimestamp(ts, tz=tz)
    except (ValueError, OverflowError, OSError) as e:
        raise TimeConversionError(f"cannot convert {ts} to calendar time: {e}") from e

    tt = dt.timetuple()
    return RTCTime(
        tm_sec=dt.second,
        tm_min=dt.minute,
        tm_hour=dt.hour,
        tm_mday=dt.day,
        tm_mon=dt.month - 1,
        tm_year=dt.year - 1900,
        tm_wday=(dt.weekday() + 1) % 7,
        tm_yday=tt.tm_yday - 1,
        tm_isdst=1 if tt.tm_isdst > 0 else 0,
    )


@dataclasses.dataclass(frozen=True)
class ClockSnapshot:
    """System and RTC time, read once per run.

    Attributes:
        system_now: System time as unix timestamp
        rtc_now: RTC time as unix timestamp, interpreted through basis
        basis: RTC time basis
        tz: Timezone matching basis
    """

    system_now: int
    rtc_now: int
    basis: Basis
    tz: datetime.tzinfo

    @property
    def offset(self) -> int:
        """Seconds the RTC is ahead of the system clock."""
        return self.rtc_now - self.system_now


def read_clock(
    rtc: RTCDevice,
    basis: Basis,
    tz: datetime.tzinfo,
    now: int | None = None,
) -> ClockSnapshot:
    """Read system and RTC time.

    Args:
        rtc: Open RTC device
        basis: RTC time basis
        tz: Timezone matching basis
        now: System time to use. Defaults to the current time.

    Returns:
        Snapshot of both clocks.
    """
    system_now = int(time.time()) if now is None else now
    rtc_now = calendar_to_epoch(rtc.read_time(), tz)

    logger.info("System time:\t%i / %s", system_now, time.ctime(system_now))
    logger.info("RTC time:\t%i / %s", rtc_now, time.ctime(rtc_now))
    return ClockSnapshot(system_now=system_now, rtc_now=rtc_now, basis=basis, tz=tz)


def wake_target(request: WakeRequest, snapshot: ClockSnapshot) -> int:
    """Compute the wake time in RTC terms.

    Relative requests are counted from the RTC time plus a margin of
    WAKE_MARGIN_S. Absolute requests are shifted by the RTC/system offset.

    Args:
        request: Resolved wake request
        snapshot: Current clock snapshot

    Returns:
        Wake time as unix timestamp in RTC terms.

    Raises:
        WakeTimeError: If the absolute wake time is not after the RTC time
        UsageError: If neither seconds nor time is requested
    """
    if request.seconds is not None:
        target = snapshot.rtc_now + request.seconds + WAKE_MARGIN_S
    elif request.time is not None:
        target = request.time + snapshot.offset
        if target <= snapshot.rtc_now:
            raise WakeTimeError(
                f"wake time {target} (requested {request.time}) is not after RTC time {snapshot.rtc_now}"
            )
    else:
        raise UsageError(f"-m {request.mode} needs -s or -t")

    logger.info("Wake time:\t%i / %s", target, time.ctime(target))
    return target
