"""Unit tests for rtcwake.clock - basis detection and clock reconciliation."""

import datetime
from zoneinfo import ZoneInfo

import pytest
from dateutil import tz as dateutil_tz

from rtcwake import Basis, SystemFileError, TimeConversionError, UsageError, WakeRequest, WakeTimeError
from rtcwake.backends.base import RTCTime
from rtcwake.clock import (
    ClockSnapshot,
    basis_tz,
    calendar_to_epoch,
    detect_basis,
    epoch_to_calendar,
    read_clock,
    wake_target,
)

from .conftest import RTC_NOW, FakeRTC

# 2023-11-14 22:13:20 UTC, a Tuesday
RTC_NOW_UTC = RTCTime(20, 13, 22, 14, 10, 123, 2, 317, 0)


class TestBasis:
    def test_adjtime_utc(self, tmp_path):
        adjtime = tmp_path / "adjtime"
        adjtime.write_text("0.0 0 0.0\n0\nUTC\n")
        assert detect_basis(str(adjtime)) == Basis.UTC

    def test_adjtime_local(self, tmp_path):
        adjtime = tmp_path / "adjtime"
        adjtime.write_text("0.0 0 0.0\n0\nLOCAL\n")
        assert detect_basis(str(adjtime)) == Basis.LOCAL

    def test_adjtime_missing(self, tmp_path):
        assert detect_basis(str(tmp_path / "missing")) == Basis.LOCAL

    def test_adjtime_unreadable(self, tmp_path):
        with pytest.raises(SystemFileError, match="Is a directory"):
            detect_basis(str(tmp_path))

    def test_utc_tz(self):
        assert basis_tz(Basis.UTC, "Europe/Berlin") == datetime.UTC

    def test_local_tz_from_config(self):
        assert basis_tz(Basis.LOCAL, "Europe/Berlin") == ZoneInfo("Europe/Berlin")

    def test_local_tz_invalid_falls_back(self):
        assert isinstance(basis_tz(Basis.LOCAL, "Not/AZone"), dateutil_tz.tzlocal)


class TestCalendar:
    def test_calendar_to_epoch_utc(self):
        assert calendar_to_epoch(RTC_NOW_UTC, datetime.UTC) == RTC_NOW

    def test_epoch_to_calendar_utc(self):
        assert epoch_to_calendar(RTC_NOW, datetime.UTC) == RTC_NOW_UTC

    def test_epoch_to_calendar_local(self):
        tm = epoch_to_calendar(RTC_NOW, ZoneInfo("Europe/Berlin"))
        assert (tm.tm_hour, tm.tm_min, tm.tm_sec) == (23, 13, 20)
        assert tm.tm_isdst == 0

    def test_local_calendar_round_trip(self):
        tz = ZoneInfo("Europe/Berlin")
        assert calendar_to_epoch(epoch_to_calendar(RTC_NOW, tz), tz) == RTC_NOW

    def test_invalid_calendar(self):
        with pytest.raises(TimeConversionError):
            calendar_to_epoch(RTC_NOW_UTC._replace(tm_mon=12), datetime.UTC)

    def test_epoch_out_of_range(self):
        with pytest.raises(TimeConversionError):
            epoch_to_calendar(2**62, datetime.UTC)


class TestReconcile:
    def test_read_clock(self):
        snapshot = read_clock(FakeRTC(now=RTC_NOW), Basis.UTC, datetime.UTC, now=RTC_NOW - 5)
        assert snapshot.rtc_now == RTC_NOW
        assert snapshot.system_now == RTC_NOW - 5
        assert snapshot.offset == 5

    def test_read_clock_local_basis(self):
        tz = ZoneInfo("America/New_York")
        snapshot = read_clock(FakeRTC(now=RTC_NOW, tz=tz), Basis.LOCAL, tz, now=RTC_NOW)
        assert snapshot.rtc_now == RTC_NOW

    def test_relative_target(self):
        snapshot = ClockSnapshot(RTC_NOW - 100, RTC_NOW, Basis.UTC, datetime.UTC)
        assert wake_target(WakeRequest(seconds=60), snapshot) == RTC_NOW + 61

    def test_absolute_target_shifted_by_offset(self):
        snapshot = ClockSnapshot(1000, 1010, Basis.UTC, datetime.UTC)
        assert wake_target(WakeRequest(time=2000), snapshot) == 2010

    def test_absolute_target_in_past(self):
        snapshot = ClockSnapshot(1000, 1010, Basis.UTC, datetime.UTC)
        with pytest.raises(WakeTimeError, match="1010"):
            wake_target(WakeRequest(time=999), snapshot)

    def test_absolute_target_now(self):
        snapshot = ClockSnapshot(1000, 1010, Basis.UTC, datetime.UTC)
        with pytest.raises(WakeTimeError):
            wake_target(WakeRequest(time=1000), snapshot)

    def test_missing_time(self):
        snapshot = ClockSnapshot(1000, 1000, Basis.UTC, datetime.UTC)
        with pytest.raises(UsageError, match="-m mem needs -s or -t"):
            wake_target(WakeRequest(mode="mem"), snapshot)
