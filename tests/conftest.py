"""Pytest configuration and shared fixtures."""

import datetime
import logging
import os
import time

import pytest

from rtcwake import RTCDeviceError
from rtcwake import __main__ as cli
from rtcwake.backends.base import AlarmRecord, RTCDevice
from rtcwake.clock import epoch_to_calendar

RTC_NOW = 1700000000


class FakeRTC(RTCDevice):
    """In-memory RTC recording every alarm write."""

    def __init__(self, path: str = "/dev/rtc0", now: int = RTC_NOW, tz=datetime.UTC):
        super().__init__(path)
        self.time = epoch_to_calendar(now, tz)
        self.alarm = AlarmRecord()
        self.statuses: list[int] = []
        self.writes: list[AlarmRecord] = []
        self.closed = False

    def close(self):
        self.closed = True

    def read_time(self):
        return self.time

    def read_alarm(self):
        return self.alarm

    def set_alarm(self, alarm):
        self.writes.append(alarm)
        self.alarm = alarm

    def read_status(self):
        if not self.statuses:
            raise RTCDeviceError(f"{self.path}: short read")
        return self.statuses.pop(0)


@pytest.fixture
def rtc() -> FakeRTC:
    return FakeRTC()


@pytest.fixture
def device(monkeypatch, rtc) -> FakeRTC:
    """Route the command line interface to the fake RTC."""

    def open_device(path):
        rtc.path = path
        return rtc

    monkeypatch.setattr(cli, "LinuxRTC", open_device)
    return rtc


@pytest.fixture(autouse=True)
def no_sync(monkeypatch):
    monkeypatch.setattr(os, "sync", lambda: None)
    monkeypatch.setattr(time, "sleep", lambda _: None)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop the handlers main() installs, they hold captured streams."""
    yield
    logger = logging.getLogger("rtcwake")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def power_state(tmp_path):
    path = tmp_path / "state"
    path.write_text("freeze mem disk\n")
    return path
