"""rtcwake - enter a sleep state until a given time.

This module provides a Python interface for programming the wake alarm of a
Linux real-time clock (RTC) and suspending the system until the alarm fires.
It provides:

- RTC time and alarm access via the kernel RTC character device
- Reconciliation of RTC time against system time (UTC or local RTC)
- Wake alarm inquiry, cancellation and arming
- Sleep dispatch via /sys/power/state, poweroff or RTC polling

Main Classes:
    WakeRequest: Resolved, immutable request threaded through the pipeline
    Basis: Enum of RTC time bases (UTC or local time)

Backends:
    Device implementations are available in the backends subpackage.
    Example: from rtcwake.backends.linux import LinuxRTC

Example:
    Wake the machine in five minutes without suspending:

    >>> import datetime
    >>> from rtcwake import Basis, clock
    >>> from rtcwake.backends.linux import LinuxRTC
    >>> with LinuxRTC("/dev/rtc0") as rtc:
    ...     snapshot = clock.read_clock(rtc, Basis.UTC, datetime.UTC)
    ...     print(snapshot.rtc_now + 300)
"""

import dataclasses
import datetime
import enum
import importlib.metadata
import logging

__version__ = importlib.metadata.version(__name__)

logger = logging.getLogger("rtcwake")

# Default paths
DEFAULT_DEVICE = "/dev/rtc0"
DEFAULT_ADJTIME = "/etc/adjtime"
DEFAULT_POWER_STATE = "/sys/power/state"
DEFAULT_POWEROFF = ["poweroff"]

# Modes handled by rtcwake itself, everything else goes to the kernel
DEFAULT_MODE = "standby"
BUILTIN_MODES = ["off", "no", "on", "disable", "show"]

# Seconds added to relative wake times, util-linux does the same
WAKE_MARGIN_S = 1


class Basis(enum.Enum):
    """Time basis the RTC calendar registers are kept in.

    Attributes:
        UTC: RTC holds UTC
        LOCAL: RTC holds local wall-clock time
    """

    UTC = "UTC"
    LOCAL = "local"


class RTCWakeException(Exception):
    """Base exception for all rtcwake failures.

    Raised errors are fatal: the command line interface logs them and
    terminates with a non-zero exit code.
    """

    pass


class UsageError(RTCWakeException):
    """Raised when the requested mode is missing a required argument."""

    pass


class RTCDeviceError(RTCWakeException):
    """Raised when the RTC device cannot be opened, read or written."""

    pass


class SystemFileError(RTCWakeException):
    """Raised when a system file such as /etc/adjtime cannot be read."""

    pass


class WakeTimeError(RTCWakeException):
    """Raised when the requested wake time is not after the current RTC time."""

    pass


class TimeConversionError(WakeTimeError):
    """Raised when a calendar time is outside of the representable range."""

    pass


class PowerStateError(RTCWakeException):
    """Raised when the sleep transition could not be started."""

    pass


class UnsupportedModeError(PowerStateError):
    """Raised when the kernel rejects a sleep state (EINVAL on write)."""

    pass


@dataclasses.dataclass(frozen=True)
class WakeRequest:
    """Resolved request, passed explicitly between the pipeline stages.

    Attributes:
        mode: Sleep mode, one of BUILTIN_MODES or a kernel state (e.g. "mem")
        device: Path of the RTC character device
        basis: Time basis of the RTC
        tz: Timezone matching basis, used for calendar conversions
        seconds: Wake this many seconds from now, or None
        time: Wake at this unix timestamp, or None
        verbose: Verbosity level
        power_state: Path of the kernel power state interface
        poweroff: Command executed for mode "off"
    """

    mode: str = DEFAULT_MODE
    device: str = DEFAULT_DEVICE
    basis: Basis = Basis.UTC
    tz: datetime.tzinfo = datetime.UTC
    seconds: int | None = None
    time: int | None = None
    verbose: int = 0
    power_state: str = DEFAULT_POWER_STATE
    poweroff: list[str] = dataclasses.field(default_factory=lambda: list(DEFAULT_POWEROFF))


__all__ = [
    "Basis",
    "WakeRequest",
    "RTCWakeException",
    "UsageError",
    "RTCDeviceError",
    "SystemFileError",
    "WakeTimeError",
    "TimeConversionError",
    "PowerStateError",
    "UnsupportedModeError",
    "BUILTIN_MODES",
    "DEFAULT_ADJTIME",
    "DEFAULT_DEVICE",
    "DEFAULT_MODE",
    "DEFAULT_POWER_STATE",
    "DEFAULT_POWEROFF",
    "WAKE_MARGIN_S",
]
