"""rtcwake - enter the given sleep state until the given time.

Command line interface: resolves the request from arguments and an optional
YAML configuration, then reads the clocks, programs the wake alarm and
performs the sleep transition.

Exit codes:
    0: Success
    1: RTC device or power state interface failure
    2: Usage error
    3: Wake time not after RTC time, or invalid calendar time
    4: Sleep mode not supported by the kernel
"""

import argparse
import io
import logging
import shlex
import sys
import time

import pytimeparse
import yaml

from . import (
    DEFAULT_ADJTIME,
    DEFAULT_DEVICE,
    DEFAULT_MODE,
    DEFAULT_POWER_STATE,
    DEFAULT_POWEROFF,
    Basis,
    RTCWakeException,
    UnsupportedModeError,
    UsageError,
    WakeRequest,
    WakeTimeError,
)
from .alarm import arm_alarm, disable_alarm, show_alarm
from .backends.linux import LinuxRTC
from .clock import basis_tz, detect_basis, read_clock, wake_target
from .power import dispatch, list_modes

logger = logging.getLogger("rtcwake")

CONFIG_KEYS = ["device", "mode", "tz", "adjtime", "power_state", "poweroff"]


def duration(value: str) -> int:
    """Parse a number of seconds or a duration like "1h30m" or "90min"."""
    try:
        seconds = int(value)
    except ValueError:
        seconds = pytimeparse.parse(value)

    if seconds is None or seconds < 0:
        raise argparse.ArgumentTypeError(f"invalid duration: '{value}'")
    return int(seconds)


parser = argparse.ArgumentParser(
    "rtcwake",
    description="Enter the given sleep state until the given time",
    epilog="modes: disable, freeze, disk, mem, no, off, on, show, standby "
    "(--list-modes to see those supported by your kernel)",
)
parser.add_argument("-v", "--verbose", help="increase output verbosity", action="count", default=0)
parser.add_argument("--list-modes", help="list supported modes and exit", action="store_true")
parser.add_argument("-c", "--config", help="YML configuration", type=argparse.FileType("r"), default=None)
parser.add_argument("-d", "--device", help=f"RTC device to use (default: {DEFAULT_DEVICE})", default=None)
parser.add_argument("-m", "--mode", help=f"sleep mode (default: {DEFAULT_MODE})", default=None)
parser.add_argument("--adjtime", help=f"adjtime file used by --auto (default: {DEFAULT_ADJTIME})", default=None)

basis_group = parser.add_mutually_exclusive_group()
basis_group.add_argument("-a", "--auto", help="RTC uses time specified in adjtime", action="store_true")
basis_group.add_argument("-l", "--local", help="RTC uses local time", action="store_true")
basis_group.add_argument("-u", "--utc", help="RTC uses UTC", action="store_true")

time_group = parser.add_mutually_exclusive_group()
time_group.add_argument("-s", "--seconds", help="wake SECONDS from now", type=duration, default=None)
time_group.add_argument("-t", "--time", help="wake at TIME (seconds since epoch)", type=int, default=None)


def load_config(fp: io.TextIOBase | None) -> dict:
    """Load the YAML configuration.

    Args:
        fp: Open configuration file, or None

    Returns:
        Configuration dictionary, empty if no file was given.

    Raises:
        UsageError: If the file isn't valid YAML or doesn't contain a mapping
    """
    if fp is None:
        return {}

    with fp:
        try:
            config = yaml.safe_load(fp) or {}
        except yaml.YAMLError as e:
            raise UsageError(f"{fp.name}: invalid configuration: {e}") from e
    if not isinstance(config, dict):
        raise UsageError(f"{fp.name}: configuration must be a mapping")

    for key in config:
        if key not in CONFIG_KEYS:
            logger.warning("Ignoring unknown configuration key '%s'", key)

    logger.debug(config)
    return config


def resolve_request(args: argparse.Namespace, config: dict) -> WakeRequest:
    """Resolve arguments and configuration into a WakeRequest.

    Arguments take precedence over configuration, which takes precedence
    over the built-in defaults.
    """
    if args.utc:
        basis = Basis.UTC
    elif args.local:
        basis = Basis.LOCAL
    else:
        basis = detect_basis(args.adjtime or config.get("adjtime", DEFAULT_ADJTIME))
    logger.info("RTC time: %s", basis.value)

    device = args.device or config.get("device", DEFAULT_DEVICE)
    logger.info("Device: %s", device)

    mode = args.mode or config.get("mode", DEFAULT_MODE)
    # YAML 1.1 reads bare no/off/on as booleans
    if isinstance(mode, bool):
        raise UsageError("mode must be quoted in the configuration")

    poweroff = config.get("poweroff", DEFAULT_POWEROFF)
    if isinstance(poweroff, str):
        poweroff = shlex.split(poweroff)

    return WakeRequest(
        mode=mode,
        device=device,
        basis=basis,
        tz=basis_tz(basis, config.get("tz")),
        seconds=args.seconds,
        time=args.time,
        verbose=args.verbose,
        power_state=config.get("power_state", DEFAULT_POWER_STATE),
        poweroff=list(poweroff),
    )


def run(request: WakeRequest):
    """Read the clocks, program the alarm and enter the sleep state."""
    with LinuxRTC(request.device) as rtc:
        snapshot = read_clock(rtc, request.basis, request.tz)

        if request.mode == "show":
            then = show_alarm(rtc, snapshot.tz)
            if then is None:
                print("alarm: off")
            else:
                print(f"alarm: on {time.ctime(then)}")
            return
        elif request.mode == "disable":
            disable_alarm(rtc)
            return

        target = wake_target(request, snapshot)
        arm_alarm(rtc, request, target)
        dispatch(rtc, request)


def configure_logging(verbose: int):
    """Route status records to stdout and warnings/errors to stderr.

    Replaces handlers installed by a previous call, so main() can run
    repeatedly in one process.
    """
    logging_level = max(0, logging.WARN - (verbose * 10))

    logging_stdout = logging.StreamHandler(sys.stdout)
    logging_stdout.setLevel(logging_level)
    logging_stdout.addFilter(lambda record: record.levelno < logging.WARN)
    logging_stdout.setFormatter(logging.Formatter("%(message)s"))

    logging_stderr = logging.StreamHandler()
    logging_stderr.setLevel(max(logging_level, logging.WARN))
    logging_stderr.setFormatter(logging.Formatter(logging.BASIC_FORMAT))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.addHandler(logging_stdout)
    logger.addHandler(logging_stderr)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False


def main(argv: list[str] | None = None):
    """Entry point for rtcwake.

    Parses command-line arguments, initializes logging and runs the
    requested mode.
    """
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = load_config(args.config)

        if args.list_modes:
            print(list_modes(config.get("power_state", DEFAULT_POWER_STATE)))
            return

        run(resolve_request(args, config))
    except UsageError as ex:
        parser.error(str(ex))
    except WakeTimeError as ex:
        logger.error("%s", ex)
        sys.exit(3)
    except UnsupportedModeError as ex:
        logger.error("%s", ex)
        sys.exit(4)
    except RTCWakeException as ex:
        logger.error("%s", ex)
        sys.exit(1)


if __name__ == "__main__":
    main()
