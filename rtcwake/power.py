"""Sleep dispatch after the wake alarm has been armed.

Depending on the mode, rtcwake either returns immediately ("no"), polls the
RTC until the alarm fired ("on"), powers the machine off ("off"), or writes
the mode to the kernel power state interface, e.g. "mem" or "disk".
"""

import errno
import logging
import os
import pathlib

from . import BUILTIN_MODES, PowerStateError, UnsupportedModeError, WakeRequest
from .backends.base import RTC_AF, RTCDevice

logger = logging.getLogger("rtcwake.power")


def supported_modes(power_state: str) -> list[str]:
    """Read the sleep states supported by the kernel.

    Args:
        power_state: Path of the kernel power state interface

    Returns:
        List of state names, e.g. ["freeze", "mem", "disk"].

    Raises:
        PowerStateError: If the interface can't be read
    """
    try:
        return pathlib.Path(power_state).read_text().split()
    except OSError as e:
        raise PowerStateError(f"{power_state}: {e.strerror}") from e


def list_modes(power_state: str) -> str:
    """Format all modes accepted by rtcwake on this kernel."""
    return " ".join(BUILTIN_MODES + supported_modes(power_state))


def wait_for_alarm(rtc: RTCDevice):
    """Block until the RTC reports the alarm interrupt."""
    logger.info("Reading RTC...")
    data = 0
    while not data & RTC_AF:
        data = rtc.read_status()
        logger.info("... %s: %x", rtc.path, data)


def poweroff(command: list[str]):
    """Replace this process by the power off command.

    Raises:
        PowerStateError: If the command can't be executed
    """
    logger.info("Executing %s", " ".join(command))
    try:
        os.execvp(command[0], command)
    except OSError as e:
        raise PowerStateError(f"{command[0]}: {e.strerror}") from e


def enter_state(power_state: str, mode: str):
    """Write a sleep state to the kernel power state interface.

    The write blocks until the system resumed.

    Raises:
        UnsupportedModeError: If the kernel doesn't support the mode
        PowerStateError: On any other write failure
    """
    logger.info("Writing '%s' to %s", mode, power_state)
    try:
        pathlib.Path(power_state).write_text(mode)
    except OSError as e:
        if e.errno == errno.EINVAL:
            raise UnsupportedModeError(f"mode '{mode}' is not supported by this kernel") from e
        raise PowerStateError(f"{power_state}: {e.strerror}") from e


def dispatch(rtc: RTCDevice, request: WakeRequest):
    """Perform the sleep transition of an armed request.

    Args:
        rtc: Open RTC device the alarm was armed on
        request: Resolved wake request
    """
    if request.mode == "no":
        return
    elif request.mode == "on":
        wait_for_alarm(rtc)
    elif request.mode == "off":
        poweroff(request.poweroff)
    else:
        enter_state(request.power_state, request.mode)
