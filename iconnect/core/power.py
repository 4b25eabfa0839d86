"""Bluetooth radio power probing with layered fallbacks."""

from __future__ import annotations

import logging
import plistlib
from pathlib import Path

from iconnect.core.errors import ToolError
from iconnect.tools.base import PowerQuery, PowerSetter

LOGGER = logging.getLogger(__name__)

POWER_STATE_KEY = "ControllerPowerState"


def _parse_power_output(stdout: str) -> bool | None:
    token = stdout.strip()
    if token == "1":
        return True
    if token == "0":
        return False
    return None


def read_persisted_power_state(path: Path) -> bool | None:
    try:
        with path.open("rb") as fh:
            prefs = plistlib.load(fh)
    except (OSError, plistlib.InvalidFileException, ValueError) as exc:
        LOGGER.debug("Could not read %s: %s", path, exc)
        return None
    value = prefs.get(POWER_STATE_KEY) if isinstance(prefs, dict) else None
    if not isinstance(value, int):
        return None
    return bool(value)


class PowerProbe:
    """Answers whether the radio is on. Nothing is cached between calls."""

    def __init__(self, query: PowerQuery, setter: PowerSetter, preferences_path: Path) -> None:
        self.query = query
        self.setter = setter
        self.preferences_path = preferences_path

    def is_powered_on(self) -> bool:
        try:
            result = self.query.query()
        except ToolError as exc:
            LOGGER.debug("Power query tool unavailable: %s", exc)
        else:
            state = _parse_power_output(result.stdout) if result.ok else None
            if state is not None:
                return state
            LOGGER.debug(
                "Power query returned unusable output (rc=%s): %r",
                result.returncode,
                result.stdout,
            )

        persisted = read_persisted_power_state(self.preferences_path)
        if persisted is None:
            LOGGER.warning("Bluetooth power state unknown; assuming it is on")
            return True
        return persisted

    def request_power_on(self) -> bool:
        """Ask the host to power the radio on; ``True`` only means the tool exited 0."""
        try:
            result = self.setter.set_power(True)
        except ToolError as exc:
            LOGGER.warning("Could not request Bluetooth power on: %s", exc)
            return False
        if not result.ok:
            LOGGER.warning("Power-on request failed (rc=%s): %s", result.returncode, result.stderr.strip())
        return result.ok
