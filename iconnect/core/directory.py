"""Paired-device directory backed by the host Bluetooth stack."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Protocol

from iconnect.core.errors import DirectoryUnavailableError, ToolError
from iconnect.core.model import PairedDeviceRecord
from iconnect.tools.process import run_tool, spawn_detached

LOGGER = logging.getLogger(__name__)

_DEVICE_LINE_RE = re.compile(r"^Device\s+([0-9A-F:]{17})(?:\s+(.+))?$", re.IGNORECASE)
_INFO_FIELD_RE = re.compile(r"^\s*(Name|Class|Connected):\s*(.*)$")
_CLASS_RE = re.compile(r"\s*(0x[0-9a-fA-F]+)\b")


class PairedDeviceDirectory(Protocol):
    def list(self) -> list[PairedDeviceRecord]:
        """Return paired devices or raise ``DirectoryUnavailableError``."""

    def open(self, address: str) -> None:
        """Issue a connection request without waiting for its outcome."""


def _parse_class(value: str) -> int:
    # Newer BlueZ appends the decimal value: "0x00240418 (2360344)".
    match = _CLASS_RE.match(value)
    return int(match.group(1), 16) if match else 0


def _placeholder_name(name: str | None, address: str) -> bool:
    # BlueZ shows the dashed address as the alias of devices with no name.
    return not name or name.replace("-", ":").upper() == address


class BluetoothctlDirectory:
    def __init__(self, executable: str = "bluetoothctl", *, timeout_s: float | None = None) -> None:
        self.executable = executable
        self.timeout_s = timeout_s

    def list(self) -> list[PairedDeviceRecord]:
        listing = self._paired_listing()
        records: list[PairedDeviceRecord] = []
        for address, name in listing:
            records.append(self._describe(address, name))
        return records

    def open(self, address: str) -> None:
        spawn_detached([self.executable, "connect", address])

    def _paired_listing(self) -> list[tuple[str, str | None]]:
        commands: Sequence[list[str]] = (
            [self.executable, "devices", "Paired"],
            [self.executable, "paired-devices"],
        )
        command_errors: list[str] = []

        for cmd in commands:
            try:
                result = run_tool(cmd, timeout_s=self.timeout_s)
            except ToolError as exc:
                command_errors.append(f"{' '.join(cmd)} -> {exc}")
                continue
            if not result.ok:
                stderr = result.stderr.strip() or f"exit code {result.returncode}"
                command_errors.append(f"{' '.join(cmd)} -> {stderr}")
                continue

            seen: set[str] = set()
            listing: list[tuple[str, str | None]] = []
            for line in result.stdout.splitlines():
                match = _DEVICE_LINE_RE.match(line.strip())
                if not match:
                    continue
                address = match.group(1).upper()
                if address in seen:
                    continue
                seen.add(address)
                name = (match.group(2) or "").strip() or None
                listing.append((address, None if _placeholder_name(name, address) else name))
            return listing

        joined = " | ".join(command_errors)
        raise DirectoryUnavailableError(
            f"Could not list paired Bluetooth devices. Ensure a working D-Bus/BlueZ session. Details: {joined}"
        )

    def _describe(self, address: str, listed_name: str | None) -> PairedDeviceRecord:
        fields: dict[str, str] = {}
        try:
            result = run_tool([self.executable, "info", address], timeout_s=self.timeout_s)
        except ToolError as exc:
            LOGGER.warning("Could not read details for %s: %s", address, exc)
            result = None

        if result is not None and result.ok:
            for line in result.stdout.splitlines():
                match = _INFO_FIELD_RE.match(line)
                if match and match.group(1) not in fields:
                    fields[match.group(1)] = match.group(2).strip()
        elif result is not None:
            LOGGER.warning("bluetoothctl info %s exited with %s", address, result.returncode)

        name = fields.get("Name") or listed_name
        return PairedDeviceRecord(
            address=address,
            name=None if _placeholder_name(name, address) else name,
            class_of_device=_parse_class(fields.get("Class", "0")),
            connected=fields.get("Connected", "no").lower() == "yes",
        )
