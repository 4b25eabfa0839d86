"""External tool interfaces."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from iconnect.core.model import ToolResult


class PowerQuery(Protocol):
    def query(self) -> ToolResult:
        """Ask the host for the radio power state."""


class PowerSetter(Protocol):
    def set_power(self, on: bool) -> ToolResult:
        """Request the radio be switched on or off."""


class Connector(Protocol):
    def connect(self, address: str) -> ToolResult:
        """Ask the host to connect to a paired device by address."""


class SettingsSurface(Protocol):
    def open(self, candidates: Sequence[str]) -> str | None:
        """Open the first accepted settings deep-link and return it."""
