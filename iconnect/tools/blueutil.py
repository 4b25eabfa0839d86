"""blueutil-backed power and connection tools."""

from __future__ import annotations

import logging

from iconnect.core.model import ToolResult
from iconnect.tools.process import run_tool

LOGGER = logging.getLogger(__name__)


def dash_address(address: str) -> str:
    return address.replace(":", "-")


class _BlueutilTool:
    def __init__(self, executable: str = "blueutil", *, timeout_s: float | None = None) -> None:
        self.executable = executable
        self.timeout_s = timeout_s
        if timeout_s is None:
            LOGGER.debug("%s runs without a timeout; a hung call blocks until it exits", executable)


class PowerQueryTool(_BlueutilTool):
    def query(self) -> ToolResult:
        return run_tool([self.executable, "-p"], timeout_s=self.timeout_s)


class PowerSetTool(_BlueutilTool):
    def set_power(self, on: bool) -> ToolResult:
        return run_tool([self.executable, "-p", "1" if on else "0"], timeout_s=self.timeout_s)


class ConnectorTool(_BlueutilTool):
    def connect(self, address: str) -> ToolResult:
        return run_tool(
            [self.executable, "--connect", dash_address(address)],
            timeout_s=self.timeout_s,
        )
