"""Host Bluetooth settings opener used as the manual fallback.

A candidate is either a link handed to the launcher (``open`` on macOS,
``xdg-open`` elsewhere) or, when prefixed with ``exec:``, a command line that
is started detached, e.g. ``exec:gnome-control-center bluetooth``.
"""

from __future__ import annotations

import logging
import shlex
from collections.abc import Sequence

from iconnect.core.errors import ToolError
from iconnect.tools.process import run_tool, spawn_detached

LOGGER = logging.getLogger(__name__)

EXEC_PREFIX = "exec:"


class SettingsOpener:
    def __init__(self, launcher: str, *, timeout_s: float | None = None) -> None:
        self.launcher = launcher
        self.timeout_s = timeout_s

    def open(self, candidates: Sequence[str]) -> str | None:
        for url in candidates:
            try:
                accepted = self._try(url)
            except ToolError as exc:
                LOGGER.warning("Could not open %s: %s", url, exc)
                continue
            if accepted:
                LOGGER.info("Opened Bluetooth settings via %s", url)
                return url
        LOGGER.warning("No Bluetooth settings candidate could be opened")
        return None

    def _try(self, url: str) -> bool:
        if url.startswith(EXEC_PREFIX):
            try:
                cmd = shlex.split(url[len(EXEC_PREFIX):])
            except ValueError as exc:
                LOGGER.warning("Malformed settings command %s: %s", url, exc)
                return False
            if not cmd:
                LOGGER.debug("Skipping empty settings command")
                return False
            # Settings apps stay open, so only a failed spawn counts as rejection.
            spawn_detached(cmd)
            return True

        result = run_tool([self.launcher, url], timeout_s=self.timeout_s)
        if not result.ok:
            LOGGER.debug("%s rejected %s: %s", self.launcher, url, result.stderr.strip())
        return result.ok
