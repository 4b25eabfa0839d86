"""Child-process helpers shared by the external tools."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence

from iconnect.core.errors import ToolFailedError, ToolUnavailableError
from iconnect.core.model import ToolResult

LOGGER = logging.getLogger(__name__)


def run_tool(cmd: Sequence[str], *, timeout_s: float | None = None) -> ToolResult:
    """Run ``cmd`` to completion with stdin closed and output captured.

    With ``timeout_s`` unset the call waits for the child to exit, however
    long that takes.
    """
    LOGGER.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            list(cmd),
            check=False,
            capture_output=True,
            text=True,
            stdin=subprocess.DEVNULL,
            timeout=timeout_s,
        )
    except FileNotFoundError as exc:
        raise ToolUnavailableError(f"'{cmd[0]}' is not installed or not on PATH") from exc
    except PermissionError as exc:
        raise ToolUnavailableError(f"'{cmd[0]}' cannot be executed: {exc}") from exc
    except subprocess.TimeoutExpired as exc:
        raise ToolFailedError(f"'{' '.join(cmd)}' timed out after {timeout_s}s") from exc

    LOGGER.debug("%s exited with %s", cmd[0], result.returncode)
    return ToolResult(
        returncode=result.returncode,
        stdout=result.stdout or "",
        stderr=result.stderr or "",
    )


# Detached children are kept until they exit so they can be reaped.
_DETACHED: list[subprocess.Popen[bytes]] = []


def reap_detached() -> int:
    """Reap finished detached children and return how many are still running."""
    _DETACHED[:] = [child for child in _DETACHED if child.poll() is None]
    return len(_DETACHED)


def spawn_detached(cmd: Sequence[str]) -> None:
    """Start ``cmd`` in its own session without waiting for it."""
    reap_detached()
    LOGGER.debug("Spawning %s", " ".join(cmd))
    try:
        child = subprocess.Popen(
            list(cmd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as exc:
        raise ToolUnavailableError(f"Could not spawn '{cmd[0]}': {exc}") from exc
    _DETACHED.append(child)
