"""Core data models used across calibration, matching, orchestration, and CLI."""

from __future__ import annotations

import enum
from dataclasses import dataclass

AUDIO_MAJOR_CLASS = 0x04
MAJOR_CLASS_MASK = 0x1F


@dataclass(frozen=True)
class WeightRange:
    min_g: float
    max_g: float

    def contains(self, weight: float) -> bool:
        return self.min_g <= weight <= self.max_g


@dataclass(frozen=True)
class ShapeRule:
    aspect_min: float
    aspect_max: float
    min_major: float = 0.0


@dataclass(frozen=True)
class DeviceProfile:
    id: str
    name: str
    search_term: str
    weight: WeightRange | None = None
    shape: ShapeRule | None = None


@dataclass(frozen=True)
class ShapeDescriptor:
    major: float
    minor: float


@dataclass(frozen=True)
class CalibratedReading:
    """One classification input; exactly one of ``weight``/``shape`` is set."""

    weight: float | None = None
    shape: ShapeDescriptor | None = None


@dataclass(frozen=True)
class TouchSample:
    pressure: float
    major: float | None = None
    minor: float | None = None


@dataclass(frozen=True)
class PairedDeviceRecord:
    address: str
    name: str | None
    class_of_device: int
    connected: bool = False

    @property
    def display_name(self) -> str:
        return self.name or self.address

    @property
    def major_class(self) -> int:
        return (self.class_of_device >> 8) & MAJOR_CLASS_MASK

    @property
    def is_audio(self) -> bool:
        return self.major_class == AUDIO_MAJOR_CLASS

    def is_connected(self) -> bool:
        return self.connected


@dataclass(frozen=True)
class ConnectionAttemptState:
    is_connecting: bool = False
    last_error: str | None = None
    bluetooth_was_off: bool = False


class ConnectOutcome(enum.Enum):
    POWERED_OFF = "powered_off"
    DIRECTORY_ERROR = "directory_error"
    NO_CANDIDATE = "no_candidate"
    ALREADY_CONNECTED = "already_connected"
    ATTEMPT_ISSUED = "attempt_issued"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class ConnectResult:
    outcome: ConnectOutcome
    state: ConnectionAttemptState
    device: PairedDeviceRecord | None = None
    mechanism: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome in (ConnectOutcome.ATTEMPT_ISSUED, ConnectOutcome.ALREADY_CONNECTED)


@dataclass(frozen=True)
class ToolResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0
