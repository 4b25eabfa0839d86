"""Touch-sample calibration into weight and shape readings."""

from __future__ import annotations

from collections.abc import Sequence

from iconnect.core.model import CalibratedReading, DeviceProfile, ShapeDescriptor, TouchSample
from iconnect.core.profile_match import ProfileMatcher

READING_SHAPE = "shape"
READING_WEIGHT = "weight"


def calibrate(raw_pressure: float, zero_offset: float) -> float:
    return max(0.0, raw_pressure - zero_offset)


def shape_of(major: float, minor: float) -> ShapeDescriptor:
    return ShapeDescriptor(major=major, minor=minor)


class SignalCalibrator:
    """Holds the calibration state for the single active touch.

    Only the most recent sample is kept, so a long-running sample stream never
    grows this object. Losing contact resets everything, zero offset included.
    """

    def __init__(self) -> None:
        self.has_touch = False
        self.weight = 0.0
        self.zero_offset = 0.0
        self.shape: ShapeDescriptor | None = None
        self._raw_pressure = 0.0

    def process(self, samples: Sequence[TouchSample]) -> None:
        if not samples:
            self.reset()
            return

        touch = samples[0]
        self.has_touch = True
        self._raw_pressure = touch.pressure
        self.weight = calibrate(touch.pressure, self.zero_offset)
        if touch.major is not None and touch.minor is not None:
            self.shape = shape_of(touch.major, touch.minor)
        else:
            self.shape = None

    def zero(self) -> None:
        if self.has_touch:
            self.zero_offset = self._raw_pressure
            self.weight = calibrate(self._raw_pressure, self.zero_offset)

    def reset(self) -> None:
        self.has_touch = False
        self.weight = 0.0
        self.zero_offset = 0.0
        self.shape = None
        self._raw_pressure = 0.0

    def reading(self, kind: str = READING_SHAPE) -> CalibratedReading | None:
        if not self.has_touch:
            return None
        if kind == READING_SHAPE:
            return CalibratedReading(shape=self.shape) if self.shape is not None else None
        if kind == READING_WEIGHT:
            return CalibratedReading(weight=self.weight)
        raise ValueError(f"Unknown reading kind '{kind}'")


class ReadingTracker:
    """Calibrates and matches each delivery, publishing the latest match.

    ``kind`` selects which reading drives matching: the touch ellipse
    (``"shape"``) or the calibrated pressure (``"weight"``). ``latest_match``
    is rebound in a single assignment per delivery, so readers on other
    threads see either the previous or the new profile.
    """

    def __init__(
        self,
        matcher: ProfileMatcher,
        calibrator: SignalCalibrator | None = None,
        *,
        kind: str = READING_SHAPE,
    ) -> None:
        if kind not in (READING_SHAPE, READING_WEIGHT):
            raise ValueError(f"Unknown reading kind '{kind}'")
        self.matcher = matcher
        self.calibrator = calibrator or SignalCalibrator()
        self.kind = kind
        self.latest_reading: CalibratedReading | None = None
        self.latest_match: DeviceProfile | None = None

    def feed(self, samples: Sequence[TouchSample]) -> DeviceProfile | None:
        self.calibrator.process(samples)
        reading = self.calibrator.reading(self.kind)
        match = self.matcher.match_reading(reading) if reading is not None else None
        self.latest_reading = reading
        self.latest_match = match
        return match

    def zero(self) -> None:
        self.calibrator.zero()
