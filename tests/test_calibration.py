from __future__ import annotations

import pytest

from iconnect.core.calibration import ReadingTracker, SignalCalibrator, calibrate, shape_of
from iconnect.core.model import DeviceProfile, ShapeDescriptor, ShapeRule, TouchSample, WeightRange
from iconnect.core.profile_match import ProfileMatcher

PROFILES = (
    DeviceProfile(
        id="oval",
        name="AirPods",
        search_term="AirPods",
        shape=ShapeRule(aspect_min=1.2, aspect_max=4.0, min_major=3.0),
    ),
    DeviceProfile(id="case", name="AirPods case", search_term="AirPods", weight=WeightRange(38, 52)),
)


def test_calibrate_subtracts_offset_and_clamps_at_zero() -> None:
    assert calibrate(50.0, 10.0) == 40.0
    assert calibrate(5.0, 10.0) == 0.0


def test_shape_of_passes_axes_through() -> None:
    assert shape_of(6.0, 0.0) == ShapeDescriptor(major=6.0, minor=0.0)


def test_zero_uses_current_raw_pressure() -> None:
    calibrator = SignalCalibrator()
    calibrator.process([TouchSample(pressure=12.0)])
    calibrator.zero()
    assert calibrator.zero_offset == 12.0
    assert calibrator.weight == 0.0

    calibrator.process([TouchSample(pressure=55.0)])
    assert calibrator.weight == 43.0


def test_zero_without_touch_is_noop() -> None:
    calibrator = SignalCalibrator()
    calibrator.process([TouchSample(pressure=12.0)])
    calibrator.zero()
    calibrator.process([])

    calibrator.zero()
    calibrator.zero()
    assert calibrator.zero_offset == 0.0
    assert calibrator.has_touch is False


def test_touch_loss_resets_everything() -> None:
    calibrator = SignalCalibrator()
    calibrator.process([TouchSample(pressure=30.0, major=6.0, minor=3.0)])
    calibrator.zero()
    calibrator.process([TouchSample(pressure=80.0, major=6.0, minor=3.0)])
    assert calibrator.weight == 50.0
    assert calibrator.shape is not None

    calibrator.process([])
    assert calibrator.weight == 0.0
    assert calibrator.zero_offset == 0.0
    assert calibrator.shape is None
    assert calibrator.reading() is None


def test_sample_without_axes_has_no_shape() -> None:
    calibrator = SignalCalibrator()
    calibrator.process([TouchSample(pressure=40.0, major=6.0, minor=3.0)])
    calibrator.process([TouchSample(pressure=40.0)])
    assert calibrator.shape is None
    assert calibrator.reading("shape") is None
    assert calibrator.reading("weight").weight == 40.0


def test_only_first_touch_is_used() -> None:
    calibrator = SignalCalibrator()
    calibrator.process([TouchSample(pressure=10.0), TouchSample(pressure=99.0)])
    assert calibrator.weight == 10.0


def test_tracker_publishes_latest_shape_match() -> None:
    tracker = ReadingTracker(ProfileMatcher(PROFILES))

    assert tracker.feed([TouchSample(pressure=5.0, major=6.0, minor=3.0)]).id == "oval"
    assert tracker.latest_match is not None
    assert tracker.latest_reading.shape == ShapeDescriptor(6.0, 3.0)

    assert tracker.feed([]) is None
    assert tracker.latest_match is None
    assert tracker.latest_reading is None


def test_tracker_weight_mode_uses_calibrated_weight() -> None:
    tracker = ReadingTracker(ProfileMatcher(PROFILES), kind="weight")

    tracker.feed([TouchSample(pressure=10.0)])
    tracker.zero()
    assert tracker.feed([TouchSample(pressure=55.0)]).id == "case"
    assert tracker.feed([TouchSample(pressure=100.0)]) is None


def test_tracker_rejects_unknown_kind() -> None:
    with pytest.raises(ValueError):
        ReadingTracker(ProfileMatcher(PROFILES), kind="colour")
