"""Reading-to-profile matching logic."""

from __future__ import annotations

from collections.abc import Sequence

from iconnect.core.model import CalibratedReading, DeviceProfile


def _weight_match(weight: float, profile: DeviceProfile) -> bool:
    return profile.weight is not None and profile.weight.contains(weight)


def _shape_match(major: float, minor: float, profile: DeviceProfile) -> bool:
    rule = profile.shape
    if rule is None:
        return False
    if minor <= 0 or major < rule.min_major:
        return False
    ratio = major / minor
    return rule.aspect_min <= ratio <= rule.aspect_max


def match_by_weight(weight: float, profiles: Sequence[DeviceProfile]) -> DeviceProfile | None:
    # Ranges may overlap; declaration order breaks ties.
    for profile in profiles:
        if _weight_match(weight, profile):
            return profile
    return None


def match_by_shape(major: float, minor: float, profiles: Sequence[DeviceProfile]) -> DeviceProfile | None:
    if minor <= 0:
        return None
    for profile in profiles:
        if _shape_match(major, minor, profile):
            return profile
    return None


def match_reading(reading: CalibratedReading, profiles: Sequence[DeviceProfile]) -> DeviceProfile | None:
    if reading.shape is not None:
        return match_by_shape(reading.shape.major, reading.shape.minor, profiles)
    if reading.weight is not None:
        return match_by_weight(reading.weight, profiles)
    return None


class ProfileMatcher:
    def __init__(self, profiles: Sequence[DeviceProfile]) -> None:
        self.profiles = tuple(profiles)

    def match_by_weight(self, weight: float) -> DeviceProfile | None:
        return match_by_weight(weight, self.profiles)

    def match_by_shape(self, major: float, minor: float) -> DeviceProfile | None:
        return match_by_shape(major, minor, self.profiles)

    def match_reading(self, reading: CalibratedReading) -> DeviceProfile | None:
        return match_reading(reading, self.profiles)

    def find(self, profile_id: str) -> DeviceProfile | None:
        for profile in self.profiles:
            if profile.id == profile_id:
                return profile
        return None
