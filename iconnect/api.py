"""Stable public API for building tooling on top of iconnect.

This module is the supported integration surface for third-party callers.
Every collaborator can be injected, which is how tests and alternative hosts
swap out the process-spawning defaults.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from iconnect.core.calibration import ReadingTracker, SignalCalibrator
from iconnect.core.config import Settings, load_settings
from iconnect.core.directory import BluetoothctlDirectory, PairedDeviceDirectory
from iconnect.core.errors import (
    ConfigError,
    DirectoryUnavailableError,
    IConnectError,
    NoCandidateError,
    ProfileLoadError,
    ProfileValidationError,
    ToolError,
    ToolFailedError,
    ToolUnavailableError,
)
from iconnect.core.model import (
    CalibratedReading,
    ConnectionAttemptState,
    ConnectOutcome,
    ConnectResult,
    DeviceProfile,
    PairedDeviceRecord,
    ShapeDescriptor,
    ShapeRule,
    TouchSample,
    WeightRange,
)
from iconnect.core.orchestrator import ConnectionOrchestrator
from iconnect.core.power import PowerProbe
from iconnect.core.profile_loader import default_profiles
from iconnect.core.profile_match import ProfileMatcher
from iconnect.tools.base import Connector, PowerQuery, PowerSetter, SettingsSurface
from iconnect.tools.blueutil import ConnectorTool, PowerQueryTool, PowerSetTool
from iconnect.tools.settings import SettingsOpener

__all__ = [
    "IConnectError",
    "ConfigError",
    "DirectoryUnavailableError",
    "NoCandidateError",
    "ProfileLoadError",
    "ProfileValidationError",
    "ToolError",
    "ToolFailedError",
    "ToolUnavailableError",
    "CalibratedReading",
    "ConnectionAttemptState",
    "ConnectOutcome",
    "ConnectResult",
    "DeviceProfile",
    "PairedDeviceRecord",
    "ShapeDescriptor",
    "ShapeRule",
    "TouchSample",
    "WeightRange",
    "Settings",
    "Client",
]


class Client:
    """Public client wrapping profile matching and connection orchestration.

    Only the collaborators that are not supplied are built, from ``settings``
    (loaded from the config file when omitted).
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        profiles: Sequence[DeviceProfile] | None = None,
        directory: PairedDeviceDirectory | None = None,
        connector: Connector | None = None,
        power_query: PowerQuery | None = None,
        power_setter: PowerSetter | None = None,
        settings_surface: SettingsSurface | None = None,
        reading_kind: str = "shape",
    ) -> None:
        self.settings = settings or load_settings()
        timeout_s = self.settings.tool_timeout_s

        if profiles is None:
            loaded = default_profiles()
            profiles = loaded.profiles
            self.load_warnings = loaded.warnings
        else:
            self.load_warnings = ()

        self.matcher = ProfileMatcher(profiles)
        self.tracker = ReadingTracker(self.matcher, SignalCalibrator(), kind=reading_kind)
        self.directory = directory or BluetoothctlDirectory(self.settings.bluetoothctl, timeout_s=timeout_s)
        self.power = PowerProbe(
            power_query or PowerQueryTool(self.settings.blueutil, timeout_s=timeout_s),
            power_setter or PowerSetTool(self.settings.blueutil, timeout_s=timeout_s),
            Path(self.settings.preferences_path),
        )
        self._orchestrator = ConnectionOrchestrator(
            power=self.power,
            directory=self.directory,
            connector=connector or ConnectorTool(self.settings.blueutil, timeout_s=timeout_s),
            settings=settings_surface or SettingsOpener(self.settings.settings_launcher, timeout_s=timeout_s),
            settings_urls=self.settings.settings_urls,
        )

    @property
    def state(self) -> ConnectionAttemptState:
        return self._orchestrator.state

    def list_profiles(self) -> list[DeviceProfile]:
        return list(self.matcher.profiles)

    def list_devices(self) -> list[PairedDeviceRecord]:
        return self.directory.list()

    def match_weight(self, weight: float) -> DeviceProfile | None:
        return self.matcher.match_by_weight(weight)

    def match_shape(self, major: float, minor: float) -> DeviceProfile | None:
        return self.matcher.match_by_shape(major, minor)

    def feed(self, samples: Sequence[TouchSample]) -> DeviceProfile | None:
        return self.tracker.feed(samples)

    def is_powered_on(self) -> bool:
        return self.power.is_powered_on()

    def connect_best(self) -> ConnectResult:
        return self._orchestrator.connect_best_audio_accessory()

    def connect_by_name(self, substring: str) -> ConnectResult:
        return self._orchestrator.connect_by_name(substring)

    def connect_profile(self, profile: DeviceProfile) -> ConnectResult:
        return self._orchestrator.connect_profile(profile)

    def connect_detected(self) -> ConnectResult:
        """Connect the accessory last recognised from touch samples, if any."""
        profile = self.tracker.latest_match
        if profile is None:
            return self.connect_best()
        return self.connect_profile(profile)
