"""Connection orchestration: power check, device selection, mechanism chain.

Every public operation starts from a fresh state, walks
``Probing -> Enumerating -> Selecting -> Attempting`` as far as it can, and
returns a :class:`ConnectResult`. Failures never propagate to the caller; they
end in the settings fallback plus a readable ``last_error``.

Operations are meant to be called serially by a single owner. Calling one
while another is in flight is a caller bug: it is logged, not prevented.
Connection success only means a request was issued; the link itself is not
verified.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence

from iconnect.core.directory import PairedDeviceDirectory
from iconnect.core.errors import DirectoryUnavailableError, NoCandidateError, ToolError
from iconnect.core.model import (
    ConnectionAttemptState,
    ConnectOutcome,
    ConnectResult,
    DeviceProfile,
    PairedDeviceRecord,
)
from iconnect.core.power import PowerProbe
from iconnect.tools.base import Connector, SettingsSurface

LOGGER = logging.getLogger(__name__)

MECHANISM_CONNECTOR = "connector_tool"
MECHANISM_NATIVE = "native_open"

MSG_POWER_ON_REQUESTED = "Bluetooth was off. Turning it on... try Connect again in a moment."
MSG_POWER_ON_FAILED = "Bluetooth is off. Turn it on in Bluetooth settings, then try Connect again."
MSG_DIRECTORY_UNAVAILABLE = "Could not read paired Bluetooth devices. Connect manually in Bluetooth settings."
MSG_NO_CANDIDATE = "No paired audio device found. Pair or connect it in Bluetooth settings."
MSG_EXHAUSTED = "Could not connect to {name}. Connect manually in Bluetooth settings."


def audio_devices(devices: Sequence[PairedDeviceRecord]) -> list[PairedDeviceRecord]:
    return [device for device in devices if device.is_audio]


def select_candidate(devices: Sequence[PairedDeviceRecord]) -> PairedDeviceRecord:
    """Prefer the first disconnected device, else the first one."""
    if not devices:
        raise NoCandidateError("No paired audio devices")
    for device in devices:
        if not device.is_connected():
            return device
    return devices[0]


def find_by_name(devices: Sequence[PairedDeviceRecord], substring: str) -> PairedDeviceRecord | None:
    # A blank needle would match every device.
    needle = substring.strip().lower()
    if not needle:
        return None
    for device in devices:
        if needle in device.display_name.lower() or substring in device.address:
            return device
    return None


class ConnectionOrchestrator:
    def __init__(
        self,
        *,
        power: PowerProbe,
        directory: PairedDeviceDirectory,
        connector: Connector,
        settings: SettingsSurface,
        settings_urls: Sequence[str],
    ) -> None:
        self.power = power
        self.directory = directory
        self.connector = connector
        self.settings = settings
        self.settings_urls = tuple(settings_urls)
        self._state = ConnectionAttemptState()

    @property
    def state(self) -> ConnectionAttemptState:
        return self._state

    def connect_best_audio_accessory(self) -> ConnectResult:
        self._begin()
        try:
            return self._connect_best()
        finally:
            self._finish()

    def connect_by_name(self, substring: str) -> ConnectResult:
        self._begin()
        try:
            try:
                devices = self.directory.list()
            except DirectoryUnavailableError as exc:
                LOGGER.info("Name lookup skipped: %s", exc)
                devices = []

            device = find_by_name(devices, substring)
            if device is None:
                LOGGER.info("No paired device matches '%s'; trying any audio device", substring)
                return self._connect_best()

            if device.is_connected():
                LOGGER.info("%s is already connected", device.display_name)
                return self._result(ConnectOutcome.ALREADY_CONNECTED, device)

            return self._attempt(device)
        finally:
            self._finish()

    def connect_profile(self, profile: DeviceProfile) -> ConnectResult:
        return self.connect_by_name(profile.search_term)

    def _connect_best(self) -> ConnectResult:
        if not self.power.is_powered_on():
            return self._handle_powered_off()

        try:
            devices = self.directory.list()
        except DirectoryUnavailableError as exc:
            LOGGER.warning("%s", exc)
            return self._give_up(ConnectOutcome.DIRECTORY_ERROR, MSG_DIRECTORY_UNAVAILABLE)

        try:
            device = select_candidate(audio_devices(devices))
        except NoCandidateError:
            LOGGER.info("None of %d paired devices is an audio device", len(devices))
            return self._give_up(ConnectOutcome.NO_CANDIDATE, MSG_NO_CANDIDATE)

        return self._attempt(device)

    def _handle_powered_off(self) -> ConnectResult:
        requested = self.power.request_power_on()
        message = MSG_POWER_ON_REQUESTED if requested else MSG_POWER_ON_FAILED
        self._update(bluetooth_was_off=True, last_error=message)
        if not requested:
            self.settings.open(self.settings_urls)
        # The radio comes up asynchronously; the caller must trigger again.
        return self._result(ConnectOutcome.POWERED_OFF)

    def _attempt(self, device: PairedDeviceRecord) -> ConnectResult:
        LOGGER.info("Connecting to %s (%s)", device.display_name, device.address)
        try:
            result = self.connector.connect(device.address)
        except ToolError as exc:
            LOGGER.info("Connector tool unavailable: %s", exc)
        else:
            if result.ok:
                return self._result(ConnectOutcome.ATTEMPT_ISSUED, device, MECHANISM_CONNECTOR)
            LOGGER.info("Connector tool failed (rc=%s): %s", result.returncode, result.stderr.strip())

        try:
            self.directory.open(device.address)
        except ToolError as exc:
            LOGGER.warning("Native connection request failed: %s", exc)
        else:
            return self._result(ConnectOutcome.ATTEMPT_ISSUED, device, MECHANISM_NATIVE)

        return self._give_up(
            ConnectOutcome.EXHAUSTED,
            MSG_EXHAUSTED.format(name=device.display_name),
            device,
        )

    def _give_up(
        self,
        outcome: ConnectOutcome,
        message: str,
        device: PairedDeviceRecord | None = None,
    ) -> ConnectResult:
        self._update(last_error=message)
        self.settings.open(self.settings_urls)
        return self._result(outcome, device)

    def _begin(self) -> None:
        if self._state.is_connecting:
            LOGGER.warning("Connect requested while another attempt is in progress")
        # One rebinding, so readers never see a partially reset state.
        self._state = ConnectionAttemptState(is_connecting=True)

    def _finish(self) -> None:
        self._update(is_connecting=False)

    def _update(self, **changes: object) -> None:
        self._state = dataclasses.replace(self._state, **changes)  # type: ignore[arg-type]

    def _result(
        self,
        outcome: ConnectOutcome,
        device: PairedDeviceRecord | None = None,
        mechanism: str | None = None,
    ) -> ConnectResult:
        LOGGER.info("Connect finished: %s", outcome.value)
        return ConnectResult(
            outcome=outcome,
            state=dataclasses.replace(self._state, is_connecting=False),
            device=device,
            mechanism=mechanism,
        )
