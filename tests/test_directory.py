from __future__ import annotations

import subprocess

import pytest

from iconnect.core.directory import BluetoothctlDirectory
from iconnect.core.errors import DirectoryUnavailableError, ToolUnavailableError
from iconnect.tools import process

_INFO = {
    "88:92:CC:11:22:33": "Device 88:92:CC:11:22:33 (public)\n\tName: Jo's AirPods\n\tClass: 0x00240418\n\tConnected: no\n",
    "00:11:22:33:44:55": "Device 00:11:22:33:44:55 (public)\n\tAlias: 00-11-22-33-44-55\n\tClass: 0x000104\n\tConnected: yes\n",
}


def _cp(cmd: list[str], rc: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(cmd, rc, stdout=stdout, stderr=stderr)


def test_list_reads_class_and_connection(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, **kwargs):
        if cmd[1:] == ["devices", "Paired"]:
            return _cp(
                cmd,
                0,
                stdout="Device 88:92:CC:11:22:33 Jo's AirPods\nDevice 00:11:22:33:44:55 00-11-22-33-44-55\n",
            )
        if cmd[1] == "info":
            return _cp(cmd, 0, stdout=_INFO[cmd[2]])
        raise AssertionError(f"Unexpected cmd: {cmd}")

    monkeypatch.setattr(subprocess, "run", fake_run)

    devices = BluetoothctlDirectory().list()
    assert [d.address for d in devices] == ["88:92:CC:11:22:33", "00:11:22:33:44:55"]

    airpods, unnamed = devices
    assert airpods.name == "Jo's AirPods"
    assert airpods.class_of_device == 0x240418
    assert airpods.is_audio
    assert not airpods.is_connected()

    assert unnamed.name is None
    assert unnamed.display_name == "00:11:22:33:44:55"
    assert not unnamed.is_audio
    assert unnamed.is_connected()


def test_list_falls_back_to_legacy_command(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, **kwargs):
        if cmd[1:] == ["devices", "Paired"]:
            return _cp(cmd, 1, stderr="Invalid command")
        if cmd[1:] == ["paired-devices"]:
            return _cp(cmd, 0, stdout="Device 88:92:CC:11:22:33 Jo's AirPods\n")
        if cmd[1] == "info":
            return _cp(cmd, 1)
        raise AssertionError(f"Unexpected cmd: {cmd}")

    monkeypatch.setattr(subprocess, "run", fake_run)

    devices = BluetoothctlDirectory().list()
    assert len(devices) == 1
    assert devices[0].name == "Jo's AirPods"
    assert devices[0].class_of_device == 0


def test_list_raises_when_all_commands_fail(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, **kwargs):
        return _cp(cmd, -6, stderr="dbus crashed")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(DirectoryUnavailableError) as exc:
        BluetoothctlDirectory().list()
    assert "dbus crashed" in str(exc.value)


def test_list_raises_when_tool_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(DirectoryUnavailableError):
        BluetoothctlDirectory().list()


def test_open_keeps_colon_address_and_does_not_wait(monkeypatch: pytest.MonkeyPatch) -> None:
    spawned: list[list[str]] = []

    class FakePopen:
        def __init__(self, cmd, **kwargs):
            spawned.append(cmd)
            assert kwargs["start_new_session"] is True

        def poll(self):
            return None

    monkeypatch.setattr(subprocess, "Popen", FakePopen)

    BluetoothctlDirectory().open("AA:BB:CC:DD:EE:FF")
    assert spawned == [["bluetoothctl", "connect", "AA:BB:CC:DD:EE:FF"]]


def test_open_spawn_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_popen(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(subprocess, "Popen", fake_popen)

    with pytest.raises(ToolUnavailableError):
        BluetoothctlDirectory().open("AA:BB:CC:DD:EE:FF")


def test_class_with_decimal_suffix_is_parsed(monkeypatch: pytest.MonkeyPatch) -> None:
    info = "Device 88:92:CC:11:22:33 (public)\n\tName: Jo's AirPods\n\tClass: 0x00240418 (2360344)\n\tConnected: no\n"

    def fake_run(cmd, **kwargs):
        if cmd[1:] == ["devices", "Paired"]:
            return _cp(cmd, 0, stdout="Device 88:92:CC:11:22:33 Jo's AirPods\n")
        if cmd[1] == "info":
            return _cp(cmd, 0, stdout=info)
        raise AssertionError(f"Unexpected cmd: {cmd}")

    monkeypatch.setattr(subprocess, "run", fake_run)

    (airpods,) = BluetoothctlDirectory().list()
    assert airpods.class_of_device == 0x240418
    assert airpods.is_audio


def test_unparseable_class_is_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    info = "Device 88:92:CC:11:22:33 (public)\n\tClass: unknown\n"

    def fake_run(cmd, **kwargs):
        if cmd[1:] == ["devices", "Paired"]:
            return _cp(cmd, 0, stdout="Device 88:92:CC:11:22:33 Buds\n")
        return _cp(cmd, 0, stdout=info)

    monkeypatch.setattr(subprocess, "run", fake_run)

    (device,) = BluetoothctlDirectory().list()
    assert device.class_of_device == 0
    assert not device.is_audio


def test_open_reaps_finished_requests(monkeypatch: pytest.MonkeyPatch) -> None:
    children: list[FakeChild] = []

    class FakeChild:
        def __init__(self, cmd, **kwargs):
            self.returncode: int | None = None
            children.append(self)

        def poll(self):
            return self.returncode

    monkeypatch.setattr(subprocess, "Popen", FakeChild)

    directory = BluetoothctlDirectory()
    directory.open("AA:BB:CC:DD:EE:01")
    directory.open("AA:BB:CC:DD:EE:02")
    assert process.reap_detached() == 2

    children[0].returncode = 0
    assert process.reap_detached() == 1

    children[1].returncode = 1
    directory.open("AA:BB:CC:DD:EE:03")
    assert process._DETACHED == [children[2]]
