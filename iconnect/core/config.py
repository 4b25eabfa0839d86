"""Runtime settings loaded from an optional YAML file."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from iconnect.core.errors import ConfigError
from iconnect.core.profile_loader import load_schema_validator, read_yaml, validate_document

LOGGER = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ICONNECT_CONFIG"

DEFAULT_PREFERENCES_PATH = "/Library/Preferences/com.apple.Bluetooth.plist"
MACOS_SETTINGS_URLS = (
    "x-apple.systempreferences:com.apple.BluetoothSettings",
    "x-apple.systempreferences:com.apple.preferences.Bluetooth",
)
# Desktop settings apps are started directly; "exec:" marks a command line.
LINUX_SETTINGS_URLS = (
    "exec:gnome-control-center bluetooth",
    "exec:systemsettings kcm_bluetooth",
    "exec:blueman-manager",
)


def _default_launcher() -> str:
    return "open" if sys.platform == "darwin" else "xdg-open"


def _default_settings_urls() -> tuple[str, ...]:
    return MACOS_SETTINGS_URLS if sys.platform == "darwin" else LINUX_SETTINGS_URLS


@dataclass(frozen=True)
class Settings:
    blueutil: str = "blueutil"
    bluetoothctl: str = "bluetoothctl"
    preferences_path: str = DEFAULT_PREFERENCES_PATH
    tool_timeout_s: float | None = None
    settings_urls: tuple[str, ...] = field(default_factory=_default_settings_urls)
    settings_launcher: str = field(default_factory=_default_launcher)


def config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "iconnect/config.yaml"


def load_settings(path: Path | None = None) -> Settings:
    path = path or config_path()
    if not path.exists():
        LOGGER.debug("No config file at %s; using defaults", path)
        return Settings()

    doc = read_yaml(path, load_error=ConfigError, validation_error=ConfigError)
    validate_document(load_schema_validator("config.schema.json"), doc, path, error_cls=ConfigError)

    values: dict[str, object] = dict(doc)
    if "settings_urls" in values:
        values["settings_urls"] = tuple(doc["settings_urls"])
    if values.get("tool_timeout_s") is not None:
        values["tool_timeout_s"] = float(doc["tool_timeout_s"])
    return Settings(**values)  # type: ignore[arg-type]
