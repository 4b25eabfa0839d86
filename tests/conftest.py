from __future__ import annotations

from pathlib import Path

import pytest

from iconnect.core.profile_loader import default_profiles
from iconnect.tools import process


@pytest.fixture(autouse=True)
def isolated_user_dirs(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("ICONNECT_CONFIG", raising=False)
    monkeypatch.setattr(process, "_DETACHED", [])
    default_profiles.cache_clear()
