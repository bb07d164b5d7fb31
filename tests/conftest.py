"""Shared test fixtures for fsmsync tests."""
from __future__ import annotations

import os

import pytest

import settings


_DATA_DIR = os.path.join(os.path.dirname(__file__), "data")


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the settings singleton at an empty config directory."""
    monkeypatch.setattr(settings.platformdirs, "user_config_dir", lambda app_name: str(tmp_path / app_name))
    monkeypatch.setattr(settings, "_settings_manager", None)
    yield settings.get_settings()
    monkeypatch.setattr(settings, "_settings_manager", None)


@pytest.fixture
def load_fixture():
    """Return a loader for files in ``tests/data``."""
    def _load(name: str) -> str:
        with open(os.path.join(_DATA_DIR, name), "r", encoding="utf-8") as f:
            return f.read()
    return _load
