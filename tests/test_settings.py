import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
from PySide6.QtCore import QSettings

from timednotes.settings import (
    DATA_DIR_NAME,
    DATA_FILENAME,
    SettingsKeys,
    default_data_path,
    get_bool,
    get_str,
    resolve_data_path,
)


@pytest.fixture
def settings(tmp_path):
    return QSettings(str(tmp_path / "settings.ini"), QSettings.Format.IniFormat)


def test_default_data_path_layout():
    path = default_data_path()
    assert path.name == DATA_FILENAME
    assert path.parent.name == DATA_DIR_NAME


def test_resolve_prefers_override(settings, tmp_path):
    settings.setValue(SettingsKeys.DATA_FILE, str(tmp_path / "stored.csv"))
    assert resolve_data_path(settings, tmp_path / "cli.csv") == tmp_path / "cli.csv"


def test_resolve_uses_stored_setting(settings, tmp_path):
    settings.setValue(SettingsKeys.DATA_FILE, str(tmp_path / "stored.csv"))
    assert resolve_data_path(settings) == tmp_path / "stored.csv"


def test_resolve_falls_back_to_default(settings):
    assert resolve_data_path(settings) == default_data_path()
    assert resolve_data_path(None) == default_data_path()


def test_get_str_default(settings):
    assert get_str(settings, "missing/key", "fallback") == "fallback"


@pytest.mark.parametrize("stored, expected", [
    (True, True),
    (False, False),
    ("true", True),
    ("false", False),
    ("1", True),
    ("garbage", False),
])
def test_get_bool(settings, stored, expected):
    settings.setValue(SettingsKeys.HIDE_COMPLETED, stored)
    assert get_bool(settings, SettingsKeys.HIDE_COMPLETED, False) is expected


def test_get_bool_survives_ini_round_trip(tmp_path):
    ini = str(tmp_path / "settings.ini")
    first = QSettings(ini, QSettings.Format.IniFormat)
    first.setValue(SettingsKeys.HIDE_COMPLETED, True)
    first.sync()

    second = QSettings(ini, QSettings.Format.IniFormat)
    assert get_bool(second, SettingsKeys.HIDE_COMPLETED, False) is True
