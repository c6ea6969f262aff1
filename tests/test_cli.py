import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
from PySide6.QtCore import QSettings

from timednotes.cli import main
from timednotes.core.codec import HEADER
from timednotes.settings import SettingsKeys


@pytest.fixture
def settings(tmp_path):
    return QSettings(str(tmp_path / "settings.ini"), QSettings.Format.IniFormat)


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "notes.csv"


@pytest.fixture
def run(settings, data_file):
    def _run(*args):
        return main(["--file", str(data_file), *args], settings=settings, setup_logs=False)
    return _run


def test_list_fresh_shows_sample_notes(run, capsys, data_file):
    assert run("list") == 0

    out = capsys.readouterr().out
    assert "lab 1" in out
    assert "Current task" in out
    assert "5 of 5 notes shown" in out
    assert not data_file.exists()


def test_list_hide_completed_is_remembered(run, capsys, settings):
    assert run("list", "--hide-completed") == 0
    assert "3 of 5 notes shown" in capsys.readouterr().out
    assert settings.value(SettingsKeys.HIDE_COMPLETED) in (True, "true")

    assert run("list") == 0
    assert "3 of 5 notes shown" in capsys.readouterr().out

    assert run("list", "--show-completed") == 0
    assert "5 of 5 notes shown" in capsys.readouterr().out


def test_add_writes_file(run, capsys, data_file):
    assert run("add", "Buy milk, eggs") == 0
    assert "Added note 6." in capsys.readouterr().out

    lines = data_file.read_text(encoding="utf-8").splitlines()
    assert lines[0] == HEADER
    assert len(lines) == 7
    assert lines[-1].startswith('"Buy milk, eggs",')


def test_add_blank_fails(run, capsys, data_file):
    assert run("add", "   ") == 1
    assert "Please enter a note." in capsys.readouterr().err
    assert not data_file.exists()


def test_toggle_and_edit(run, capsys, data_file):
    assert run("toggle", "1") == 0
    assert "Note 1 is now completed." in capsys.readouterr().out

    assert run("edit", "1", "lab 1 (graded)") == 0
    content = data_file.read_text(encoding="utf-8")
    assert "lab 1 (graded)" in content
    assert "lab 1," not in content


def test_unknown_id_fails(run, capsys):
    assert run("toggle", "99") == 1
    assert "No note with id 99." in capsys.readouterr().err


def test_delete_asks_for_confirmation(run, capsys, monkeypatch, data_file):
    monkeypatch.setattr("builtins.input", lambda prompt: "n")
    assert run("delete", "1") == 0
    assert not data_file.exists()

    monkeypatch.setattr("builtins.input", lambda prompt: "y")
    assert run("delete", "1") == 0
    assert "Note deleted successfully." in capsys.readouterr().out
    assert "lab 1" not in data_file.read_text(encoding="utf-8")


def test_clear_completed(run, capsys, data_file):
    assert run("clear-completed", "--yes") == 0
    assert "Deleted 2 completed notes." in capsys.readouterr().out
    assert len(data_file.read_text(encoding="utf-8").splitlines()) == 4

    assert run("clear-completed", "--yes") == 0
    assert "No completed notes to clear." in capsys.readouterr().out


def test_mark_all_visible(run, capsys, data_file):
    assert run("mark-all", "--yes") == 0
    assert "Marked 3 notes as completed." in capsys.readouterr().out
    assert ",False" not in data_file.read_text(encoding="utf-8")


def test_export(run, capsys, tmp_path, data_file):
    dest = tmp_path / "backup" / "export.csv"

    assert run("export", str(dest)) == 0

    assert "Successfully exported 5 notes" in capsys.readouterr().out
    assert dest.read_text(encoding="utf-8").splitlines()[0] == HEADER
    assert not data_file.exists()


def test_skipped_lines_are_reported(run, capsys, data_file):
    data_file.write_text(
        f"{HEADER}\ngood,2024-01-01 10:00:00,False\nbad,never,False\n", encoding="utf-8"
    )

    assert run("list") == 0

    captured = capsys.readouterr()
    assert "Skipped 1 unreadable lines" in captured.err
    assert "good" in captured.out
    assert "1 of 1 notes shown" in captured.out


def test_add_undecodable_argument_fails_cleanly(run, capsys, data_file):
    text = b"caf\xff".decode("utf-8", "surrogateescape")

    assert run("add", text) == 1
    assert "cannot be saved" in capsys.readouterr().err
    assert not data_file.exists()
