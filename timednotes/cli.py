# timednotes/cli.py
"""Command line front end.

A thin collaborator over NoteStore: it picks the data file, asks for
confirmation before destructive commands and prints views. All state changes
go through the store, which saves after every one of them.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from PySide6.QtCore import QSettings

from timednotes.core.codec import format_timestamp
from timednotes.core.models import LoadStatus, Note, OpResult
from timednotes.logging_setup import install_global_exception_hooks, setup_logging
from timednotes.services.note_store import NoteStore, default_export_name
from timednotes.settings import (
    RECOVERY_DIR,
    SettingsKeys,
    get_bool,
    open_settings,
    resolve_data_path,
)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="timednotes", description="Timed notes tracker")
    p.add_argument("--file", type=Path, default=None, help="Path to the notes CSV file")
    p.add_argument("--verbose", action="store_true", help="Log debug output to stderr")
    sub = p.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("list", help="Show notes, oldest first")
    _add_filter_flags(ls)
    ls.set_defaults(handler=cmd_list)

    add = sub.add_parser("add", help="Add a note")
    add.add_argument("text")
    add.set_defaults(handler=cmd_add)

    edit = sub.add_parser("edit", help="Replace a note's text (resets its time)")
    edit.add_argument("id", type=int)
    edit.add_argument("text")
    edit.set_defaults(handler=cmd_edit)

    delete = sub.add_parser("delete", help="Delete a note")
    delete.add_argument("id", type=int)
    delete.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    delete.set_defaults(handler=cmd_delete)

    toggle = sub.add_parser("toggle", help="Flip a note's completed flag")
    toggle.add_argument("id", type=int)
    toggle.set_defaults(handler=cmd_toggle)

    mark = sub.add_parser("mark-all", help="Mark every visible note completed")
    _add_filter_flags(mark)
    mark.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    mark.set_defaults(handler=cmd_mark_all)

    clear = sub.add_parser("clear-completed", help="Delete all completed notes")
    clear.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    clear.set_defaults(handler=cmd_clear_completed)

    export = sub.add_parser("export", help="Write all notes to another CSV file")
    export.add_argument("dest", type=Path, nargs="?", default=None)
    export.set_defaults(handler=cmd_export)

    return p


def _add_filter_flags(p: argparse.ArgumentParser) -> None:
    g = p.add_mutually_exclusive_group()
    g.add_argument("--hide-completed", dest="hide_completed", action="store_true", default=None)
    g.add_argument("--show-completed", dest="hide_completed", action="store_false")


# ───────────────────────── commands ─────────────────────────

def cmd_list(store: NoteStore, args: argparse.Namespace, settings: QSettings) -> int:
    hide = _hide_completed(args, settings)
    notes = store.view(hide)
    if not notes:
        print("No notes.")
        return 0
    for note in notes:
        print(format_row(note))
    print(f"{len(notes)} of {len(store)} notes shown")
    return 0


def cmd_add(store: NoteStore, args: argparse.Namespace, settings: QSettings) -> int:
    result = store.add(args.text)
    if result.ok:
        print(f"Added note {result.note.id}.")
    return _exit_code(result)


def cmd_edit(store: NoteStore, args: argparse.Namespace, settings: QSettings) -> int:
    result = store.edit(args.id, args.text)
    if result.ok:
        print(f"Updated note {args.id}.")
    return _exit_code(result)


def cmd_delete(store: NoteStore, args: argparse.Namespace, settings: QSettings) -> int:
    note = store.get(args.id)
    if note is None:
        return _exit_code(store.delete(args.id))
    if not _confirm(f'Are you sure you want to delete the note: "{note.text}"?', args):
        return 0

    result = store.delete(note)
    if result.ok:
        print("Note deleted successfully.")
    return _exit_code(result)


def cmd_toggle(store: NoteStore, args: argparse.Namespace, settings: QSettings) -> int:
    result = store.toggle_completed(args.id)
    if result.ok:
        state = "completed" if result.note.completed else "open"
        print(f"Note {args.id} is now {state}.")
    return _exit_code(result)


def cmd_mark_all(store: NoteStore, args: argparse.Namespace, settings: QSettings) -> int:
    hide = _hide_completed(args, settings)
    if not _confirm("Mark all visible notes as completed?", args):
        return 0

    result = store.mark_all_visible_completed(hide)
    if result.applied:
        print(f"Marked {result.count} notes as completed.")
    return _exit_code(result)


def cmd_clear_completed(store: NoteStore, args: argparse.Namespace, settings: QSettings) -> int:
    pending = sum(1 for n in store.notes() if n.completed)
    if pending == 0:
        print("No completed notes to clear.")
        return 0
    if not _confirm(f"Delete all {pending} completed notes? This cannot be undone.", args):
        return 0

    result = store.clear_completed()
    if result.applied:
        print(f"Deleted {result.count} completed notes.")
    return _exit_code(result)


def cmd_export(store: NoteStore, args: argparse.Namespace, settings: QSettings) -> int:
    dest = args.dest or Path.cwd() / default_export_name()
    result = store.export(dest)
    if result.ok:
        print(f"Successfully exported {result.count} notes to:\n{dest}")
    return _exit_code(result)


# ───────────────────────── helpers ─────────────────────────

def format_row(note: Note) -> str:
    mark = "x" if note.completed else " "
    text = " / ".join(note.text.splitlines()) if note.text else ""
    return f"{note.id:>4}  [{mark}]  {format_timestamp(note.timestamp)}  {text}"


def _hide_completed(args: argparse.Namespace, settings: QSettings) -> bool:
    if args.hide_completed is None:
        return get_bool(settings, SettingsKeys.HIDE_COMPLETED, False)
    # an explicit flag becomes the remembered filter
    settings.setValue(SettingsKeys.HIDE_COMPLETED, bool(args.hide_completed))
    return bool(args.hide_completed)


def _confirm(prompt: str, args: argparse.Namespace) -> bool:
    if getattr(args, "yes", False):
        return True
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _exit_code(result: OpResult) -> int:
    if result.ok:
        return 0
    print(result.message or "Operation failed.", file=sys.stderr)
    return 1


def main(argv: list[str] | None = None, *, settings: QSettings | None = None, setup_logs: bool = True) -> int:
    args = build_parser().parse_args(argv)

    if setup_logs:
        log = setup_logging(verbose=args.verbose)
        install_global_exception_hooks(log)

    settings = settings if settings is not None else open_settings()
    store = NoteStore(resolve_data_path(settings, args.file), recovery_dir=RECOVERY_DIR)

    loaded = store.load()
    if loaded.status is LoadStatus.LOAD_FAILED_SEEDED:
        print(f"Error loading notes: {loaded.error}\nStarting with sample data.", file=sys.stderr)
    elif loaded.skipped:
        print(f"Skipped {loaded.skipped} unreadable lines in {store.path}.", file=sys.stderr)

    return args.handler(store, args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
