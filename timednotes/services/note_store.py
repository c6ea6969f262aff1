# timednotes/services/note_store.py

from __future__ import annotations

import itertools
import logging
from dataclasses import replace
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Iterable, Optional

from timednotes.core.codec import DecodeError, decode_file, encode_file
from timednotes.core.models import (
    ErrorKind,
    LoadResult,
    LoadStatus,
    Note,
    NoteRef,
    OpResult,
)
from timednotes.infrastructure.filesystem import (
    atomic_write_text,
    read_text,
    write_recovery_copy,
)


log = logging.getLogger(__name__)

Listener = Callable[[str, OpResult], None]

# (text, age in days, completed)
SEED_NOTES = (
    ("lab 1", 30, False),
    ("Completed task", 25, True),
    ("Another note", 20, False),
    ("Done item", 15, True),
    ("Current task", 10, False),
)


def default_export_name(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"notes_export_{now:%Y-%m-%d_%H-%M-%S}.csv"


class NoteStore:
    """
    Owner of the master note collection.

    Responsibilities:
    - load / save the collection through the record codec
    - every mutation is followed by a full rewrite of the data file
    - derived, sorted views computed on demand

    Notes are addressed by surrogate id (or a Note carrying it). Anything this
    class hands out is a copy; mutate through the named operations only.
    """

    def __init__(
        self,
        path: Path,
        *,
        clock: Callable[[], datetime] = datetime.now,
        recovery_dir: Path | None = None,
    ):
        self.path = Path(path)
        self._clock = clock
        self._recovery_dir = Path(recovery_dir) if recovery_dir is not None else None

        self._notes: list[Note] = []
        # ids are never reused, even across reloads: stale refs resolve to NOT_FOUND
        self._ids = itertools.count(1)
        self._listeners: list[Listener] = []
        self.loaded = False

    def __len__(self) -> int:
        return len(self._notes)

    # ───────────────────────── queries ─────────────────────────

    def notes(self) -> list[Note]:
        """All notes in master (insertion) order, as copies."""
        return [replace(n) for n in self._notes]

    def get(self, ref: NoteRef) -> Optional[Note]:
        note = self._find(ref)
        return replace(note) if note is not None else None

    def view(self, hide_completed: bool = False) -> list[Note]:
        """
        Filtered, oldest-first view of the master collection.

        Equal timestamps keep master order (sorted() is stable). Recomputed on
        every call; never touches state.
        """
        return [replace(n) for n in self._visible(hide_completed)]

    # ───────────────────────── persistence ─────────────────────────

    def load(self, *, strict: bool = False) -> LoadResult:
        """
        Replace the master collection with the file contents.

        - file missing        -> seed set, FRESH
        - read error          -> seed set, LOAD_FAILED_SEEDED
        - bad record (strict) -> seed set, LOAD_FAILED_SEEDED
        - bad record          -> skipped and counted, LOADED
        Loading never writes the file.
        """
        try:
            if not self.path.exists():
                self._replace_all(self._seed_notes())
                result = LoadResult(LoadStatus.FRESH, len(self._notes))
                log.info("No data file at %s, starting with %d sample notes", self.path, result.count)
                return self._finish_load(result)

            report = decode_file(read_text(self.path), strict=strict)

        except (OSError, UnicodeDecodeError, DecodeError) as e:
            log.warning("Failed to load notes from %s: %s", self.path, e)
            kind = ErrorKind.DECODE_FAILURE if isinstance(e, DecodeError) else ErrorKind.STORAGE_UNAVAILABLE
            self._replace_all(self._seed_notes())
            result = LoadResult(
                LoadStatus.LOAD_FAILED_SEEDED, len(self._notes), error=str(e), error_kind=kind
            )
            return self._finish_load(result)

        for err in report.errors:
            log.warning("Skipped malformed record in %s: %s", self.path, err)

        self._replace_all(report.notes)
        result = LoadResult(LoadStatus.LOADED, len(self._notes), skipped=report.skipped)
        log.info("Loaded %d notes from %s (skipped=%d)", result.count, self.path, result.skipped)
        return self._finish_load(result)

    def save(self) -> OpResult:
        """Full rewrite of the data file. Memory is left alone on failure."""
        text = encode_file(self._notes)
        try:
            atomic_write_text(self.path, text, encoding="utf-8")
        except (OSError, UnicodeError) as e:
            log.exception("Failed to save %d notes to %s", len(self._notes), self.path)
            message = f"Error saving notes: {e}"
            recovery = self._write_recovery(text)
            if recovery is not None:
                message += f" (recovery copy: {recovery})"
            return OpResult(
                ok=False, error=ErrorKind.STORAGE_UNAVAILABLE, message=message
            )

        log.debug("Saved %d notes to %s", len(self._notes), self.path)
        return OpResult(ok=True, count=len(self._notes))

    def export(self, dest: Path) -> OpResult:
        """Write the whole collection to dest using the data file encoding."""
        dest = Path(dest)
        if _same_file(dest, self.path):
            return OpResult(
                ok=False,
                error=ErrorKind.VALIDATION_FAILURE,
                message="Export destination is the data file itself.",
            )
        try:
            atomic_write_text(dest, encode_file(self._notes), encoding="utf-8")
        except (OSError, UnicodeError) as e:
            log.exception("Export to %s failed", dest)
            return OpResult(
                ok=False, error=ErrorKind.STORAGE_UNAVAILABLE, message=f"Error exporting notes: {e}"
            )

        log.info("Exported %d notes to %s", len(self._notes), dest)
        return OpResult(ok=True, count=len(self._notes))

    # ───────────────────────── mutations ─────────────────────────

    def add(self, text: str) -> OpResult:
        problem = _text_problem(text)
        if problem:
            return _invalid(problem)

        note = self._adopt(Note(text=text, timestamp=self._now(), completed=False))
        self._notes.append(note)
        return self._commit("add", note=note)

    def edit(self, ref: NoteRef, text: str) -> OpResult:
        """New text and a fresh timestamp; the completed flag is kept."""
        problem = _text_problem(text)
        if problem:
            return _invalid(problem)

        note = self._find(ref)
        if note is None:
            return _not_found(ref)

        note.text = text
        note.timestamp = self._now()
        return self._commit("edit", note=note)

    def delete(self, ref: NoteRef) -> OpResult:
        note = self._find(ref)
        if note is None:
            return _not_found(ref)

        self._notes = [n for n in self._notes if n.id != note.id]
        return self._commit("delete", note=note)

    def toggle_completed(self, ref: NoteRef) -> OpResult:
        note = self._find(ref)
        if note is None:
            return _not_found(ref)

        note.completed = not note.completed
        return self._commit("toggle", note=note)

    def mark_all_visible_completed(self, hide_completed: bool) -> OpResult:
        """Complete every note the given filter shows; one save for the batch."""
        changed = 0
        for note in self._visible(hide_completed):
            if not note.completed:
                note.completed = True
                changed += 1

        return self._commit("mark_all", count=changed)

    def clear_completed(self) -> OpResult:
        """
        Drop every completed note.
        Nothing completed -> count=0, applied=False and no save.
        """
        completed = sum(1 for n in self._notes if n.completed)
        if completed == 0:
            return OpResult(ok=True, applied=False, count=0, message="No completed notes to clear.")

        self._notes = [n for n in self._notes if not n.completed]
        return self._commit("clear_completed", count=completed)

    # ───────────────────────── listeners ─────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register listener(event, result), called after load and after every
        applied mutation. Returns a callable that unsubscribes.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ───────────────────────── internal ─────────────────────────

    def _now(self) -> datetime:
        return self._clock().replace(microsecond=0)

    def _adopt(self, note: Note) -> Note:
        note.id = next(self._ids)
        return note

    def _replace_all(self, notes: Iterable[Note]) -> None:
        self._notes = [self._adopt(n) for n in notes]

    def _seed_notes(self) -> list[Note]:
        now = self._now()
        return [
            Note(text=text, timestamp=now - timedelta(days=age), completed=done)
            for text, age, done in SEED_NOTES
        ]

    def _find(self, ref: NoteRef) -> Optional[Note]:
        note_id = ref.id if isinstance(ref, Note) else ref
        for note in self._notes:
            if note.id == note_id:
                return note
        return None

    def _visible(self, hide_completed: bool) -> list[Note]:
        items = (n for n in self._notes if not (hide_completed and n.completed))
        return sorted(items, key=lambda n: n.timestamp)

    def _finish_load(self, result: LoadResult) -> LoadResult:
        self.loaded = True
        self._notify("load", OpResult(ok=result.status is LoadStatus.LOADED, count=result.count))
        return result

    def _commit(self, event: str, *, note: Note | None = None, count: int = 0) -> OpResult:
        saved = self.save()
        result = OpResult(
            ok=saved.ok,
            applied=True,
            error=saved.error,
            message=saved.message,
            count=count,
            note=replace(note) if note is not None else None,
        )
        log.debug("%s applied (id=%s count=%d saved=%s)", event, note.id if note else None, count, saved.ok)
        self._notify(event, result)
        return result

    def _notify(self, event: str, result: OpResult) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, result)
            except Exception:
                log.exception("Note store listener failed on %s", event)

    def _write_recovery(self, text: str) -> Path | None:
        if self._recovery_dir is None:
            return None
        try:
            path = write_recovery_copy(self._recovery_dir, self.path, text)
        except (OSError, UnicodeError):
            log.exception("Recovery copy failed as well")
            return None
        log.warning("Recovery copy written: %s", path)
        return path


def _text_problem(text: str | None) -> str | None:
    if not text or not text.strip():
        return "Please enter a note."
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        # e.g. undecodable argv bytes smuggled in as lone surrogates
        return "Note text contains characters that cannot be saved."
    return None


def _invalid(message: str) -> OpResult:
    return OpResult(ok=False, error=ErrorKind.VALIDATION_FAILURE, message=message)


def _not_found(ref: NoteRef) -> OpResult:
    note_id = ref.id if isinstance(ref, Note) else ref
    return OpResult(ok=False, error=ErrorKind.NOT_FOUND, message=f"No note with id {note_id}.")


def _same_file(a: Path, b: Path) -> bool:
    try:
        return a.resolve() == b.resolve()
    except OSError:
        return False
