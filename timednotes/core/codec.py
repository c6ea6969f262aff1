# timednotes/core/codec.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Iterator

from .models import Note


DELIMITER = ","
QUOTE = '"'

HEADER = "text,timestamp,completed"
# written by the first releases of the desktop app
LEGACY_HEADER = "NoteText,NoteDate,Completed"
KNOWN_HEADERS = frozenset({HEADER, LEGACY_HEADER})

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_NEEDS_QUOTING = (DELIMITER, QUOTE, "\n", "\r")


class DecodeError(ValueError):
    """A record that does not decode into a Note."""

    def __init__(self, message: str, *, line_no: int | None = None, line: str | None = None):
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)
        self.line_no = line_no
        self.line = line


@dataclass
class DecodeReport:
    notes: list[Note] = field(default_factory=list)
    errors: list[DecodeError] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.errors)


# ───────────────────────── encode ─────────────────────────

def escape_field(value: str) -> str:
    if not value:
        return QUOTE * 2
    if any(ch in value for ch in _NEEDS_QUOTING):
        return QUOTE + value.replace(QUOTE, QUOTE * 2) + QUOTE
    return value


def format_timestamp(ts: datetime) -> str:
    return ts.strftime(TIMESTAMP_FORMAT)


def format_bool(value: bool) -> str:
    return "True" if value else "False"


def encode_note(note: Note) -> str:
    return DELIMITER.join((
        escape_field(note.text),
        format_timestamp(note.timestamp),
        format_bool(note.completed),
    ))


def encode_file(notes: Iterable[Note]) -> str:
    """Header plus one record per note, each terminated by a newline."""
    lines = [HEADER]
    lines.extend(encode_note(n) for n in notes)
    return "\n".join(lines) + "\n"


# ───────────────────────── decode ─────────────────────────

def split_fields(line: str) -> list[str]:
    """
    Split one record into raw field values.

    Quote state is tracked per character: a quote toggles the quoted state,
    except a doubled quote inside a quoted field, which yields one literal quote.
    Delimiters inside quotes are content.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)

    while i < n:
        ch = line[i]
        if ch == QUOTE:
            if in_quotes and i + 1 < n and line[i + 1] == QUOTE:
                current.append(QUOTE)
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == DELIMITER and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1

    fields.append("".join(current))
    return fields


def is_skippable(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped in KNOWN_HEADERS


def parse_timestamp(raw: str) -> datetime:
    value = raw.strip()
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError:
        pass

    # ISO-8601 from hand-edited or exported files
    try:
        ts = datetime.fromisoformat(value)
    except ValueError:
        raise ValueError(f"unparseable timestamp {raw!r}") from None

    if ts.tzinfo is not None:
        ts = ts.astimezone().replace(tzinfo=None)
    return ts.replace(microsecond=0)


def parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    raise ValueError(f"unparseable boolean {raw!r}")


def decode_line(line: str, *, line_no: int | None = None) -> Note | None:
    """
    Decode one record.

    Returns None for blank and header lines, raises DecodeError for anything
    that is not a valid record.
    """
    if is_skippable(line):
        return None

    parts = split_fields(line)
    if len(parts) < 3:
        raise DecodeError(
            f"expected 3 fields, got {len(parts)}", line_no=line_no, line=line
        )

    text, raw_ts, raw_completed = parts[0], parts[1], parts[2]
    try:
        timestamp = parse_timestamp(raw_ts)
        completed = parse_bool(raw_completed)
    except ValueError as e:
        raise DecodeError(str(e), line_no=line_no, line=line) from e

    return Note(text=text, timestamp=timestamp, completed=completed)


def _ends_inside_quotes(record: str) -> bool:
    """
    True if a quoted field is still open at the end of record.

    Follows what escape_field writes: a quote opens a quoted field only at the
    start of a field; anywhere else in an unquoted field it is a literal.
    """
    in_quotes = False
    at_field_start = True
    i = 0
    n = len(record)

    while i < n:
        ch = record[i]
        if in_quotes:
            if ch == QUOTE:
                if i + 1 < n and record[i + 1] == QUOTE:
                    i += 1
                else:
                    in_quotes = False
        elif ch == QUOTE and at_field_start:
            in_quotes = True
            at_field_start = False
        elif ch == DELIMITER:
            at_field_start = True
        else:
            at_field_start = False
        i += 1

    return in_quotes


def iter_records(text: str) -> Iterator[tuple[int, str]]:
    """
    Yield (first_line_no, record) pairs.

    A quoted text may contain newlines, so physical lines are joined while a
    quoted field is still open. '\\r\\n' between records is accepted; '\\r'
    inside quotes is kept.
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    pending: str | None = None
    start = 0

    for line_no, piece in enumerate(text.split("\n"), start=1):
        if pending is None:
            pending = piece
            start = line_no
        else:
            pending = pending + "\n" + piece

        if _ends_inside_quotes(pending):
            continue

        if pending.endswith("\r"):
            pending = pending[:-1]
        yield start, pending
        pending = None

    # unterminated quote at EOF: let the decoder reject it
    if pending is not None:
        yield start, pending


def decode_file(text: str, *, strict: bool = False) -> DecodeReport:
    """
    Decode a whole file.

    strict=False: bad records are collected in report.errors and skipped.
    strict=True:  the first bad record raises DecodeError.
    """
    report = DecodeReport()
    for line_no, record in iter_records(text):
        try:
            note = decode_line(record, line_no=line_no)
        except DecodeError as e:
            if strict:
                raise
            if "\n" in record:
                # an unterminated quote swallowed the lines after it
                _decode_lines_separately(record, line_no, report)
            else:
                report.errors.append(e)
            continue
        if note is not None:
            report.notes.append(note)
    return report


def _decode_lines_separately(record: str, first_line_no: int, report: DecodeReport) -> None:
    for offset, piece in enumerate(record.split("\n")):
        if piece.endswith("\r"):
            piece = piece[:-1]
        try:
            note = decode_line(piece, line_no=first_line_no + offset)
        except DecodeError as e:
            report.errors.append(e)
            continue
        if note is not None:
            report.notes.append(note)
