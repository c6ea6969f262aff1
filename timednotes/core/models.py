# timednotes/core/models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union


@dataclass
class Note:
    """
    One tracked item.

    id is a surrogate key handed out by the owning NoteStore; 0 means
    "not adopted by a store yet" (e.g. fresh from the codec).
    """
    text: str
    timestamp: datetime
    completed: bool = False
    id: int = 0


# A note can be addressed by its surrogate id or by a Note carrying that id.
NoteRef = Union[int, Note]


class LoadStatus(str, Enum):
    LOADED = "loaded"
    FRESH = "fresh"
    LOAD_FAILED_SEEDED = "load-failed-seeded"


class ErrorKind(str, Enum):
    STORAGE_UNAVAILABLE = "storage-unavailable"
    DECODE_FAILURE = "decode-failure"
    VALIDATION_FAILURE = "validation-failure"
    NOT_FOUND = "not-found"


@dataclass(frozen=True)
class LoadResult:
    status: LoadStatus
    count: int
    skipped: int = 0
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


@dataclass(frozen=True)
class OpResult:
    """
    Outcome of a store operation.

    applied: the master collection changed.
    ok:      everything succeeded, including the save that followed.
    A mutation whose save failed is applied=True, ok=False.
    """
    ok: bool
    applied: bool = False
    error: Optional[ErrorKind] = None
    message: Optional[str] = None
    count: int = 0
    note: Optional[Note] = None
