from .note_store import NoteStore, default_export_name

__all__ = [
    "NoteStore",
    "default_export_name",
]
