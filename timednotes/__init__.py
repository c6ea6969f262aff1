from .core.models import ErrorKind, LoadResult, LoadStatus, Note, OpResult
from .core.codec import DecodeError
from .services.note_store import NoteStore, default_export_name

__version__ = "0.1.0"

__all__ = ['Note',
           'LoadStatus',
           'LoadResult',
           'ErrorKind',
           'OpResult',
           'DecodeError',
           'NoteStore',
           'default_export_name'
           ]
