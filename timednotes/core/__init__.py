from .models import ErrorKind, LoadResult, LoadStatus, Note, NoteRef, OpResult
from .codec import DecodeError, decode_file, decode_line, encode_file, encode_note

__all__ = ["Note",
           "NoteRef",
           "LoadStatus",
           "LoadResult",
           "ErrorKind",
           "OpResult",
           "DecodeError",
           "decode_file",
           "decode_line",
           "encode_file",
           "encode_note"
           ]
