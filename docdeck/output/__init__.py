"""
Note upload.

This package holds the AnkiConnect destination and the upload consumer.
"""

from .anki import AddNoteResult, AddNoteStatus, AnkiConnectClient, Destination
from .uploader import Uploader, dump_note

__all__ = [
    "AddNoteResult",
    "AddNoteStatus",
    "AnkiConnectClient",
    "Destination",
    "Uploader",
    "dump_note",
]
