"""Record store adapters."""

from labyrinth.store.base import RecordStore, in_scope, normalize_path, record_basename
from labyrinth.store.markdown import MarkdownRecordStore
from labyrinth.store.memory import InMemoryRecordStore

__all__ = [
    "InMemoryRecordStore",
    "MarkdownRecordStore",
    "RecordStore",
    "in_scope",
    "normalize_path",
    "record_basename",
]
