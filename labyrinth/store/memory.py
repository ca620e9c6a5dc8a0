"""In-memory record store, used by tests and embedding hosts."""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any

from labyrinth.errors import RecordStoreError
from labyrinth.store.base import MetadataMutator, RecordStore, in_scope, normalize_path

logger = logging.getLogger(__name__)


@dataclass
class _Record:
    metadata: dict[str, Any] = field(default_factory=dict)
    body: str = ""


class InMemoryRecordStore(RecordStore):
    """Dictionary-backed store. Metadata is deep-copied on the way in and out."""

    def __init__(self):
        self._records: dict[str, _Record] = {}

    def _get(self, path: str) -> _Record:
        record = self._records.get(normalize_path(path))
        if record is None:
            raise RecordStoreError(f"Record not found: {path}", path=path)
        return record

    async def list_records(self, scope: str) -> list[str]:
        return sorted(p for p in self._records if in_scope(p, scope))

    async def exists(self, path: str) -> bool:
        return normalize_path(path) in self._records

    async def read_metadata(self, path: str) -> dict[str, Any]:
        return copy.deepcopy(self._get(path).metadata)

    async def read_body(self, path: str) -> str:
        return self._get(path).body

    async def create(self, path: str, metadata: dict[str, Any], body: str) -> str:
        path = normalize_path(path)
        if path in self._records:
            raise RecordStoreError(f"Record already exists: {path}", path=path)
        self._records[path] = _Record(metadata=copy.deepcopy(metadata), body=body)
        logger.debug(f"Created record {path}")
        return path

    async def append(self, path: str, text: str) -> None:
        record = self._get(path)
        record.body += text

    async def modify_metadata(self, path: str, mutate: MetadataMutator) -> dict[str, Any]:
        record = self._get(path)
        working = copy.deepcopy(record.metadata)
        mutate(working)
        record.metadata = working
        return copy.deepcopy(working)
