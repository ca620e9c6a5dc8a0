"""Record store interface the engine depends on.

The engine never embeds storage logic: it enumerates records in a scope,
reads their metadata, and creates, appends to, or mutates records through
this interface. Implementations raise RecordStoreError for any failure.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

MetadataMutator = Callable[[dict[str, Any]], None]


def normalize_path(path: str) -> str:
    """Collapse duplicate separators and strip leading/trailing slashes."""
    parts = [p for p in path.replace("\\", "/").split("/") if p]
    return "/".join(parts)


def record_basename(path: str) -> str:
    """Return the record name without folders or the .md suffix."""
    name = normalize_path(path).rsplit("/", 1)[-1]
    return name[:-3] if name.endswith(".md") else name


def in_scope(path: str, scope: str) -> bool:
    """True if ``path`` lives under the folder-like prefix ``scope``."""
    scope = normalize_path(scope)
    if not scope:
        return True
    path = normalize_path(path)
    return path == scope or path.startswith(scope + "/")


class RecordStore(ABC):
    """Abstract async document store."""

    @abstractmethod
    async def list_records(self, scope: str) -> list[str]:
        """Paths of all records under ``scope``, sorted by path."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """True if a record exists at ``path``."""

    @abstractmethod
    async def read_metadata(self, path: str) -> dict[str, Any]:
        """Parsed key-value metadata of a record, without its body."""

    @abstractmethod
    async def read_body(self, path: str) -> str:
        """Free-text body of a record."""

    @abstractmethod
    async def create(self, path: str, metadata: dict[str, Any], body: str) -> str:
        """Create a new record and return its normalized path."""

    @abstractmethod
    async def append(self, path: str, text: str) -> None:
        """Append text to the body of an existing record."""

    @abstractmethod
    async def modify_metadata(self, path: str, mutate: MetadataMutator) -> dict[str, Any]:
        """Apply ``mutate`` to a record's metadata (read-modify-write).

        Returns the metadata as written.
        """

    async def find_by_name(self, name: str) -> Optional[str]:
        """Resolve a ``[[Name]]`` style link to a record path by basename."""
        for path in await self.list_records(""):
            if record_basename(path) == name:
                return path
        return None
