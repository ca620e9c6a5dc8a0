"""Markdown vault store: one ``.md`` file per record with YAML frontmatter."""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any

import yaml

from labyrinth.errors import RecordStoreError
from labyrinth.store.base import MetadataMutator, RecordStore, in_scope, normalize_path

logger = logging.getLogger(__name__)

FRONTMATTER_FENCE = "---"

# Both fences must sit on their own line; "---" inside a value is content.
_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.S | re.M)


def parse_markdown(content: str) -> tuple[dict[str, Any], str]:
    """Split a markdown document into (frontmatter, body).

    Documents without a frontmatter block yield empty metadata.

    Raises:
        ValueError: Frontmatter is present but is not a YAML mapping
    """
    match = _FRONTMATTER_RE.match(content)
    if match is None:
        return {}, content
    try:
        metadata = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML frontmatter: {e}") from e
    if not isinstance(metadata, dict):
        raise ValueError("Frontmatter is not a mapping")
    return metadata, content[match.end():].lstrip("\n")


def render_markdown(metadata: dict[str, Any], body: str) -> str:
    """Render metadata and body back into a markdown document."""
    if not metadata:
        return body
    yaml_str = yaml.safe_dump(metadata, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return f"{FRONTMATTER_FENCE}\n{yaml_str}{FRONTMATTER_FENCE}\n\n{body}"


def _atomic_write(path: Path, content: str) -> None:
    """Write via temp file and rename so readers never see partial content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_fd, temp_path_str = tempfile.mkstemp(dir=path.parent, text=True)
    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as temp_file:
            temp_file.write(content)
        os.replace(temp_path_str, path)
    except Exception:
        if os.path.exists(temp_path_str):
            os.unlink(temp_path_str)
        raise


class MarkdownRecordStore(RecordStore):
    """Records are markdown files below ``root``; paths are root-relative."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        rel = normalize_path(path)
        if not rel.endswith(".md"):
            rel += ".md"
        return self.root / rel

    def _relative(self, file_path: Path) -> str:
        return file_path.relative_to(self.root).as_posix()

    def _read(self, path: str) -> tuple[dict[str, Any], str]:
        file_path = self._resolve(path)
        try:
            content = file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise RecordStoreError(f"Cannot read {path}: {e}", path=path) from e
        try:
            return parse_markdown(content)
        except ValueError as e:
            raise RecordStoreError(f"Cannot parse {path}: {e}", path=path) from e

    def _write(self, path: str, metadata: dict[str, Any], body: str) -> None:
        try:
            _atomic_write(self._resolve(path), render_markdown(metadata, body))
        except (OSError, yaml.YAMLError) as e:
            raise RecordStoreError(f"Cannot write {path}: {e}", path=path) from e

    async def list_records(self, scope: str) -> list[str]:
        if not self.root.exists():
            return []
        paths = [self._relative(p) for p in self.root.rglob("*.md") if p.is_file()]
        return sorted(p for p in paths if in_scope(p, scope))

    async def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    async def read_metadata(self, path: str) -> dict[str, Any]:
        return self._read(path)[0]

    async def read_body(self, path: str) -> str:
        return self._read(path)[1]

    async def create(self, path: str, metadata: dict[str, Any], body: str) -> str:
        file_path = self._resolve(path)
        if file_path.exists():
            raise RecordStoreError(f"Record already exists: {path}", path=path)
        self._write(path, metadata, body)
        logger.debug(f"Created record {file_path}")
        return self._relative(file_path)

    async def append(self, path: str, text: str) -> None:
        metadata, body = self._read(path)
        self._write(path, metadata, body + text)

    async def modify_metadata(self, path: str, mutate: MetadataMutator) -> dict[str, Any]:
        metadata, body = self._read(path)
        mutate(metadata)
        self._write(path, metadata, body)
        return metadata
