from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .const import MD_SUFFIX
from .errors import CollaboratorFailure
from .mkd import extract_titles
from .sanitize import has_illegal_characters
from .types import DocumentTitles
from .utils import atomic_write_text, list_markdown, read_text, run_in_thread

logger = logging.getLogger(__name__)


class DocumentStore(ABC):
    """Where notes live. The synchronizer only talks to notes through this."""

    @abstractmethod
    async def read(self, path: Path) -> str:
        ...

    @abstractmethod
    async def write(self, path: Path, text: str) -> None:
        ...

    @abstractmethod
    async def rename(self, path: Path, new_basename: str) -> Path:
        """Rename keeping directory and extension; returns the new path."""

    @abstractmethod
    async def list_documents(self, directory: Path) -> List[Path]:
        ...

    async def cached_titles(self, path: Path) -> Optional[DocumentTitles]:
        """Indexed titles for ``path`` if known, else None (callers scan the text)."""
        return None


class TitleIndex:
    """In-memory index of frontmatter titles and headings, keyed by path and mtime."""

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[float, DocumentTitles]] = {}

    async def build(self, root: Path) -> None:
        paths = await run_in_thread(list_markdown, root)
        for p in paths:
            try:
                text = await read_text(p)
                mtime = (await run_in_thread(p.stat)).st_mtime
            except OSError as exc:
                logger.debug("Skipping %s while indexing: %s", p, exc)
                continue
            self._entries[str(p)] = (mtime, extract_titles(p, text))
        logger.debug("Indexed %d notes under %s", len(self._entries), root)

    def get(self, path: Path) -> Optional[DocumentTitles]:
        entry = self._entries.get(str(path))
        if entry is None:
            return None
        mtime, titles = entry
        try:
            if path.stat().st_mtime != mtime:
                self.invalidate(path)
                return None
        except OSError:
            self.invalidate(path)
            return None
        return titles

    def invalidate(self, path: Path) -> None:
        self._entries.pop(str(path), None)

    def __len__(self) -> int:
        return len(self._entries)


class FileSystemVault(DocumentStore):
    """Notes stored as ``*.md`` files on the local filesystem."""

    def __init__(self, index: TitleIndex | None = None) -> None:
        self.index = index

    async def read(self, path: Path) -> str:
        try:
            return await read_text(path)
        except OSError as exc:
            raise CollaboratorFailure(f"could not read {path}: {exc}", str(path)) from exc

    async def write(self, path: Path, text: str) -> None:
        try:
            await atomic_write_text(path, text)
        except OSError as exc:
            raise CollaboratorFailure(f"could not write {path}: {exc}", str(path)) from exc
        finally:
            if self.index is not None:
                self.index.invalidate(path)
        logger.debug("Wrote %s", path)

    async def rename(self, path: Path, new_basename: str) -> Path:
        if new_basename == path.stem:
            return path
        if not new_basename.strip():
            raise CollaboratorFailure(f"refusing to rename {path} to an empty name", str(path))
        if has_illegal_characters(new_basename):
            raise CollaboratorFailure(f"illegal characters in file name: {new_basename!r}", str(path))
        new_path = path.with_name(new_basename + (path.suffix or MD_SUFFIX))
        if new_path.exists() and not _same_file(path, new_path):
            raise CollaboratorFailure(f"target exists: {new_path}", str(path))
        try:
            await run_in_thread(os.rename, path, new_path)
        except OSError as exc:
            raise CollaboratorFailure(f"could not rename {path}: {exc}", str(path)) from exc
        if self.index is not None:
            self.index.invalidate(path)
        logger.info("Renamed %s -> %s", path.name, new_path.name)
        return new_path

    async def list_documents(self, directory: Path) -> List[Path]:
        if not directory.is_dir():
            raise CollaboratorFailure(f"not a directory: {directory}", str(directory))
        try:
            return await run_in_thread(list_markdown, directory)
        except OSError as exc:
            raise CollaboratorFailure(f"could not list {directory}: {exc}", str(directory)) from exc

    async def cached_titles(self, path: Path) -> Optional[DocumentTitles]:
        if self.index is None:
            return None
        return self.index.get(path)


def _same_file(a: Path, b: Path) -> bool:
    # case-only renames on case-insensitive filesystems
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False
