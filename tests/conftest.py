"""Shared fixtures: an in-memory note store and a notifier that records notices."""

import io
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import pytest
from rich.console import Console

from title_sync.config import Settings
from title_sync.errors import CollaboratorFailure
from title_sync.notify import Notifier
from title_sync.types import DocumentTitles
from title_sync.vault import DocumentStore


class MemoryStore(DocumentStore):
    """DocumentStore backed by a dict; records every write and rename."""

    def __init__(self, files: Optional[Dict[str, str]] = None) -> None:
        self.files: Dict[Path, str] = {Path(k): v for k, v in (files or {}).items()}
        self.writes: List[Path] = []
        self.renames: List[Tuple[Path, Path]] = []
        self.fail_write: Set[Path] = set()
        self.fail_list = False
        self.cache: Dict[Path, DocumentTitles] = {}

    async def read(self, path: Path) -> str:
        try:
            return self.files[path]
        except KeyError:
            raise CollaboratorFailure(f"no such note: {path}", str(path)) from None

    async def write(self, path: Path, text: str) -> None:
        if path in self.fail_write:
            raise CollaboratorFailure(f"disk full: {path}", str(path))
        self.files[path] = text
        self.writes.append(path)

    async def rename(self, path: Path, new_basename: str) -> Path:
        new_path = path.with_name(new_basename + path.suffix)
        if new_path == path:
            return path
        if new_path in self.files:
            raise CollaboratorFailure(f"target exists: {new_path}", str(path))
        self.files[new_path] = self.files.pop(path)
        self.renames.append((path, new_path))
        return new_path

    async def list_documents(self, directory: Path) -> List[Path]:
        if self.fail_list:
            raise CollaboratorFailure(f"could not list {directory}", str(directory))
        return sorted(p for p in self.files if directory in p.parents)

    async def cached_titles(self, path: Path) -> Optional[DocumentTitles]:
        return self.cache.get(path)


class RecordingNotifier(Notifier):
    def __init__(self, settings: Settings, mobile: bool = False) -> None:
        super().__init__(settings, mobile=mobile, console=Console(file=io.StringIO()))
        self.shown: List[Tuple[str, str]] = []

    def _emit(self, kind: str, message: str) -> bool:
        shown = super()._emit(kind, message)
        if shown:
            self.shown.append((kind, message))
        return shown


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def make_store():
    return MemoryStore


@pytest.fixture
def make_notifier():
    return RecordingNotifier
