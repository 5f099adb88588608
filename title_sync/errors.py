from __future__ import annotations


class TitleSyncError(Exception):
    """Base class for every error raised by title_sync."""


class MissingSource(TitleSyncError):
    """The representation chosen as authoritative does not exist in the note."""


class CollaboratorFailure(TitleSyncError):
    """Reading, writing, renaming or listing notes failed."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class MalformedStructuredBlock(TitleSyncError):
    """Frontmatter exists but does not decode to a mapping."""


class ConfigError(TitleSyncError, ValueError):
    pass
