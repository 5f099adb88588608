"""Keep a note's file name, frontmatter title and first heading in sync."""

from .api import title_rewrite_text, title_status, title_sync_document, title_sync_folder
from .config import Settings
from .errors import CollaboratorFailure, ConfigError, MalformedStructuredBlock, MissingSource, TitleSyncError
from .mkd import extract_titles, first_heading, frontmatter_title, rewrite
from .notify import Notifier
from .policy import is_synchronized, resolve_plan
from .sanitize import sanitize
from .sync import TitleSynchronizer
from .types import (
    BulkSummary,
    DocumentTitles,
    IllegalCharacterHandling,
    NotificationLevel,
    SyncMode,
    SyncOutcome,
    SyncPlan,
    TitleSource,
)
from .vault import DocumentStore, FileSystemVault, TitleIndex

__version__ = "0.3.0"

__all__ = [
    "BulkSummary",
    "CollaboratorFailure",
    "ConfigError",
    "DocumentStore",
    "DocumentTitles",
    "FileSystemVault",
    "IllegalCharacterHandling",
    "MalformedStructuredBlock",
    "MissingSource",
    "NotificationLevel",
    "Notifier",
    "Settings",
    "SyncMode",
    "SyncOutcome",
    "SyncPlan",
    "TitleIndex",
    "TitleSource",
    "TitleSyncError",
    "TitleSynchronizer",
    "extract_titles",
    "first_heading",
    "frontmatter_title",
    "is_synchronized",
    "resolve_plan",
    "rewrite",
    "sanitize",
    "title_rewrite_text",
    "title_status",
    "title_sync_document",
    "title_sync_folder",
]
