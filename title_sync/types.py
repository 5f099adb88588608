from __future__ import annotations

from dataclasses import dataclass, asdict, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


class TitleSource(Enum):
    FILENAME = "filename"
    METADATA = "metadata"
    HEADING = "heading"

    @classmethod
    def parse(cls, value: str) -> "TitleSource":
        if value == "frontmatter":  # name used by older settings files
            return cls.METADATA
        return cls(value)


class IllegalCharacterHandling(Enum):
    REMOVE = "remove"
    SPACE = "space"
    DASH = "dash"
    UNDERSCORE = "underscore"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: str) -> "IllegalCharacterHandling":
        legacy = {
            "replace_with_space": cls.SPACE,
            "replace_with_dash": cls.DASH,
            "replace_with_underscore": cls.UNDERSCORE,
        }
        if value in legacy:
            return legacy[value]
        return cls(value)


class SyncMode(Enum):
    ALL = "all"
    FILENAME_METADATA = "filename+metadata"
    FILENAME_HEADING = "filename+heading"
    METADATA_HEADING = "metadata+heading"

    @classmethod
    def parse(cls, value: str) -> "SyncMode":
        # accepts "filename_frontmatter" style names as well
        norm = value.replace("_", "+").replace("frontmatter", "metadata")
        return cls(norm)

    @property
    def includes_filename(self) -> bool:
        return self in (SyncMode.ALL, SyncMode.FILENAME_METADATA, SyncMode.FILENAME_HEADING)

    @property
    def includes_metadata(self) -> bool:
        return self in (SyncMode.ALL, SyncMode.FILENAME_METADATA, SyncMode.METADATA_HEADING)

    @property
    def includes_heading(self) -> bool:
        return self in (SyncMode.ALL, SyncMode.FILENAME_HEADING, SyncMode.METADATA_HEADING)


class NotificationLevel(Enum):
    ALL = "all"
    ERRORS = "errors"
    NONE = "none"
    INHERIT = "inherit"  # mobile only


@dataclass
class DocumentTitles:
    """The three title representations of one note, read at a single point in time."""

    path: str
    filename: str
    frontmatter_title: Optional[str]
    heading_title: Optional[str]


@dataclass
class SyncPlan:
    filename_title: str
    content_title: str
    write_filename: bool
    write_metadata: bool
    write_heading: bool
    sanitized: bool = False
    notice: Optional[str] = None

    @property
    def writes_content(self) -> bool:
        return self.write_metadata or self.write_heading


@dataclass
class SyncOutcome:
    path: str
    status: str  # "synced" | "skipped" | "planned"
    source: str
    new_path: Optional[str] = None
    renamed: bool = False
    content_changed: bool = False
    notice: Optional[str] = None
    changes: Dict[str, Any] = field(default_factory=dict)
    diff_unified: Optional[str] = None


@dataclass
class BulkSummary:
    directory: str
    source: str
    processed: int = 0
    skipped: int = 0
    errors: int = 0
    cancelled: bool = False
    failures: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.processed + self.skipped + self.errors

    def describe(self) -> str:
        text = (
            f"Bulk title sync finished: {self.processed} updated, "
            f"{self.skipped} already synchronized, {self.errors} errors"
        )
        if self.cancelled:
            text += " (cancelled)"
        return text


def to_json_safe(obj: Any) -> Any:
    if hasattr(obj, "__dataclass_fields__"):
        return to_json_safe(asdict(obj))
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, (list, tuple)):
        return [to_json_safe(x) for x in obj]
    if isinstance(obj, dict):
        return {k: to_json_safe(v) for k, v in obj.items()}
    return obj
