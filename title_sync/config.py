from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from dotenv import load_dotenv

from .const import ENV_PREFIX
from .errors import ConfigError
from .types import IllegalCharacterHandling, NotificationLevel, SyncMode, TitleSource

logger = logging.getLogger(__name__)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _parse_level(value: Any) -> NotificationLevel:
    level = NotificationLevel(value)
    if level is NotificationLevel.INHERIT:
        raise ValueError("'inherit' is only valid for the mobile preference")
    return level


def _parse_mobile_level(value: Any) -> NotificationLevel:
    if value is None:  # older settings files store null for "same as desktop"
        return NotificationLevel.INHERIT
    return NotificationLevel(value)


# persisted key -> (attribute, parser, encoder)
_FIELDS: Dict[str, tuple[str, Callable[[Any], Any], Callable[[Any], Any]]] = {
    "defaultTitleSource": ("default_title_source", TitleSource.parse, lambda v: v.value),
    "illegalCharHandling": ("illegal_char_handling", IllegalCharacterHandling.parse, lambda v: v.value),
    "customReplacement": ("custom_replacement", lambda v: "" if v is None else str(v), str),
    "propagateSanitizedToAllTitles": ("propagate_sanitized", _parse_bool, bool),
    "syncMode": ("sync_mode", SyncMode.parse, lambda v: v.value),
    "notificationVerbosity": ("notification_verbosity", _parse_level, lambda v: v.value),
    "mobileNotificationVerbosity": ("mobile_notification_verbosity", _parse_mobile_level, lambda v: v.value),
}

# names used by earlier versions of the settings document
_ALIASES = {
    "updateOtherTitlesWithSanitizedVersion": "propagateSanitizedToAllTitles",
    "notificationPreference": "notificationVerbosity",
    "mobileNotificationPreference": "mobileNotificationVerbosity",
}


@dataclass(frozen=True)
class Settings:
    """User configuration, passed explicitly to the synchronizer and notifier."""

    default_title_source: TitleSource = TitleSource.FILENAME
    illegal_char_handling: IllegalCharacterHandling = IllegalCharacterHandling.REMOVE
    custom_replacement: str = ""
    propagate_sanitized: bool = False
    sync_mode: SyncMode = SyncMode.ALL
    notification_verbosity: NotificationLevel = NotificationLevel.ALL
    mobile_notification_verbosity: NotificationLevel = NotificationLevel.INHERIT

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional["Settings"] = None) -> "Settings":
        changes: Dict[str, Any] = {}
        for key, value in data.items():
            key = _ALIASES.get(key, key)
            if key not in _FIELDS:
                logger.debug("Ignoring unknown setting %r", key)
                continue
            attr, parse, _ = _FIELDS[key]
            try:
                changes[attr] = parse(value)
            except (ValueError, TypeError, AttributeError) as exc:
                raise ConfigError(f"invalid value for {key}: {value!r}") from exc
        return replace(base or cls(), **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {key: encode(getattr(self, attr)) for key, (attr, _, encode) in _FIELDS.items()}

    @classmethod
    def load(cls, path: str | Path) -> "Settings":
        p = Path(path)
        if not p.exists():
            logger.debug("No settings at %s, using defaults", p)
            return cls()
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigError(f"settings file {p} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"settings file {p} must hold a JSON object")
        return cls.from_dict(data)

    def save(self, path: str | Path) -> None:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")

    @classmethod
    def from_env(cls, base: Optional["Settings"] = None) -> "Settings":
        """Overlay ``TITLE_SYNC_*`` environment variables (and .env) on ``base``.

        Variable names are the upper-snake form of the persisted keys, e.g.
        ``TITLE_SYNC_SYNC_MODE=filename+heading``.
        """
        load_dotenv()
        data = {}
        for key in _FIELDS:
            env_name = ENV_PREFIX + _snake(key).upper()
            value = os.getenv(env_name)
            if value is not None:
                data[key] = value
        return cls.from_dict(data, base=base)


def _snake(name: str) -> str:
    return "".join("_" + ch.lower() if ch.isupper() else ch for ch in name)
