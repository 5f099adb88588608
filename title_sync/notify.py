from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console

from .config import Settings
from .types import NotificationLevel

logger = logging.getLogger(__name__)

_STYLES = {"error": "bold red", "info": "cyan", "success": "green"}


class Notifier:
    """User-facing notices filtered by the configured verbosity.

    ``errors`` drops info and success notices but keeps errors; ``none``
    drops everything. On mobile the mobile preference wins unless it is
    ``inherit``.
    """

    def __init__(self, settings: Settings, mobile: bool = False, console: Optional[Console] = None) -> None:
        self.settings = settings
        self.mobile = mobile
        self.console = console or Console(stderr=True)

    @property
    def level(self) -> NotificationLevel:
        if self.mobile and self.settings.mobile_notification_verbosity is not NotificationLevel.INHERIT:
            return self.settings.mobile_notification_verbosity
        return self.settings.notification_verbosity

    def allows(self, kind: str) -> bool:
        level = self.level
        if level is NotificationLevel.NONE:
            return False
        if level is NotificationLevel.ERRORS:
            return kind == "error"
        return True

    def _emit(self, kind: str, message: str) -> bool:
        if not self.allows(kind):
            logger.debug("Suppressed %s notice: %s", kind, message)
            return False
        logger.debug("%s notice: %s", kind, message)
        self.console.print(message, style=_STYLES[kind], markup=False, highlight=False)
        return True

    def show_error(self, message: str) -> bool:
        return self._emit("error", message)

    def show_info(self, message: str) -> bool:
        return self._emit("info", message)

    def show_success(self, message: str) -> bool:
        return self._emit("success", message)
