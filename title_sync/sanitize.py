from __future__ import annotations

import re

from .const import ILLEGAL_FILENAME_CHARS
from .types import IllegalCharacterHandling

ILLEGAL_CHARS_PATTERN = re.compile("[" + re.escape("".join(sorted(ILLEGAL_FILENAME_CHARS))) + "]")

_REPLACEMENTS = {
    IllegalCharacterHandling.REMOVE: "",
    IllegalCharacterHandling.SPACE: " ",
    IllegalCharacterHandling.DASH: "-",
    IllegalCharacterHandling.UNDERSCORE: "_",
}


def has_illegal_characters(title: str) -> bool:
    return ILLEGAL_CHARS_PATTERN.search(title) is not None


def sanitize(
    title: str,
    handling: IllegalCharacterHandling = IllegalCharacterHandling.REMOVE,
    custom_replacement: str | None = "",
) -> str:
    """Make ``title`` usable as a filename.

    Titles without illegal characters are returned as-is (the same object).
    Every illegal character is otherwise removed or replaced according to
    ``handling``; ``CUSTOM`` uses ``custom_replacement`` (empty when unset).
    """
    if not has_illegal_characters(title):
        return title
    if handling is IllegalCharacterHandling.CUSTOM:
        replacement = custom_replacement or ""
    else:
        replacement = _REPLACEMENTS.get(handling, "")
    # a callable keeps backslashes in custom replacements literal
    return ILLEGAL_CHARS_PATTERN.sub(lambda _m: replacement, title)
