from __future__ import annotations

import difflib
from typing import Dict, Optional

from .types import DocumentTitles


def unified_diff(a_text: str, b_text: str, a_label: str, b_label: str, n: int = 3) -> str:
    diff = difflib.unified_diff(
        a_text.splitlines(keepends=True),
        b_text.splitlines(keepends=True),
        fromfile=a_label,
        tofile=b_label,
        n=n,
    )
    return "".join(diff)


def titles_delta(a: DocumentTitles, b: DocumentTitles) -> Dict[str, Dict[str, Optional[str]]]:
    """Representations whose value differs between two snapshots."""
    delta = {}
    for key in ("filename", "frontmatter_title", "heading_title"):
        if getattr(a, key) != getattr(b, key):
            delta[key] = {"a": getattr(a, key), "b": getattr(b, key)}
    return delta
