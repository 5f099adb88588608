from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .const import HEADING_MARKER, TITLE_KEY, YAML_FM_DELIM
from .errors import MalformedStructuredBlock
from .types import DocumentTitles

logger = logging.getLogger(__name__)

FRONTMATTER_OPEN = re.compile(r"\A\ufeff?---[ \t]*\r?\n")
FRONTMATTER_CLOSE = re.compile(r"^---[ \t]*(?:\r?\n|\Z)", re.MULTILINE)
HEADING_PATTERN = re.compile(r"^#[ \t]+(?P<text>[^\r\n]*?\S)[ \t]*(?=\r?$)", re.MULTILINE)
TITLE_LINE_PATTERN = re.compile(r"^" + TITLE_KEY + r":[^\r\n]*", re.MULTILINE)
LEADING_BLANK_LINES = re.compile(r"\A(?:[ \t]*\r?\n)+")
BOM = "\ufeff"


@dataclass
class FrontmatterSpan:
    body_start: int     # first character after the opening delimiter line
    body_end: int       # first character of the closing delimiter line
    content_start: int  # first character after the closing delimiter line


def locate_frontmatter(text: str) -> Optional[FrontmatterSpan]:
    opening = FRONTMATTER_OPEN.match(text)
    if not opening:
        return None
    closing = FRONTMATTER_CLOSE.search(text, opening.end())
    if not closing:
        # unterminated, treat as no frontmatter
        return None
    return FrontmatterSpan(opening.end(), closing.start(), closing.end())


def _split_bom(text: str) -> Tuple[str, str]:
    if text.startswith(BOM):
        return BOM, text[len(BOM):]
    return "", text


def _newline(text: str) -> str:
    first = text.find("\n")
    if first > 0 and text[first - 1] == "\r":
        return "\r\n"
    return "\n"


def _decode(body: str) -> Dict[Any, Any]:
    try:
        data = yaml.safe_load(body)
    except yaml.YAMLError as exc:
        raise MalformedStructuredBlock(str(exc)) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedStructuredBlock(f"frontmatter is a {type(data).__name__}, not a mapping")
    return data


def _encode(data: Dict[Any, Any], nl: str = "\n") -> str:
    out = yaml.safe_dump(
        data,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=float("inf"),
    )
    if nl != "\n":
        out = out.replace("\n", nl)
    return out


def _strip_leading_blank_lines(text: str) -> str:
    return LEADING_BLANK_LINES.sub("", text, count=1)


def read_frontmatter(text: str) -> Dict[Any, Any]:
    """Decoded frontmatter mapping, or {} when absent or malformed."""
    span = locate_frontmatter(text)
    if span is None:
        return {}
    try:
        return _decode(text[span.body_start:span.body_end])
    except MalformedStructuredBlock:
        return {}


def frontmatter_title(text: str) -> Optional[str]:
    span = locate_frontmatter(text)
    if span is None:
        return None
    body = text[span.body_start:span.body_end]
    try:
        value = _decode(body).get(TITLE_KEY)
    except MalformedStructuredBlock:
        line = TITLE_LINE_PATTERN.search(body)
        if not line:
            return None
        value = line.group(0).split(":", 1)[1].strip().strip("'\"")
    if value is None or isinstance(value, (dict, list)):
        return None
    value = value if isinstance(value, str) else str(value)
    return value or None


def first_heading(text: str) -> Optional[str]:
    """Text of the first level-1 heading after the frontmatter block."""
    text = text.lstrip(BOM)
    span = locate_frontmatter(text)
    match = HEADING_PATTERN.search(text, span.content_start if span else 0)
    return match.group("text") if match else None


def extract_titles(path: str | Path, text: str) -> DocumentTitles:
    p = Path(path)
    return DocumentTitles(
        path=str(p),
        filename=p.stem,
        frontmatter_title=frontmatter_title(text),
        heading_title=first_heading(text),
    )


# ---------------------------
# Rewriting
# ---------------------------

def _title_line(title: str, nl: str) -> str:
    return _encode({TITLE_KEY: title}, nl).rstrip("\r\n")


def _patch_title_line(body: str, title: str, nl: str) -> str:
    # the fallback patches a single line, so the title must stay on one
    title = re.sub(r"[\r\n]+", " ", title)
    line = _title_line(title, nl)
    if TITLE_LINE_PATTERN.search(body):
        patched = TITLE_LINE_PATTERN.sub(lambda _m: line, body, count=1)
    else:
        patched = line + nl + body
    # the patch may have repaired the block; re-encode so a second pass is a no-op
    try:
        data = _decode(patched)
    except MalformedStructuredBlock:
        return patched
    return _encode(data, nl)


def _insert_frontmatter(text: str, title: str, nl: str) -> str:
    block = YAML_FM_DELIM + nl + _encode({TITLE_KEY: title}, nl) + YAML_FM_DELIM + nl
    heading = HEADING_PATTERN.search(text)
    if heading:
        before = text[:heading.start()].strip()
        rest = text[heading.start():]
        if before:
            return block + nl + before + nl + nl + rest
        return block + nl + rest
    rest = _strip_leading_blank_lines(text)
    if rest.strip():
        return block + nl + rest
    return block


def update_frontmatter(text: str, title: str) -> str:
    bom, text = _split_bom(text)
    return bom + _update_frontmatter(text, title)


def _update_frontmatter(text: str, title: str) -> str:
    nl = _newline(text)
    span = locate_frontmatter(text)
    if span is None:
        return _insert_frontmatter(text, title, nl)
    body = text[span.body_start:span.body_end]
    try:
        data = _decode(body)
    except MalformedStructuredBlock as exc:
        logger.warning("Malformed frontmatter, patching the title line instead: %s", exc)
        new_body = _patch_title_line(body, title, nl)
    else:
        data[TITLE_KEY] = title
        new_body = _encode(data, nl)
    return text[:span.body_start] + new_body + text[span.body_end:]


def update_heading(text: str, title: str) -> str:
    # headings are single lines
    title = re.sub(r"[\r\n]+", " ", title)
    if not title.strip():
        logger.debug("Empty title, leaving the heading untouched")
        return text
    bom, text = _split_bom(text)
    return bom + _update_heading(text, title)


def _update_heading(text: str, title: str) -> str:
    nl = _newline(text)
    heading_line = f"{HEADING_MARKER} {title}"
    span = locate_frontmatter(text)
    match = HEADING_PATTERN.search(text, span.content_start if span else 0)
    if match:
        return text[:match.start()] + heading_line + text[match.end():]

    if span:
        prefix = text[:span.content_start]
        if not prefix.endswith("\n"):
            prefix += nl
        rest = _strip_leading_blank_lines(text[span.content_start:])
        if rest.strip():
            return prefix + nl + heading_line + nl + nl + rest
        return prefix + nl + heading_line + nl

    rest = _strip_leading_blank_lines(text)
    if rest.strip():
        return heading_line + nl + nl + rest
    return heading_line + nl


def rewrite(text: str, title: str, write_metadata: bool = True, write_heading: bool = True) -> str:
    """Return ``text`` with its frontmatter title and/or first H1 set to ``title``.

    The frontmatter is decoded and re-encoded when it is valid YAML, patched
    line-wise when it is not, and created when missing. The heading is
    located on the already updated text. Everything outside the frontmatter
    body and the heading line is kept byte for byte, apart from blank-line
    normalization around newly inserted blocks. Calling it twice with the
    same title gives the same result as calling it once.
    """
    updated = text
    if write_metadata:
        updated = update_frontmatter(updated, title)
    if write_heading:
        updated = update_heading(updated, title)
    return updated
