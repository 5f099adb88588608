from __future__ import annotations

from .config import Settings
from .errors import MissingSource
from .sanitize import sanitize
from .types import DocumentTitles, SyncMode, SyncPlan, TitleSource


def is_synchronized(titles: DocumentTitles, mode: SyncMode) -> bool:
    """True when every representation ``mode`` covers exists and all agree.

    A missing frontmatter title or heading counts as out of sync when the
    mode covers it. Representations outside the mode are ignored.
    """
    required = []
    if mode.includes_filename:
        required.append(titles.filename)
    if mode.includes_metadata:
        if not titles.frontmatter_title:
            return False
        required.append(titles.frontmatter_title)
    if mode.includes_heading:
        if not titles.heading_title:
            return False
        required.append(titles.heading_title)
    return all(value == required[0] for value in required)


def source_value(titles: DocumentTitles, source: TitleSource) -> str:
    if source is TitleSource.FILENAME:
        return titles.filename
    if source is TitleSource.METADATA:
        if not titles.frontmatter_title:
            raise MissingSource("No title found in frontmatter")
        return titles.frontmatter_title
    if not titles.heading_title:
        raise MissingSource(
            "No level 1 heading found in the file. Please add a level 1 heading "
            "or use another source for synchronization."
        )
    return titles.heading_title


def resolve_plan(titles: DocumentTitles, source: TitleSource, settings: Settings) -> SyncPlan:
    """Decide what value goes where for one note.

    Raises MissingSource before anything is written when the source
    representation is absent. The representations written are exactly the
    ones the sync mode covers, whichever one supplied the value.
    """
    mode = settings.sync_mode
    value = source_value(titles, source)
    plan = SyncPlan(
        filename_title=value,
        content_title=value,
        write_filename=mode.includes_filename,
        write_metadata=mode.includes_metadata,
        write_heading=mode.includes_heading,
    )
    if source is TitleSource.FILENAME:
        # file names are legal already
        return plan

    sanitized = sanitize(value, settings.illegal_char_handling, settings.custom_replacement)
    if sanitized == value:
        return plan

    plan.sanitized = True
    plan.filename_title = sanitized
    if settings.propagate_sanitized:
        plan.content_title = sanitized
        plan.notice = (
            "Title contains illegal characters. All titles will be updated "
            f'with the sanitized version: "{sanitized}"'
        )
    else:
        # frontmatter and heading keep the characters the filesystem forbids;
        # with the filename outside the mode this changes nothing but the notice stays
        plan.notice = f'Title contains illegal characters. Filename will be sanitized to: "{sanitized}"'
    return plan
