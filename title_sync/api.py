from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .config import Settings
from .mkd import extract_titles, read_frontmatter, rewrite
from .notify import Notifier
from .policy import is_synchronized
from .sync import TitleSynchronizer
from .types import TitleSource, to_json_safe
from .vault import DocumentStore, FileSystemVault

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str, int, str], bool]


# ---------------------------
# Helper to standardize result
# ---------------------------
def _ok(data: Any, meta: Dict | None = None) -> Dict:
    return {"ok": True, "data": to_json_safe(data), "error": None, "meta": meta or {}}


def _err(msg: str, meta: Dict | None = None) -> Dict:
    return {"ok": False, "data": None, "error": msg, "meta": meta or {}}


def _synchronizer(
    settings: Optional[Settings],
    store: Optional[DocumentStore],
    notifier: Optional[Notifier],
) -> TitleSynchronizer:
    settings = settings or Settings()
    return TitleSynchronizer(store or FileSystemVault(), settings, notifier)


def _source(source: Optional[str]) -> Optional[TitleSource]:
    return TitleSource.parse(source) if source else None


# ---------------------------
# Public async API (tool-call)
# ---------------------------

async def title_sync_document(
    path: str,
    source: Optional[str] = None,
    settings: Optional[Settings] = None,
    dry_run: bool = False,
    store: Optional[DocumentStore] = None,
    notifier: Optional[Notifier] = None,
) -> Dict:
    try:
        syncer = _synchronizer(settings, store, notifier)
        outcome = await syncer.sync_document(Path(path), _source(source), dry_run=dry_run)
        return _ok(outcome)
    except Exception as e:
        logger.debug("title_sync_document failed", exc_info=True)
        return _err(str(e), meta={"type": type(e).__name__})


async def title_sync_folder(
    directory: str,
    source: Optional[str] = None,
    settings: Optional[Settings] = None,
    confirm: Optional[ConfirmCallback] = None,
    dry_run: bool = False,
    store: Optional[DocumentStore] = None,
    notifier: Optional[Notifier] = None,
) -> Dict:
    """Bulk sync; ``confirm(folder_name, count, source)`` must return True to proceed."""
    try:
        syncer = _synchronizer(settings, store, notifier)
        src = _source(source) or syncer.settings.default_title_source
        root = Path(directory)
        if confirm is not None:
            count = len(await syncer.list_documents(root))
            if not confirm(root.name or str(root), count, src.value):
                return _err("bulk update cancelled", meta={"declined": True, "count": count})
        summary = await syncer.sync_folder(root, src, dry_run=dry_run)
        return _ok(summary, meta={"total": summary.total})
    except Exception as e:
        logger.debug("title_sync_folder failed", exc_info=True)
        return _err(str(e), meta={"type": type(e).__name__})


async def title_status(path: str, settings: Optional[Settings] = None, store: Optional[DocumentStore] = None) -> Dict:
    try:
        settings = settings or Settings()
        syncer = _synchronizer(settings, store, None)
        text = await syncer.store.read(Path(path))
        titles = extract_titles(path, text)
        return _ok(
            {
                "titles": titles,
                "frontmatter": read_frontmatter(text),
                "synchronized": is_synchronized(titles, settings.sync_mode),
            },
            meta={"sync_mode": settings.sync_mode.value},
        )
    except Exception as e:
        return _err(str(e), meta={"type": type(e).__name__})


async def title_rewrite_text(
    text: str,
    title: str,
    write_metadata: bool = True,
    write_heading: bool = True,
    path: str = "untitled.md",
) -> Dict:
    """Pure text transform; nothing is read or written."""
    try:
        new_text = rewrite(text, title, write_metadata, write_heading)
        return _ok({"text": new_text, "titles": extract_titles(path, new_text)}, meta={"changed": new_text != text})
    except Exception as e:
        return _err(str(e))
