from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from .compare import titles_delta, unified_diff
from .config import Settings
from .const import ALREADY_SYNCED_MESSAGE, SUCCESS_MESSAGE
from .errors import TitleSyncError
from .mkd import extract_titles, rewrite
from .notify import Notifier
from .policy import is_synchronized, resolve_plan
from .types import BulkSummary, DocumentTitles, SyncOutcome, SyncPlan, TitleSource
from .vault import DocumentStore

logger = logging.getLogger(__name__)


class TitleSynchronizer:
    """Reconciles note titles through a DocumentStore.

    Notes are handled one at a time: read, decide, rename, write. Nothing is
    shared between calls except the store and the settings.
    """

    def __init__(self, store: DocumentStore, settings: Settings, notifier: Optional[Notifier] = None) -> None:
        self.store = store
        self.settings = settings
        self.notifier = notifier or Notifier(settings)

    # ---------------------------
    # Reading
    # ---------------------------

    async def _load(self, path: Path) -> Tuple[DocumentTitles, Optional[str]]:
        cached = await self.store.cached_titles(path)
        if cached is not None:
            return cached, None
        text = await self.store.read(path)
        return extract_titles(path, text), text

    async def titles(self, path: Path) -> DocumentTitles:
        titles, _ = await self._load(Path(path))
        return titles

    async def is_synchronized(self, path: Path) -> bool:
        return is_synchronized(await self.titles(path), self.settings.sync_mode)

    async def list_documents(self, directory: Path) -> List[Path]:
        return await self.store.list_documents(Path(directory))

    # ---------------------------
    # Writing
    # ---------------------------

    async def _apply(
        self,
        path: Path,
        source: TitleSource,
        titles: DocumentTitles,
        text: Optional[str],
        plan: SyncPlan,
        dry_run: bool,
    ) -> SyncOutcome:
        if text is None:
            text = await self.store.read(path)
        new_text = text
        if plan.writes_content:
            new_text = rewrite(text, plan.content_title, plan.write_metadata, plan.write_heading)
        new_basename = plan.filename_title if plan.write_filename else path.stem
        new_path = path.with_name(new_basename + path.suffix)

        outcome = SyncOutcome(
            path=str(path),
            status="planned" if dry_run else "synced",
            source=source.value,
            new_path=str(new_path),
            renamed=new_path != path,
            content_changed=new_text != text,
            notice=plan.notice,
            changes=titles_delta(titles, extract_titles(new_path, new_text)),
        )
        if dry_run:
            outcome.diff_unified = unified_diff(text, new_text, str(path), str(new_path))
            return outcome

        if outcome.renamed:
            new_path = await self.store.rename(path, new_basename)
            outcome.new_path = str(new_path)
        if outcome.content_changed:
            await self.store.write(new_path, new_text)
            logger.info("Updated titles in %s", new_path.name)
        return outcome

    async def reconcile(self, path: Path, source: TitleSource, dry_run: bool = False) -> SyncOutcome:
        """Propagate ``source`` to the representations of the sync mode, without notices.

        Raises MissingSource before touching the note when the source is absent.
        """
        path = Path(path)
        titles, text = await self._load(path)
        plan = resolve_plan(titles, source, self.settings)
        return await self._apply(path, source, titles, text, plan, dry_run)

    async def sync_document(
        self,
        path: Path,
        source: Optional[TitleSource] = None,
        dry_run: bool = False,
    ) -> SyncOutcome:
        """Sync one note and report the result as a single notice.

        Errors are shown and re-raised.
        """
        path = Path(path)
        source = source or self.settings.default_title_source
        try:
            titles, text = await self._load(path)
            if is_synchronized(titles, self.settings.sync_mode):
                self.notifier.show_info(ALREADY_SYNCED_MESSAGE)
                return SyncOutcome(path=str(path), status="skipped", source=source.value, new_path=str(path))
            plan = resolve_plan(titles, source, self.settings)
            if plan.notice:
                self.notifier.show_info(plan.notice)
            outcome = await self._apply(path, source, titles, text, plan, dry_run)
        except TitleSyncError as exc:
            logger.error("Error synchronizing titles for %s: %s", path, exc)
            self.notifier.show_error(f"Error synchronizing titles: {exc}")
            raise
        if dry_run:
            self.notifier.show_info(f"Dry run: no changes written to {path.name}")
        else:
            self.notifier.show_success(SUCCESS_MESSAGE)
        return outcome

    async def sync_folder(
        self,
        directory: Path,
        source: Optional[TitleSource] = None,
        cancel: Optional[asyncio.Event] = None,
        dry_run: bool = False,
    ) -> BulkSummary:
        """Sync every note below ``directory``; one failing note never stops the run.

        Only a failure to list the directory propagates. ``cancel`` is checked
        between notes. One summary notice is shown at the end.
        """
        directory = Path(directory)
        source = source or self.settings.default_title_source
        paths = await self.store.list_documents(directory)
        summary = BulkSummary(directory=str(directory), source=source.value)
        logger.info("Syncing %d notes under %s from %s", len(paths), directory, source.value)

        for path in paths:
            if cancel is not None and cancel.is_set():
                summary.cancelled = True
                logger.warning("Bulk title sync cancelled after %d notes", summary.total)
                break
            try:
                titles, text = await self._load(path)
                if is_synchronized(titles, self.settings.sync_mode):
                    summary.skipped += 1
                    continue
                plan = resolve_plan(titles, source, self.settings)
                if plan.notice:
                    logger.info("%s: %s", path.name, plan.notice)
                await self._apply(path, source, titles, text, plan, dry_run)
            except (TitleSyncError, OSError) as exc:
                summary.errors += 1
                summary.failures.append((str(path), str(exc)))
                logger.error("Failed to sync titles for %s: %s", path, exc)
                continue
            summary.processed += 1

        if summary.errors:
            self.notifier.show_error(summary.describe())
        else:
            self.notifier.show_success(summary.describe())
        return summary
