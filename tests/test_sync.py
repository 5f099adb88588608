"""Tests for single-note and bulk synchronization."""

import asyncio
from pathlib import Path

import pytest

from title_sync.config import Settings
from title_sync.errors import CollaboratorFailure, MissingSource
from title_sync.sync import TitleSynchronizer
from title_sync.types import (
    DocumentTitles,
    IllegalCharacterHandling,
    NotificationLevel,
    SyncMode,
    TitleSource,
)

SYNCED = "---\ntitle: T\n---\n\n# T\n"


class TestSyncDocument:
    @pytest.mark.asyncio
    async def test_already_synchronized_writes_nothing(self, make_store, make_notifier, settings) -> None:
        store = make_store({"vault/T.md": SYNCED})
        notifier = make_notifier(settings)
        outcome = await TitleSynchronizer(store, settings, notifier).sync_document(Path("vault/T.md"))

        assert outcome.status == "skipped"
        assert store.writes == []
        assert store.renames == []
        assert notifier.shown == [("info", "All titles are already synchronized")]

    @pytest.mark.asyncio
    async def test_from_filename(self, make_store, make_notifier, settings) -> None:
        store = make_store({"vault/My Note.md": "body\n"})
        notifier = make_notifier(settings)
        outcome = await TitleSynchronizer(store, settings, notifier).sync_document(Path("vault/My Note.md"))

        assert outcome.status == "synced"
        assert not outcome.renamed
        assert store.files[Path("vault/My Note.md")] == "---\ntitle: My Note\n---\n\n# My Note\n\nbody\n"
        assert notifier.shown == [("success", "Titles synchronized successfully")]

    @pytest.mark.asyncio
    async def test_asymmetric_propagation(self, make_store, make_notifier) -> None:
        settings = Settings(illegal_char_handling=IllegalCharacterHandling.REMOVE, propagate_sanitized=False)
        store = make_store({"vault/Old.md": "---\ntitle: A/B\n---\n\n# Something\n"})
        notifier = make_notifier(settings)
        outcome = await TitleSynchronizer(store, settings, notifier).sync_document(
            Path("vault/Old.md"), TitleSource.METADATA
        )

        assert outcome.new_path == str(Path("vault/AB.md"))
        assert Path("vault/Old.md") not in store.files
        assert store.files[Path("vault/AB.md")] == "---\ntitle: A/B\n---\n\n# A/B\n"
        assert [kind for kind, _ in notifier.shown] == ["info", "success"]

    @pytest.mark.asyncio
    async def test_propagated_sanitized_value(self, make_store) -> None:
        settings = Settings(illegal_char_handling=IllegalCharacterHandling.UNDERSCORE, propagate_sanitized=True)
        store = make_store({"vault/x.md": "# What? Now\n"})
        await TitleSynchronizer(store, settings).sync_document(Path("vault/x.md"), TitleSource.HEADING)

        assert store.files[Path("vault/What_ Now.md")] == "---\ntitle: What_ Now\n---\n\n# What_ Now\n"

    @pytest.mark.asyncio
    async def test_missing_source_leaves_note_untouched(self, make_store, make_notifier, settings) -> None:
        original = "---\ntitle: X\n---\n\nbody without heading\n"
        store = make_store({"vault/Y.md": original})
        notifier = make_notifier(settings)

        with pytest.raises(MissingSource):
            await TitleSynchronizer(store, settings, notifier).sync_document(Path("vault/Y.md"), TitleSource.HEADING)

        assert store.files == {Path("vault/Y.md"): original}
        assert store.writes == []
        assert store.renames == []
        assert len(notifier.shown) == 1
        assert notifier.shown[0][0] == "error"

    @pytest.mark.asyncio
    async def test_rename_collision_aborts(self, make_store, settings) -> None:
        store = make_store({"vault/a.md": "# Taken\n", "vault/Taken.md": "other\n"})
        with pytest.raises(CollaboratorFailure):
            await TitleSynchronizer(store, settings).sync_document(Path("vault/a.md"), TitleSource.HEADING)
        assert store.files[Path("vault/a.md")] == "# Taken\n"

    @pytest.mark.asyncio
    async def test_mode_limits_what_is_written(self, make_store) -> None:
        settings = Settings(sync_mode=SyncMode.FILENAME_HEADING)
        store = make_store({"vault/Name.md": "---\ntitle: Keep me\n---\nbody\n"})
        await TitleSynchronizer(store, settings).sync_document(Path("vault/Name.md"), TitleSource.FILENAME)

        assert store.files[Path("vault/Name.md")] == "---\ntitle: Keep me\n---\n\n# Name\n\nbody\n"

    @pytest.mark.asyncio
    async def test_source_outside_mode_is_read_but_not_written(self, make_store) -> None:
        settings = Settings(sync_mode=SyncMode.FILENAME_METADATA)
        store = make_store({"vault/old.md": "# From heading\n"})
        await TitleSynchronizer(store, settings).sync_document(Path("vault/old.md"), TitleSource.HEADING)

        assert store.files == {Path("vault/From heading.md"): "---\ntitle: From heading\n---\n\n# From heading\n"}

    @pytest.mark.asyncio
    async def test_metadata_heading_mode_with_unsanitized_value(self, make_store, make_notifier) -> None:
        settings = Settings(sync_mode=SyncMode.METADATA_HEADING, propagate_sanitized=False)
        store = make_store({"vault/file.md": "---\ntitle: A/B\n---\n\n# Old\n"})
        notifier = make_notifier(settings)
        await TitleSynchronizer(store, settings, notifier).sync_document(Path("vault/file.md"), TitleSource.METADATA)

        assert store.renames == []
        assert store.files[Path("vault/file.md")] == "---\ntitle: A/B\n---\n\n# A/B\n"
        assert notifier.shown[0] == ("info", 'Title contains illegal characters. Filename will be sanitized to: "AB"')

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self, make_store, settings) -> None:
        store = make_store({"vault/N.md": "# Other\n"})
        outcome = await TitleSynchronizer(store, settings).sync_document(
            Path("vault/N.md"), TitleSource.HEADING, dry_run=True
        )

        assert outcome.status == "planned"
        assert outcome.renamed
        assert outcome.content_changed
        assert "+title: Other" in outcome.diff_unified
        assert store.writes == [] and store.renames == []
        assert outcome.changes["filename"] == {"a": "N", "b": "Other"}

    @pytest.mark.asyncio
    async def test_uses_cached_titles_for_the_check(self, make_store, settings) -> None:
        store = make_store({"vault/T.md": "stale text\n"})
        store.cache[Path("vault/T.md")] = DocumentTitles("vault/T.md", "T", "T", "T")
        outcome = await TitleSynchronizer(store, settings).sync_document(Path("vault/T.md"))
        assert outcome.status == "skipped"

    @pytest.mark.asyncio
    async def test_errors_only_verbosity_hides_success(self, make_store, make_notifier) -> None:
        settings = Settings(notification_verbosity=NotificationLevel.ERRORS)
        store = make_store({"vault/a.md": "x\n"})
        notifier = make_notifier(settings)
        await TitleSynchronizer(store, settings, notifier).sync_document(Path("vault/a.md"))
        assert notifier.shown == []

    @pytest.mark.asyncio
    async def test_heading_source_after_byte_order_mark(self, make_store, settings) -> None:
        store = make_store({"vault/x.md": "\ufeff# Old\nBody\n"})
        await TitleSynchronizer(store, settings).sync_document(Path("vault/x.md"), TitleSource.HEADING)

        assert store.files == {Path("vault/Old.md"): "\ufeff---\ntitle: Old\n---\n\n# Old\nBody\n"}


class TestReconcile:
    @pytest.mark.asyncio
    async def test_reconcile_runs_even_when_synchronized(self, make_store, settings) -> None:
        store = make_store({"vault/T.md": SYNCED})
        outcome = await TitleSynchronizer(store, settings).reconcile(Path("vault/T.md"), TitleSource.FILENAME)
        assert outcome.status == "synced"
        assert not outcome.content_changed
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_is_synchronized(self, make_store, settings) -> None:
        store = make_store({"vault/T.md": SYNCED, "vault/U.md": SYNCED})
        syncer = TitleSynchronizer(store, settings)
        assert await syncer.is_synchronized(Path("vault/T.md"))
        assert not await syncer.is_synchronized(Path("vault/U.md"))


class TestSyncFolder:
    @pytest.mark.asyncio
    async def test_partial_failure(self, make_store, make_notifier, settings) -> None:
        store = make_store({f"vault/n{i}.md": "body\n" for i in range(1, 6)})
        store.fail_write.add(Path("vault/n3.md"))
        notifier = make_notifier(settings)

        summary = await TitleSynchronizer(store, settings, notifier).sync_folder(Path("vault"), TitleSource.FILENAME)

        assert (summary.processed, summary.skipped, summary.errors) == (4, 0, 1)
        assert summary.failures[0][0] == str(Path("vault/n3.md"))
        for i in (1, 2, 4, 5):
            assert store.files[Path(f"vault/n{i}.md")] == f"---\ntitle: n{i}\n---\n\n# n{i}\n\nbody\n"
        assert store.files[Path("vault/n3.md")] == "body\n"
        assert len(notifier.shown) == 1
        assert notifier.shown[0][0] == "error"

    @pytest.mark.asyncio
    async def test_skips_synchronized_and_recurses(self, make_store, make_notifier, settings) -> None:
        store = make_store({
            "vault/T.md": SYNCED,
            "vault/sub/deeper/n.md": "text\n",
            "elsewhere/x.md": "untouched\n",
        })
        notifier = make_notifier(settings)
        summary = await TitleSynchronizer(store, settings, notifier).sync_folder(Path("vault"))

        assert (summary.processed, summary.skipped, summary.errors) == (1, 1, 0)
        assert store.files[Path("elsewhere/x.md")] == "untouched\n"
        assert notifier.shown == [("success", summary.describe())]

    @pytest.mark.asyncio
    async def test_missing_source_is_counted(self, make_store, settings) -> None:
        store = make_store({"vault/a.md": "no heading\n", "vault/b.md": "# B2\n"})
        summary = await TitleSynchronizer(store, settings).sync_folder(Path("vault"), TitleSource.HEADING)

        assert (summary.processed, summary.errors) == (1, 1)
        assert Path("vault/B2.md") in store.files

    @pytest.mark.asyncio
    async def test_listing_failure_propagates(self, make_store, settings) -> None:
        store = make_store({"vault/a.md": "x"})
        store.fail_list = True
        with pytest.raises(CollaboratorFailure):
            await TitleSynchronizer(store, settings).sync_folder(Path("vault"))

    @pytest.mark.asyncio
    async def test_cancel_between_notes(self, make_store, settings) -> None:
        store = make_store({f"vault/n{i}.md": "body\n" for i in range(3)})
        cancel = asyncio.Event()
        cancel.set()
        summary = await TitleSynchronizer(store, settings).sync_folder(Path("vault"), cancel=cancel)

        assert summary.cancelled
        assert summary.total == 0
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_none_verbosity_hides_summary(self, make_store, make_notifier) -> None:
        settings = Settings(notification_verbosity=NotificationLevel.NONE)
        store = make_store({"vault/a.md": "x\n"})
        store.fail_write.add(Path("vault/a.md"))
        notifier = make_notifier(settings)
        summary = await TitleSynchronizer(store, settings, notifier).sync_folder(Path("vault"))
        assert summary.errors == 1
        assert notifier.shown == []
