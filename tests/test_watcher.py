"""Tests for lookout.content.watcher — raw change translation."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import patch

import pytest
from watchfiles import Change

from lookout.content.watcher import ChangeEvent, ChangeKind, SourceWatcher, to_change_event


class TestChangeEvent:
    """Verify ChangeEvent is frozen and well-behaved."""

    def test_frozen(self) -> None:
        event = ChangeEvent(relative_path="app.js", kind=ChangeKind.MODIFIED)
        with pytest.raises(AttributeError):
            event.kind = ChangeKind.ADDED  # type: ignore[misc]

    def test_equality(self) -> None:
        a = ChangeEvent(relative_path="a.js", kind=ChangeKind.MODIFIED)
        b = ChangeEvent(relative_path="a.js", kind=ChangeKind.MODIFIED)
        assert a == b

    def test_hashable(self) -> None:
        event = ChangeEvent(relative_path="a.js", kind=ChangeKind.ADDED)
        assert isinstance(hash(event), int)


class TestToChangeEvent:
    """Unit tests for to_change_event()."""

    @pytest.mark.parametrize(("change", "kind"), [
        (Change.added, ChangeKind.ADDED),
        (Change.modified, ChangeKind.MODIFIED),
        (Change.deleted, ChangeKind.REMOVED),
    ])
    def test_kind_mapping(self, tmp_path: Path, change: Change, kind: ChangeKind) -> None:
        event = to_change_event(change, str(tmp_path / "app.js"), tmp_path)
        assert event == ChangeEvent(relative_path="app.js", kind=kind)

    def test_nested_path_uses_forward_slashes(self, tmp_path: Path) -> None:
        path = tmp_path / "components" / "nav" / "nav.js"
        event = to_change_event(Change.modified, path, tmp_path)
        assert event is not None
        assert event.relative_path == "components/nav/nav.js"

    def test_outside_root_returns_none(self, tmp_path: Path) -> None:
        assert to_change_event(Change.modified, "/completely/elsewhere.js", tmp_path) is None

    def test_root_itself_returns_none(self, tmp_path: Path) -> None:
        assert to_change_event(Change.modified, tmp_path, tmp_path) is None


class TestSourceWatcher:
    """End-to-end against the real filesystem."""

    @pytest.mark.asyncio
    async def test_reports_new_file(self, tmp_path: Path) -> None:
        watcher = SourceWatcher(tmp_path, step_ms=20, debounce_ms=20)
        received: list[ChangeEvent] = []

        async def consume() -> None:
            async for event in watcher.changes():
                received.append(event)
                watcher.stop()

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.3)
        (tmp_path / "fresh.css").write_text("a {}")
        await asyncio.wait_for(task, timeout=5)

        assert received[0].relative_path == "fresh.css"
        assert received[0].kind in (ChangeKind.ADDED, ChangeKind.MODIFIED)

    @pytest.mark.asyncio
    async def test_batch_is_yielded_sorted_by_path(self, tmp_path: Path) -> None:
        batch = {
            (Change.modified, str(tmp_path / "styles.css")),
            (Change.added, str(tmp_path / "app.js")),
            (Change.deleted, str(tmp_path / "lib" / "old.js")),
        }

        async def fake_awatch(*args, **kwargs):
            yield batch

        with patch("lookout.content.watcher.awatch", fake_awatch):
            received = [event async for event in SourceWatcher(tmp_path).changes()]

        assert [e.relative_path for e in received] == ["app.js", "lib/old.js", "styles.css"]

    def test_stop_before_start_is_safe(self, tmp_path: Path) -> None:
        watcher = SourceWatcher(tmp_path)
        watcher.stop()
        assert watcher.root == tmp_path
