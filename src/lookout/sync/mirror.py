"""Mirror synchronizer — keeps a destination tree in sync with the source.

Two entry points share the same copy rules:

- ``reconcile()`` walks the whole source tree once (the ``--copy-all``
  pass).  Sibling entries are reconciled concurrently; every destination
  path belongs to exactly one task, so tasks never race on a path.
- ``mirror_path()`` applies a single watcher event (copy or delete).

Copy rules:

1. Paths containing a reserved directory name (``.git``, ``node_modules``)
   at any depth are never mirrored.
2. A file is copied only when the destination is missing or its content
   fingerprint differs.
3. Type changes heal themselves: a directory sitting where a file must go
   is removed, and a file sitting where a directory must go is unlinked.

Bulk reconciliation never notifies clients.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import time
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from lookout._errors import MirrorError
from lookout.config import RESERVED_NAMES
from lookout.sync.fingerprint import files_equal

if TYPE_CHECKING:
    from lookout._types import RelativePath
    from lookout.observability.collector import Collector

logger = logging.getLogger(__name__)


class MirrorAction(StrEnum):
    """What ``mirror_path`` did to the destination."""

    COPIED = "copied"
    REMOVED = "removed"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"


@dataclass(slots=True)
class SyncResult:
    """Outcome of one ``reconcile()`` pass.

    Attributes:
        copied: Relative paths written to the mirror.
        unchanged: Number of files whose fingerprints already matched.
        failed: Relative paths that could not be reconciled.
        duration_ms: Wall time of the pass.

    """

    copied: list[RelativePath] = field(default_factory=list)
    unchanged: int = 0
    failed: list[RelativePath] = field(default_factory=list)
    duration_ms: float = 0.0


def _list_dir(path: Path) -> list[tuple[str, bool, bool]]:
    """Return ``(name, is_file, is_dir)`` for each entry of *path*."""
    with os.scandir(path) as it:
        return [(e.name, e.is_file(), e.is_dir()) for e in it]


def _path_kind(path: Path) -> tuple[bool, bool]:
    """Return ``(is_file, is_dir)`` for *path*."""
    return path.is_file(), path.is_dir()


async def _needs_copy(src: Path, dest: Path) -> bool:
    """True unless *dest* is a file with the same content as *src*."""
    if not await asyncio.to_thread(dest.is_file):
        return True
    return not await files_equal(src, dest)


def _join(prefix: str, name: str) -> RelativePath:
    return f"{prefix}/{name}" if prefix else name


class MirrorSynchronizer:
    """Mirrors a source tree into a destination tree, content-first.

    Args:
        src: Source tree (the watched root).
        dest: Destination tree.
        reserved: Directory names that are never mirrored.
        collector: Optional observability collector.

    """

    def __init__(
        self,
        src: Path,
        dest: Path,
        *,
        reserved: tuple[str, ...] = RESERVED_NAMES,
        collector: Collector | None = None,
    ) -> None:
        self._src = src
        self._dest = dest
        self._reserved = frozenset(reserved)
        self._collector = collector

    @property
    def src(self) -> Path:
        return self._src

    @property
    def dest(self) -> Path:
        return self._dest

    def is_reserved(self, relative_path: RelativePath) -> bool:
        """True if any component of *relative_path* is a reserved name."""
        return any(part in self._reserved for part in PurePosixPath(relative_path).parts)

    # ------------------------------------------------------------------
    # Bulk reconciliation
    # ------------------------------------------------------------------

    async def reconcile(
        self,
        src_dir: Path | None = None,
        dest_dir: Path | None = None,
    ) -> SyncResult:
        """Bring *dest_dir* in line with *src_dir* (defaults: the configured trees).

        Per-file failures are logged and listed in ``SyncResult.failed``;
        the walk carries on with the remaining entries.

        """
        src_dir = src_dir or self._src
        dest_dir = dest_dir or self._dest
        result = SyncResult()
        t0 = time.perf_counter()

        try:
            await asyncio.to_thread(self._ensure_dir, dest_dir, dest_dir)
        except OSError as exc:
            logger.error("Cannot create mirror directory %s: %s", dest_dir, exc)
            result.failed.append(".")
            return result

        await self._reconcile_dir(src_dir, dest_dir, dest_dir, "", result)
        result.duration_ms = (time.perf_counter() - t0) * 1000
        return result

    async def _reconcile_dir(
        self,
        src_dir: Path,
        dest_dir: Path,
        boundary: Path,
        prefix: str,
        result: SyncResult,
    ) -> None:
        try:
            entries = await asyncio.to_thread(_list_dir, src_dir)
        except OSError as exc:
            logger.error("Cannot list %s: %s", src_dir, exc)
            result.failed.append(prefix or ".")
            return

        await asyncio.gather(*(
            self._reconcile_entry(
                src_dir / name, dest_dir / name, boundary, _join(prefix, name),
                is_file=is_file, is_dir=is_dir, result=result,
            )
            for name, is_file, is_dir in entries
        ))

    async def _reconcile_entry(
        self,
        src_path: Path,
        dest_path: Path,
        boundary: Path,
        rel: RelativePath,
        *,
        is_file: bool,
        is_dir: bool,
        result: SyncResult,
    ) -> None:
        if self.is_reserved(rel):
            return

        if is_file:
            try:
                if not await _needs_copy(src_path, dest_path):
                    result.unchanged += 1
                    return
                await self._copy(src_path, dest_path, boundary, rel)
            except OSError as exc:
                logger.error("Cannot copy %s: %s", rel, exc)
                result.failed.append(rel)
                return
            result.copied.append(rel)
        elif is_dir:
            try:
                await asyncio.to_thread(self._ensure_dir, dest_path, boundary)
            except OSError as exc:
                logger.error("Cannot create directory %s: %s", rel, exc)
                result.failed.append(rel)
                return
            await self._reconcile_dir(src_path, dest_path, boundary, rel, result)

    # ------------------------------------------------------------------
    # Single-path mirroring
    # ------------------------------------------------------------------

    async def mirror_path(self, relative_path: RelativePath) -> MirrorAction:
        """Apply the current state of one source path to the mirror.

        Copies a file that exists, reconciles a directory that exists, and
        removes the mirrored entry when the source is gone.

        Raises:
            MirrorError: If the filesystem operation fails.

        """
        if self.is_reserved(relative_path):
            return MirrorAction.SKIPPED

        src_path = self._src / relative_path
        dest_path = self._dest / relative_path
        try:
            src_is_file, src_is_dir = await asyncio.to_thread(_path_kind, src_path)
            if src_is_file:
                if not await _needs_copy(src_path, dest_path):
                    return MirrorAction.UNCHANGED
                await self._copy(src_path, dest_path, self._dest, relative_path)
                return MirrorAction.COPIED
            if src_is_dir:
                await asyncio.to_thread(self._ensure_dir, dest_path, self._dest)
                result = await self._reconcile_subtree(src_path, dest_path, relative_path)
                if result.failed:
                    msg = f"Cannot mirror {len(result.failed)} path(s) under {relative_path}"
                    raise MirrorError(msg)
                return MirrorAction.COPIED
            if await asyncio.to_thread(self._remove, dest_path):
                self._record(relative_path, MirrorAction.REMOVED, 0.0)
                return MirrorAction.REMOVED
        except OSError as exc:
            msg = f"Cannot mirror {relative_path}: {exc}"
            raise MirrorError(msg) from exc
        return MirrorAction.UNCHANGED

    async def _reconcile_subtree(
        self, src_dir: Path, dest_dir: Path, prefix: RelativePath,
    ) -> SyncResult:
        result = SyncResult()
        await self._reconcile_dir(src_dir, dest_dir, self._dest, prefix, result)
        return result

    # ------------------------------------------------------------------
    # Filesystem helpers (run in worker threads)
    # ------------------------------------------------------------------

    async def _copy(self, src: Path, dest: Path, boundary: Path, rel: RelativePath) -> None:
        t0 = time.perf_counter()
        await asyncio.to_thread(self._copy_file, src, dest, boundary)
        duration_ms = (time.perf_counter() - t0) * 1000
        logger.info("Copied %s to %s", rel, dest)
        self._record(rel, MirrorAction.COPIED, duration_ms)

    def _record(self, rel: RelativePath, action: MirrorAction, duration_ms: float) -> None:
        if self._collector is not None:
            self._collector.record_mirror(rel, action=action.value, duration_ms=duration_ms)

    @staticmethod
    def _copy_file(src: Path, dest: Path, boundary: Path) -> None:
        _clear_file_ancestors(dest, boundary)
        if dest.is_dir() and not dest.is_symlink():
            shutil.rmtree(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(src, dest)

    @staticmethod
    def _ensure_dir(path: Path, boundary: Path) -> None:
        if path.is_dir():
            return
        _clear_file_ancestors(path, boundary)
        if path.exists() or path.is_symlink():
            path.unlink()
        path.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _remove(path: Path) -> bool:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
            return True
        if path.exists() or path.is_symlink():
            path.unlink()
            return True
        return False


def _clear_file_ancestors(path: Path, boundary: Path) -> None:
    """Unlink the nearest ancestor of *path* that is a file, up to *boundary*.

    Nothing outside *boundary* is ever touched.
    """
    for parent in path.parents:
        if parent != boundary and not parent.is_relative_to(boundary):
            return
        if parent.is_dir():
            return
        if parent.exists() or parent.is_symlink():
            parent.unlink()
            return
