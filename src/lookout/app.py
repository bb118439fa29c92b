"""Lookout application — wires the pipeline together.

Two jobs, selectable independently:

- ``sync``: one reconciliation pass of the source tree into the mirror.
- ``watch``: open the notification channel and stream filesystem changes
  through the coalescer to every connected client.

``run()`` performs whichever jobs the config enables, sync first.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from lookout._errors import ConfigError
from lookout.config_loader import load_config
from lookout.observability import Collector

if TYPE_CHECKING:
    from lookout.config import LookoutConfig
    from lookout.sync.mirror import SyncResult

logger = logging.getLogger(__name__)


def _check_root(config: LookoutConfig) -> None:
    if not config.root.is_dir():
        msg = f"Source directory does not exist: {config.root}"
        raise ConfigError(msg)


async def reconcile_tree(config: LookoutConfig, *, collector: Collector | None = None) -> SyncResult:
    """Reconcile ``config.root`` into ``config.dest`` without notifying anyone."""
    from lookout.sync.mirror import MirrorSynchronizer

    synchronizer = MirrorSynchronizer(
        config.root, config.dest, reserved=config.reserved, collector=collector,
    )
    logger.info("Copying all files from %s to %s", config.root, config.dest)
    return await synchronizer.reconcile()


async def watch(
    config: LookoutConfig,
    *,
    collector: Collector | None = None,
    ready: asyncio.Future[int] | None = None,
) -> None:
    """Serve notifications and watch the source tree until cancelled.

    *ready*, when given, receives the bound port once the channel is open.

    Raises:
        ServerStartError: If the notification channel cannot be opened.

    """
    from lookout.content.watcher import SourceWatcher
    from lookout.reactive.broadcaster import BroadcastHub
    from lookout.reactive.coalescer import ChangeCoalescer
    from lookout.reactive.server import NotificationServer
    from lookout.sync.mirror import MirrorSynchronizer

    hub = BroadcastHub(collector=collector)
    server = NotificationServer(hub, host=config.host, port=config.port)
    await server.start()

    mirror = None
    if config.mirror:
        mirror = MirrorSynchronizer(
            config.root, config.dest, reserved=config.reserved, collector=collector,
        )
    coalescer = ChangeCoalescer.for_hub(
        hub,
        strategy=config.strategy,
        quiet_period=config.quiet_period,
        mirror=mirror,
        collector=collector,
    )
    watcher = SourceWatcher(config.root, step_ms=config.watch_step_ms)

    logger.info("Watching %s", config.root)
    if ready is not None and not ready.done():
        ready.set_result(server.port)
    try:
        async for event in watcher.changes():
            try:
                await coalescer.on_raw_event(event)
            except Exception:
                logger.exception("Pipeline error for %s", event.relative_path)
    finally:
        watcher.stop()
        coalescer.debouncer.cancel()
        await server.stop()


async def run_async(config: LookoutConfig, *, collector: Collector | None = None) -> None:
    """Run the jobs *config* enables: reconciliation first, then the watch."""
    from lookout.banner import print_sync_summary

    _check_root(config)
    if config.copy_all:
        result = await reconcile_tree(config, collector=collector)
        print_sync_summary(result, config)
    if config.watch:
        await watch(config, collector=collector)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def run(root: str | Path | None = None, **kwargs: object) -> None:
    """Run lookout in the foreground until interrupted.

    Args:
        root: Source tree to watch (default: ``src`` or the config file's).
        **kwargs: Override LookoutConfig fields (``watch=True``, ``copy_all=True``...).

    Raises:
        ConfigError: On invalid configuration or a missing source tree.
        ServerStartError: If the notification channel cannot be opened.

    """
    from lookout.banner import print_banner

    config = load_config(root, **kwargs)
    _check_root(config)
    collector = Collector()
    print_banner(config)
    try:
        asyncio.run(run_async(config, collector=collector))
    except KeyboardInterrupt:
        pass
    finally:
        if config.watch:
            logger.info("Stopped: %s", collector.summary())


def sync(root: str | Path | None = None, **kwargs: object) -> SyncResult:
    """Reconcile the source tree into the mirror once and return the result."""
    config = load_config(root, **kwargs)
    _check_root(config)
    return asyncio.run(reconcile_tree(config))
