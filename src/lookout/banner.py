"""Startup banner — status output for the lookout CLI.

Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lookout.config import LookoutConfig
    from lookout.sync.mirror import SyncResult


# ---------------------------------------------------------------------------
# ANSI helpers — respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""
_RED = "\033[31m" if _COLOR else ""


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def format_banner(config: LookoutConfig, *, warnings: list[str] | None = None) -> str:
    """Build the startup banner for *config*."""
    from lookout import __version__

    jobs = [name for name, on in (("sync", config.copy_all), ("watch", config.watch)) if on]
    badge = f"{_GREEN}[{' + '.join(jobs) or 'idle'}]{_RESET}"

    lines: list[str] = [
        "",
        f"  {_BOLD}Lookout{_RESET} {_DIM}v{__version__}{_RESET}  {badge}",
        f"  {_DIM}{'─' * 43}{_RESET}",
        f"  {_DIM}├─{_RESET} source: {_DIM}{config.root}{_RESET}",
    ]
    if config.copy_all or config.mirror:
        lines.append(f"  {_DIM}├─{_RESET} mirror: {_DIM}{config.dest}{_RESET}")

    if config.watch:
        realtime = f"{_GREEN}on{_RESET}" if config.mirror else f"{_DIM}off{_RESET}"
        lines.append(f"  {_DIM}├─{_RESET} real-time mirroring: {realtime}")
        lines.append(f"  {_DIM}├─{_RESET} strategy: {config.strategy}")
        lines.append(f"  {_DIM}└─{_RESET} quiet period: {config.quiet_period_ms}ms")
        lines.append("")
        lines.append(f"  {_BOLD}{_CYAN}{config.ws_url}{_RESET}")
        lines.append("")
        lines.append(f"  {_DIM}Watching for changes...{_RESET}")

    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)

    lines.append("")
    return "\n".join(lines)


def print_banner(config: LookoutConfig, *, warnings: list[str] | None = None) -> None:
    """Print the startup banner to stderr."""
    print(format_banner(config, warnings=warnings), file=sys.stderr)


def print_sync_summary(result: SyncResult, config: LookoutConfig) -> None:
    """Print the outcome of a reconciliation pass to stderr."""
    lines = [
        f"  Copied {_plural(len(result.copied), 'file')}, "
        f"{result.unchanged} unchanged",
        f"  Mirror: {config.dest}",
        f"  Done in {result.duration_ms:.0f}ms",
    ]
    if result.failed:
        lines.append(f"  {_RED}{_plural(len(result.failed), 'path')} failed{_RESET}")
        lines.extend(f"    {_DIM}{path}{_RESET}" for path in result.failed[:10])
    print("\n".join(lines), file=sys.stderr)
