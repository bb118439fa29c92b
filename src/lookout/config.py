"""Lookout configuration.

LookoutConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from lookout._errors import ConfigError

# Directories that are never mirrored, at any depth
RESERVED_NAMES: tuple[str, ...] = (".git", "node_modules")


class Strategy(StrEnum):
    """Extra invalidation the client performs after applying a change."""

    ALWAYS_TRIGGER_HASHCHANGE = "always-trigger-hashchange"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class LookoutConfig:
    """Configuration for a lookout process.

    Attributes:
        root: Source tree being watched.  Always resolved to an absolute
              path on construction.
        dest: Mirror tree kept in sync with ``root``.  Resolved the same way.
        host: Bind address for the notification channel.
        port: Bind port for the notification channel.
        copy_all: Run an initial reconciliation of ``root`` into ``dest``.
        watch: Start the notification channel and the live watch.
        mirror: Copy each changed file into ``dest`` as it changes.
        strategy: Strategy tag sent with every notification.
        quiet_period_ms: Debounce window before a notification is sent.
        watch_step_ms: Polling granularity handed to watchfiles.
        reserved: Directory names excluded from mirroring.

    """

    root: Path = field(default_factory=lambda: Path("src"))
    dest: Path = field(default_factory=lambda: Path("build"))
    host: str = "0.0.0.0"
    port: int = 9996
    copy_all: bool = False
    watch: bool = False
    mirror: bool = False
    strategy: Strategy = Strategy.ALWAYS_TRIGGER_HASHCHANGE
    quiet_period_ms: int = 100
    watch_step_ms: int = 50
    reserved: tuple[str, ...] = RESERVED_NAMES

    def __post_init__(self) -> None:
        # watchfiles reports absolute paths; both trees must be absolute so
        # that Path.relative_to() works on them.
        object.__setattr__(self, "root", Path(self.root).resolve())
        object.__setattr__(self, "dest", Path(self.dest).resolve())

        if not isinstance(self.strategy, Strategy):
            try:
                object.__setattr__(self, "strategy", Strategy(self.strategy))
            except ValueError:
                choices = ", ".join(s.value for s in Strategy)
                msg = f"Unknown strategy {self.strategy!r} (expected one of: {choices})"
                raise ConfigError(msg) from None

        if not 0 <= self.port <= 65535:
            msg = f"Port out of range: {self.port}"
            raise ConfigError(msg)
        if self.quiet_period_ms < 0:
            msg = f"quiet_period_ms must be >= 0, got {self.quiet_period_ms}"
            raise ConfigError(msg)

        # Mirroring into the watched tree would feed our own copies back
        # into the watcher.
        if self.dest == self.root or self.dest.is_relative_to(self.root):
            msg = f"Mirror tree {self.dest} must not be inside the watched tree {self.root}"
            raise ConfigError(msg)

    @property
    def quiet_period(self) -> float:
        """Debounce window in seconds."""
        return self.quiet_period_ms / 1000

    @property
    def ws_url(self) -> str:
        """URL a local client connects to."""
        host = "localhost" if self.host in ("", "0.0.0.0", "::") else self.host
        return f"ws://{host}:{self.port}"
