"""Change router — applies a change notification on the client.

The router is the client half of the pipeline.  For every ``fileChange``
notification it:

1. Decodes the message (malformed messages are logged and dropped).
2. Tells subscribers that a file changed, once on the global scope and
   once on the document scope.
3. Classifies the path and applies it:

   - script: fetch ``./<path>`` and execute it in the host
   - stylesheet: cache-bust every matching ``<link>`` (or add one)
   - markup: reload the page and stop
   - other: nothing beyond step 2

4. For the ``always-trigger-hashchange`` strategy, invalidates the host's
   page state and emits ``hashchange`` so the host re-routes.

The router only talks to the notification channel when the page is served
from a local or private-network hostname.  Hot-apply failures leave the
page on its previous version; there is no automatic reload fallback.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, assert_never

from websockets.asyncio.client import connect
from websockets.exceptions import WebSocketException

from lookout._errors import (
    MalformedMessageError,
    ScriptExecutionError,
    StylesheetApplyError,
)
from lookout.config import Strategy
from lookout.reactive.broadcaster import FILE_CHANGE, Notification

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from lookout._types import EventScope, RelativePath

logger = logging.getLogger(__name__)

FILE_CHANGE_EVENT = "lookout:fileChange"
HASHCHANGE_EVENT = "hashchange"

# Hostnames the router is allowed to activate on.
LOCAL_HOST_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"localhost"),
    re.compile(r"127\.0\.0\.1"),
    re.compile(r"192\.168\.2\.\d+"),
    re.compile(r"172\.\d+\.\d+\.\d+"),
)


class FileKind(Enum):
    """How a changed file is applied on the client."""

    SCRIPT = "script"
    STYLESHEET = "stylesheet"
    MARKUP = "markup"
    OTHER = "other"


_SUFFIX_KINDS: tuple[tuple[str, FileKind], ...] = (
    (".js", FileKind.SCRIPT),
    (".css", FileKind.STYLESHEET),
    (".html", FileKind.MARKUP),
)


def classify(path: RelativePath) -> FileKind:
    """Classify *path* by its suffix (not by MIME type)."""
    for suffix, kind in _SUFFIX_KINDS:
        if path.endswith(suffix):
            return kind
    return FileKind.OTHER


def is_allowed_host(
    hostname: str,
    patterns: Sequence[re.Pattern[str]] = LOCAL_HOST_PATTERNS,
) -> bool:
    """True if *hostname* fully matches one of the allow-list patterns."""
    return any(p.fullmatch(hostname) for p in patterns)


def href_matches(href: str, path: RelativePath) -> bool:
    """True if *href*, without query or fragment, points at *path*."""
    target = href.split("?", 1)[0].split("#", 1)[0]
    return target == path or target.endswith("/" + path)


# ---------------------------------------------------------------------------
# Host collaborators
# ---------------------------------------------------------------------------


class StylesheetLink(Protocol):
    """A ``<link rel="stylesheet">`` element."""

    href: str


class Host(Protocol):
    """The page the router applies changes to."""

    @property
    def hostname(self) -> str: ...

    async def fetch_text(self, url: str) -> str: ...

    def execute_script(self, source: str, url: str) -> None: ...

    def stylesheet_links(self) -> Sequence[StylesheetLink]: ...

    def append_stylesheet(self, href: str) -> None: ...

    def reload(self) -> None: ...


class PageState(Protocol):
    """Host-owned cached page state, invalidated on hash-change strategies."""

    def invalidate(self) -> None: ...


@dataclass(frozen=True, slots=True)
class RouterEvent:
    """An event delivered to router subscribers.

    Attributes:
        name: ``lookout:fileChange`` or ``hashchange``.
        scope: ``global`` or ``document``.
        detail: ``{"type", "filePath"}`` for file changes, empty otherwise.

    """

    name: str
    scope: EventScope
    detail: Mapping[str, Any] = field(default_factory=dict)


type Listener = Callable[[RouterEvent], object]


class ChangeRouter:
    """Client-side state machine for change notifications.

    Stateless between notifications apart from the host's page state,
    which it only ever invalidates.

    Args:
        host: The page changes are applied to.
        page_state: Cached page state to invalidate, if the host has one.
        port: Port of the notification channel.
        clock: Returns the current time in seconds (for cache busting).
        patterns: Hostname allow-list.

    """

    def __init__(
        self,
        host: Host,
        *,
        page_state: PageState | None = None,
        port: int = 9996,
        clock: Callable[[], float] = time.time,
        patterns: Sequence[re.Pattern[str]] = LOCAL_HOST_PATTERNS,
    ) -> None:
        self._host = host
        self._page_state = page_state
        self._port = port
        self._clock = clock
        self._patterns = tuple(patterns)
        self._listeners: list[Listener] = []
        self._inflight: set[asyncio.Task[FileKind | None]] = set()

    @property
    def active(self) -> bool:
        """Whether the host's hostname allows the router to connect."""
        return is_allowed_host(self._host.hostname, self._patterns)

    @property
    def url(self) -> str:
        """Notification channel URL for the current host."""
        return f"ws://{self._host.hostname}:{self._port}"

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* for every router event.  Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Channel
    # ------------------------------------------------------------------

    async def listen(self, url: str | None = None) -> bool:
        """Connect to the notification channel and apply messages until it closes.

        Each message is applied in its own task: a slow script fetch never
        delays or cancels the handling of a later notification, and
        completions may land out of order.

        Returns:
            False if the router refused to connect (non-local hostname) or
            could not reach the server, True after a normal session.

        """
        if not self.active:
            logger.info(
                "Lookout client inactive on %r: only available on local hosts",
                self._host.hostname,
            )
            return False

        url = url or self.url
        try:
            async with connect(url) as ws:
                logger.info("Connected to %s", url)
                async for message in ws:
                    task = asyncio.create_task(self.on_notification(message))
                    self._inflight.add(task)
                    task.add_done_callback(self._inflight.discard)
        except (OSError, WebSocketException) as exc:
            logger.warning("Notification server inactive at %s: %s", url, exc)
            return False
        finally:
            if self._inflight:
                await asyncio.gather(*self._inflight, return_exceptions=True)

        logger.info("Connection to %s closed", url)
        return True

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    async def on_notification(self, raw: str | bytes) -> FileKind | None:
        """Apply one notification message.

        Returns:
            The file kind that was handled, or None if the message was
            dropped (malformed or not a file change).

        """
        try:
            notification = Notification.from_json(raw)
        except MalformedMessageError as exc:
            logger.error("Error parsing notification: %s", exc)
            return None
        if notification.type != FILE_CHANGE:
            return None

        path = notification.file_path
        detail = {"type": notification.type, "filePath": path}
        self._emit(FILE_CHANGE_EVENT, "global", detail)
        self._emit(FILE_CHANGE_EVENT, "document", detail)

        kind = classify(path)
        if kind is FileKind.SCRIPT:
            await self._reload_script(path)
        elif kind is FileKind.STYLESHEET:
            self._refresh_stylesheet(path)
        elif kind is FileKind.MARKUP:
            logger.info("Markup changed (%s), reloading page", path)
            self._host.reload()
            return kind
        elif kind is FileKind.OTHER:
            pass
        else:
            assert_never(kind)

        if notification.strategy is Strategy.ALWAYS_TRIGGER_HASHCHANGE:
            if self._page_state is not None:
                self._page_state.invalidate()
            self._emit(HASHCHANGE_EVENT, "global", {})

        return kind

    async def _reload_script(self, path: RelativePath) -> bool:
        url = f"./{path}"
        try:
            source = await self._host.fetch_text(url)
            self._host.execute_script(source, url)
        except Exception as exc:
            error = ScriptExecutionError(f"Error running script {url}: {exc}")
            logger.error("%s", error)
            return False
        logger.info("Script loaded and executed: %s", path)
        return True

    def _refresh_stylesheet(self, path: RelativePath) -> bool:
        href = f"./{path}?v={int(self._clock() * 1000)}"
        try:
            links = [
                link for link in self._host.stylesheet_links()
                if href_matches(link.href, path)
            ]
            for link in links:
                link.href = href
            if not links:
                self._host.append_stylesheet(href)
        except Exception as exc:
            error = StylesheetApplyError(f"Error refreshing stylesheet {path}: {exc}")
            logger.error("%s", error)
            return False
        logger.info("Stylesheet refreshed: %s", path)
        return True

    def _emit(self, name: str, scope: EventScope, detail: Mapping[str, Any]) -> None:
        event = RouterEvent(name=name, scope=scope, detail=detail)
        for listener in tuple(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener for %s failed", name)
