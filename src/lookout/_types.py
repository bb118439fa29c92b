"""Shared type definitions for lookout."""

from collections.abc import Awaitable, Callable
from typing import Literal

# Root-relative, forward-slash path of a watched file (e.g. "js/app.js")
type RelativePath = str

# Hex digest of a file's content
type Fingerprint = str

# Which side of the page a client event is dispatched on
type EventScope = Literal["global", "document"]

# Called by the debouncer once the quiet period has elapsed
type NotifyFunc = Callable[[RelativePath], Awaitable[object]]
