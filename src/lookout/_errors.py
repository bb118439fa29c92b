"""Lookout error hierarchy.

All lookout-specific errors inherit from LookoutError for easy catching.
Only ConfigError and ServerStartError are fatal; everything else is logged
by the component that hit it and the pipeline keeps running.
"""


class LookoutError(Exception):
    """Base error for all lookout operations."""


class ConfigError(LookoutError):
    """Invalid or missing configuration."""


class MirrorError(LookoutError):
    """A file could not be copied into (or removed from) the mirror tree."""


class ServerStartError(LookoutError):
    """The notification channel could not be opened (e.g. port in use)."""


class ChannelSendError(LookoutError):
    """A notification could not be delivered to one client."""


class MalformedMessageError(LookoutError):
    """A notification message could not be decoded."""


class HotApplyError(LookoutError):
    """A change could not be applied in place by the client."""


class ScriptExecutionError(HotApplyError):
    """A changed script could not be fetched or executed."""


class StylesheetApplyError(HotApplyError):
    """A changed stylesheet could not be refreshed."""
