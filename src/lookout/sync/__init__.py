"""Sync layer — fingerprints and the mirror tree.

Keeps a destination tree byte-identical to the watched source tree,
copying only what actually differs.
"""

from lookout.sync.fingerprint import afingerprint, files_equal, fingerprint
from lookout.sync.mirror import MirrorAction, MirrorSynchronizer, SyncResult

__all__ = [
    "MirrorAction",
    "MirrorSynchronizer",
    "SyncResult",
    "afingerprint",
    "files_equal",
    "fingerprint",
]
