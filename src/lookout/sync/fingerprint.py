"""Content fingerprints — has this file actually changed?

Equality is decided from file content alone, never from timestamps or
sizes, so editors that touch metadata without changing bytes do not cause
a copy.  Fingerprints live only as long as one comparison.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from lookout._types import Fingerprint

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def fingerprint(path: Path) -> Fingerprint:
    """Return the hex SHA-256 digest of *path*, read in chunks.

    Raises:
        OSError: If the file cannot be opened or read.

    """
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        while chunk := fh.read(CHUNK_SIZE):
            digest.update(chunk)
    return digest.hexdigest()


async def afingerprint(path: Path) -> Fingerprint:
    """Compute :func:`fingerprint` off the event loop."""
    return await asyncio.to_thread(fingerprint, path)


async def files_equal(a: Path, b: Path) -> bool:
    """True iff both files fingerprint successfully and match.

    A failure on either side means "assume changed": it is logged as a
    warning and reported as ``False`` so the caller re-copies.
    """
    try:
        digest_a, digest_b = await asyncio.gather(afingerprint(a), afingerprint(b))
    except OSError as exc:
        logger.warning("Cannot compare %s and %s, assuming changed: %s", a, b, exc)
        return False
    return digest_a == digest_b
