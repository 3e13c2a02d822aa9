"""Stable content identifiers for indexed blobs."""
from __future__ import annotations

import hashlib

__all__ = ["calculate_blob_hash"]


def calculate_blob_hash(path: str, content: str) -> str:
    """Return the SHA-256 hex digest of ``path`` followed by ``content``."""

    hasher = hashlib.sha256()
    hasher.update(path.encode("utf-8"))
    hasher.update(content.encode("utf-8"))
    return hasher.hexdigest()
