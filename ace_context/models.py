"""Typed models shared across the indexing and search layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from ace_context.foundation.hashing import calculate_blob_hash

__all__ = ["Blob", "HashDiff", "IndexResult", "IndexStats", "IndexStatus"]

IndexStatus = Literal["success", "partial_success", "error"]


@dataclass(slots=True)
class Blob:
    """A named unit of text content submitted for indexing."""

    path: str
    content: str
    hash: str | None = None

    def ensure_hash(self) -> str:
        """Compute (once) and return the content identifier for this blob."""
        if self.hash is None:
            self.hash = calculate_blob_hash(self.path, self.content)
        return self.hash

    def to_payload(self) -> dict[str, str]:
        return {"path": self.path, "content": self.content}


@dataclass(slots=True, frozen=True)
class HashDiff:
    """Current hashes split by whether the backend already holds them."""

    unchanged: tuple[str, ...]
    new: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class IndexStats:
    total_blobs: int
    existing_blobs: int
    new_blobs: int
    skipped_blobs: int


@dataclass(slots=True)
class IndexResult:
    """Outcome of one indexing pass."""

    status: IndexStatus
    message: str
    project_path: str | None = None
    failed_batches: list[int] = field(default_factory=list)
    stats: IndexStats | None = None

    @property
    def ok(self) -> bool:
        return self.status != "error"

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly view of the result."""
        payload: dict[str, Any] = {
            "status": self.status,
            "message": self.message,
            "project_path": self.project_path,
            "failed_batches": list(self.failed_batches),
        }
        if self.stats is not None:
            payload["stats"] = {
                "total_blobs": self.stats.total_blobs,
                "existing_blobs": self.stats.existing_blobs,
                "new_blobs": self.stats.new_blobs,
                "skipped_blobs": self.stats.skipped_blobs,
            }
        return payload
