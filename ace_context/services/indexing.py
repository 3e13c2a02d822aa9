"""Business logic for the incremental indexing pipeline."""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Iterator, Protocol, Sequence

from tqdm import tqdm

from ace_context.config import Settings
from ace_context.data import ProjectIndexStore, normalize_project_path
from ace_context.foundation.retry import RetryPolicy, retry_request
from ace_context.middleware import ContextBackendClient
from ace_context.models import Blob, HashDiff, IndexResult, IndexStats
from ace_context.services.collection import collect_blobs

logger = logging.getLogger(__name__)

__all__ = [
    "BatchUploader",
    "ProjectIndexService",
    "UploadReport",
    "diff_hashes",
    "index_project",
    "iter_batches",
]

UPLOAD_RETRY_POLICY = RetryPolicy(max_attempts=3, base_delay=1.0)


class BlobUploader(Protocol):
    """Anything that can push a batch of blobs to the backend."""

    def upload_batch(self, blobs: Sequence[Blob]) -> list[str]: ...


def diff_hashes(current: Iterable[str], previous: Iterable[str]) -> HashDiff:
    """Split ``current`` hashes into those already stored and those that are new.

    Order follows ``current`` and duplicates are collapsed. Hashes found
    only in ``previous`` are dropped.
    """

    known = set(previous)
    unchanged: list[str] = []
    new: list[str] = []
    seen: set[str] = set()
    for value in current:
        if value in seen:
            continue
        seen.add(value)
        (unchanged if value in known else new).append(value)
    return HashDiff(unchanged=tuple(unchanged), new=tuple(new))


def iter_batches(blobs: Sequence[Blob], batch_size: int) -> Iterator[list[Blob]]:
    """Yield consecutive slices of at most ``batch_size`` blobs."""

    if batch_size <= 0:
        raise ValueError("batch_size must be positive.")
    for start in range(0, len(blobs), batch_size):
        yield list(blobs[start : start + batch_size])


@dataclass(slots=True)
class UploadReport:
    """Names the backend confirmed plus the 1-based ordinals of failed batches."""

    uploaded: list[str] = field(default_factory=list)
    failed_batches: list[int] = field(default_factory=list)
    total_batches: int = 0


class BatchUploader:
    """Uploads new blobs in sequential, individually retried batches.

    A batch that exhausts its retries, fails permanently, or comes back
    without blob names is recorded as failed and the remaining batches
    still run.
    """

    def __init__(
        self,
        client: BlobUploader,
        *,
        batch_size: int,
        retry_policy: RetryPolicy = UPLOAD_RETRY_POLICY,
        sleep: Callable[[float], None] = time.sleep,
        show_progress: bool = False,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive.")
        self.client = client
        self.batch_size = batch_size
        self.retry_policy = retry_policy
        self.sleep = sleep
        self.show_progress = show_progress

    def upload(self, blobs: Sequence[Blob]) -> UploadReport:
        report = UploadReport(total_batches=math.ceil(len(blobs) / self.batch_size))
        if not blobs:
            return report

        logger.info(
            "Uploading %d new blobs in %d batches (batch size %d)",
            len(blobs),
            report.total_batches,
            self.batch_size,
        )
        batches = tqdm(
            iter_batches(blobs, self.batch_size),
            total=report.total_batches,
            desc="Uploading blobs",
            unit="batch",
            leave=False,
            disable=not self.show_progress,
        )
        for ordinal, batch in enumerate(batches, start=1):
            names = self._upload_one(ordinal, report.total_batches, batch)
            if names:
                report.uploaded.extend(names)
            else:
                report.failed_batches.append(ordinal)
        return report

    def _upload_one(self, ordinal: int, total: int, batch: list[Blob]) -> list[str]:
        logger.info("Uploading batch %d/%d (%d blobs)", ordinal, total, len(batch))
        try:
            names = retry_request(
                lambda: self.client.upload_batch(batch),
                policy=self.retry_policy,
                sleep=self.sleep,
                description=f"Batch {ordinal} upload",
            )
        except Exception as exc:
            logger.error("Batch %d failed: %s", ordinal, exc)
            return []
        if not names:
            logger.warning("Batch %d returned no blob names", ordinal)
            return []
        logger.info("Batch %d uploaded, %d blob names returned", ordinal, len(names))
        return names


_locks_guard = threading.Lock()
_store_locks: dict[str, threading.Lock] = {}


def _store_lock(store: ProjectIndexStore) -> threading.Lock:
    """Return the lock shared by every pass that rewrites ``store``'s file."""
    key = normalize_project_path(store.path)
    with _locks_guard:
        return _store_locks.setdefault(key, threading.Lock())


class ProjectIndexService:
    """Coordinates collection, diffing, upload, and persistence for a project."""

    def __init__(
        self,
        settings: Settings,
        *,
        client: BlobUploader | None = None,
        store: ProjectIndexStore | None = None,
        client_factory: Callable[[Settings], BlobUploader] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        show_progress: bool = False,
    ) -> None:
        self.settings = settings
        self.store = store or ProjectIndexStore(settings.storage_path)
        self._client = client
        self._client_factory = client_factory or _default_client
        self.sleep = sleep
        self.show_progress = show_progress

    @property
    def client(self) -> BlobUploader:
        if self._client is None:
            self._client = self._client_factory(self.settings)
        return self._client

    def index_project(self, project_path: Path | str) -> IndexResult:
        """Bring the backend up to date with ``project_path``; never raises."""

        try:
            normalized = normalize_project_path(project_path)
            logger.info("Indexing project %s", normalized)
            with _store_lock(self.store):
                return self._index(project_path, normalized)
        except Exception as exc:
            logger.exception("Indexing %s failed", project_path)
            return IndexResult(status="error", message=str(exc))

    def _index(self, project_path: Path | str, normalized: str) -> IndexResult:
        collection = collect_blobs(
            project_path,
            allowed_extensions=self.settings.text_extensions,
            exclude_patterns=self.settings.exclude_patterns,
            max_lines_per_blob=self.settings.max_lines_per_blob,
        )
        if not collection.blobs:
            return IndexResult(
                status="error", message="No text files found in the project."
            )

        projects = self.store.load()
        blobs_by_hash: dict[str, Blob] = {}
        for blob in collection.blobs:
            blobs_by_hash.setdefault(blob.ensure_hash(), blob)

        diff = diff_hashes(blobs_by_hash, projects.get(normalized, []))
        logger.info(
            "Incremental index: total=%d, existing=%d, new=%d",
            len(collection.blobs),
            len(diff.unchanged),
            len(diff.new),
        )

        if diff.new:
            uploader = BatchUploader(
                self.client,
                batch_size=self.settings.batch_size,
                sleep=self.sleep,
                show_progress=self.show_progress,
            )
            report = uploader.upload([blobs_by_hash[value] for value in diff.new])
        else:
            logger.info("Nothing to upload; every blob is already indexed")
            report = UploadReport()

        all_hashes = list(diff.unchanged)
        known = set(all_hashes)
        for name in report.uploaded:
            if name not in known:
                known.add(name)
                all_hashes.append(name)
        projects[normalized] = all_hashes
        self.store.save(projects)

        if diff.new:
            message = (
                f"Project indexed with {len(all_hashes)} blobs "
                f"(existing: {len(diff.unchanged)}, new: {len(report.uploaded)})"
            )
        else:
            message = (
                f"Project indexed with {len(all_hashes)} blobs "
                "(all existing, nothing to upload)"
            )
        if report.failed_batches:
            message += f"; failed batches: {report.failed_batches}"
            logger.warning(message)
        else:
            logger.info(message)

        return IndexResult(
            status="partial_success" if report.failed_batches else "success",
            message=message,
            project_path=normalized,
            failed_batches=report.failed_batches,
            stats=IndexStats(
                total_blobs=len(all_hashes),
                existing_blobs=len(diff.unchanged),
                new_blobs=len(report.uploaded),
                skipped_blobs=len(diff.unchanged),
            ),
        )


def index_project(
    project_path: Path | str,
    settings: Settings,
    *,
    client: BlobUploader | None = None,
    show_progress: bool = False,
) -> IndexResult:
    """Convenience wrapper that instantiates ``ProjectIndexService``."""

    service = ProjectIndexService(
        settings, client=client, show_progress=show_progress
    )
    return service.index_project(project_path)


def _default_client(settings: Settings) -> ContextBackendClient:
    return ContextBackendClient(settings.base_url, settings.token)
