"""Business logic for context search over a freshly indexed project."""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from ace_context.config import Settings
from ace_context.data import ProjectIndexStore, normalize_project_path
from ace_context.foundation.retry import RetryPolicy, retry_request
from ace_context.middleware import ContextBackendClient
from ace_context.services.indexing import ProjectIndexService

logger = logging.getLogger(__name__)

__all__ = [
    "ContextSearchService",
    "NO_RESULTS_MESSAGE",
    "SearchOutcome",
    "SearchPhase",
    "search_context",
]

NO_RESULTS_MESSAGE = "No relevant code context found for your query."
RETRIEVAL_RETRY_POLICY = RetryPolicy(max_attempts=3, base_delay=2.0)


class SearchPhase(enum.Enum):
    IDLE = "idle"
    INDEXING = "indexing"
    QUERYING = "querying"
    DONE = "done"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class SearchOutcome:
    """Tagged result of a search; ``render`` turns it into tool-facing text."""

    ok: bool
    text: str
    phase: SearchPhase

    @classmethod
    def failure(cls, message: str, phase: SearchPhase) -> "SearchOutcome":
        return cls(ok=False, text=message, phase=phase)

    def render(self) -> str:
        return self.text if self.ok else f"Error: {self.text}"


class ContextSearchService:
    """Re-indexes a project on every query, then asks the backend for context."""

    def __init__(
        self,
        settings: Settings,
        *,
        client: ContextBackendClient | None = None,
        store: ProjectIndexStore | None = None,
        indexer: ProjectIndexService | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.client = client or ContextBackendClient(settings.base_url, settings.token)
        self.store = store or ProjectIndexStore(settings.storage_path)
        self.indexer = indexer or ProjectIndexService(
            settings, client=self.client, store=self.store, sleep=sleep
        )
        self.sleep = sleep

    def search_context(self, project_path: Path | str, query: str) -> str:
        """Return retrieval text for ``query``, or an ``Error:`` string."""
        return self.search(project_path, query).render()

    def search(self, project_path: Path | str, query: str) -> SearchOutcome:
        phase = SearchPhase.IDLE
        try:
            normalized = normalize_project_path(project_path)
            logger.info("Searching %s for %r", normalized, query)

            phase = SearchPhase.INDEXING
            index_result = self.indexer.index_project(project_path)
            if index_result.status == "error":
                return SearchOutcome.failure(
                    f"Indexing failed. {index_result.message}", SearchPhase.ERROR
                )
            if index_result.status == "partial_success":
                logger.warning(
                    "Searching with a partial index; failed batches: %s",
                    index_result.failed_batches,
                )
            if index_result.stats is not None:
                logger.info(
                    "Index refreshed: total=%d, existing=%d, new=%d",
                    index_result.stats.total_blobs,
                    index_result.stats.existing_blobs,
                    index_result.stats.new_blobs,
                )

            phase = SearchPhase.QUERYING
            blob_names = self.store.hashes_for(normalized)
            if not blob_names:
                return SearchOutcome.failure("No blobs found after indexing.", phase)

            logger.info("Querying backend across %d blobs", len(blob_names))
            retrieval = retry_request(
                lambda: self.client.retrieve(query, blob_names),
                policy=RETRIEVAL_RETRY_POLICY,
                sleep=self.sleep,
                description="Codebase retrieval",
            )
        except Exception as exc:
            logger.exception("Search failed during %s", phase.value)
            return SearchOutcome.failure(str(exc), phase)

        if not retrieval:
            logger.warning("Search returned no content")
            return SearchOutcome(ok=True, text=NO_RESULTS_MESSAGE, phase=SearchPhase.DONE)
        logger.info("Search complete")
        return SearchOutcome(ok=True, text=retrieval, phase=SearchPhase.DONE)


def search_context(
    project_path: Path | str,
    query: str,
    settings: Settings,
    *,
    client: ContextBackendClient | None = None,
) -> str:
    """Convenience wrapper that instantiates ``ContextSearchService``."""

    return ContextSearchService(settings, client=client).search_context(
        project_path, query
    )
