"""Business logic layer for indexing and search workflows."""

from .collection import (
    CollectionResult,
    ProjectNotFoundError,
    collect_blobs,
    split_file_content,
)
from .indexing import BatchUploader, ProjectIndexService, diff_hashes, index_project
from .search import ContextSearchService, SearchOutcome, SearchPhase, search_context

__all__ = [
    "BatchUploader",
    "CollectionResult",
    "ContextSearchService",
    "ProjectIndexService",
    "ProjectNotFoundError",
    "SearchOutcome",
    "SearchPhase",
    "collect_blobs",
    "diff_hashes",
    "index_project",
    "search_context",
    "split_file_content",
]
