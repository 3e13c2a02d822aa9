"""Core package for ace-context: incremental indexing and context search."""

from .config import ConfigError, Settings, load_settings, save_settings
from .data.stores import ProjectIndexStore
from .middleware.backend import BackendError, ContextBackendClient
from .models import Blob, IndexResult, IndexStats
from .presentation.search_cli import SEARCH_CONTEXT_SCHEMA, search_context_tool
from .services.collection import ProjectNotFoundError, collect_blobs, split_file_content
from .services.indexing import ProjectIndexService, index_project
from .services.search import ContextSearchService, search_context

__all__ = [
    "BackendError",
    "Blob",
    "ConfigError",
    "ContextBackendClient",
    "ContextSearchService",
    "IndexResult",
    "IndexStats",
    "ProjectIndexService",
    "ProjectIndexStore",
    "ProjectNotFoundError",
    "SEARCH_CONTEXT_SCHEMA",
    "Settings",
    "collect_blobs",
    "index_project",
    "load_settings",
    "save_settings",
    "search_context",
    "search_context_tool",
]
