"""Presentation helpers for the CLI and tool-invocation surfaces."""

from .index_cli import print_index_result, run_indexing_cli
from .search_cli import SEARCH_CONTEXT_SCHEMA, print_search_result, search_context_tool

__all__ = [
    "SEARCH_CONTEXT_SCHEMA",
    "print_index_result",
    "print_search_result",
    "run_indexing_cli",
    "search_context_tool",
]
