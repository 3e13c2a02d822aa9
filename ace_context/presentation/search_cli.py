"""Tool-invocation surface for context search, plus CLI helpers."""
from __future__ import annotations

from typing import Any, Mapping

from ace_context.config import Settings
from ace_context.services.search import ContextSearchService

__all__ = ["SEARCH_CONTEXT_SCHEMA", "print_search_result", "search_context_tool"]

SEARCH_CONTEXT_SCHEMA: dict[str, Any] = {
    "name": "search_context",
    "description": (
        "Search the codebase for context relevant to a natural-language query. "
        "The project is re-indexed incrementally first, so results reflect the "
        "current files."
    ),
    "inputSchema": {
        "type": "object",
        "properties": {
            "project_root_path": {
                "type": "string",
                "description": (
                    "Absolute path of the project root (optional; defaults to "
                    "ACE_CONTEXT_DEFAULT_PROJECT)."
                ),
            },
            "query": {
                "type": "string",
                "description": "What you are looking for, in natural language.",
            },
        },
        "required": ["query"],
    },
}


def search_context_tool(
    arguments: Mapping[str, Any],
    settings: Settings,
    *,
    service: ContextSearchService | None = None,
) -> str:
    """Run the ``search_context`` tool; always returns text."""
    query = str(arguments.get("query") or "").strip()
    if not query:
        return "Error: the 'query' argument is required."

    project = arguments.get("project_root_path") or settings.default_project
    if not project:
        return (
            "Error: no project path given. Either:\n"
            "1. pass the project_root_path argument, or\n"
            "2. set the ACE_CONTEXT_DEFAULT_PROJECT environment variable."
        )

    try:
        service = service or ContextSearchService(settings)
        return service.search_context(str(project), query)
    except Exception as exc:
        return f"Error: {exc}"


def print_search_result(text: str) -> None:
    print(text)
