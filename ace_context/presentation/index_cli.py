"""CLI helpers for kicking off an indexing pass."""

from __future__ import annotations

import json
from pathlib import Path

from ace_context.config import Settings
from ace_context.models import IndexResult
from ace_context.services.indexing import index_project

__all__ = ["print_index_result", "run_indexing_cli"]


def run_indexing_cli(
    project: Path | str, settings: Settings, *, show_progress: bool = True
) -> IndexResult:
    """Index ``project`` and return the structured result."""
    return index_project(project, settings, show_progress=show_progress)


def print_index_result(result: IndexResult) -> None:
    """Render CLI-friendly output for an indexing pass."""
    print(json.dumps(result.to_dict(), indent=2))
