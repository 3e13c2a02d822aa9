"""Data access layer for persisted project index state."""

from .stores import ProjectIndexStore, normalize_project_path

__all__ = ["ProjectIndexStore", "normalize_project_path"]
