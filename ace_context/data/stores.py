"""JSON-backed persistence for per-project blob hash sets."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Mapping, Sequence

logger = logging.getLogger(__name__)

__all__ = ["ProjectIndexStore", "normalize_project_path"]

DEFAULT_PROJECTS_FILE = "projects.json"

ProjectIndex = dict[str, list[str]]


def normalize_project_path(project_path: Path | str) -> str:
    """Return the absolute, forward-slash form used as a store key."""

    return Path(project_path).expanduser().resolve().as_posix()


class ProjectIndexStore:
    """Persists, per project root, the blob hashes the backend is known to hold.

    The whole mapping is read and written at once. This class is the only
    writer of the projects file.
    """

    def __init__(
        self, storage_path: Path | str, filename: str = DEFAULT_PROJECTS_FILE
    ) -> None:
        self.storage_path = Path(storage_path).expanduser()
        self.path = self.storage_path / filename

    def load(self) -> ProjectIndex:
        """Return every stored project record, or ``{}`` when none is readable."""

        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.error("Failed to load project index %s: %s", self.path, exc)
            return {}
        if not isinstance(payload, dict):
            logger.error(
                "Ignoring project index %s: expected a JSON object", self.path
            )
            return {}

        projects: ProjectIndex = {}
        for project, hashes in payload.items():
            if not isinstance(hashes, list):
                logger.error(
                    "Ignoring malformed hash list for %s in %s", project, self.path
                )
                continue
            projects[str(project)] = [str(value) for value in hashes]
        return projects

    def save(self, projects: Mapping[str, Sequence[str]]) -> None:
        """Write the full mapping, replacing whatever was stored before.

        Errors propagate: a pass whose outcome cannot be recorded must fail.
        """

        self.storage_path.mkdir(parents=True, exist_ok=True)
        serializable = {key: list(value) for key, value in projects.items()}
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(serializable, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def hashes_for(self, project_path: Path | str) -> list[str]:
        """Return the stored hash list for ``project_path`` (empty if unknown)."""

        return list(self.load().get(normalize_project_path(project_path), []))
