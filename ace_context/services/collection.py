"""File discovery and line-based chunking for project indexing."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

from ace_context.foundation.patterns import should_exclude
from ace_context.models import Blob

logger = logging.getLogger(__name__)

__all__ = [
    "CollectionResult",
    "ProjectNotFoundError",
    "collect_blobs",
    "normalized_extensions",
    "split_file_content",
]


class ProjectNotFoundError(ValueError):
    """Raised when a project root is missing, not a directory, or unlistable."""


@dataclass(slots=True)
class CollectionResult:
    """Blobs gathered from a project plus diagnostics about what was left out."""

    blobs: list[Blob] = field(default_factory=list)
    excluded_count: int = 0
    unreadable_count: int = 0


def normalized_extensions(extensions: Iterable[str]) -> set[str]:
    return {
        ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions
    }


def split_file_content(
    relative_path: str, content: str, *, max_lines_per_blob: int
) -> list[Blob]:
    """Split ``content`` into blobs of at most ``max_lines_per_blob`` lines.

    Files within the limit come back as a single blob named
    ``relative_path``. Larger files produce ``ceil(lines / max)`` blobs
    named ``<relative_path>#chunk<i>of<n>`` (1-indexed); joining their
    contents with newlines reproduces the original text.
    """
    if max_lines_per_blob <= 0:
        raise ValueError("max_lines_per_blob must be positive.")

    lines = content.split("\n")
    total_lines = len(lines)
    if total_lines <= max_lines_per_blob:
        return [Blob(path=relative_path, content=content)]

    num_chunks = math.ceil(total_lines / max_lines_per_blob)
    blobs = []
    for index in range(num_chunks):
        start = index * max_lines_per_blob
        chunk_lines = lines[start : start + max_lines_per_blob]
        blobs.append(
            Blob(
                path=f"{relative_path}#chunk{index + 1}of{num_chunks}",
                content="\n".join(chunk_lines),
            )
        )
    logger.info(
        "Split %s (%d lines) into %d chunks", relative_path, total_lines, num_chunks
    )
    return blobs


def collect_blobs(
    project_root: Path | str,
    *,
    allowed_extensions: Iterable[str],
    exclude_patterns: Sequence[str],
    max_lines_per_blob: int,
) -> CollectionResult:
    """Walk ``project_root`` and return the blobs for every indexable text file.

    Entries matching ``exclude_patterns`` are skipped (directories are not
    descended into), as are files whose extension is not allowed and
    symlinks. Files that cannot be read as UTF-8 text are logged and
    skipped, and so are subdirectories that cannot be listed. Blob paths
    are relative to the root in POSIX form.
    """
    root = Path(project_root).expanduser().resolve()
    if not root.exists():
        raise ProjectNotFoundError(f"Project path {root} does not exist.")
    if not root.is_dir():
        raise ProjectNotFoundError(f"Project path {root} is not a directory.")

    allowed = normalized_extensions(allowed_extensions)
    patterns = tuple(exclude_patterns)
    result = CollectionResult()

    pending = [root]
    while pending:
        directory = pending.pop()
        try:
            with os.scandir(directory) as iterator:
                entries = sorted(iterator, key=lambda entry: entry.name)
        except OSError as exc:
            if directory == root:
                raise ProjectNotFoundError(
                    f"Project path {root} cannot be listed: {exc}"
                ) from exc
            logger.warning("Unable to list %s: %s", directory, exc)
            result.unreadable_count += 1
            continue

        subdirectories = []
        for entry in entries:
            full_path = Path(entry.path)
            if should_exclude(full_path, root, patterns):
                result.excluded_count += 1
                continue

            if entry.is_dir(follow_symlinks=False):
                subdirectories.append(full_path)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            if full_path.suffix.lower() not in allowed:
                continue

            try:
                content = full_path.read_bytes().decode("utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Unable to read %s: %s", full_path, exc)
                result.unreadable_count += 1
                continue

            relative_path = full_path.relative_to(root).as_posix()
            result.blobs.extend(
                split_file_content(
                    relative_path, content, max_lines_per_blob=max_lines_per_blob
                )
            )

        # Reversed so the stack pops directories in name order.
        pending.extend(reversed(subdirectories))

    logger.info(
        "Collected %d blobs from %s (excluded %d entries, %d unreadable entries)",
        len(result.blobs),
        root,
        result.excluded_count,
        result.unreadable_count,
    )
    return result
