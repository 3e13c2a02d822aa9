"""Glob-like exclusion matching for project paths."""
from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable

__all__ = ["match_pattern", "should_exclude"]


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    escaped = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(f"^{escaped}$", re.DOTALL)


def match_pattern(value: str, pattern: str) -> bool:
    """Return ``True`` when ``value`` fully matches ``pattern``.

    ``*`` matches any run of characters and ``?`` a single character;
    everything else is literal.
    """

    return _compile(pattern).match(value) is not None


def should_exclude(
    path: Path | str, root: Path | str, patterns: Iterable[str]
) -> bool:
    """Return ``True`` when ``path`` is excluded by any of ``patterns``.

    Each pattern is tested against every segment of the path relative to
    ``root`` and against the whole relative path. Paths that cannot be
    expressed relative to ``root`` are never excluded.
    """

    try:
        relative = Path(path).relative_to(Path(root))
    except ValueError:
        return False

    relative_path = relative.as_posix()
    parts = relative.parts
    for pattern in patterns:
        if any(match_pattern(part, pattern) for part in parts):
            return True
        if match_pattern(relative_path, pattern):
            return True
    return False
