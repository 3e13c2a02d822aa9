"""Tests for project file collection and chunking."""

from __future__ import annotations

import math
import os
from pathlib import Path

import pytest

from ace_context.config import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_TEXT_EXTENSIONS
from ace_context.services.collection import (
    ProjectNotFoundError,
    collect_blobs,
    split_file_content,
)


def _lines(count: int, prefix: str = "line") -> str:
    return "\n".join(f"{prefix} {index}" for index in range(count))


def _collect(root: Path, *, max_lines: int = 800):
    return collect_blobs(
        root,
        allowed_extensions=DEFAULT_TEXT_EXTENSIONS,
        exclude_patterns=DEFAULT_EXCLUDE_PATTERNS,
        max_lines_per_blob=max_lines,
    )


def test_small_file_is_a_single_unchanged_blob() -> None:
    content = _lines(10)
    blobs = split_file_content("src/a.py", content, max_lines_per_blob=800)

    assert len(blobs) == 1
    assert blobs[0].path == "src/a.py"
    assert blobs[0].content == content


def test_file_at_exact_limit_is_not_split() -> None:
    blobs = split_file_content("a.py", _lines(800), max_lines_per_blob=800)
    assert [blob.path for blob in blobs] == ["a.py"]


def test_large_file_is_split_into_named_chunks() -> None:
    content = _lines(2000)
    blobs = split_file_content("big.py", content, max_lines_per_blob=800)

    assert [blob.path for blob in blobs] == [
        "big.py#chunk1of3",
        "big.py#chunk2of3",
        "big.py#chunk3of3",
    ]
    assert [len(blob.content.split("\n")) for blob in blobs] == [800, 800, 400]


@pytest.mark.parametrize("total, limit", [(801, 800), (25, 7), (100, 10), (13, 1)])
def test_chunks_reconstruct_original_lines(total: int, limit: int) -> None:
    content = _lines(total) + "\n"
    blobs = split_file_content("f.txt", content, max_lines_per_blob=limit)

    expected_chunks = math.ceil(len(content.split("\n")) / limit)
    assert len(blobs) == expected_chunks
    assert "\n".join(blob.content for blob in blobs) == content


def test_split_rejects_non_positive_limit() -> None:
    with pytest.raises(ValueError):
        split_file_content("a.py", "x", max_lines_per_blob=0)


def test_collect_applies_exclusions_and_extensions(tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("print('app')\n", encoding="utf-8")
    (tmp_path / "README.md").write_text("# Readme\n", encoding="utf-8")
    (tmp_path / "logo.png").write_bytes(b"\x89PNG")
    (tmp_path / "node_modules" / "lib").mkdir(parents=True)
    (tmp_path / "node_modules" / "lib" / "index.js").write_text("x", encoding="utf-8")
    (tmp_path / "src" / "cache.pyc").write_bytes(b"\x00")
    (tmp_path / ".env").write_text("SECRET=1", encoding="utf-8")

    result = _collect(tmp_path)

    assert [blob.path for blob in result.blobs] == ["README.md", "src/app.py"]
    assert result.excluded_count == 3
    assert result.unreadable_count == 0


def test_collect_skips_undecodable_files(tmp_path: Path, caplog) -> None:
    (tmp_path / "good.txt").write_text("fine", encoding="utf-8")
    (tmp_path / "bad.txt").write_bytes(b"\xff\xfe\xfa not utf-8")

    result = _collect(tmp_path)

    assert [blob.path for blob in result.blobs] == ["good.txt"]
    assert result.unreadable_count == 1
    assert "Unable to read" in caplog.text


def test_collect_preserves_exact_content(tmp_path: Path) -> None:
    (tmp_path / "crlf.txt").write_bytes(b"one\r\ntwo\r\n")

    result = _collect(tmp_path)

    assert result.blobs[0].content == "one\r\ntwo\r\n"


def test_collect_splits_large_files(tmp_path: Path) -> None:
    (tmp_path / "big.py").write_text(_lines(2000), encoding="utf-8")

    result = _collect(tmp_path, max_lines=800)

    assert [blob.path for blob in result.blobs] == [
        "big.py#chunk1of3",
        "big.py#chunk2of3",
        "big.py#chunk3of3",
    ]


def test_collect_raises_for_missing_project(tmp_path: Path) -> None:
    with pytest.raises(ProjectNotFoundError, match="does not exist"):
        _collect(tmp_path / "missing")


def test_collect_raises_for_file_root(tmp_path: Path) -> None:
    file_root = tmp_path / "file.txt"
    file_root.write_text("x", encoding="utf-8")
    with pytest.raises(ProjectNotFoundError, match="not a directory"):
        _collect(file_root)


def test_unlistable_subdirectory_is_skipped(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog
) -> None:
    (tmp_path / "ok.py").write_text("print('ok')", encoding="utf-8")
    locked = tmp_path / "locked"
    locked.mkdir()
    (locked / "hidden.py").write_text("secret = 1", encoding="utf-8")
    (tmp_path / "zeta").mkdir()
    (tmp_path / "zeta" / "z.py").write_text("z = 1", encoding="utf-8")

    real_scandir = os.scandir

    def scandir(path):
        if Path(path) == locked.resolve():
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", scandir)

    result = _collect(tmp_path)

    assert [blob.path for blob in result.blobs] == ["ok.py", "zeta/z.py"]
    assert result.unreadable_count == 1
    assert "Unable to list" in caplog.text


def test_unlistable_root_raises_project_not_found(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def scandir(path):
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr(os, "scandir", scandir)

    with pytest.raises(ProjectNotFoundError, match="cannot be listed"):
        _collect(tmp_path)
