"""Tests for the search orchestration workflow."""

from __future__ import annotations

from pathlib import Path

from ace_context.config import Settings
from ace_context.data.stores import ProjectIndexStore, normalize_project_path
from ace_context.foundation.hashing import calculate_blob_hash
from ace_context.foundation.http import RemoteRequestError
from ace_context.models import IndexResult
from ace_context.services.search import (
    NO_RESULTS_MESSAGE,
    ContextSearchService,
    SearchPhase,
)


class StubBackend:
    def __init__(self, retrievals: list[object] | None = None) -> None:
        self.retrievals = list(retrievals or ["formatted context"])
        self.uploads: list[list[str]] = []
        self.queries: list[tuple[str, list[str]]] = []

    def upload_batch(self, blobs) -> list[str]:
        self.uploads.append([blob.path for blob in blobs])
        return [calculate_blob_hash(blob.path, blob.content) for blob in blobs]

    def retrieve(self, query: str, blob_names) -> str:
        self.queries.append((query, list(blob_names)))
        outcome = self.retrievals.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class StubIndexer:
    def __init__(self, result: IndexResult) -> None:
        self.result = result
        self.calls = 0

    def index_project(self, project_path) -> IndexResult:
        self.calls += 1
        return self.result


def _settings(tmp_path: Path) -> Settings:
    return Settings(
        base_url="https://backend.test",
        token="secret",
        storage_path=tmp_path / "state",
    )


def _project(tmp_path: Path) -> Path:
    project = tmp_path / "project"
    project.mkdir()
    (project / "auth.py").write_text("def login(): ...\n", encoding="utf-8")
    (project / "README.md").write_text("# Demo\n", encoding="utf-8")
    return project


def test_search_indexes_then_queries_with_current_hashes(tmp_path: Path) -> None:
    project = _project(tmp_path)
    backend = StubBackend()
    service = ContextSearchService(_settings(tmp_path), client=backend, sleep=lambda _: None)

    outcome = service.search(project, "where is login?")

    assert outcome.ok
    assert outcome.phase is SearchPhase.DONE
    assert outcome.render() == "formatted context"
    assert backend.uploads == [["README.md", "auth.py"]]
    query, blob_names = backend.queries[0]
    assert query == "where is login?"
    assert sorted(blob_names) == sorted(
        ProjectIndexStore(tmp_path / "state").hashes_for(project)
    )
    assert len(blob_names) == 2


def test_every_search_reindexes(tmp_path: Path) -> None:
    project = _project(tmp_path)
    backend = StubBackend(["first", "second"])
    service = ContextSearchService(_settings(tmp_path), client=backend, sleep=lambda _: None)

    service.search_context(project, "q1")
    (project / "new.py").write_text("added = 1\n", encoding="utf-8")
    text = service.search_context(project, "q2")

    assert text == "second"
    assert backend.uploads[-1] == ["new.py"]
    assert len(backend.queries[-1][1]) == 3


def test_index_error_aborts_search(tmp_path: Path) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    backend = StubBackend()
    service = ContextSearchService(_settings(tmp_path), client=backend)

    outcome = service.search(empty, "anything")

    assert not outcome.ok
    assert outcome.phase is SearchPhase.ERROR
    assert outcome.render().startswith("Error: Indexing failed.")
    assert backend.queries == []


def test_missing_project_returns_error_text(tmp_path: Path) -> None:
    service = ContextSearchService(_settings(tmp_path), client=StubBackend())

    text = service.search_context(tmp_path / "missing", "anything")

    assert text.startswith("Error: Indexing failed.")
    assert "does not exist" in text


def test_partial_index_still_queries(tmp_path: Path) -> None:
    project = _project(tmp_path)
    store = ProjectIndexStore(tmp_path / "state")
    indexer = StubIndexer(
        IndexResult(status="partial_success", message="partial", failed_batches=[2])
    )
    store.save({normalize_project_path(project): ["h1"]})
    backend = StubBackend()
    service = ContextSearchService(
        _settings(tmp_path), client=backend, store=store, indexer=indexer
    )

    assert service.search_context(project, "q") == "formatted context"
    assert backend.queries == [("q", ["h1"])]


def test_empty_hash_list_after_indexing_is_an_error(tmp_path: Path) -> None:
    project = _project(tmp_path)
    indexer = StubIndexer(IndexResult(status="success", message="ok"))
    backend = StubBackend()
    service = ContextSearchService(_settings(tmp_path), client=backend, indexer=indexer)

    outcome = service.search(project, "q")

    assert not outcome.ok
    assert outcome.phase is SearchPhase.QUERYING
    assert outcome.render() == "Error: No blobs found after indexing."
    assert backend.queries == []


def test_empty_retrieval_returns_no_results_message(tmp_path: Path) -> None:
    project = _project(tmp_path)
    service = ContextSearchService(
        _settings(tmp_path), client=StubBackend([""]), sleep=lambda _: None
    )

    assert service.search_context(project, "q") == NO_RESULTS_MESSAGE


def test_retrieval_is_retried_on_transient_errors(tmp_path: Path) -> None:
    project = _project(tmp_path)
    delays: list[float] = []
    backend = StubBackend(
        [RemoteRequestError("busy", status=429), "context after retry"]
    )
    service = ContextSearchService(_settings(tmp_path), client=backend, sleep=delays.append)

    assert service.search_context(project, "q") == "context after retry"
    assert delays == [2.0]


def test_permanent_retrieval_error_becomes_error_text(tmp_path: Path) -> None:
    project = _project(tmp_path)
    delays: list[float] = []
    backend = StubBackend([RemoteRequestError("not found", status=404)])
    service = ContextSearchService(_settings(tmp_path), client=backend, sleep=delays.append)

    outcome = service.search(project, "q")

    assert not outcome.ok
    assert outcome.phase is SearchPhase.QUERYING
    assert outcome.render() == "Error: not found"
    assert delays == []
