"""Client for the remote batch-upload and codebase-retrieval endpoints."""
from __future__ import annotations

from typing import Any, Sequence

from ace_context.foundation.http import Transport, post_json
from ace_context.models import Blob

__all__ = ["BackendError", "ContextBackendClient"]

UPLOAD_ENDPOINT = "/batch-upload"
RETRIEVAL_ENDPOINT = "/agents/codebase-retrieval"


class BackendError(RuntimeError):
    """Raised when the backend answers with a payload we cannot use."""


class ContextBackendClient:
    """Talks to the semantic search backend over authenticated JSON POSTs.

    Each method performs exactly one request; retrying is left to callers.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        upload_timeout: float = 30.0,
        retrieval_timeout: float = 60.0,
        transport: Transport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.upload_timeout = upload_timeout
        self.retrieval_timeout = retrieval_timeout
        self.transport = transport

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    def upload_batch(self, blobs: Sequence[Blob]) -> list[str]:
        """Upload ``blobs`` and return the blob names the backend assigned.

        The returned names are not guaranteed to follow the input order.
        An empty list means the backend acknowledged nothing.
        """
        payload = {"blobs": [blob.to_payload() for blob in blobs]}
        data = self._post(UPLOAD_ENDPOINT, payload, timeout=self.upload_timeout)
        names = data.get("blob_names")
        if names is None:
            return []
        if not isinstance(names, list):
            raise BackendError("Upload response field 'blob_names' must be a list.")
        return [str(name) for name in names]

    def retrieve(
        self,
        query: str,
        blob_names: Sequence[str],
        *,
        max_output_length: int = 0,
    ) -> str:
        """Return the formatted retrieval text for ``query`` over ``blob_names``."""
        payload = {
            "information_request": query,
            "blobs": {
                "checkpoint_id": None,
                "added_blobs": list(blob_names),
                "deleted_blobs": [],
            },
            "dialog": [],
            "max_output_length": max_output_length,
            "disable_codebase_retrieval": False,
            "enable_commit_retrieval": False,
        }
        data = self._post(RETRIEVAL_ENDPOINT, payload, timeout=self.retrieval_timeout)
        text = data.get("formatted_retrieval")
        if text is None:
            return ""
        if not isinstance(text, str):
            raise BackendError(
                "Retrieval response field 'formatted_retrieval' must be a string."
            )
        return text

    def _post(
        self, endpoint: str, payload: dict[str, Any], *, timeout: float
    ) -> dict[str, Any]:
        try:
            data = post_json(
                f"{self.base_url}{endpoint}",
                payload,
                headers=self.headers,
                timeout=timeout,
                transport=self.transport,
            )
        except ValueError as exc:
            raise BackendError(str(exc)) from exc
        if not isinstance(data, dict):
            raise BackendError(f"Response from {endpoint} must be a JSON object.")
        return data
