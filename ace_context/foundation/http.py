"""HTTP helper for posting JSON payloads to the context backend."""
from __future__ import annotations

import json
import socket
from typing import Any, Callable, Mapping
from urllib import error, request

JsonBytes = bytes
Transport = Callable[[str, JsonBytes], JsonBytes]

__all__ = ["JsonBytes", "RemoteRequestError", "Transport", "post_json"]

_TRANSIENT_REASONS = (
    ConnectionResetError,
    ConnectionAbortedError,
    ConnectionRefusedError,
    TimeoutError,
    socket.timeout,
)


class RemoteRequestError(RuntimeError):
    """Raised when a request to the backend fails at the transport or HTTP level."""

    def __init__(
        self, message: str, *, status: int | None = None, transient: bool = False
    ) -> None:
        super().__init__(message)
        self.status = status
        self.transient = transient


def post_json(
    url: str,
    payload: dict[str, Any],
    *,
    headers: Mapping[str, str] | None = None,
    timeout: float = 30.0,
    transport: Transport | None = None,
) -> Any:
    """POST ``payload`` as JSON to ``url`` and return the decoded JSON body."""

    body = json.dumps(payload).encode("utf-8")
    raw = _send_request(
        url, body, headers=headers or {}, timeout=timeout, transport=transport
    )
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError(f"Response from {url} is not valid JSON: {exc}") from exc


def _send_request(
    url: str,
    body: JsonBytes,
    *,
    headers: Mapping[str, str],
    timeout: float,
    transport: Transport | None,
) -> JsonBytes:
    if transport is not None:
        return transport(url, body)

    req = request.Request(
        url,
        data=body,
        headers={"Content-Type": "application/json", **headers},
        method="POST",
    )
    try:
        with request.urlopen(req, timeout=timeout) as response:
            return response.read()
    except error.HTTPError as exc:
        raise RemoteRequestError(
            f"{url} responded with HTTP {exc.code}: {exc.reason}", status=exc.code
        ) from exc
    except error.URLError as exc:
        raise RemoteRequestError(
            f"Failed to contact {url}: {exc.reason}",
            transient=isinstance(exc.reason, _TRANSIENT_REASONS),
        ) from exc
    except _TRANSIENT_REASONS as exc:
        raise RemoteRequestError(
            f"Connection to {url} failed: {exc!r}", transient=True
        ) from exc
