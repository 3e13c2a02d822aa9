"""Low-level helpers shared by the indexing and search layers (HTTP, hashing, patterns, retries)."""

from .hashing import calculate_blob_hash
from .http import RemoteRequestError, Transport, post_json
from .patterns import match_pattern, should_exclude
from .retry import RetryPolicy, is_transient_error, retry_request

__all__ = [
    "RemoteRequestError",
    "RetryPolicy",
    "Transport",
    "calculate_blob_hash",
    "is_transient_error",
    "match_pattern",
    "post_json",
    "retry_request",
    "should_exclude",
]
