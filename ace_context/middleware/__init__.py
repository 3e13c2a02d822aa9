"""Middleware clients that talk to external systems."""

from .backend import BackendError, ContextBackendClient

__all__ = ["BackendError", "ContextBackendClient"]
