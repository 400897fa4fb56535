"""
Custom exceptions for the Gitec sync application.
"""

from typing import Optional


class GitecSyncError(Exception):
    """Base exception for all application-specific errors."""
    pass


class ConfigurationError(GitecSyncError):
    """Error related to sync configuration (credentials, backends, intervals)."""
    pass


class FetchError(GitecSyncError):
    """Error while fetching the remote catalog. Always terminal for a run."""

    TRANSPORT = "transport"
    RETRY_EXHAUSTED = "retry_exhausted"
    HTTP_STATUS = "http_status"
    PARSE = "parse"
    EMPTY = "empty"
    CONFIGURATION = "configuration"

    def __init__(
        self,
        message: str,
        kind: str = TRANSPORT,
        status_code: Optional[int] = None,
        attempts: int = 0
    ):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.attempts = attempts


class ReconcileError(GitecSyncError):
    """Per-record failure. Carries the SKU of the offending record."""

    def __init__(self, sku: str, message: str):
        super().__init__(f"{sku}: {message}")
        self.sku = sku
        self.reason = message


class ImageIngestionError(GitecSyncError):
    """Image download or registration failed."""
    pass


class StoreError(GitecSyncError):
    """Product store read or write failed."""
    pass


class StorageError(GitecSyncError):
    """Change history, operational log or status persistence failed."""
    pass
