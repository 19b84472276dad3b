"""Exception types raised by bucket-sync."""

from typing import Optional


class BucketSyncError(Exception):
    """Base class for all bucket-sync errors."""


class ConfigurationError(BucketSyncError):
    """Raised when required configuration is missing or invalid."""


class TraversalError(BucketSyncError):
    """Raised when the local root directory cannot be walked."""


class RemoteError(BucketSyncError):
    """Raised when remote object metadata cannot be fetched."""

    def __init__(self, message: str, key: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message)
        self.key = key
        self.code = code


class RemoteObjectNotFound(RemoteError):
    """The remote object does not exist (HTTP 404)."""


class TransferError(BucketSyncError):
    """Raised when streaming a file to the bucket fails."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key
