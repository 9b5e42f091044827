class SyncError(Exception):
    """Base exception for per-document sync failures."""


class MaterializationError(SyncError):
    """Raised when neither download strategy yields file content."""


class UploadError(SyncError):
    """Raised when staged bytes cannot be offloaded to object storage."""
