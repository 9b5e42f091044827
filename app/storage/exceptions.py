class ObjectStoreError(Exception):
    """Raised when an object storage operation fails."""
