class StorageError(Exception):
    """Raised when a document cannot be written to or served from storage."""
