"""Custom exceptions for storage operations."""


class StorageError(Exception):
    """Base exception for storage errors."""
    pass


class StorageConnectionError(StorageError):
    """Storage backend could not be reached."""
    pass


class StorageOperationError(StorageError):
    """A read or write against the backend failed."""
    pass


class StorageConfigurationError(StorageError):
    """Unknown or misconfigured storage backend."""
    pass
