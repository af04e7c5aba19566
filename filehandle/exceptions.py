"""Custom exception classes for file handles."""

from typing import Optional


class FileHandleError(Exception):
    """
    Base exception class for all file handle errors.
    """
    pass


class NotMountedError(FileHandleError):
    """
    Raised when a destructive operation is attempted on a handle that is not
    associated with a record store.
    """
    pass


class MetadataFetchError(FileHandleError):
    """
    Raised when descriptive metadata for a remote URL cannot be resolved.
    """

    def __init__(self, message: str, url: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class RecordStoreError(FileHandleError):
    """
    Raised when the record store fails to read or write a record.
    """
    pass


class InvalidModifierError(FileHandleError):
    """
    Raised when an update modifier is malformed or would break a record invariant.
    """
    pass


class StoreAlreadyRegisteredError(FileHandleError):
    """
    Raised when registering a record store under a name that is already taken.
    """
    pass
