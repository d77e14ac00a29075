"""Errors raised by the document storage layer."""


class StorageError(Exception):
    """Base class for document storage errors."""


class UploadRejected(StorageError):
    """The upload failed validation; nothing was written."""


class DocumentNotFound(StorageError):
    """No metadata record exists for the requested id."""


class BlobMissing(StorageError):
    """The metadata record exists but its file is gone from disk."""
