from .blobs import BlobStore, get_blob_store
from .errors import BlobMissing, DocumentNotFound, StorageError, UploadRejected
from .service import DocumentService, IntegrityReport, get_document_service

__all__ = [
    "BlobStore",
    "get_blob_store",
    "BlobMissing",
    "DocumentNotFound",
    "StorageError",
    "UploadRejected",
    "DocumentService",
    "IntegrityReport",
    "get_document_service",
]
