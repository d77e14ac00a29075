"""Document storage service: ties metadata records to blobs on disk."""

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from fastapi import Depends
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from models import Document, get_db

from .blobs import BlobStore, get_blob_store
from .errors import BlobMissing, DocumentNotFound, UploadRejected

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


@dataclass
class IntegrityReport:
    """Inconsistencies between the metadata table and the blob directory."""

    missing_blobs: list[uuid.UUID] = field(default_factory=list)
    orphaned_blobs: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing_blobs and not self.orphaned_blobs


class DocumentService:
    """Upload, list, read and delete documents.

    One instance per request; the session and blob store are injected.
    """

    def __init__(self, db: AsyncSession, blobs: BlobStore, max_upload_bytes: int):
        self.db = db
        self.blobs = blobs
        self.max_upload_bytes = max_upload_bytes

    def validate_upload(self, content_type: str | None, size: int) -> None:
        """Raise UploadRejected unless this is a PDF within the size limit."""
        mime = (content_type or "").split(";", 1)[0].strip().lower()
        if mime != PDF_CONTENT_TYPE:
            raise UploadRejected("Only PDF files are allowed")
        if size > self.max_upload_bytes:
            raise UploadRejected(
                f"File size exceeds {self.max_upload_bytes // (1024 * 1024)}MB limit"
            )

    async def upload(self, filename: str, content_type: str | None, data: bytes) -> Document:
        """Validate and persist one uploaded file.

        The blob is written to a temporary file, the record is committed,
        and only then is the blob moved to its final name.
        """
        self.validate_upload(content_type, len(data))

        name = self.blobs.new_name(filename)
        temp_path = self.blobs.write_temp(data)

        document = Document(
            filename=filename,
            filepath=self.blobs.relative_path(name),
            filesize=len(data),
        )
        self.db.add(document)
        try:
            await self.db.commit()
        except BaseException:
            # Also covers cancellation and raw driver errors.
            self.blobs.discard(temp_path)
            await self.db.rollback()
            raise

        try:
            self.blobs.promote(temp_path, name)
        except OSError:
            logger.exception("Could not move blob into place, dropping record %s", document.id)
            self.blobs.discard(temp_path)
            await self.db.execute(delete(Document).where(Document.id == document.id))
            await self.db.commit()
            raise

        logger.info("Uploaded '%s' as %s (%d bytes)", filename, document.id, len(data))
        return document

    async def list_all(self) -> list[Document]:
        """All documents, newest first."""
        result = await self.db.execute(select(Document).order_by(Document.created_at.desc()))
        return list(result.scalars().all())

    async def get(self, document_id: str | uuid.UUID) -> Document:
        """Look up a record. Malformed ids are treated as unknown."""
        try:
            doc_uuid = document_id if isinstance(document_id, uuid.UUID) else uuid.UUID(str(document_id))
        except ValueError:
            raise DocumentNotFound(str(document_id))
        document = await self.db.get(Document, doc_uuid)
        if document is None:
            raise DocumentNotFound(str(document_id))
        return document

    def blob_path(self, document: Document) -> Path:
        """On-disk path of a record's blob; raises BlobMissing if absent."""
        path = self.blobs.resolve(document.filepath)
        if not path.is_file():
            logger.warning("Record %s has no blob at %s", document.id, path)
            raise BlobMissing(str(document.id))
        return path

    async def delete(self, document_id: str | uuid.UUID) -> None:
        """Remove the blob (if still present) and then the record."""
        document = await self.get(document_id)
        self.blobs.remove(document.filepath)
        await self.db.execute(delete(Document).where(Document.id == document.id))
        await self.db.commit()
        logger.info("Deleted document %s ('%s')", document.id, document.filename)

    async def integrity_report(self) -> IntegrityReport:
        """Compare records with blobs on disk. Read-only; nothing is repaired."""
        report = IntegrityReport()
        known: set[str] = set()
        for document in await self.list_all():
            known.add(self.blobs.name_of(document.filepath))
            if not self.blobs.exists(document.filepath):
                report.missing_blobs.append(document.id)
        report.orphaned_blobs = [n for n in self.blobs.stored_names() if n not in known]
        if not report.ok:
            logger.warning(
                "Integrity check: %d record(s) without blob, %d orphaned blob(s)",
                len(report.missing_blobs),
                len(report.orphaned_blobs),
            )
        return report


def get_document_service(
    db: AsyncSession = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
) -> DocumentService:
    """FastAPI dependency building a per-request DocumentService."""
    return DocumentService(db, blobs, settings.max_upload_bytes)
