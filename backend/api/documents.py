"""Document endpoints: upload, list, view/download, and delete PDFs."""

import logging
from collections.abc import Iterator
from pathlib import Path
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, File, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from models import Document
from storage import BlobMissing, DocumentNotFound, DocumentService, UploadRejected, get_document_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])

CHUNK_SIZE = 64 * 1024


class DocumentSummary(BaseModel):
    id: str
    filename: str
    filesize: int
    created_at: str


class DocumentOut(DocumentSummary):
    filepath: str


class UploadResponse(BaseModel):
    success: bool = True
    message: str
    document: DocumentOut


class DocumentListResponse(BaseModel):
    success: bool = True
    documents: list[DocumentSummary]


class DeleteResponse(BaseModel):
    success: bool = True
    message: str


def _iter_file(path: Path) -> Iterator[bytes]:
    with open(path, "rb") as f:
        while chunk := f.read(CHUNK_SIZE):
            yield chunk


def _content_disposition(disposition: str, filename: str) -> str:
    """Header value for ``filename``; non-ASCII names use RFC 5987 encoding."""
    quoted = quote(filename)
    if quoted != filename:
        return f"{disposition}; filename*=utf-8''{quoted}"
    return f'{disposition}; filename="{filename}"'


def _summary(doc: Document) -> DocumentSummary:
    return DocumentSummary(
        id=str(doc.id),
        filename=doc.filename,
        filesize=doc.filesize,
        created_at=doc.created_at.isoformat(),
    )


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile | None = File(None),
    service: DocumentService = Depends(get_document_service),
):
    """Upload a single PDF and record its metadata."""
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    filename = file.filename or "document.pdf"

    # Reject on declared type before reading the body.
    try:
        service.validate_upload(file.content_type, 0)
    except UploadRejected as e:
        raise HTTPException(status_code=400, detail=str(e))

    content = await file.read()
    try:
        doc = await service.upload(filename, file.content_type, content)
    except UploadRejected as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Upload of '%s' failed", filename)
        raise HTTPException(status_code=500, detail="Failed to upload file")

    summary = _summary(doc)
    return UploadResponse(
        message="File uploaded successfully",
        document=DocumentOut(**summary.model_dump(), filepath=doc.filepath),
    )


@router.get("", response_model=DocumentListResponse)
async def list_documents(service: DocumentService = Depends(get_document_service)):
    """All documents, newest first."""
    try:
        docs = await service.list_all()
    except Exception:
        logger.exception("Listing documents failed")
        raise HTTPException(status_code=500, detail="Failed to retrieve documents")
    return DocumentListResponse(documents=[_summary(d) for d in docs])


@router.get("/{document_id}")
async def get_document(
    document_id: str,
    view: str | None = Query(None),
    service: DocumentService = Depends(get_document_service),
):
    """Stream a PDF; ``view=true`` renders inline, anything else downloads."""
    try:
        doc = await service.get(document_id)
        path = service.blob_path(doc)
    except DocumentNotFound:
        raise HTTPException(status_code=404, detail="Document not found")
    except BlobMissing:
        raise HTTPException(status_code=404, detail="File not found on server")
    except Exception:
        logger.exception("Download of %s failed", document_id)
        raise HTTPException(status_code=500, detail="Failed to download file")

    disposition = "inline" if (view or "").lower() == "true" else "attachment"
    return StreamingResponse(
        _iter_file(path),
        media_type="application/pdf",
        headers={
            "Content-Disposition": _content_disposition(disposition, doc.filename),
            "Content-Length": str(path.stat().st_size),
        },
    )


@router.delete("/{document_id}", response_model=DeleteResponse)
async def delete_document(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
):
    """Delete a document's file and its record."""
    try:
        await service.delete(document_id)
    except DocumentNotFound:
        raise HTTPException(status_code=404, detail="Document not found")
    except Exception:
        logger.exception("Delete of %s failed", document_id)
        raise HTTPException(status_code=500, detail="Failed to delete document")
    return DeleteResponse(message="Document deleted successfully")
