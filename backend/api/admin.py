"""Admin API: storage integrity report, restricted to ADMIN_API_KEY holders."""

import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from config import settings
from storage import DocumentService, get_document_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

_bearer_scheme = HTTPBearer()


def require_admin(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
) -> None:
    """Raise 403 unless the bearer token matches ADMIN_API_KEY."""
    try:
        expected = settings.admin_api_key
    except ValueError:
        logger.warning("Admin request rejected: ADMIN_API_KEY is not configured")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    if not secrets.compare_digest(credentials.credentials, expected):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")


class IntegrityResponse(BaseModel):
    success: bool = True
    consistent: bool
    missing_blobs: list[str]
    orphaned_blobs: list[str]


@router.get("/integrity", response_model=IntegrityResponse, dependencies=[Depends(require_admin)])
async def integrity(service: DocumentService = Depends(get_document_service)):
    """Report records without blobs and blobs without records. Nothing is repaired."""
    try:
        report = await service.integrity_report()
    except Exception:
        logger.exception("Integrity check failed")
        raise HTTPException(status_code=500, detail="Failed to check storage integrity")
    return IntegrityResponse(
        consistent=report.ok,
        missing_blobs=[str(doc_id) for doc_id in report.missing_blobs],
        orphaned_blobs=report.orphaned_blobs,
    )
