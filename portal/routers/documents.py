# portal/routers/documents.py
"""
Strategy Document Endpoints

Generates, caches and lists the fifteen strategy documents for the
signed-in client.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from portal.database import get_db
from portal.dependencies import get_current_profile, get_generator
from portal.errors import GenerationFailed, InvalidArgument, NotFoundError
from portal.models.client import ClientProfile
from portal.schemas.document import (
    DocumentGenerateRequest,
    DocumentGenerateResponse,
    DocumentDetailResponse,
    DocumentListResponse,
    DocumentTypesResponse
)
from portal.services import prompts
from portal.services.documents import DocumentService, DocumentStore

logger = logging.getLogger(__name__)
router = APIRouter()


# =============================================================================
# GENERATE DOCUMENT
# =============================================================================

@router.post("/generate", response_model=DocumentGenerateResponse)
async def generate_document(
    request: DocumentGenerateRequest,
    db: Session = Depends(get_db),
    profile: ClientProfile = Depends(get_current_profile),
    generator = Depends(get_generator)
):
    """
    Return the cached document of the requested type, generating it on a miss.

    Set ``force_regenerate`` to overwrite the stored document.
    """
    service = DocumentService(db, generator)
    try:
        result = await service.get_or_generate(
            profile.client_id,
            request.document_type,
            force_regenerate=request.force_regenerate
        )
    except GenerationFailed as e:
        logger.error(f"❌ Document generation failed for client {profile.client_id}: {e.message}")
        raise GenerationFailed("Failed to generate document") from e

    return DocumentGenerateResponse(cached=result.cached, document=result.document)


# =============================================================================
# LIST DOCUMENTS
# =============================================================================

@router.get("", response_model=DocumentListResponse)
async def list_documents(
    db: Session = Depends(get_db),
    profile: ClientProfile = Depends(get_current_profile)
):
    """List the caller's generated documents, newest first, without content."""
    documents = DocumentStore(db).list_for_client(profile.client_id)
    return DocumentListResponse(documents=documents, total=len(documents))


@router.get("/types", response_model=DocumentTypesResponse)
async def list_document_types():
    """The document registry: key to title."""
    return DocumentTypesResponse(
        document_types={doc_type.value: title for doc_type, title in prompts.DOCUMENT_TITLES.items()}
    )


# =============================================================================
# GET SINGLE DOCUMENT
# =============================================================================

@router.get("/{document_type}", response_model=DocumentDetailResponse)
async def get_document(
    document_type: str,
    db: Session = Depends(get_db),
    profile: ClientProfile = Depends(get_current_profile)
):
    """
    Fetch one stored document. Never generates.

    Raises:
        400: Unknown document type
        404: Document not generated yet
    """
    try:
        doc_type = prompts.parse_document_type(document_type)
    except ValueError:
        raise InvalidArgument("Invalid document type")

    document = DocumentStore(db).get(profile.client_id, doc_type)
    if not document:
        raise NotFoundError("Document not found")

    return DocumentDetailResponse(document=document)
