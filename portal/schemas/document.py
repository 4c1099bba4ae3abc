# portal/schemas/document.py
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Dict
from datetime import datetime
from uuid import UUID

from portal.models.document import DocumentType

# Request schemas
class DocumentGenerateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Validated against the registry by the service so unknown keys get the 400 envelope
    document_type: str = Field(..., min_length=1)
    force_regenerate: bool = False

# Response schemas
class DocumentMetadata(BaseModel):
    document_id: UUID
    document_type: DocumentType
    title: str
    word_count: int
    generated_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class DocumentResponse(DocumentMetadata):
    content: str

class DocumentGenerateResponse(BaseModel):
    success: bool = True
    cached: bool
    document: DocumentResponse

class DocumentDetailResponse(BaseModel):
    success: bool = True
    document: DocumentResponse

class DocumentListResponse(BaseModel):
    success: bool = True
    documents: list[DocumentMetadata]
    total: int

class DocumentTypesResponse(BaseModel):
    success: bool = True
    document_types: Dict[str, str]
