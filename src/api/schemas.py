"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel, Field

from src.ocr.document_type import DocumentType


class CorrectRequest(BaseModel):
    """Request schema for text correction."""

    text: str


class ParseRequest(BaseModel):
    """Request schema for parsing one recognized document."""

    text: str
    document_type: DocumentType = DocumentType.BUSINESS_REGISTRATION
    correct: bool = True
    name: str | None = None


class ParseBatchRequest(BaseModel):
    """Request schema for parsing several recognized documents."""

    documents: list[ParseRequest] = Field(min_length=1)


class CorrectionDetailResponse(BaseModel):
    """Response schema for a single applied correction."""

    position: int
    original: str
    corrected: str
    method: str
    confidence: float


class CorrectResponse(BaseModel):
    """Response schema for a correction request."""

    original: str
    corrected: str
    confidence: float
    corrections: list[CorrectionDetailResponse]


class ValidationResultResponse(BaseModel):
    """Response schema for a validation check result."""

    field_name: str
    is_valid: bool
    message: str
    rule_name: str


class ParseResponse(BaseModel):
    """Response schema for a parse request."""

    success: bool
    document_id: str
    document_type: str
    fields: dict[str, str]
    raw_text: str
    corrected_text: str
    correction_confidence: float
    corrections: list[CorrectionDetailResponse]
    validation: list[ValidationResultResponse]
    validation_passed: bool
    processing_time_ms: float


class BatchItemResponse(BaseModel):
    """Response schema for a single item in a batch parse."""

    name: str
    result: ParseResponse | None = None
    error: str | None = None


class BatchParseResponse(BaseModel):
    """Response schema for batch parsing of multiple documents."""

    success: bool
    total_documents: int
    successful: int
    failed: int
    results: list[BatchItemResponse]


class DocumentTypeInfo(BaseModel):
    """Information about a supported document type."""

    name: str
    description: str
    detection_threshold: float
    supported_fields: list[str]


class DocumentTypesResponse(BaseModel):
    """Response schema listing supported document types."""

    document_types: list[DocumentTypeInfo]


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    dictionary_available: bool
    correction_enabled: bool
