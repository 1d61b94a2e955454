"""FastAPI application for the registration-certificate OCR API.

Provides REST endpoints for text correction, field parsing, batch
parsing, document-type listing, and health checks.
"""

import time
import uuid
from dataclasses import fields as dataclass_fields
from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from src.correction.text_corrector import CorrectionDetail, TextCorrector
from src.extraction.field_extractor import (
    DriverLicenseRecord,
    FieldRecord,
    IdCardRecord,
)
from src.ocr.document_processor import DocumentProcessor
from src.ocr.document_type import DocumentType, detection_threshold
from src.utils.config import load_config
from src.utils.logger import get_logger
from src.validation.rules_engine import RulesEngine

from .schemas import (
    BatchItemResponse,
    BatchParseResponse,
    CorrectionDetailResponse,
    CorrectRequest,
    CorrectResponse,
    DocumentTypeInfo,
    DocumentTypesResponse,
    HealthResponse,
    ParseBatchRequest,
    ParseRequest,
    ParseResponse,
    ValidationResultResponse,
)

logger = get_logger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="Registration Certificate OCR API",
    description="Correct recognized certificate text and extract typed fields",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_DOCUMENT_DESCRIPTIONS = {
    DocumentType.BUSINESS_REGISTRATION: "Korean business registration certificate",
    DocumentType.ID_CARD: "National ID card (fields not yet extracted)",
    DocumentType.DRIVER_LICENSE: "Driver license (fields not yet extracted)",
    DocumentType.UNKNOWN: "Undeclared document, parsed as a business registration",
}

_RECORD_TYPES = {
    DocumentType.BUSINESS_REGISTRATION: FieldRecord,
    DocumentType.ID_CARD: IdCardRecord,
    DocumentType.DRIVER_LICENSE: DriverLicenseRecord,
    DocumentType.UNKNOWN: FieldRecord,
}


def _get_components() -> tuple[DocumentProcessor, RulesEngine]:
    """Initialize and return shared processing components.

    Returns:
        Tuple of (document_processor, rules_engine).
    """
    config = load_config()
    doc_processor = DocumentProcessor(config)
    rules_engine = RulesEngine(Path(config.validation.rules_path))
    return doc_processor, rules_engine


def _correction_response(
    details: list[CorrectionDetail],
) -> list[CorrectionDetailResponse]:
    return [
        CorrectionDetailResponse(
            position=c.position,
            original=c.original,
            corrected=c.corrected,
            method=str(c.method),
            confidence=c.confidence,
        )
        for c in details
    ]


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    config = load_config()
    return HealthResponse(
        status="healthy",
        version=VERSION,
        dictionary_available=Path(config.recognition.dictionary_path).exists(),
        correction_enabled=config.correction.enabled,
    )


@app.post("/correct", response_model=CorrectResponse)
async def correct_text(request: CorrectRequest) -> CorrectResponse:
    """Run the correction passes over recognized text."""
    try:
        config = load_config()
        result = TextCorrector(config.correction).correct(request.text)
    except Exception as exc:
        logger.error("Correction failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return CorrectResponse(
        original=result.original,
        corrected=result.corrected,
        confidence=result.confidence,
        corrections=_correction_response(result.corrections),
    )


@app.post("/parse", response_model=ParseResponse)
async def parse_document(request: ParseRequest) -> ParseResponse:
    """Correct recognized text and extract its fields.

    Args:
        request: Text, declared document type and correction switch.

    Returns:
        Extracted fields, both text variants and validation results.
    """
    start_time = time.time()

    try:
        doc_processor, rules_engine = _get_components()
        doc_result = doc_processor.process_text(
            request.text, request.document_type, correct=request.correct
        )
        field_dict = doc_result.fields.to_dict()
        validation = rules_engine.validate(field_dict, request.document_type)
    except Exception as exc:
        logger.error("Parsing failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    validation_response = [
        ValidationResultResponse(
            field_name=r.field_name,
            is_valid=r.is_valid,
            message=r.message,
            rule_name=r.rule_name,
        )
        for r in validation.results
    ]

    return ParseResponse(
        success=True,
        document_id=str(uuid.uuid4()),
        document_type=str(request.document_type),
        fields=field_dict,
        raw_text=doc_result.raw_text,
        corrected_text=doc_result.corrected_text,
        correction_confidence=doc_result.correction_confidence,
        corrections=_correction_response(doc_result.corrections),
        validation=validation_response,
        validation_passed=validation.all_valid,
        processing_time_ms=(time.time() - start_time) * 1000,
    )


@app.post("/parse/batch", response_model=BatchParseResponse)
async def parse_batch(request: ParseBatchRequest) -> BatchParseResponse:
    """Parse several recognized documents.

    Args:
        request: Documents to parse.

    Returns:
        Batch results with per-document outcomes.
    """
    results: list[BatchItemResponse] = []
    successful = 0

    for i, document in enumerate(request.documents):
        name = document.name or f"document_{i + 1}"
        try:
            result = await parse_document(document)
            results.append(BatchItemResponse(name=name, result=result))
            successful += 1
        except HTTPException as exc:
            results.append(BatchItemResponse(name=name, error=exc.detail))

    return BatchParseResponse(
        success=successful > 0,
        total_documents=len(request.documents),
        successful=successful,
        failed=len(request.documents) - successful,
        results=results,
    )


@app.get("/document-types", response_model=DocumentTypesResponse)
async def list_document_types() -> DocumentTypesResponse:
    """List supported document types and the fields each one yields."""
    config = load_config()
    return DocumentTypesResponse(
        document_types=[
            DocumentTypeInfo(
                name=doc_type.value,
                description=_DOCUMENT_DESCRIPTIONS[doc_type],
                detection_threshold=detection_threshold(doc_type, config.detection),
                supported_fields=[
                    f.name for f in dataclass_fields(_RECORD_TYPES[doc_type])
                ],
            )
            for doc_type in DocumentType
        ]
    )
