"""Declared document types and the detection threshold each one uses."""

from enum import StrEnum

from src.utils.config import DetectionConfig


class DocumentType(StrEnum):
    """Document types the pipeline knows how to process."""

    BUSINESS_REGISTRATION = "business_registration"
    ID_CARD = "id_card"
    DRIVER_LICENSE = "driver_license"
    UNKNOWN = "unknown"


def detection_threshold(
    document_type: DocumentType, config: DetectionConfig | None = None
) -> float:
    """Return the probability-map binarization threshold for a document type.

    Args:
        document_type: Declared type of the scanned document.
        config: Detection settings holding the tuned thresholds.

    Returns:
        Threshold in [0, 1].
    """
    config = config or DetectionConfig()
    match document_type:
        case DocumentType.BUSINESS_REGISTRATION:
            return config.business_registration_threshold
        case DocumentType.ID_CARD | DocumentType.DRIVER_LICENSE:
            return config.id_card_threshold
        case DocumentType.UNKNOWN:
            return config.default_threshold
