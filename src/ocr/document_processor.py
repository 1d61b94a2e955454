"""Unified document processing pipeline.

Runs detection, box decoding, line grouping, per-region recognition,
text assembly, correction and field extraction behind one interface.
Model inference is supplied by the caller as plain callables; already
recognized text can enter the pipeline at the correction stage.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import cv2
import numpy as np

from src.correction.text_corrector import CorrectionDetail, TextCorrector
from src.extraction.field_extractor import (
    DriverLicenseRecord,
    FieldRecord,
    IdCardRecord,
    get_field_parser,
)
from src.preprocessing.detection_input import prepare_detection_input
from src.preprocessing.region_crop import prepare_recognition_input
from src.utils.config import AppConfig
from src.utils.logger import get_logger

from .box_decoder import TextRegionBox, decode_boxes, rescale_boxes
from .document_type import DocumentType, detection_threshold
from .errors import SignalUnavailableError
from .line_assembler import group_lines
from .recognition_pool import RecognitionModel, RecognitionPool
from .sequence_decoder import SymbolDictionary
from .text_assembler import assemble_text

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class DetectionModel(Protocol):
    """Callable returning a text-probability map for a ``(1, 3, H, W)`` input."""

    def __call__(self, tensor: np.ndarray) -> np.ndarray: ...


@dataclass
class DocumentResult:
    """Complete processing results for a document."""

    document_type: DocumentType
    raw_text: str
    corrected_text: str
    fields: FieldRecord | IdCardRecord | DriverLicenseRecord
    corrections: list[CorrectionDetail] = field(default_factory=list)
    correction_confidence: float = 1.0
    recognition_confidence: float = 0.0
    box_count: int = 0
    line_count: int = 0


class DocumentProcessor:
    """End-to-end document processing pipeline.

    Args:
        config: Application configuration object.
        detector: Detection model, required for :meth:`process`.
        recognizer: Recognition model, required for :meth:`process`.
        dictionary: Recognition symbols. Loaded from
            ``config.recognition.dictionary_path`` on first use when
            omitted.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        detector: DetectionModel | None = None,
        recognizer: RecognitionModel | None = None,
        dictionary: SymbolDictionary | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.detector = detector
        self.recognizer = recognizer
        self.dictionary = dictionary
        self.corrector = TextCorrector(self.config.correction)
        self._pool: RecognitionPool | None = None

    def process(
        self,
        image: np.ndarray,
        document_type: DocumentType = DocumentType.BUSINESS_REGISTRATION,
        on_progress: ProgressCallback | None = None,
    ) -> DocumentResult:
        """Process a scanned document image.

        Args:
            image: Source image (BGR, BGRA or grayscale).
            document_type: Declared type selecting threshold and parser.
            on_progress: Called with ``(completed, total)`` per region.

        Returns:
            Raw and corrected text, correction log and extracted fields.

        Raises:
            SignalUnavailableError: If a model or the dictionary is missing,
                or the detector output is unusable.
            concurrent.futures.CancelledError: If :meth:`cancel` was called
                while recognition was pending.
        """
        if self.detector is None:
            raise SignalUnavailableError("Detection model is not available")
        if self.recognizer is None:
            raise SignalUnavailableError("Recognition model is not available")
        pool = self._get_pool()

        cfg = self.config
        threshold = detection_threshold(document_type, cfg.detection)
        logger.info("Processing %s document (threshold=%.2f)", document_type, threshold)

        det_input = prepare_detection_input(image, cfg.detection)
        prob_map = self.detector(det_input.tensor)
        boxes = decode_boxes(prob_map, threshold, cfg.detection)
        boxes = rescale_boxes(boxes, det_input.scale_x, det_input.scale_y)

        lines = group_lines(boxes, cfg.assembly.line_tolerance)
        crops = [
            self._prepare_crop(image, box, index)
            for index, box in enumerate(box for line in lines for box in line)
        ]
        spans = pool.recognize_batch(crops, on_progress)
        assembled = assemble_text(lines, spans, cfg.assembly)

        result = self.process_text(assembled.full_text, document_type)
        result.recognition_confidence = assembled.confidence
        result.box_count = len(boxes)
        result.line_count = len(lines)
        return result

    def _prepare_crop(
        self, image: np.ndarray, box: TextRegionBox, index: int
    ) -> np.ndarray | None:
        try:
            return prepare_recognition_input(
                image, box, self.config.recognition.input_height
            )
        except (cv2.error, ValueError) as e:
            logger.warning("Could not crop region %d: %s", index, e)
            return None

    def process_text(
        self,
        text: str,
        document_type: DocumentType = DocumentType.BUSINESS_REGISTRATION,
        correct: bool | None = None,
    ) -> DocumentResult:
        """Correct already-recognized text and extract its fields.

        Args:
            text: Assembled document text.
            document_type: Declared type selecting the field parser.
            correct: Run the correction passes; defaults to
                ``config.correction.enabled``.

        Returns:
            Document results without geometry counts.
        """
        if correct is None:
            correct = self.config.correction.enabled

        corrected_text = text
        corrections: list[CorrectionDetail] = []
        confidence = 1.0
        if correct:
            correction = self.corrector.correct(text)
            corrected_text = correction.corrected
            corrections = correction.corrections
            confidence = correction.confidence

        parser = get_field_parser(document_type, self.config.extraction)
        fields = parser.parse(corrected_text)

        return DocumentResult(
            document_type=document_type,
            raw_text=text,
            corrected_text=corrected_text,
            fields=fields,
            corrections=corrections,
            correction_confidence=confidence,
        )

    def cancel(self) -> None:
        """Drop all pending recognition work for the document in flight."""
        if self._pool is not None:
            self._pool.cancel()

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    def _get_pool(self) -> RecognitionPool:
        if self._pool is None:
            if self.dictionary is None:
                self.dictionary = self._load_dictionary()
            self._pool = RecognitionPool(
                self.recognizer,
                self.dictionary,
                max_workers=self.config.recognition.max_workers,
            )
        return self._pool

    def _load_dictionary(self) -> SymbolDictionary:
        path = Path(self.config.recognition.dictionary_path)
        if not path.exists():
            raise SignalUnavailableError(f"Recognition dictionary not found: {path}")
        return SymbolDictionary.from_file(path)
