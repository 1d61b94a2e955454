"""Tests for the end-to-end document processor with fake models."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from src.extraction.field_extractor import FieldRecord, IdCardRecord
from src.ocr.document_processor import DocumentProcessor, DocumentResult
from src.ocr.document_type import DocumentType
from src.ocr.errors import SignalUnavailableError
from src.ocr.sequence_decoder import SymbolDictionary
from src.preprocessing.region_crop import prepare_recognition_input
from src.utils.config import AppConfig, RecognitionConfig


def _detector_with_rows(*rows: tuple[int, int]):
    """Detector marking one horizontal text band per ``(top, bottom)`` row."""

    def detect(tensor: np.ndarray) -> np.ndarray:
        _, _, height, width = tensor.shape
        prob = np.zeros((1, 1, height, width), dtype=np.float32)
        for top, bottom in rows:
            prob[0, 0, top:bottom, 40:140] = 0.9
        return prob

    return detect


def _recognizer_for(indices: list[int], classes: int = 6) -> MagicMock:
    logits = np.zeros((1, len(indices), classes), dtype=np.float32)
    for t, index in enumerate(indices):
        logits[0, t, index] = 1.0
    return MagicMock(return_value=logits)


class TestDocumentProcessor:
    """Tests for DocumentProcessor.process."""

    def setup_method(self) -> None:
        self.dictionary = SymbolDictionary(["A", "B", "C", "가"])
        self.processor: DocumentProcessor | None = None

    def teardown_method(self) -> None:
        if self.processor is not None:
            self.processor.close()

    def test_single_region(self, sample_color_image: np.ndarray) -> None:
        self.processor = DocumentProcessor(
            detector=_detector_with_rows((40, 60)),
            recognizer=_recognizer_for([1, 0, 2]),
            dictionary=self.dictionary,
        )
        result = self.processor.process(sample_color_image)

        assert isinstance(result, DocumentResult)
        assert result.raw_text == "AB\n"
        assert result.box_count == 1
        assert result.line_count == 1
        assert result.recognition_confidence == 1.0
        assert isinstance(result.fields, FieldRecord)

    def test_two_lines(self, sample_color_image: np.ndarray) -> None:
        recognizer = _recognizer_for([3])
        self.processor = DocumentProcessor(
            detector=_detector_with_rows((20, 40), (100, 120)),
            recognizer=recognizer,
            dictionary=self.dictionary,
        )
        result = self.processor.process(sample_color_image)

        assert result.raw_text == "C\nC\n"
        assert result.line_count == 2
        assert recognizer.call_count == 2
        crop = recognizer.call_args.args[0]
        assert crop.shape[:3] == (1, 3, 48)

    def test_progress_reported(self, sample_color_image: np.ndarray) -> None:
        progress = MagicMock()
        self.processor = DocumentProcessor(
            detector=_detector_with_rows((40, 60)),
            recognizer=_recognizer_for([1]),
            dictionary=self.dictionary,
        )
        self.processor.process(sample_color_image, on_progress=progress)
        progress.assert_called_once_with(1, 1)

    def test_no_text_regions(self, sample_color_image: np.ndarray) -> None:
        recognizer = _recognizer_for([1])
        self.processor = DocumentProcessor(
            detector=_detector_with_rows(),
            recognizer=recognizer,
            dictionary=self.dictionary,
        )
        result = self.processor.process(sample_color_image)

        assert result.raw_text == ""
        assert result.box_count == 0
        assert result.fields == FieldRecord()
        recognizer.assert_not_called()

    def test_missing_detector(self, sample_color_image: np.ndarray) -> None:
        self.processor = DocumentProcessor(
            recognizer=_recognizer_for([1]), dictionary=self.dictionary
        )
        with pytest.raises(SignalUnavailableError):
            self.processor.process(sample_color_image)

    def test_missing_recognizer(self, sample_color_image: np.ndarray) -> None:
        self.processor = DocumentProcessor(
            detector=_detector_with_rows((40, 60)), dictionary=self.dictionary
        )
        with pytest.raises(SignalUnavailableError):
            self.processor.process(sample_color_image)

    def test_missing_dictionary_file(
        self, sample_color_image: np.ndarray, tmp_path: Path
    ) -> None:
        config = AppConfig(
            recognition=RecognitionConfig(dictionary_path=str(tmp_path / "none.txt"))
        )
        self.processor = DocumentProcessor(
            config,
            detector=_detector_with_rows((40, 60)),
            recognizer=_recognizer_for([1]),
        )
        with pytest.raises(SignalUnavailableError):
            self.processor.process(sample_color_image)

    def test_dictionary_loaded_from_config(
        self, sample_color_image: np.ndarray, tmp_path: Path
    ) -> None:
        path = tmp_path / "dict.txt"
        path.write_text("X\nY\n", encoding="utf-8")
        config = AppConfig(recognition=RecognitionConfig(dictionary_path=str(path)))
        self.processor = DocumentProcessor(
            config,
            detector=_detector_with_rows((40, 60)),
            recognizer=_recognizer_for([2, 1], classes=4),
        )
        result = self.processor.process(sample_color_image)
        assert result.raw_text == "YX\n"

    def test_unusable_detector_output(self, sample_color_image: np.ndarray) -> None:
        self.processor = DocumentProcessor(
            detector=MagicMock(return_value=np.zeros((3, 10, 10), dtype=np.float32)),
            recognizer=_recognizer_for([1]),
            dictionary=self.dictionary,
        )
        with pytest.raises(SignalUnavailableError):
            self.processor.process(sample_color_image)

    def test_one_pixel_tall_component_skipped(
        self, sample_color_image: np.ndarray
    ) -> None:
        def thin_line(tensor: np.ndarray) -> np.ndarray:
            _, _, height, width = tensor.shape
            prob = np.zeros((1, 1, height, width), dtype=np.float32)
            prob[0, 0, 30, 20:200] = 1.0
            return prob

        recognizer = _recognizer_for([1])
        self.processor = DocumentProcessor(
            detector=thin_line, recognizer=recognizer, dictionary=self.dictionary
        )
        result = self.processor.process(sample_color_image)

        assert result.box_count == 0
        assert result.raw_text == ""
        recognizer.assert_not_called()

    def test_failed_crop_becomes_empty_region(
        self, sample_color_image: np.ndarray
    ) -> None:
        recognizer = _recognizer_for([1])
        self.processor = DocumentProcessor(
            detector=_detector_with_rows((20, 40), (100, 120)),
            recognizer=recognizer,
            dictionary=self.dictionary,
        )
        real_crop = prepare_recognition_input
        calls = iter([ValueError("degenerate region"), None])

        def crop_once_failing(image, box, input_height):
            error = next(calls)
            if error is not None:
                raise error
            return real_crop(image, box, input_height)

        with patch(
            "src.ocr.document_processor.prepare_recognition_input",
            side_effect=crop_once_failing,
        ):
            result = self.processor.process(sample_color_image)

        assert result.box_count == 2
        assert result.raw_text == "A\n"
        recognizer.assert_called_once()


class TestProcessText:
    """Tests for DocumentProcessor.process_text."""

    def setup_method(self) -> None:
        self.processor = DocumentProcessor()

    def test_certificate(self, certificate_text: str) -> None:
        result = self.processor.process_text(certificate_text)
        assert result.fields.registration_number == "123-45-67891"
        assert result.fields.head_address == "서울특별시 서초구 서초대로 456"
        assert result.raw_text == certificate_text

    def test_correction_applied(self) -> None:
        result = self.processor.process_text("내표자 : 홍길동")
        assert result.corrected_text == "대표자 : 홍길동"
        assert result.fields.representative == "홍길동"
        assert len(result.corrections) == 1

    def test_correction_disabled(self) -> None:
        result = self.processor.process_text("HOA 천안시", correct=False)
        assert result.corrected_text == "HOA 천안시"
        assert result.corrections == []
        assert result.correction_confidence == 1.0

    def test_id_card_placeholder(self) -> None:
        result = self.processor.process_text("성명 : 홍길동", DocumentType.ID_CARD)
        assert result.fields == IdCardRecord()
        assert result.document_type is DocumentType.ID_CARD

    def test_cancel_without_pool(self) -> None:
        self.processor.cancel()
        self.processor.close()
