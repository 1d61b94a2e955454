"""Shared test fixtures for the registration-certificate OCR test suite."""

from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest

from src.ocr.box_decoder import TextRegionBox
from src.ocr.sequence_decoder import SymbolDictionary

CERTIFICATE_TEXT = """사업자등록증
(법인사업자)
등록번호 : 123-45-67891
법인명(단체명) : 주식회사 테스트
대표자 : 홍길동
개업연월일 : 2015년 12월 01일
법인등록번호 : 110111-1234569
사업장 소재지 : 서울특별시 강남구 테헤란로 123
본 정 소 재 지 : 서울특별시 서초구 서초대로 456
"""


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """Create a simple synthetic BGR test image."""
    image = np.zeros((200, 300, 3), dtype=np.uint8)
    image[50:150, 50:250] = (255, 255, 255)
    return image


@pytest.fixture
def certificate_text() -> str:
    """Recognized text of a clean business-registration certificate."""
    return CERTIFICATE_TEXT


@pytest.fixture
def symbol_dictionary() -> SymbolDictionary:
    """Dictionary with classes 1..4 mapping to A, B, C, 가."""
    return SymbolDictionary(["A", "B", "C", "가"])


@pytest.fixture
def make_box() -> Callable[..., TextRegionBox]:
    """Factory for axis-aligned boxes from center and size."""

    def _make(cx: float, cy: float, width: float = 40.0, height: float = 20.0):
        half_w, half_h = width / 2, height / 2
        points = (
            (cx - half_w, cy - half_h),
            (cx + half_w, cy - half_h),
            (cx + half_w, cy + half_h),
            (cx - half_w, cy + half_h),
        )
        return TextRegionBox(points, (cx, cy), width, height, 0.0)

    return _make


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
