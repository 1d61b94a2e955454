"""Assembly of decoded spans into field-separated document text.

Separators between spans on one visual row are chosen from the gap
between neighbouring boxes, measured in multiples of the previous box
height. A span that looks like the start of a field label gets a line
break on a smaller gap than plain text does.
"""

import re
from dataclasses import dataclass, field

from src.utils.config import AssemblyConfig
from src.utils.logger import get_logger

from .line_assembler import Line
from .sequence_decoder import DecodedSpan

logger = get_logger(__name__)

FIELD_START_KEYWORDS = (
    "법인등록번호",
    "법인들록번호",
    "번인등록번호",
    "본점소재지",
    "본정소재지",
    "본정소재",
    "사업장소재지",
    "사업장소재",
    "사업장",
    "개업연월일",
    "개업연",
    "등록번호",
    "대표자",
    "법인명",
    "단체명",
)

_WHITESPACE = re.compile(r"\s")


@dataclass
class AssembledDocument:
    """Document text rebuilt from per-region spans.

    Attributes:
        full_text: Line texts, each terminated by a newline.
        lines: Per-line text without the trailing newline.
        confidence: Mean confidence of the kept spans, 0.0 if none.
    """

    full_text: str
    lines: list[str] = field(default_factory=list)
    confidence: float = 0.0


def is_field_start(text: str) -> bool:
    """Return True if a span looks like the beginning of a field label."""
    compact = _WHITESPACE.sub("", text)
    return any(kw in text or compact.startswith(kw[:2]) for kw in FIELD_START_KEYWORDS)


def _separator(gap: float, height: float, text: str, config: AssemblyConfig) -> str:
    if is_field_start(text) and gap > height * config.keyword_gap_ratio:
        return "\n"
    if gap > height * config.newline_gap_ratio:
        return "\n"
    if gap > height * config.space_gap_ratio:
        return " "
    return ""


def assemble_text(
    lines: list[Line],
    spans: list[DecodedSpan],
    config: AssemblyConfig | None = None,
) -> AssembledDocument:
    """Join decoded spans into document text.

    Args:
        lines: Reading-order lines from ``group_lines``.
        spans: One span per box, in the flattened order of ``lines``.
        config: Gap ratios and the span confidence cutoff.

    Returns:
        The assembled document.

    Raises:
        ValueError: If the span count does not match the box count.
    """
    config = config or AssemblyConfig()
    box_count = sum(len(line) for line in lines)
    if box_count != len(spans):
        raise ValueError(f"Got {len(spans)} spans for {box_count} boxes")

    span_iter = iter(spans)
    line_texts: list[str] = []
    total_confidence = 0.0
    kept = 0

    for line in lines:
        parts: list[str] = []
        last_max_x = -1.0
        last_height = 0.0

        for box in line:
            span = next(span_iter)
            if span.confidence <= config.min_span_confidence:
                continue

            if parts:
                gap = box.min_x - last_max_x
                parts.append(_separator(gap, last_height, span.text, config))
            parts.append(span.text)

            last_max_x = box.max_x
            last_height = box.height
            total_confidence += span.confidence
            kept += 1

        line_text = "".join(parts)
        if line_text:
            line_texts.append(line_text)

    full_text = "".join(f"{text}\n" for text in line_texts)
    confidence = total_confidence / kept if kept else 0.0
    logger.info(
        "Assembled %d lines from %d/%d spans", len(line_texts), kept, len(spans)
    )
    return AssembledDocument(
        full_text=full_text, lines=line_texts, confidence=confidence
    )
