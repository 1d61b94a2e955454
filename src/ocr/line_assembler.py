"""Reading-order grouping of text boxes into lines."""

from collections.abc import Iterator
from dataclasses import dataclass, field

from src.utils.logger import get_logger

from .box_decoder import TextRegionBox

logger = get_logger(__name__)


@dataclass
class Line:
    """Boxes sharing a visual row, ordered left to right."""

    boxes: list[TextRegionBox] = field(default_factory=list)

    def __iter__(self) -> Iterator[TextRegionBox]:
        return iter(self.boxes)

    def __len__(self) -> int:
        return len(self.boxes)


def _close_line(boxes: list[TextRegionBox]) -> Line:
    return Line(sorted(boxes, key=lambda b: b.center[0]))


def group_lines(boxes: list[TextRegionBox], tolerance: float = 0.15) -> list[Line]:
    """Group boxes into top-to-bottom lines.

    A box joins the current line when its vertical center lies within
    ``tolerance`` times the smaller of its height and the line's first
    box height.

    Args:
        boxes: Boxes in source-image coordinates, any order.
        tolerance: Fraction of box height allowed between centers.

    Returns:
        Lines ordered top to bottom, each ordered left to right.
    """
    ordered = sorted(boxes, key=lambda b: b.center[1])
    lines: list[Line] = []
    current: list[TextRegionBox] = []

    for box in ordered:
        if not current:
            current.append(box)
            continue

        first = current[0]
        y_diff = abs(box.center[1] - first.center[1])
        if y_diff < tolerance * min(box.height, first.height):
            current.append(box)
        else:
            lines.append(_close_line(current))
            current = [box]

    if current:
        lines.append(_close_line(current))

    logger.info("Grouped %d boxes into %d lines", len(boxes), len(lines))
    return lines
