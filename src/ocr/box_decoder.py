"""Text-region box decoding from a detection probability map.

Binarizes the per-pixel text probability, bridges gaps between
characters with a horizontal dilation, and fits an expanded
minimum-area rectangle to every connected component large enough to be
text.
"""

import math
from dataclasses import dataclass

import cv2
import numpy as np

from src.utils.config import DetectionConfig
from src.utils.logger import get_logger

from .errors import SignalUnavailableError

logger = get_logger(__name__)

Point = tuple[float, float]


@dataclass(frozen=True)
class TextRegionBox:
    """Oriented text region.

    ``width`` is always the long side of the rectangle and ``height`` the
    short side, whatever the winding of ``points``.
    """

    points: tuple[Point, Point, Point, Point]
    center: Point
    width: float
    height: float
    angle: float

    @property
    def min_x(self) -> float:
        return self.center[0] - self.width / 2

    @property
    def max_x(self) -> float:
        return self.center[0] + self.width / 2

    @classmethod
    def from_rotated_rect(
        cls,
        rect: tuple[Point, tuple[float, float], float],
        width_ratio: float = 1.0,
        height_ratio: float = 1.0,
    ) -> "TextRegionBox":
        """Build a box from an OpenCV rotated rect, expanding its sides.

        Args:
            rect: ``((cx, cy), (w, h), angle)`` as returned by
                ``cv2.minAreaRect``.
            width_ratio: Scale applied to the long side.
            height_ratio: Scale applied to the short side.
        """
        (cx, cy), (w, h), angle = rect
        if w < h:
            w, h = h, w
            angle = angle - 90 if angle > 0 else angle + 90
        w *= width_ratio
        h *= height_ratio

        corners = cv2.boxPoints(((cx, cy), (w, h), angle))
        points = tuple((float(x), float(y)) for x, y in corners)
        return cls(
            points=points,  # type: ignore[arg-type]
            center=(float(cx), float(cy)),
            width=float(w),
            height=float(h),
            angle=float(angle),
        )

    def rescale(self, scale_x: float, scale_y: float) -> "TextRegionBox":
        """Map the box from detection space into source-image space."""
        points = tuple((x * scale_x, y * scale_y) for x, y in self.points)
        return _box_from_points(points)  # type: ignore[arg-type]


def _box_from_points(points: tuple[Point, Point, Point, Point]) -> TextRegionBox:
    p0, p1, p2, _ = points
    edge_a = math.dist(p0, p1)
    edge_b = math.dist(p1, p2)
    if edge_a >= edge_b:
        width, height, long_edge = edge_a, edge_b, (p0, p1)
    else:
        width, height, long_edge = edge_b, edge_a, (p1, p2)

    (x0, y0), (x1, y1) = long_edge
    angle = math.degrees(math.atan2(y1 - y0, x1 - x0))
    if angle > 90:
        angle -= 180
    elif angle <= -90:
        angle += 180

    cx = sum(p[0] for p in points) / 4
    cy = sum(p[1] for p in points) / 4
    return TextRegionBox(points, (cx, cy), width, height, angle)


def _as_probability_map(prob_map: np.ndarray | None) -> np.ndarray:
    if prob_map is None:
        raise SignalUnavailableError("Detection probability map is missing")

    prob = np.asarray(prob_map, dtype=np.float32)
    while prob.ndim > 2 and prob.shape[0] == 1:
        prob = prob[0]
    if prob.ndim != 2 or prob.size == 0:
        raise SignalUnavailableError(
            f"Detection probability map must be 2-D, got shape {np.shape(prob_map)}"
        )
    return prob


def decode_boxes(
    prob_map: np.ndarray | None,
    threshold: float,
    config: DetectionConfig | None = None,
) -> list[TextRegionBox]:
    """Convert a text-probability map into oriented text boxes.

    Args:
        prob_map: ``H x W`` probabilities in [0, 1]. Leading singleton
            batch/channel axes are accepted.
        threshold: Binarization threshold for the declared document type.
        config: Dilation, noise-area, minimum-side and unclip settings.

    Returns:
        Boxes in detection-map coordinates, in no particular order.

    Raises:
        SignalUnavailableError: If the map is missing or not 2-D.
    """
    config = config or DetectionConfig()
    prob = _as_probability_map(prob_map)

    binary = (prob > threshold).astype(np.uint8) * 255
    kernel = cv2.getStructuringElement(cv2.MORPH_RECT, tuple(config.dilation_kernel))
    binary = cv2.dilate(binary, kernel)

    count, labels, stats, _ = cv2.connectedComponentsWithStats(binary, connectivity=8)

    boxes: list[TextRegionBox] = []
    for label in range(1, count):
        x, y, w, h, area = stats[label]
        if area < config.min_component_area:
            continue

        ys, xs = np.nonzero(labels[y : y + h, x : x + w] == label)
        component = np.column_stack((xs + x, ys + y)).astype(np.float32)
        rect = cv2.minAreaRect(component)
        if min(rect[1]) < config.min_box_side:
            logger.debug("Dropping degenerate component %d (size %s)", label, rect[1])
            continue
        boxes.append(
            TextRegionBox.from_rotated_rect(
                rect, config.unclip_width_ratio, config.unclip_height_ratio
            )
        )

    logger.info(
        "Decoded %d text boxes from %dx%d map (threshold=%.2f)",
        len(boxes),
        prob.shape[1],
        prob.shape[0],
        threshold,
    )
    return boxes


def rescale_boxes(
    boxes: list[TextRegionBox], scale_x: float, scale_y: float
) -> list[TextRegionBox]:
    """Rescale detection-space boxes by ``(original / detection)`` factors."""
    return [box.rescale(scale_x, scale_y) for box in boxes]
