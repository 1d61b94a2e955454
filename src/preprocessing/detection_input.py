"""Detection-model input preparation.

Resizes a document image so its longest side fits the detector limit
and both sides are multiples of the network stride, then normalizes it
into an ``NCHW`` float tensor.
"""

from dataclasses import dataclass

import cv2
import numpy as np

from src.utils.config import DetectionConfig
from src.utils.logger import get_logger

logger = get_logger(__name__)

IMAGENET_MEAN = (0.485, 0.456, 0.406)
IMAGENET_STD = (0.229, 0.224, 0.225)


@dataclass
class DetectionInput:
    """Detector tensor plus the factors mapping it back to the source image.

    Attributes:
        tensor: ``(1, 3, H, W)`` float32 input.
        scale_x: Source width divided by detection width.
        scale_y: Source height divided by detection height.
    """

    tensor: np.ndarray
    scale_x: float
    scale_y: float


def to_rgb(image: np.ndarray) -> np.ndarray:
    """Convert a grayscale, BGR or BGRA image to 3-channel RGB."""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGB)
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def blob_from_image(
    image: np.ndarray,
    mean: tuple[float, float, float],
    std: tuple[float, float, float],
) -> np.ndarray:
    """Scale an RGB uint8 image to [0, 1], normalize per channel, return NCHW."""
    scaled = image.astype(np.float32) / 255.0
    normalized = (scaled - np.array(mean, dtype=np.float32)) / np.array(
        std, dtype=np.float32
    )
    return normalized.transpose(2, 0, 1)[np.newaxis, ...].astype(np.float32)


def detection_size(
    height: int, width: int, limit_side: int = 1280, stride: int = 32
) -> tuple[int, int]:
    """Compute the ``(height, width)`` fed to the detector.

    Args:
        height: Source image height.
        width: Source image width.
        limit_side: Maximum length of the longest side.
        stride: Both sides are rounded to a multiple of this.

    Returns:
        Resized ``(height, width)``, each at least ``stride``.
    """
    ratio = 1.0
    if max(height, width) > limit_side:
        ratio = limit_side / max(height, width)

    resize_h = round(height * ratio / stride) * stride
    resize_w = round(width * ratio / stride) * stride
    return max(resize_h, stride), max(resize_w, stride)


def prepare_detection_input(
    image: np.ndarray, config: DetectionConfig | None = None
) -> DetectionInput:
    """Resize and normalize a BGR document image for the detector.

    Args:
        image: Source image (BGR, BGRA or grayscale).
        config: Side limit and stride settings.

    Returns:
        The detector tensor and its rescale factors.
    """
    config = config or DetectionConfig()
    height, width = image.shape[:2]
    resize_h, resize_w = detection_size(height, width, config.limit_side, config.stride)

    resized = cv2.resize(to_rgb(image), (resize_w, resize_h))
    tensor = blob_from_image(resized, IMAGENET_MEAN, IMAGENET_STD)

    logger.debug(
        "Prepared detection input %dx%d from %dx%d", resize_w, resize_h, width, height
    )
    return DetectionInput(
        tensor=tensor, scale_x=width / resize_w, scale_y=height / resize_h
    )
