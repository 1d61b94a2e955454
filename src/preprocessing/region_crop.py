"""Perspective crops of oriented text regions for the recognizer."""

import cv2
import numpy as np

from src.ocr.box_decoder import TextRegionBox

from .detection_input import blob_from_image, to_rgb

RECOGNITION_MEAN = (0.5, 0.5, 0.5)
RECOGNITION_STD = (0.5, 0.5, 0.5)


def order_points(points: np.ndarray) -> np.ndarray:
    """Order four corners as top-left, top-right, bottom-right, bottom-left.

    Args:
        points: ``(4, 2)`` array of corners in any order.

    Returns:
        ``(4, 2)`` float32 array in TL, TR, BR, BL order.
    """
    pts = np.asarray(points, dtype=np.float32).reshape(4, 2)
    by_y = pts[np.argsort(pts[:, 1], kind="stable")]
    top = by_y[:2][np.argsort(by_y[:2, 0], kind="stable")]
    bottom = by_y[2:][np.argsort(by_y[2:, 0], kind="stable")]
    return np.array([top[0], top[1], bottom[1], bottom[0]], dtype=np.float32)


def crop_region(image: np.ndarray, box: TextRegionBox) -> np.ndarray:
    """Warp an oriented box out of the image into an upright patch.

    Args:
        image: Source image the box coordinates refer to.
        box: Region in source-image coordinates.

    Returns:
        Patch of size ``round(box.width) x round(box.height)``.
    """
    width = max(int(round(box.width)), 1)
    height = max(int(round(box.height)), 1)

    src = order_points(np.array(box.points))
    dst = np.array(
        [[0, 0], [width, 0], [width, height], [0, height]], dtype=np.float32
    )
    matrix = cv2.getPerspectiveTransform(src, dst)
    return cv2.warpPerspective(
        image,
        matrix,
        (width, height),
        flags=cv2.INTER_CUBIC,
        borderMode=cv2.BORDER_REPLICATE,
    )


def prepare_recognition_input(
    image: np.ndarray, box: TextRegionBox, input_height: int = 48
) -> np.ndarray:
    """Crop a region and build the ``(1, 3, input_height, W)`` recognizer tensor.

    The width keeps the box aspect ratio. Pixels are normalized to [-1, 1].
    """
    patch = crop_region(image, box)
    aspect = box.width / max(box.height, 1e-6)
    width = max(int(round(input_height * aspect)), 1)
    resized = cv2.resize(
        to_rgb(patch), (width, input_height), interpolation=cv2.INTER_CUBIC
    )
    return blob_from_image(resized, RECOGNITION_MEAN, RECOGNITION_STD)
