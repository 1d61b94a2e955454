"""Thread pool that runs per-region recognition and decoding.

Every region is submitted as its own task and gets its own future, so
results come back in submission order while progress is reported as
each region finishes. Cancelling the pool drops every pending region
of the document in flight.
"""

import threading
from collections.abc import Callable
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor, as_completed
from typing import Protocol

import numpy as np

from src.utils.logger import get_logger

from .errors import SignalUnavailableError
from .sequence_decoder import EMPTY_SPAN, DecodedSpan, SymbolDictionary, decode_logits

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class RecognitionModel(Protocol):
    """Callable returning ``(1, T, C)`` class scores for one region crop."""

    def __call__(self, crop: np.ndarray) -> np.ndarray: ...


class RecognitionPool:
    """Ordered, cancellable per-region recognition.

    Args:
        model: Recognition model shared by all worker threads.
        dictionary: Symbols used to decode the model output.
        max_workers: Number of worker threads.

    Raises:
        SignalUnavailableError: If no model or dictionary is given.
    """

    def __init__(
        self,
        model: RecognitionModel | None,
        dictionary: SymbolDictionary | None,
        max_workers: int = 2,
    ) -> None:
        if model is None:
            raise SignalUnavailableError("Recognition model is not available")
        if dictionary is None:
            raise SignalUnavailableError("Recognition dictionary is not loaded")
        self.model = model
        self.dictionary = dictionary
        self.max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="recognition"
            )
        return self._executor

    def _recognize(self, index: int, crop: np.ndarray | None) -> DecodedSpan:
        if crop is None:
            return EMPTY_SPAN
        try:
            return decode_logits(self.model(crop), self.dictionary)
        except Exception as e:
            logger.warning("Recognition failed for region %d: %s", index, e)
            return EMPTY_SPAN

    def submit(self, index: int, crop: np.ndarray | None) -> Future[DecodedSpan]:
        """Queue one region crop and return its future.

        A ``None`` crop stands for a region that could not be cropped and
        resolves to the empty span.

        Raises:
            concurrent.futures.CancelledError: If the executor was shut
                down while this region was being queued.
        """
        with self._lock:
            try:
                return self._get_executor().submit(self._recognize, index, crop)
            except RuntimeError as e:
                raise CancelledError(str(e)) from e

    def recognize_batch(
        self,
        crops: list[np.ndarray | None],
        on_progress: ProgressCallback | None = None,
    ) -> list[DecodedSpan]:
        """Recognize a batch of region crops.

        Args:
            crops: Preprocessed crops, one per region. ``None`` marks a
                region whose crop failed.
            on_progress: Called with ``(completed, total)`` as each
                region finishes, in completion order.

        Returns:
            Spans where ``result[i]`` belongs to ``crops[i]``.

        Raises:
            concurrent.futures.CancelledError: If the pool was cancelled
                while the batch was pending.
        """
        futures = [self.submit(i, crop) for i, crop in enumerate(crops)]
        total = len(futures)

        for completed, future in enumerate(as_completed(futures), start=1):
            future.result()
            if on_progress:
                on_progress(completed, total)

        logger.info("Recognized %d regions", total)
        return [future.result() for future in futures]

    def cancel(self) -> None:
        """Terminate all pending work for the document in flight.

        Regions already running finish, everything queued is dropped. The
        next submission starts a fresh executor.
        """
        with self._lock:
            if self._executor is not None:
                logger.info("Cancelling pending recognition work")
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None

    def close(self) -> None:
        """Wait for running work and release the worker threads."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def __enter__(self) -> "RecognitionPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
