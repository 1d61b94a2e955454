"""Greedy CTC decoding of per-region recognition logits."""

from dataclasses import dataclass
from pathlib import Path

import numpy as np

from src.utils.logger import get_logger

logger = get_logger(__name__)

BLANK_INDEX = 0


@dataclass(frozen=True)
class DecodedSpan:
    """Text decoded from one region.

    ``confidence`` is 1.0 when at least one symbol was decoded and 0.0
    otherwise; it gates recall rather than measuring probability.
    """

    text: str
    confidence: float


EMPTY_SPAN = DecodedSpan(text="", confidence=0.0)


class SymbolDictionary:
    """Ordered recognition symbols, class ``i`` maps to ``symbols[i - 1]``.

    Class 0 is the CTC blank. A literal space is appended as the last
    symbol.

    Args:
        symbols: Symbols in class order, without the trailing space.
    """

    def __init__(self, symbols: list[str]) -> None:
        self.symbols = [*symbols, " "]

    def __len__(self) -> int:
        return len(self.symbols)

    def __getitem__(self, index: int) -> str:
        return self.symbols[index]

    @classmethod
    def from_text(cls, text: str) -> "SymbolDictionary":
        """Parse a newline-delimited symbol list."""
        return cls([line.strip() for line in text.splitlines()])

    @classmethod
    def from_file(cls, path: Path) -> "SymbolDictionary":
        """Load a newline-delimited symbol file.

        Args:
            path: Path to the dictionary file (UTF-8).

        Returns:
            Loaded dictionary.
        """
        dictionary = cls.from_text(Path(path).read_text(encoding="utf-8"))
        logger.info("Loaded %d recognition symbols from %s", len(dictionary), path)
        return dictionary


def decode_logits(logits: np.ndarray, dictionary: SymbolDictionary) -> DecodedSpan:
    """Decode ``1 x T x C`` class scores with greedy CTC.

    Takes the arg-max class per timestep, drops blanks and collapses
    immediate repeats. A blank between two equal classes keeps both.

    Args:
        logits: Scores shaped ``(1, T, C)`` or ``(T, C)``.
        dictionary: Symbols for classes ``1..C-1``.

    Returns:
        The decoded span.

    Raises:
        ValueError: If ``logits`` cannot be read as ``T x C`` scores.
    """
    scores = np.asarray(logits)
    if scores.ndim == 3 and scores.shape[0] == 1:
        scores = scores[0]
    if scores.ndim != 2:
        raise ValueError(f"Expected (1, T, C) logits, got shape {np.shape(logits)}")
    if scores.shape[0] == 0:
        return EMPTY_SPAN

    indices = scores.argmax(axis=1)
    previous = np.concatenate(([-1], indices[:-1]))
    keep = (indices != BLANK_INDEX) & (indices != previous)

    symbols = [
        dictionary[index - 1] for index in indices[keep] if index - 1 < len(dictionary)
    ]
    if not symbols:
        return EMPTY_SPAN
    return DecodedSpan(text="".join(symbols), confidence=1.0)
