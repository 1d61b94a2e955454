"""Edit-distance helpers shared by text correction and field extraction.

Distances come from rapidfuzz. :class:`EditDistanceCache` memoizes them
for the lifetime of a single document parse and is created fresh for
every call, so nothing accumulates across documents.
"""

from collections.abc import Iterable

from rapidfuzz.distance import Levenshtein


def edit_distance(a: str, b: str) -> int:
    """Return the Levenshtein distance between two strings."""
    return Levenshtein.distance(a, b)


class EditDistanceCache:
    """Memoized, length-bounded edit distance for one parse call."""

    def __init__(self) -> None:
        self._memo: dict[tuple[str, str], int] = {}

    def __len__(self) -> int:
        return len(self._memo)

    def clear(self) -> None:
        self._memo.clear()

    def distance(self, a: str, b: str, max_distance: int = 3) -> int:
        """Edit distance with an early exit on large length differences.

        When the lengths differ by more than ``max_distance`` the length
        difference is returned as a lower bound instead of the exact
        distance.
        """
        if a == b:
            return 0
        length_diff = abs(len(a) - len(b))
        if length_diff > max_distance:
            return length_diff
        if not a or not b:
            return max(len(a), len(b))

        key = (a, b) if a < b else (b, a)
        cached = self._memo.get(key)
        if cached is None:
            cached = Levenshtein.distance(a, b)
            self._memo[key] = cached
        return cached

    def closest(
        self, word: str, candidates: Iterable[str], threshold: int = 2
    ) -> str | None:
        """Return the candidate nearest to ``word`` within ``threshold``.

        Exact matches win immediately; ties keep the first candidate.
        """
        best: str | None = None
        best_distance = threshold + 1
        for candidate in candidates:
            if candidate == word:
                return candidate
            if abs(len(word) - len(candidate)) > threshold:
                continue
            dist = self.distance(word, candidate, threshold)
            if dist < best_distance:
                best_distance = dist
                best = candidate
        return best
