"""Local correction of raw OCR text before field extraction.

Runs six ordered passes, each over the output of the previous one:
fragment merge, garbage-prefix removal, Latin/Hangul confusion fix,
dictionary correction, n-gram correction and field-keyword
normalization. Every call keeps its own correction log, so one
:class:`TextCorrector` can serve concurrent documents.
"""

import re
from dataclasses import dataclass
from enum import StrEnum

from src.utils.config import CorrectionConfig
from src.utils.fuzzy import edit_distance
from src.utils.logger import get_logger

from .dictionary import (
    BIGRAM_FREQ,
    CHAR_CONFUSION,
    FIELD_KEYWORDS,
    FRAGMENTED_LABELS,
    HANGUL_ENGLISH_CONFUSION,
    TRIGRAM_FREQ,
    WORD_CORRECTIONS,
)
from .hangul import is_hangul, jamo_similarity

logger = get_logger(__name__)


class CorrectionMethod(StrEnum):
    """Pass that produced a correction."""

    DICTIONARY = "dictionary"
    NGRAM = "ngram"
    CONFUSION = "confusion"
    KEYWORD = "keyword"
    MERGE = "merge"
    PREFIX = "prefix"


@dataclass
class CorrectionDetail:
    """One substitution applied to the text."""

    position: int
    original: str
    corrected: str
    method: CorrectionMethod
    confidence: float


@dataclass
class CorrectionResult:
    """Output of a single :meth:`TextCorrector.correct` call."""

    original: str
    corrected: str
    corrections: list[CorrectionDetail]
    confidence: float


_DATE_SUFFIX = re.compile(r"(\d{1,2}일)([법본사개])")

# (pattern, replacement) for stray characters in front of known labels.
_GARBAGE_PREFIX_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(?:^|\s)일([법번]인등[록롤]번호)"), r"\n\1"),
    (re.compile(r"([법번]인등)롤([번빈]호)"), r"\1록\2"),
    (re.compile(r"등롤번호"), "등록번호"),
    (re.compile(r"(?:^|\s)[일인]([법번]인명)"), r" \1"),
]

_MAX_KEYWORD_ROUNDS = 5


def _fuzzy_keyword_pattern(keyword: str) -> re.Pattern[str]:
    """Regex matching ``keyword`` with each syllable or a confusable one."""
    parts: list[str] = []
    for char in keyword:
        alternatives = CHAR_CONFUSION.get(char)
        if alternatives:
            group = "".join(re.escape(c) for c in (char, *alternatives))
            parts.append(f"[{group}]")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts))


def _latin_pattern(token: str) -> re.Pattern[str]:
    return re.compile(rf"(?<![A-Za-z]){re.escape(token)}(?![A-Za-z])")


class TextCorrector:
    """Rule and n-gram based corrector for recognised document text.

    Args:
        config: Acceptance thresholds. Defaults apply when omitted.
    """

    def __init__(self, config: CorrectionConfig | None = None) -> None:
        self.config = config or CorrectionConfig()
        self._fragment_patterns = [
            (re.compile(rf"{head}\s+{rest}"), head + rest)
            for head, rest in FRAGMENTED_LABELS
        ]
        self._latin_patterns = [
            (_latin_pattern(latin), hangul)
            for latin, hangul in HANGUL_ENGLISH_CONFUSION.items()
        ]
        self._word_corrections = sorted(
            WORD_CORRECTIONS.items(), key=lambda item: len(item[0]), reverse=True
        )
        self._keyword_patterns = [
            (keyword, _fuzzy_keyword_pattern(keyword)) for keyword in FIELD_KEYWORDS
        ]

    def correct(self, text: str) -> CorrectionResult:
        """Run every correction pass over ``text``.

        Args:
            text: Raw assembled OCR text.

        Returns:
            Corrected text, the corrections applied and an overall
            confidence in [0, 1].
        """
        log: list[CorrectionDetail] = []

        corrected = self._merge_fragmented_labels(text, log)
        corrected = self._remove_garbage_prefixes(corrected, log)
        corrected = self._fix_script_confusion(corrected, log)
        corrected = self._correct_by_dictionary(corrected, log)
        corrected = self._correct_by_ngram(corrected, log)
        corrected = self._normalize_keywords(corrected, log)

        confidence = self._calculate_confidence(text, corrected, log)
        logger.info(
            "Text correction applied %d corrections (confidence %.2f)",
            len(log),
            confidence,
        )
        return CorrectionResult(
            original=text,
            corrected=corrected,
            corrections=log,
            confidence=confidence,
        )

    def _merge_fragmented_labels(self, text: str, log: list[CorrectionDetail]) -> str:
        """Join labels split by whitespace, e.g. ``"대\\n표자"`` -> ``"대표자"``."""
        result = text
        for pattern, label in self._fragment_patterns:
            match = pattern.search(result)
            if match:
                log.append(
                    CorrectionDetail(
                        match.start(),
                        match.group(0),
                        label,
                        CorrectionMethod.MERGE,
                        0.9,
                    )
                )
                result = pattern.sub(label, result)
        return result

    def _remove_garbage_prefixes(self, text: str, log: list[CorrectionDetail]) -> str:
        """Split labels glued to a date and drop stray leading syllables.

        ``"2015년12월01일법인등록번호"`` becomes
        ``"2015년12월01일\\n법인등록번호"``.
        """
        result = text
        match = _DATE_SUFFIX.search(result)
        if match:
            log.append(
                CorrectionDetail(
                    match.start(),
                    match.group(0),
                    f"{match.group(1)}\n{match.group(2)}",
                    CorrectionMethod.PREFIX,
                    0.88,
                )
            )
            result = _DATE_SUFFIX.sub(r"\1\n\2", result)

        for pattern, replacement in _GARBAGE_PREFIX_RULES:
            match = pattern.search(result)
            if match:
                fixed = match.expand(replacement)
                log.append(
                    CorrectionDetail(
                        match.start(),
                        match.group(0),
                        fixed.strip(),
                        CorrectionMethod.PREFIX,
                        0.88,
                    )
                )
                result = pattern.sub(replacement, result)
        return result

    def _fix_script_confusion(self, text: str, log: list[CorrectionDetail]) -> str:
        """Replace Latin hallucinations with the Hangul they stand for."""
        result = text
        for pattern, hangul in self._latin_patterns:
            match = pattern.search(result)
            if match:
                log.append(
                    CorrectionDetail(
                        match.start(),
                        match.group(0),
                        hangul,
                        CorrectionMethod.CONFUSION,
                        0.9,
                    )
                )
                result = pattern.sub(hangul, result)
        return result

    def _correct_by_dictionary(self, text: str, log: list[CorrectionDetail]) -> str:
        result = text
        for wrong, right in self._word_corrections:
            position = result.find(wrong)
            if position != -1:
                log.append(
                    CorrectionDetail(
                        position, wrong, right, CorrectionMethod.DICTIONARY, 0.95
                    )
                )
                result = result.replace(wrong, right)
        return result

    def _correct_by_ngram(self, text: str, log: list[CorrectionDetail]) -> str:
        """Fix rare syllable pairs, then rare syllable triples."""
        chars = list(text)
        result = list(chars)
        low = self.config.bigram_low_frequency

        for i in range(len(chars) - 1):
            bigram = chars[i] + chars[i + 1]
            freq = BIGRAM_FREQ.get(bigram)
            if freq is None or freq >= low:
                continue
            candidate = self._best_bigram(chars[i], chars[i + 1], freq)
            if candidate:
                replacement, score = candidate
                result[i], result[i + 1] = replacement[0], replacement[1]
                log.append(
                    CorrectionDetail(
                        i, bigram, replacement, CorrectionMethod.NGRAM, score
                    )
                )

        for i in range(len(result) - 2):
            trigram = "".join(result[i : i + 3])
            freq = TRIGRAM_FREQ.get(trigram)
            if freq is None or freq >= low:
                continue
            candidate = self._best_trigram(trigram, freq)
            if candidate:
                replacement, score = candidate
                result[i : i + 3] = list(replacement)
                log.append(
                    CorrectionDetail(
                        i, trigram, replacement, CorrectionMethod.NGRAM, score
                    )
                )

        return "".join(result)

    def _best_bigram(
        self, first: str, second: str, original_freq: float
    ) -> tuple[str, float] | None:
        best: str | None = None
        best_freq = 0.0
        for c1 in (first, *CHAR_CONFUSION.get(first, [])):
            for c2 in (second, *CHAR_CONFUSION.get(second, [])):
                freq = BIGRAM_FREQ.get(c1 + c2)
                if freq is not None and freq > best_freq:
                    best_freq = freq
                    best = c1 + c2

        if best is not None and best_freq > original_freq + self.config.bigram_margin:
            return best, best_freq
        return None

    def _best_trigram(
        self, trigram: str, original_freq: float
    ) -> tuple[str, float] | None:
        best: str | None = None
        best_score = 0.0
        for candidate, freq in TRIGRAM_FREQ.items():
            if freq < self.config.trigram_min_frequency:
                continue
            similarity = trigram_similarity(trigram, candidate)
            if (
                similarity > self.config.trigram_min_similarity
                and similarity * freq > best_score
            ):
                best_score = similarity * freq
                best = candidate

        if best is not None and best_score > original_freq + self.config.bigram_margin:
            return best, best_score
        return None

    def _normalize_keywords(self, text: str, log: list[CorrectionDetail]) -> str:
        """Rewrite near-miss field labels to their canonical spelling.

        Repeats until stable so that a shorter label fixed late cannot
        leave a longer label correctable on the next call.
        """
        result = text
        for _ in range(_MAX_KEYWORD_ROUNDS):
            updated = self._normalize_keywords_once(result, log)
            if updated == result:
                break
            result = updated
        return result

    def _normalize_keywords_once(self, text: str, log: list[CorrectionDetail]) -> str:
        result = text
        max_distance = self.config.keyword_max_distance

        for keyword, pattern in self._keyword_patterns:

            def replace(match: re.Match[str], keyword: str = keyword) -> str:
                found = match.group(0)
                if found == keyword or edit_distance(found, keyword) > max_distance:
                    return found
                log.append(
                    CorrectionDetail(
                        match.start(), found, keyword, CorrectionMethod.KEYWORD, 0.85
                    )
                )
                return keyword

            result = pattern.sub(replace, result)
        return result

    def _calculate_confidence(
        self, original: str, corrected: str, log: list[CorrectionDetail]
    ) -> float:
        if original == corrected:
            return 1.0

        distance = edit_distance(original, corrected)
        change_ratio = distance / max(len(original), len(corrected))
        if change_ratio > self.config.change_ratio_cap:
            return 0.5

        if log:
            average = sum(c.confidence for c in log) / len(log)
            return average * (1 - change_ratio * 0.5)
        return 0.8


def trigram_similarity(a: str, b: str) -> float:
    """Average per-position similarity of two three-syllable strings.

    Identical positions score 1; differing syllables score their jamo
    similarity.
    """
    if len(a) != 3 or len(b) != 3:
        return 0.0

    score = 0.0
    for x, y in zip(a, b):
        if x == y:
            score += 1.0
        elif is_hangul(x) and is_hangul(y):
            score += jamo_similarity(x, y)
    return score / 3
