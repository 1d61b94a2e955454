"""Hangul syllable decomposition and similarity helpers.

A precomposed syllable is ``0xAC00 + initial * 588 + medial * 28 + final``
for syllables in the range 가 (U+AC00) to 힣 (U+D7A3).
"""

from typing import NamedTuple

INITIALS = list("ㄱㄲㄴㄷㄸㄹㅁㅂㅃㅅㅆㅇㅈㅉㅊㅋㅌㅍㅎ")

MEDIALS = list("ㅏㅐㅑㅒㅓㅔㅕㅖㅗㅘㅙㅚㅛㅜㅝㅞㅟㅠㅡㅢㅣ")

FINALS = ["", *"ㄱㄲㄳㄴㄵㄶㄷㄹㄺㄻㄼㄽㄾㄿㅀㅁㅂㅄㅅㅆㅇㅈㅊㅋㅌㅍㅎ"]

_SYLLABLE_START = 0xAC00
_SYLLABLE_END = 0xD7A3


class Jamo(NamedTuple):
    """Initial, medial and final jamo of one syllable."""

    initial: str
    medial: str
    final: str


def is_hangul(char: str) -> bool:
    """True for a single precomposed Hangul syllable."""
    return len(char) == 1 and _SYLLABLE_START <= ord(char) <= _SYLLABLE_END


def is_jamo(char: str) -> bool:
    """True for a single compatibility jamo (ㄱ-ㅎ, ㅏ-ㅣ)."""
    return len(char) == 1 and 0x3131 <= ord(char) <= 0x3163


def decompose(char: str) -> Jamo | None:
    """Split a syllable into its jamo, or ``None`` for other characters."""
    if not is_hangul(char):
        return None
    code = ord(char) - _SYLLABLE_START
    return Jamo(INITIALS[code // 588], MEDIALS[(code % 588) // 28], FINALS[code % 28])


def compose(initial: str, medial: str, final: str = "") -> str | None:
    """Build a syllable from jamo, or ``None`` if any part is invalid."""
    if initial not in INITIALS or medial not in MEDIALS or final not in FINALS:
        return None
    code = (
        _SYLLABLE_START
        + INITIALS.index(initial) * 588
        + MEDIALS.index(medial) * 28
        + FINALS.index(final)
    )
    return chr(code)


def decompose_string(text: str) -> str:
    """Replace every syllable in ``text`` with its jamo sequence."""
    parts: list[str] = []
    for char in text:
        jamo = decompose(char)
        parts.append("".join(jamo) if jamo else char)
    return "".join(parts)


def jamo_similarity(a: str, b: str) -> float:
    """Score two syllables by shared jamo.

    Matching initial and medial each add 0.4, a matching final adds 0.2.
    Non-syllables score 0.
    """
    jamo_a = decompose(a)
    jamo_b = decompose(b)
    if jamo_a is None or jamo_b is None:
        return 0.0

    score = 0.0
    if jamo_a.initial == jamo_b.initial:
        score += 0.4
    if jamo_a.medial == jamo_b.medial:
        score += 0.4
    if jamo_a.final == jamo_b.final:
        score += 0.2
    return score
