"""Lookup tables for local OCR text correction.

The tables target the label vocabulary of Korean business-registration
certificates. Confusion groups are symmetric: every member of a group is
a candidate substitution for every other member.
"""

_CONFUSION_GROUPS: list[tuple[str, ...]] = [
    ("등", "둥", "들"),
    ("록", "륵", "녹", "롤", "룩"),
    ("번", "빈", "변"),
    ("호", "오", "효"),
    ("법", "범", "벌"),
    ("인", "안", "언"),
    ("명", "멍", "면"),
    ("대", "데", "내"),
    ("표", "포", "퓨"),
    ("자", "차"),
    ("소", "조", "수"),
    ("재", "제", "채"),
    ("체", "채", "제"),
    ("지", "치"),
    ("개", "게", "캐"),
    ("업", "엽", "엄"),
    ("연", "년"),
    ("월", "윌", "웡"),
    ("사", "샤"),
    ("장", "쟝", "징"),
    ("본", "븐", "봔"),
    ("점", "정"),
    ("단", "딘", "담"),
    ("성", "셩"),
    ("상", "샹"),
    ("주", "쥬"),
]


def _build_confusion_map(groups: list[tuple[str, ...]]) -> dict[str, list[str]]:
    confusion: dict[str, list[str]] = {}
    for group in groups:
        for char in group:
            alternatives = confusion.setdefault(char, [])
            for other in group:
                if other != char and other not in alternatives:
                    alternatives.append(other)
    return confusion


CHAR_CONFUSION: dict[str, list[str]] = _build_confusion_map(_CONFUSION_GROUPS)

# Latin tokens the recognizer emits in place of garbled Hangul.
HANGUL_ENGLISH_CONFUSION: dict[str, str] = {
    "HOA": "충청남도",
    "HQA": "충청남도",
    "AST": "서북구",
    "AOE": "사업장",
}

# Whole-word misspellings, applied longest first.
WORD_CORRECTIONS: dict[str, str] = {
    "사업자등륵번호": "사업자등록번호",
    "법인둥록번호": "법인등록번호",
    "법인들록번호": "법인등록번호",
    "번인등록번호": "법인등록번호",
    "사업장소제지": "사업장소재지",
    "본점소제지": "본점소재지",
    "본정소재지": "본점소재지",
    "개엽연월일": "개업연월일",
    "개업년월일": "개업연월일",
    "서울특벌시": "서울특별시",
    "등륵번호": "등록번호",
    "등록번오": "등록번호",
    "등롤번호": "등록번호",
    "충청남두": "충청남도",
    "내표자": "대표자",
    "대표짜": "대표자",
    "법인멍": "법인명",
    "단체멍": "단체명",
    "경기두": "경기도",
}

# Relative corpus frequency of adjacent syllable pairs. Entries below the
# low-frequency threshold mark pairs that are almost always OCR errors.
BIGRAM_FREQ: dict[str, float] = {
    "등록": 0.95,
    "둥록": 0.02,
    "등륵": 0.02,
    "들록": 0.03,
    "록번": 0.9,
    "번호": 0.95,
    "번오": 0.02,
    "빈호": 0.02,
    "법인": 0.95,
    "범인": 0.05,
    "인명": 0.6,
    "대표": 0.9,
    "데표": 0.01,
    "내표": 0.02,
    "표자": 0.85,
    "개업": 0.9,
    "개엽": 0.02,
    "게업": 0.02,
    "업연": 0.7,
    "연월": 0.85,
    "연윌": 0.02,
    "월일": 0.85,
    "소재": 0.9,
    "소제": 0.05,
    "재지": 0.9,
    "사업": 0.95,
    "업장": 0.85,
    "업쟝": 0.02,
    "본점": 0.9,
    "본정": 0.03,
    "단체": 0.8,
    "체명": 0.7,
}

# Relative corpus frequency of syllable triples.
TRIGRAM_FREQ: dict[str, float] = {
    "등록번": 0.9,
    "록번호": 0.9,
    "인등록": 0.8,
    "대표자": 0.9,
    "대표차": 0.02,
    "법인명": 0.8,
    "단체명": 0.7,
    "소재지": 0.9,
    "소재치": 0.02,
    "사업장": 0.9,
    "장소재": 0.8,
    "점소재": 0.8,
    "본점소": 0.8,
    "개업연": 0.8,
    "업연월": 0.8,
    "연월일": 0.9,
    "연윌일": 0.02,
}

# Canonical labels normalized by the keyword pass, longest first.
FIELD_KEYWORDS: list[str] = sorted(
    [
        "사업장소재지",
        "법인등록번호",
        "본점소재지",
        "개업연월일",
        "등록번호",
        "소재지",
        "법인명",
        "단체명",
        "대표자",
    ],
    key=len,
    reverse=True,
)

# Labels OCR tends to split across whitespace or line breaks:
# (leading syllable, remainder).
FRAGMENTED_LABELS: list[tuple[str, str]] = [
    ("대", "표자"),
    ("법", "인명"),
    ("등", "록번호"),
    ("소", "재지"),
    ("개", "업연월일"),
    ("사", "업장"),
    ("본", "점"),
]
