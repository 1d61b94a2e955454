"""Fuzzy field extraction for business-registration certificates.

Parsing runs in two passes over the preprocessed lines. The first pass
accepts key matches within edit distance 1, the second within 2, and a
field filled by the first pass is never overwritten. Each ``parse``
call owns a fresh edit-distance memo and region set.
"""

import re
from dataclasses import asdict, dataclass, field

from src.ocr.document_type import DocumentType
from src.utils.config import ExtractionConfig
from src.utils.fuzzy import EditDistanceCache
from src.utils.logger import get_logger

from .gazetteer import (
    ALL_KEY_SYNONYMS,
    CANONICAL_LABELS,
    FIELD_KEYS,
    LATIN_HALLUCINATIONS,
    REGIONS,
)

logger = get_logger(__name__)

_NON_KEY_CHARS = re.compile(r"[^가-힣a-zA-Z0-9]")
_HANGUL = re.compile(r"[가-힣]")
_DIGIT = re.compile(r"\d")
_LINE_BREAK = re.compile(r"\r\n|\n|\r")
_DATE_SUFFIX = re.compile(r"(\d{1,2}일)([가-힣])")
_SPLIT_NUMBER_LABEL = re.compile(r"등록번[ \t]+호[ \t]*:")
_KEY_VALUE = re.compile(
    r"(?:([가-힣]{1,4})[ \t]+)?([가-힣]{2,8})(?:\([가-힣]{2,8}\))?[ \t]*:"
)

_KEY_PATTERNS = {
    "registration_number": re.compile(r"등[록녹][번빈]호|홍록번호"),
    "corporate_name": re.compile(r"법인명|단체명|상호"),
    "representative": re.compile(r"대표자|성명"),
    "establishment_date": re.compile(r"개[업엽][연년][월웕]일|개[업엽]일"),
    "address": re.compile(r"소[재제]지|사업[장쟝]|주소"),
}
_HEAD_OFFICE = re.compile(r"[본분][점정]")
_CORPORATE_NUMBER_LABEL = re.compile(r"[법번범]인[등들둥][록녹륙][번빈][호오]")

_REGISTRATION_NUMBER = re.compile(r"(?<!\d)\d{3}[-\s]?\d{2}[-\s]?\d{5}(?!\d)")
_STRICT_REGISTRATION_NUMBER = re.compile(r"(?<!\d)\d{3}-\d{2}-\d{5}(?!\d)")
_KOREAN_DATE = re.compile(r"\d{4}\s?년\s?\d{2}\s?월\s?\d{2}\s?일")
_CORPORATE_NUMBER_PATTERNS = (
    re.compile(r":\s*(\d{6})[-\s]?(\d{7})"),
    re.compile(r"(\d{6})[-\s]?(\d{7})"),
    re.compile(r"(\d{6})\D?(\d{7})"),
    re.compile(r"(\d{13})"),
)

_CORPORATE_NAME_LABELS = re.compile(r"\(단체명\)|법인명|단체명|상호|:")
_CORPORATE_NAME_ANNOTATIONS = re.compile(r"\(법인명\)|\(단체명\)")
_REPRESENTATIVE_LABELS = re.compile(r"대표자|내표자|성명")
_ADDRESS_LABELS = re.compile(r"본점소재지|사업장소재지|소재지|사업장|본점|주소|:")
_FALLBACK_ADDRESS_LABELS = re.compile(r"본점소재지|사업장소재지|소재지|:")
_SYMBOL_NOISE = re.compile(r"[^가-힣a-zA-Z0-9\s]")
_WIDE_GAP = re.compile(r"\s{2,}")

_HEAD_OFFICE_PREFIX = "본점소재"


@dataclass
class FieldRecord:
    """Fields extracted from a business-registration certificate.

    Every field defaults to an empty string and is filled at most once.
    """

    registration_number: str = ""
    corporate_name: str = ""
    representative: str = ""
    establishment_date: str = ""
    corporate_registration_number: str = ""
    business_address: str = ""
    head_address: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    def populated_fields(self) -> list[str]:
        """Names of the fields holding a value."""
        return [name for name, value in asdict(self).items() if value]


@dataclass
class IdCardRecord:
    name: str = ""
    rrn: str = ""
    address: str = ""
    issue_date: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    def populated_fields(self) -> list[str]:
        return [name for name, value in asdict(self).items() if value]


@dataclass
class DriverLicenseRecord:
    name: str = ""
    rrn: str = ""
    license_number: str = ""
    license_type: str = ""
    address: str = ""
    issue_date: str = ""
    code: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    def populated_fields(self) -> list[str]:
        return [name for name, value in asdict(self).items() if value]


@dataclass
class _ParseContext:
    """State owned by a single ``parse`` call."""

    cache: EditDistanceCache = field(default_factory=EditDistanceCache)
    regions: frozenset[str] = field(default_factory=lambda: frozenset(REGIONS))


@dataclass
class _LineParts:
    """One normalized line split into its key and value segments."""

    text: str
    clean_key: str
    value: str
    first_value: str

    @classmethod
    def from_line(cls, line: str) -> "_LineParts":
        key, colon, rest = line.partition(":")
        if not colon:
            return cls(line, _NON_KEY_CHARS.sub("", line), "", "")
        value = rest.strip()
        first_value = _WIDE_GAP.split(value)[0].strip() if value else ""
        return cls(line, _NON_KEY_CHARS.sub("", key), value, first_value)


def _key_bound(synonym: str, threshold: int, chars_per_edit: int) -> int:
    """Edit budget for a synonym, shrunk so short labels match exactly.

    Each allowed edit needs ``chars_per_edit`` characters beyond the first.
    """
    return min(threshold, (len(synonym) - 1) // chars_per_edit)


def _region_bound(word: str, ceiling: int) -> int:
    return min(ceiling, (len(word) - 2) // 2)


class BusinessRegistrationExtractor:
    """Extract a :class:`FieldRecord` from corrected certificate text.

    Args:
        config: Edit-distance budgets for the two passes and region
            matching.
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.config = config or ExtractionConfig()

    def parse(self, text: str) -> FieldRecord:
        """Parse certificate text into a field record.

        Args:
            text: Full document text, one visual line per line.

        Returns:
            A complete record. Fields that could not be found are empty.
        """
        ctx = _ParseContext()
        record = FieldRecord()

        prepared = self.preprocess_text(text, ctx)
        lines = [
            normalized
            for raw in _LINE_BREAK.split(prepared)
            if (normalized := self.normalize_line(raw, ctx))
        ]

        self._scan_corporate_number(lines, record)

        for threshold in (self.config.strict_distance, self.config.permissive_distance):
            for line in lines:
                self._match_line(_LineParts.from_line(line), record, ctx, threshold)

        if not record.business_address and not record.head_address:
            self._fallback_address(lines, record, ctx)

        logger.info(
            "Extracted %d/%d fields from %d lines (memo size %d)",
            len(record.populated_fields()),
            len(record.to_dict()),
            len(lines),
            len(ctx.cache),
        )
        return record

    def preprocess_text(self, text: str, ctx: _ParseContext | None = None) -> str:
        """Repair label spacing and split fields merged onto one line.

        Args:
            text: Raw or corrected document text.
            ctx: Parse context; a fresh one is used when omitted.

        Returns:
            Text with a line break inserted before every validated label
            that did not already start a line.
        """
        ctx = ctx or _ParseContext()
        result = text.replace("：", ":")
        result = _DATE_SUFFIX.sub(r"\1 \2", result)
        result = _SPLIT_NUMBER_LABEL.sub("등록번호:", result)

        boundaries: set[int] = set()
        for match in _KEY_VALUE.finditer(result):
            boundary = self._label_boundary(match, ctx)
            if boundary is None or boundary == 0:
                continue
            if result[boundary - 1] in "\r\n":
                continue
            boundaries.add(boundary)

        for index in sorted(boundaries, reverse=True):
            result = f"{result[:index]}\n{result[index:]}"
        if boundaries:
            logger.debug("Split %d merged labels onto new lines", len(boundaries))
        return result

    def _label_boundary(self, match: re.Match[str], ctx: _ParseContext) -> int | None:
        prefix, key = match.group(1), match.group(2)
        key_match = self.match_label(key, ctx)
        if prefix:
            joined = self.match_label(prefix + key, ctx)
            if joined and (key_match is None or joined[1] < key_match[1]):
                return match.start(1)
        if key_match:
            return match.start(2)
        return None

    def match_label(
        self, candidate: str, ctx: _ParseContext | None = None, max_distance: int = 2
    ) -> tuple[str, int] | None:
        """Fuzzy-match a label candidate against the canonical field labels.

        Up to two leading garbage characters are tolerated.

        Args:
            candidate: Label text, spaces allowed.
            ctx: Parse context holding the edit-distance memo.
            max_distance: Largest accepted edit distance.

        Returns:
            ``(label, distance)`` for the closest label, or None.
        """
        ctx = ctx or _ParseContext()
        compact = re.sub(r"\s+", "", candidate)
        best: tuple[str, int] | None = None

        for offset in range(3):
            trial = compact[offset:]
            if len(trial) < 2:
                break
            for label in CANONICAL_LABELS:
                if label in trial:
                    return label, 0
                distances = []
                if abs(len(trial) - len(label)) <= max_distance:
                    distances.append(ctx.cache.distance(trial, label, max_distance))
                if len(trial) >= len(label):
                    head = trial[: len(label)]
                    distances.append(ctx.cache.distance(head, label, max_distance))
                for dist in distances:
                    if dist <= max_distance and (best is None or dist < best[1]):
                        best = (label, dist)
        return best

    def normalize_line(self, line: str, ctx: _ParseContext | None = None) -> str:
        """Fix symbol noise and snap near-miss region names to the gazetteer."""
        ctx = ctx or _ParseContext()
        clean = re.sub(r"\([Ff]\)", "(주)", line)
        clean = re.sub(r"[\[\]]", "", clean).strip()
        if not clean:
            return ""
        return " ".join(self._correct_region(word, ctx) for word in clean.split())

    def _correct_region(self, word: str, ctx: _ParseContext) -> str:
        if word in ctx.regions:
            return word
        if word in LATIN_HALLUCINATIONS:
            return LATIN_HALLUCINATIONS[word]
        if not 2 <= len(word) <= 6 or not _HANGUL.search(word) or _DIGIT.search(word):
            return word

        bound = _region_bound(word, self.config.region_max_distance)
        if bound <= 0:
            return word
        match = ctx.cache.closest(word, REGIONS, bound)
        if match:
            logger.debug("Region %r corrected to %r", word, match)
            return match
        return word

    def truncate_at_next_key(self, value: str, ctx: _ParseContext | None = None) -> str:
        """Cut a value where the next field label begins.

        An exact synonym starting past index 1 cuts the value there.
        Otherwise every word after the first is fuzzily compared with the
        synonyms and the value ends before the first word that matches.
        """
        if not value:
            return value
        ctx = ctx or _ParseContext()

        cuts = [index for s in ALL_KEY_SYNONYMS if (index := value.find(s)) > 1]
        if cuts:
            return value[: min(cuts)].strip()

        words = value.split()
        for i, word in enumerate(words[1:], start=1):
            if len(word) < 2:
                continue
            for synonym in ALL_KEY_SYNONYMS:
                bound = _key_bound(
                    synonym, self.config.strict_distance, self.config.key_chars_per_edit
                )
                if ctx.cache.distance(word, synonym, bound) <= bound:
                    return " ".join(words[:i]).strip()
        return value

    def _key_matches(
        self,
        field_name: str,
        clean_key: str,
        literal: set[str],
        ctx: _ParseContext,
        threshold: int,
    ) -> bool:
        if field_name in literal:
            return True
        # A key that literally names another field is never fuzzily reused.
        if literal:
            return False
        for synonym in FIELD_KEYS[field_name]:
            bound = _key_bound(synonym, threshold, self.config.key_chars_per_edit)
            if bound <= 0 or len(clean_key) < len(synonym) - bound:
                continue
            head = clean_key[: len(synonym)]
            if ctx.cache.distance(head, synonym, bound) <= bound:
                logger.debug(
                    "Fuzzy key %r matched %r (<=%d)", clean_key, synonym, bound
                )
                return True
        return False

    def _match_line(
        self, parts: _LineParts, record: FieldRecord, ctx: _ParseContext, threshold: int
    ) -> None:
        key = parts.clean_key
        literal = _literal_fields(key)

        def matches(field_name: str) -> bool:
            return self._key_matches(field_name, key, literal, ctx, threshold)

        if not record.registration_number and (
            matches("registration_number")
            or _STRICT_REGISTRATION_NUMBER.search(parts.text)
        ):
            if number := _REGISTRATION_NUMBER.search(parts.text):
                record.registration_number = number.group(0)

        if (
            not record.corporate_name
            and not key.startswith(("법인사업", "사업자"))
            and matches("corporate_name")
        ):
            raw = parts.first_value or (
                _CORPORATE_NAME_LABELS.sub("", parts.text).strip()
            )
            raw = _CORPORATE_NAME_ANNOTATIONS.sub("", raw)
            record.corporate_name = self.truncate_at_next_key(raw, ctx).strip()

        if not record.representative and matches("representative"):
            record.representative = self._representative_value(parts, ctx)

        if not record.establishment_date and matches("establishment_date"):
            if date := _KOREAN_DATE.search(parts.text):
                record.establishment_date = date.group(0)
            elif parts.first_value:
                record.establishment_date = self.truncate_at_next_key(
                    parts.first_value, ctx
                )

        if matches("address"):
            self._assign_address(parts, record, ctx)

    def _representative_value(self, parts: _LineParts, ctx: _ParseContext) -> str:
        value = _strip_regions(parts.first_value)
        if not value:
            value = _SYMBOL_NOISE.sub(" ", parts.text)
            value = _REPRESENTATIVE_LABELS.sub("", value).strip()
            value = _strip_regions(value)
        return self.truncate_at_next_key(" ".join(value.split()), ctx)

    def _assign_address(
        self, parts: _LineParts, record: FieldRecord, ctx: _ParseContext
    ) -> None:
        key = parts.clean_key
        is_head_office = bool(_HEAD_OFFICE.search(key)) or (
            ctx.cache.distance(key[: len(_HEAD_OFFICE_PREFIX)], _HEAD_OFFICE_PREFIX, 1)
            <= 1
        )
        is_business_place = "사업장" in key

        value = parts.value
        if not value and _contains_region(parts.text, ctx):
            value = _ADDRESS_LABELS.sub("", parts.text).strip()
        if not value:
            return

        if is_head_office and not record.head_address:
            record.head_address = value
        elif not record.business_address and (not is_head_office or is_business_place):
            record.business_address = value

    def _scan_corporate_number(self, lines: list[str], record: FieldRecord) -> None:
        for line in lines:
            if not _CORPORATE_NUMBER_LABEL.search(re.sub(r"\s+", "", line)):
                continue
            for pattern in _CORPORATE_NUMBER_PATTERNS:
                match = pattern.search(line)
                if not match:
                    continue
                if match.lastindex == 2:
                    record.corporate_registration_number = (
                        f"{match.group(1)}-{match.group(2)}"
                    )
                else:
                    digits = match.group(1)
                    record.corporate_registration_number = f"{digits[:6]}-{digits[6:]}"
                return

    def _fallback_address(
        self, lines: list[str], record: FieldRecord, ctx: _ParseContext
    ) -> None:
        for line in lines:
            if _contains_region(line, ctx):
                record.business_address = _FALLBACK_ADDRESS_LABELS.sub("", line).strip()
                logger.debug("Business address taken from fallback line %r", line)
                return


def _literal_fields(clean_key: str) -> set[str]:
    """Fields whose label appears verbatim, or as a known misspelling, in a key."""
    found = {
        name
        for name, pattern in _KEY_PATTERNS.items()
        if pattern.search(clean_key)
        or any(synonym in clean_key for synonym in FIELD_KEYS[name])
    }
    if _CORPORATE_NUMBER_LABEL.search(clean_key):
        found.add("corporate_registration_number")
    return found


def _contains_region(text: str, ctx: _ParseContext) -> bool:
    return any(region in text for region in ctx.regions)


def _strip_regions(value: str) -> str:
    """Drop an address that bled onto the end of a name."""
    cut = len(value)
    for region in REGIONS:
        index = value.find(region)
        if index <= 0:
            continue
        if value[index - 1].isspace() or len(region) >= 4:
            cut = min(cut, index)
    return value[:cut].strip()


class IdCardParser:
    """Placeholder parser for national ID cards."""

    def parse(self, text: str) -> IdCardRecord:
        return IdCardRecord()


class DriverLicenseParser:
    """Placeholder parser for driver licenses."""

    def parse(self, text: str) -> DriverLicenseRecord:
        return DriverLicenseRecord()


FieldParser = BusinessRegistrationExtractor | IdCardParser | DriverLicenseParser


def get_field_parser(
    document_type: DocumentType, config: ExtractionConfig | None = None
) -> FieldParser:
    """Return the field parser for a declared document type.

    Unknown documents are parsed as business-registration certificates.
    """
    match document_type:
        case DocumentType.BUSINESS_REGISTRATION | DocumentType.UNKNOWN:
            return BusinessRegistrationExtractor(config)
        case DocumentType.ID_CARD:
            return IdCardParser()
        case DocumentType.DRIVER_LICENSE:
            return DriverLicenseParser()
