"""Configurable validation rules engine for extracted certificate fields.

Checks required fields, business and corporate registration number
checksums and Korean-format dates, and turns each outcome into a
confidence adjustment. Validation annotates a record, it never rejects
one.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from src.utils.logger import get_logger

logger = get_logger(__name__)

BUSINESS_NUMBER_WEIGHTS = (1, 3, 7, 1, 3, 7, 1, 3, 5)

_KOREAN_DATE = re.compile(r"^(\d{4})\s?년\s?(\d{1,2})\s?월\s?(\d{1,2})\s?일$")


@dataclass
class ValidationResult:
    """Result of a single field validation check."""

    field_name: str
    is_valid: bool
    message: str
    rule_name: str
    confidence_adjustment: float = 0.0


@dataclass
class ValidationReport:
    """Aggregated validation report for a document."""

    all_valid: bool
    results: list[ValidationResult]
    warnings: list[str] = field(default_factory=list)
    field_confidences: dict[str, float] = field(default_factory=dict)

    def failures(self) -> list[ValidationResult]:
        return [r for r in self.results if not r.is_valid]


def _digits(value: Any) -> str:
    return re.sub(r"\D", "", str(value))


def is_valid_business_number(value: str) -> bool:
    """Verify the check digit of a 10-digit business registration number."""
    digits = _digits(value)
    if len(digits) != 10:
        return False
    nums = [int(d) for d in digits]
    total = sum(n * w for n, w in zip(nums, BUSINESS_NUMBER_WEIGHTS))
    total += nums[8] * 5 // 10
    return (10 - total % 10) % 10 == nums[9]


def is_valid_corporate_number(value: str) -> bool:
    """Verify the check digit of a 13-digit corporate registration number."""
    digits = _digits(value)
    if len(digits) != 13:
        return False
    nums = [int(d) for d in digits]
    total = sum(n * (1 if i % 2 == 0 else 2) for i, n in enumerate(nums[:12]))
    return (10 - total % 10) % 10 == nums[12]


def parse_korean_date(value: str) -> date | None:
    """Parse ``YYYY년 MM월 DD일``, returning None if it is not a real date."""
    match = _KOREAN_DATE.match(str(value).strip())
    if not match:
        return None
    year, month, day = (int(g) for g in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


class RulesEngine:
    """Configurable validation rules engine.

    Applies field-level and cross-field validation rules loaded from
    a YAML configuration file, with confidence score adjustments.

    Args:
        rules_path: Path to the validation rules YAML file.
    """

    def __init__(
        self, rules_path: Path = Path("configs/validation_rules.yaml")
    ) -> None:
        self.rules = self._load_rules(Path(rules_path))
        self._validators: dict[str, Any] = {
            "required": self._validate_required,
            "regex": self._validate_regex,
            "business_number": self._validate_business_number,
            "corporate_number": self._validate_corporate_number,
            "korean_date": self._validate_korean_date,
        }

    def _load_rules(self, path: Path) -> dict:
        if path.exists():
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
                if data:
                    logger.info("Loaded validation rules from %s", path)
                    return data
        logger.debug("Using default validation rules")
        return self._default_rules()

    def _default_rules(self) -> dict:
        return {
            "business_registration": {
                "registration_number": [
                    {"type": "required"},
                    {"type": "business_number"},
                ],
                "corporate_name": [{"type": "required"}],
                "establishment_date": [{"type": "korean_date"}],
                "corporate_registration_number": [{"type": "corporate_number"}],
            },
        }

    def validate(
        self,
        fields: dict[str, Any],
        document_type: str = "business_registration",
        field_confidences: dict[str, float] | None = None,
    ) -> ValidationReport:
        """Validate extracted fields against document-type rules.

        Args:
            fields: Extracted field name-value pairs.
            document_type: Type of document for rule selection.
            field_confidences: Initial confidence scores per field.

        Returns:
            Validation report with results and adjusted confidences.
        """
        results: list[ValidationResult] = []
        warnings: list[str] = []
        adjusted = dict(field_confidences or {})

        doc_rules = self.rules.get(str(document_type), {})

        for field_name, rules in doc_rules.items():
            value = fields.get(field_name)

            for rule in rules:
                rule_type = rule.get("type")
                validator = self._validators.get(rule_type)

                if not validator:
                    warnings.append(f"Unknown rule type: {rule_type}")
                    continue

                result = validator(field_name, value, rule)
                results.append(result)

                if field_name in adjusted:
                    adjusted[field_name] += result.confidence_adjustment
                    adjusted[field_name] = max(0.0, min(1.0, adjusted[field_name]))

        results.extend(self._cross_validate(fields))

        all_valid = all(r.is_valid for r in results)
        logger.info(
            "Validation for %s: %s (%d checks)",
            document_type,
            "PASSED" if all_valid else "FAILED",
            len(results),
        )

        return ValidationReport(
            all_valid=all_valid,
            results=results,
            warnings=warnings,
            field_confidences=adjusted,
        )

    def _validate_required(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        if value is not None and str(value).strip():
            return ValidationResult(
                field_name, True, "Required field present", "required", 0.0
            )
        return ValidationResult(
            field_name,
            False,
            f"Required field missing: {field_name}",
            "required",
            -0.5,
        )

    def _validate_regex(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        if not value:
            return ValidationResult(field_name, True, "No value to validate", "regex")

        pattern = rule.get("pattern", "")
        if re.match(pattern, str(value)):
            return ValidationResult(field_name, True, "Matches pattern", "regex", 0.05)
        return ValidationResult(
            field_name,
            False,
            f"Does not match pattern: {pattern}",
            "regex",
            -0.1,
        )

    def _validate_business_number(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check the business registration number check digit."""
        if not value:
            return ValidationResult(
                field_name, True, "No value to validate", "business_number"
            )
        if is_valid_business_number(value):
            return ValidationResult(
                field_name, True, "Valid check digit", "business_number", 0.1
            )
        return ValidationResult(
            field_name,
            False,
            f"Invalid business number check digit: {value}",
            "business_number",
            -0.3,
        )

    def _validate_corporate_number(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check the corporate registration number check digit."""
        if not value:
            return ValidationResult(
                field_name, True, "No value to validate", "corporate_number"
            )
        if is_valid_corporate_number(value):
            return ValidationResult(
                field_name, True, "Valid check digit", "corporate_number", 0.1
            )
        return ValidationResult(
            field_name,
            False,
            f"Invalid corporate number check digit: {value}",
            "corporate_number",
            -0.3,
        )

    def _validate_korean_date(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        if not value:
            return ValidationResult(
                field_name, True, "No value to validate", "korean_date"
            )
        if parse_korean_date(value):
            return ValidationResult(
                field_name, True, "Valid calendar date", "korean_date", 0.1
            )
        return ValidationResult(
            field_name, False, f"Invalid date: {value}", "korean_date", -0.2
        )

    def _cross_validate(self, fields: dict[str, Any]) -> list[ValidationResult]:
        """Run cross-field validation checks.

        A corporate registration number implies a corporation, which must
        carry a corporate name.
        """
        results: list[ValidationResult] = []

        if fields.get("corporate_registration_number"):
            if fields.get("corporate_name"):
                results.append(
                    ValidationResult(
                        "corporate_name",
                        True,
                        "Corporation has a name",
                        "cross_field",
                        0.05,
                    )
                )
            else:
                results.append(
                    ValidationResult(
                        "corporate_name",
                        False,
                        "Corporate number present without a corporate name",
                        "cross_field",
                        -0.1,
                    )
                )

        return results
