"""
Recommendation Generator — ordered rule table over the batch outcome.

Each rule inspects a RecommendationContext and returns a message or None.
Rules are evaluated in table order; the first ``limit`` messages are kept.
When no rule fires a single confirmation message is returned.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from contactflow.services.column_detector import ColumnMapping
from contactflow.services.duplicate_tracker import DuplicateGroup
from contactflow.services.quality import QualityMetrics
from contactflow.services.row_validator import ValidationIssue

COMPLETENESS_THRESHOLD = 80.0
ACCURACY_THRESHOLD = 90.0
ALL_CLEAR_MESSAGE = "Data quality looks good! All validation checks passed successfully."
EMPTY_FILE_MESSAGE = "File is empty or could not be processed"


@dataclass(frozen=True)
class RecommendationContext:
    mapping: ColumnMapping
    issues: Tuple[ValidationIssue, ...]
    duplicates: Tuple[DuplicateGroup, ...]
    quality: QualityMetrics

    def field_error_count(self, field_name: str) -> int:
        return sum(1 for issue in self.issues if issue.field == field_name)


Rule = Callable[[RecommendationContext], Optional[str]]


def missing_columns_rule(ctx: RecommendationContext) -> Optional[str]:
    if ctx.mapping.missing_required:
        return (
            f"Missing required columns: {', '.join(ctx.mapping.missing_required)}. "
            "Please ensure your file has these columns."
        )
    return None


def completeness_rule(ctx: RecommendationContext) -> Optional[str]:
    if ctx.quality.completeness < COMPLETENESS_THRESHOLD:
        return "Low data completeness detected. Consider reviewing rows with missing required fields."
    return None


def accuracy_rule(ctx: RecommendationContext) -> Optional[str]:
    if ctx.quality.accuracy < ACCURACY_THRESHOLD:
        return "Data accuracy issues found. Review validation errors and correct invalid entries."
    return None


def phone_errors_rule(ctx: RecommendationContext) -> Optional[str]:
    count = ctx.field_error_count("phone")
    if count > 0:
        return (
            f"{count} phone number validation errors found. "
            "Ensure phone numbers are valid 10-digit Indian mobile numbers."
        )
    return None


def email_errors_rule(ctx: RecommendationContext) -> Optional[str]:
    count = ctx.field_error_count("email")
    if count > 0:
        return f"{count} email validation errors found. Check email format and correct invalid addresses."
    return None


def duplicates_rule(ctx: RecommendationContext) -> Optional[str]:
    if ctx.duplicates:
        return (
            f"{len(ctx.duplicates)} duplicate phone numbers found. "
            "Consider merging or removing duplicate entries."
        )
    return None


DEFAULT_RULES: Tuple[Rule, ...] = (
    missing_columns_rule,
    completeness_rule,
    accuracy_rule,
    phone_errors_rule,
    email_errors_rule,
    duplicates_rule,
)


def generate_recommendations(
    mapping: ColumnMapping,
    issues: Sequence[ValidationIssue],
    duplicates: Sequence[DuplicateGroup],
    quality: QualityMetrics,
    limit: int = 5,
    rules: Sequence[Rule] = DEFAULT_RULES,
) -> List[str]:
    ctx = RecommendationContext(mapping, tuple(issues), tuple(duplicates), quality)
    messages = [message for message in (rule(ctx) for rule in rules) if message]
    if not messages:
        return [ALL_CLEAR_MESSAGE]
    return messages[:limit]
