"""Data quality metrics — completeness / accuracy / consistency percentages (0-100)."""

from dataclasses import dataclass
from typing import Sequence

from contactflow.services.contact_rules import STANDARD_PHONE_LENGTH


@dataclass(frozen=True)
class QualityMetrics:
    completeness: float = 0.0
    accuracy: float = 0.0
    consistency: float = 0.0

    @property
    def average(self) -> float:
        return (self.completeness + self.accuracy + self.consistency) / 3


def calculate_quality_metrics(
    record_phones: Sequence[str],
    error_rows: int,
    total_rows: int,
) -> QualityMetrics:
    """
    Batch quality over all data rows:

    Completeness — successful records / data rows
    Accuracy     — data rows without an error / data rows
    Consistency  — successful records whose phone is exactly 10 digits

    Consistency is 100 whenever there are records, since only standardized
    numbers become records; it stays as a hook for other phone formats.
    """
    if total_rows == 0:
        return QualityMetrics()

    success_count = len(record_phones)

    # ── Completeness ─────────────────────────────────────────────────
    completeness = success_count / total_rows * 100

    # ── Accuracy ─────────────────────────────────────────────────────
    accuracy = (total_rows - error_rows) / total_rows * 100

    # ── Consistency ──────────────────────────────────────────────────
    if success_count > 0:
        consistent = sum(1 for phone in record_phones if len(phone) == STANDARD_PHONE_LENGTH)
        consistency = consistent / success_count * 100
    else:
        consistency = 0.0

    return QualityMetrics(
        completeness=round(min(max(completeness, 0.0), 100.0), 2),
        accuracy=round(min(max(accuracy, 0.0), 100.0), 2),
        consistency=round(consistency, 2),
    )


def overall_status(metrics: QualityMetrics) -> str:
    """Bucket the mean of the three metrics into excellent / good / fair / poor."""
    avg = metrics.average
    if avg >= 95:
        return "excellent"
    if avg >= 85:
        return "good"
    if avg >= 70:
        return "fair"
    return "poor"
