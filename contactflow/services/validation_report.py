"""Structured review document built from an ImportReport."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from contactflow.services.import_pipeline import ImportReport
from contactflow.services.quality import overall_status
from contactflow.services.row_validator import Severity, ValidationIssue

CATEGORY_SAMPLE_SIZE = 10
CRITICAL_FIELDS = ("name", "phone")


def issue_to_dict(issue: ValidationIssue) -> Dict[str, Any]:
    return {
        "row": issue.row,
        "field": issue.field,
        "column": issue.column,
        "value": issue.value,
        "error": issue.message,
        "severity": issue.severity.value,
    }


def _category(issues: Sequence[ValidationIssue]) -> Dict[str, Any]:
    return {
        "count": len(issues),
        "errors": [issue_to_dict(i) for i in issues[:CATEGORY_SAMPLE_SIZE]],
    }


def categorize_issues(issues: Sequence[ValidationIssue]) -> Dict[str, Dict[str, Any]]:
    """Group issues into critical / validation / warnings / formatting buckets."""
    critical = [i for i in issues if i.is_error and i.field in CRITICAL_FIELDS]
    validation = [i for i in issues if i.is_error and i.field not in CRITICAL_FIELDS]
    warnings = [i for i in issues if i.severity == Severity.WARNING]
    formatting = [i for i in issues if "format" in i.message.lower() or "invalid" in i.message.lower()]
    return {
        "critical": _category(critical),
        "validation": _category(validation),
        "warnings": _category(warnings),
        "formatting": _category(formatting),
    }


def data_quality_recommendations(report: ImportReport) -> List[str]:
    recommendations = []
    quality = report.quality

    if quality.completeness < 90:
        recommendations.append(
            "Improve data completeness by ensuring all required fields (name, phone) are filled"
        )
    if quality.accuracy < 85:
        recommendations.append("Review and correct validation errors to improve data accuracy")
    if quality.consistency < 80:
        recommendations.append("Standardize data formats, especially phone numbers and email addresses")
    if report.stats.duplicates > 0:
        recommendations.append("Consider implementing duplicate detection and removal processes")

    return recommendations


def next_steps(report: ImportReport) -> List[str]:
    stats = report.stats
    steps = []

    if stats.errors > 0:
        steps.append("Review and fix critical validation errors before importing")
    if stats.duplicates > 0:
        steps.append("Decide on duplicate handling strategy (merge, keep first, or manual review)")
    if stats.warnings > 0:
        steps.append("Review warnings and decide if they need attention")
    if stats.success > 0:
        steps.append(f"Import {stats.success} valid records")
    if not steps:
        steps.append("All validation checks passed - ready to import!")

    return [f"{n}. {step}" for n, step in enumerate(steps, start=1)]


def column_mapping_to_dict(report: ImportReport) -> Dict[str, Any]:
    mapping = report.mapping
    return {
        "detected": mapping.detected,
        "missing": mapping.missing,
        "suggestions": mapping.suggestions,
        "confidence": mapping.confidence,
    }


def build_validation_report(report: ImportReport, generated_at: Optional[datetime] = None) -> Dict[str, Any]:
    stats = report.stats
    info = report.file_info
    generated_at = generated_at or datetime.now(timezone.utc)

    return {
        "summary": {
            "file_info": {
                "name": info.name,
                "size": info.size,
                "type": info.type,
                "row_count": info.row_count,
                "column_count": info.column_count,
            },
            "processing_timestamp": generated_at.isoformat(),
            "overall_status": overall_status(report.quality),
            "data_quality": {
                "completeness": report.quality.completeness,
                "accuracy": report.quality.accuracy,
                "consistency": report.quality.consistency,
            },
        },
        "statistics": {
            "total_records": stats.total,
            "successful_records": stats.success,
            "error_records": stats.errors,
            "warning_records": stats.warnings,
            "duplicate_records": stats.duplicates,
            "phone_number_stats": {
                "total_processed": stats.phone_numbers_processed,
                "valid": stats.valid_phone_numbers,
                "invalid": stats.invalid_phone_numbers,
                "multiple_number_cells": stats.multiple_number_cells,
            },
            "email_stats": {
                "total": stats.email.total,
                "valid": stats.email.valid,
                "invalid": stats.email.invalid,
                "missing": stats.email.missing,
            },
        },
        "errors": categorize_issues(report.issues),
        "duplicates": {
            "summary": {
                "total_duplicate_groups": len(report.duplicates),
                "affected_records": sum(group.count for group in report.duplicates),
            },
            "details": [
                {"phone": g.phone, "rows": list(g.rows), "count": g.count, "action": g.resolution}
                for g in report.duplicates
            ],
        },
        "recommendations": {
            "immediate": list(report.recommendations),
            "data_quality": data_quality_recommendations(report),
            "next_steps": next_steps(report),
        },
        "column_mapping": column_mapping_to_dict(report),
    }
