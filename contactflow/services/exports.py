"""Template files and validation exports for the contact import screen."""

import csv
import io
from typing import Iterable, List

import pandas as pd

from contactflow.services.import_pipeline import ImportReport
from contactflow.services.row_validator import ValidationIssue

TEMPLATE_HEADERS = ["Name", "Phone", "Email", "Tags"]

# Valid formats first; the last two rows illustrate a malformed and a mixed cell.
TEMPLATE_ROWS = [
    ["Rajesh Kumar", "9876543210", "rajesh@example.com", "personal-loan,high-priority"],
    ["Priya Sharma", "+91-9876543211", "priya@example.com", "business-loan"],
    ["Amit Patel", "91-9876543212", "amit@example.com", "home-loan,follow-up"],
    ["Sneha Gupta", "09876543213", "sneha@example.com", "personal-loan"],
    ["Vikram Singh", "9876-543-214", "vikram@example.com", "gold-loan,urgent"],
    ["Multiple Numbers Family", "9876543215,9876543216,9876543217", "family@example.com", "family-loan"],
    ["Business Contact", "9876543218;9876543219", "business@example.com", "business-loan,bulk"],
]
TEMPLATE_EXAMPLE_ROWS = [
    ["Invalid Example", "123456789", "invalid@example.com", "test-data"],
    ["Mixed Format", "+91-9876543220, 09876543221", "mixed@example.com", "mixed-format"],
]

VALIDATION_EXPORT_HEADERS = ["Row", "Field", "Value", "Error", "Severity"]


def _write_csv(rows: Iterable[List[str]], quoting: int) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=quoting, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue().rstrip("\n")


def generate_sample_csv() -> str:
    """Sample import file; cells with commas are quoted so the decoder keeps them whole."""
    return _write_csv([TEMPLATE_HEADERS] + TEMPLATE_ROWS + TEMPLATE_EXAMPLE_ROWS, csv.QUOTE_MINIMAL)


def generate_sample_xlsx() -> bytes:
    """Same template as a single-sheet workbook named 'Contacts'."""
    df = pd.DataFrame(TEMPLATE_ROWS, columns=TEMPLATE_HEADERS)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Contacts", index=False)
    return buffer.getvalue()


def export_validation_report(issues: Iterable[ValidationIssue]) -> str:
    """Issues as CSV with every cell double-quoted."""
    rows = [VALIDATION_EXPORT_HEADERS]
    for issue in issues:
        rows.append([str(issue.row), issue.field, issue.value, issue.message, issue.severity.value])
    return _write_csv(rows, csv.QUOTE_ALL)


def generate_validation_summary(report: ImportReport) -> str:
    """Plain-text overview of a report."""
    stats = report.stats
    quality = report.quality
    info = report.file_info
    success_pct = (stats.success / stats.total * 100) if stats.total else 0.0

    lines = [
        f"Validation Summary for {info.name}",
        "================================================",
        "",
        "File Information:",
        f"- File Size: {info.size / 1024:.2f} KB",
        f"- Total Rows: {stats.total}",
        f"- Columns: {info.column_count}",
        "",
        "Processing Results:",
        f"- Successful Records: {stats.success} ({success_pct:.1f}%)",
        f"- Error Records: {stats.errors}",
        f"- Warning Records: {stats.warnings}",
        f"- Duplicate Records: {stats.duplicates}",
        "",
        "Data Quality Metrics:",
        f"- Completeness: {quality.completeness:.1f}%",
        f"- Accuracy: {quality.accuracy:.1f}%",
        f"- Consistency: {quality.consistency:.1f}%",
        "",
        "Phone Number Processing:",
        f"- Total Numbers Processed: {stats.phone_numbers_processed}",
        f"- Valid Numbers: {stats.valid_phone_numbers}",
        f"- Invalid Numbers: {stats.invalid_phone_numbers}",
        f"- Multi-Number Cells: {stats.multiple_number_cells}",
        "",
        "Email Validation:",
        f"- Total Emails: {stats.email.total}",
        f"- Valid Emails: {stats.email.valid}",
        f"- Invalid Emails: {stats.email.invalid}",
        f"- Missing Emails: {stats.email.missing}",
        "",
        "Recommendations:",
    ]
    lines.extend(f"- {rec}" for rec in report.recommendations)
    return "\n".join(lines)
