"""
Row Validator — per-row presence and format checks.

Checks run in order:
1. name present (error); shorter than 2 characters (warning)
2. phone cell present (error)
3. email, when non-empty, matches local@domain.tld (error)

An error stops the row from producing records; a warning does not.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence

from contactflow.services.column_detector import ColumnMapping
from contactflow.services.contact_rules import validate_email_format

MIN_NAME_LENGTH = 2


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ValidationIssue:
    """One classified problem found on a data row (row 1 is the header)."""
    row: int
    field: str
    column: str
    value: str
    message: str
    severity: Severity

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR


@dataclass(frozen=True)
class RowFields:
    """Trimmed raw cells for the four contact fields of one row."""
    name: str
    raw_phone: str
    email: str
    tags: str


def _cell(row: Sequence[Any], index: Optional[int]) -> str:
    if index is None or index >= len(row) or row[index] is None:
        return ""
    return str(row[index]).strip()


def extract_row_fields(row: Sequence[Any], mapping: ColumnMapping) -> RowFields:
    """Pull mapped cells out of a row; unmapped or short rows read as empty."""
    return RowFields(
        name=_cell(row, mapping.index_of("name")),
        raw_phone=_cell(row, mapping.index_of("phone")),
        email=_cell(row, mapping.index_of("email")),
        tags=_cell(row, mapping.index_of("tags")),
    )


class RowValidator:
    def __init__(self, mapping: ColumnMapping):
        self.mapping = mapping

    def _issue(self, row_number: int, field_name: str, value: str, message: str,
               severity: Severity = Severity.ERROR) -> ValidationIssue:
        return ValidationIssue(
            row=row_number,
            field=field_name,
            column=self.mapping.header_of(field_name),
            value=value,
            message=message,
            severity=severity,
        )

    def check_required(self, fields: RowFields, row_number: int) -> List[ValidationIssue]:
        """Name and phone presence checks."""
        issues: List[ValidationIssue] = []

        if not fields.name:
            issues.append(self._issue(row_number, "name", fields.name, "Name is required"))
        elif len(fields.name) < MIN_NAME_LENGTH:
            issues.append(self._issue(
                row_number, "name", fields.name,
                f"Name too short (minimum {MIN_NAME_LENGTH} characters)",
                Severity.WARNING,
            ))

        if not fields.raw_phone:
            issues.append(self._issue(row_number, "phone", fields.raw_phone, "Phone number is required"))

        return issues

    def check_email(self, fields: RowFields, row_number: int) -> Optional[ValidationIssue]:
        if fields.email and not validate_email_format(fields.email):
            return self._issue(row_number, "email", fields.email, f"Invalid email format: {fields.email}")
        return None

    def no_phone_found(self, fields: RowFields, row_number: int) -> ValidationIssue:
        return self._issue(
            row_number, "phone", fields.raw_phone,
            f"No valid phone numbers found in: {fields.raw_phone}",
        )

    def validate(self, fields: RowFields, row_number: int) -> List[ValidationIssue]:
        """All row checks in order; email is skipped once a required check failed."""
        issues = self.check_required(fields, row_number)
        if any(issue.is_error for issue in issues):
            return issues
        email_issue = self.check_email(fields, row_number)
        if email_issue:
            issues.append(email_issue)
        return issues


def has_errors(issues: List[ValidationIssue]) -> bool:
    return any(issue.is_error for issue in issues)
