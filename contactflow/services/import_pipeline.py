"""
ContactImportPipeline — turns a decoded contact grid into an ImportReport.

Stages, in order:
1. Column detection on the header row
2. Per-row validation (name / phone presence, email format)
3. Phone extraction and standardization (one record per valid number)
4. Batch-wide duplicate tracking on the standardized phone
5. Quality metrics
6. Recommendations
7. Report assembly

Rows are consumed in file order and may come from any iterable, so the same
run works on a fully materialized grid (``process``) or a lazy row stream
(``process_stream``). A run has no side effects: identical input yields an
identical report.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, List, Optional, Sequence, Set, Tuple

from contactflow.config import settings
from contactflow.services.column_detector import (
    ColumnDetector,
    ColumnMapping,
    ColumnPatternRegistry,
    default_registry,
)
from contactflow.services.contact_rules import parse_tags, split_phone_cell, standardize_phone_number
from contactflow.services.duplicate_tracker import DuplicateGroup, DuplicateTracker
from contactflow.services.file_decoder import RawGrid, decode_file, file_extension
from contactflow.services.quality import QualityMetrics, calculate_quality_metrics
from contactflow.services.recommendations import EMPTY_FILE_MESSAGE, generate_recommendations
from contactflow.services.row_validator import (
    RowValidator,
    Severity,
    ValidationIssue,
    extract_row_fields,
    has_errors,
)

logger = logging.getLogger(__name__)

FIRST_DATA_ROW = 2


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass(frozen=True)
class ContactRecord:
    name: str
    phone: str
    email: Optional[str] = None
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EmailStats:
    total: int = 0
    valid: int = 0
    invalid: int = 0
    missing: int = 0


@dataclass(frozen=True)
class ProcessingStats:
    total: int = 0
    success: int = 0
    errors: int = 0
    warnings: int = 0
    duplicates: int = 0
    phone_numbers_processed: int = 0
    valid_phone_numbers: int = 0
    invalid_phone_numbers: int = 0
    multiple_number_cells: int = 0
    email: EmailStats = field(default_factory=EmailStats)


@dataclass(frozen=True)
class FileInfo:
    name: str
    size: int
    type: str
    row_count: int
    column_count: int


@dataclass(frozen=True)
class ImportReport:
    records: Tuple[ContactRecord, ...]
    issues: Tuple[ValidationIssue, ...]
    duplicates: Tuple[DuplicateGroup, ...]
    stats: ProcessingStats
    quality: QualityMetrics
    mapping: ColumnMapping
    file_info: FileInfo
    recommendations: Tuple[str, ...]


@dataclass
class _ImportRun:
    """Mutable accumulator for a single pipeline run."""
    tracker: DuplicateTracker = field(default_factory=DuplicateTracker)
    records: List[ContactRecord] = field(default_factory=list)
    issues: List[ValidationIssue] = field(default_factory=list)
    error_rows: Set[int] = field(default_factory=set)
    warning_rows: Set[int] = field(default_factory=set)
    total_rows: int = 0
    phones_processed: int = 0
    valid_phones: int = 0
    invalid_phones: int = 0
    multi_number_cells: int = 0
    email_total: int = 0
    email_valid: int = 0
    email_invalid: int = 0
    email_missing: int = 0

    def add_issues(self, issues: Iterable[ValidationIssue]) -> None:
        for issue in issues:
            self.issues.append(issue)
            if issue.severity == Severity.ERROR:
                self.error_rows.add(issue.row)
            elif issue.severity == Severity.WARNING:
                self.warning_rows.add(issue.row)


# ============================================================================
# PIPELINE
# ============================================================================

class ContactImportPipeline:
    def __init__(
        self,
        registry: Optional[ColumnPatternRegistry] = None,
        max_tags: Optional[int] = None,
        max_tag_length: Optional[int] = None,
        max_recommendations: Optional[int] = None,
    ):
        self.detector = ColumnDetector(registry or default_registry(settings.COLUMN_PATTERNS_FILE))
        self.max_tags = max_tags if max_tags is not None else settings.MAX_TAGS_PER_CONTACT
        self.max_tag_length = max_tag_length if max_tag_length is not None else settings.MAX_TAG_LENGTH
        self.max_recommendations = (
            max_recommendations if max_recommendations is not None else settings.MAX_RECOMMENDATIONS
        )

    # ─────────────────────────────────────────────────────────────────
    # Row handling
    # ─────────────────────────────────────────────────────────────────

    def _process_row(self, row: Sequence[Any], row_number: int, validator: RowValidator, run: _ImportRun) -> None:
        run.total_rows += 1
        fields = extract_row_fields(row, validator.mapping)

        issues = validator.check_required(fields, row_number)
        if has_errors(issues):
            run.add_issues(issues)
            return

        email_issue = validator.check_email(fields, row_number)
        if fields.email:
            run.email_total += 1
            if email_issue:
                run.email_invalid += 1
            else:
                run.email_valid += 1
        else:
            run.email_missing += 1
        if email_issue:
            run.add_issues(issues + [email_issue])
            return

        tokens = split_phone_cell(fields.raw_phone)
        phones = [p for p in (standardize_phone_number(t) for t in tokens) if p]
        run.phones_processed += len(tokens)
        run.valid_phones += len(phones)
        run.invalid_phones += len(tokens) - len(phones)

        if not phones:
            run.add_issues(issues + [validator.no_phone_found(fields, row_number)])
            return

        run.add_issues(issues)
        if len(phones) > 1:
            run.multi_number_cells += 1

        tags = tuple(parse_tags(fields.tags, self.max_tags, self.max_tag_length))
        for position, phone in enumerate(phones, start=1):
            if not run.tracker.register(phone, row_number):
                continue
            name = f"{fields.name} ({position})" if len(phones) > 1 else fields.name
            run.records.append(ContactRecord(
                name=name,
                phone=phone,
                email=fields.email or None,
                tags=tags,
            ))

    # ─────────────────────────────────────────────────────────────────
    # Report assembly
    # ─────────────────────────────────────────────────────────────────

    def _assemble(self, run: _ImportRun, mapping: ColumnMapping, file_info: FileInfo) -> ImportReport:
        duplicates = tuple(run.tracker.groups())
        quality = calculate_quality_metrics(
            [r.phone for r in run.records], len(run.error_rows), run.total_rows
        )
        recommendations = generate_recommendations(
            mapping, run.issues, duplicates, quality, limit=self.max_recommendations
        )
        stats = ProcessingStats(
            total=run.total_rows,
            success=len(run.records),
            errors=len(run.error_rows),
            warnings=len(run.warning_rows),
            duplicates=len(duplicates),
            phone_numbers_processed=run.phones_processed,
            valid_phone_numbers=run.valid_phones,
            invalid_phone_numbers=run.invalid_phones,
            multiple_number_cells=run.multi_number_cells,
            email=EmailStats(
                total=run.email_total,
                valid=run.email_valid,
                invalid=run.email_invalid,
                missing=run.email_missing,
            ),
        )
        return ImportReport(
            records=tuple(run.records),
            issues=tuple(run.issues),
            duplicates=duplicates,
            stats=stats,
            quality=quality,
            mapping=mapping,
            file_info=file_info,
            recommendations=tuple(recommendations),
        )

    def _empty_report(self, filename: str, file_size: int, file_type: Optional[str]) -> ImportReport:
        return ImportReport(
            records=(),
            issues=(),
            duplicates=(),
            stats=ProcessingStats(),
            quality=QualityMetrics(),
            mapping=self.detector.detect([]),
            file_info=FileInfo(filename, file_size, file_type or "unknown", 0, 0),
            recommendations=(EMPTY_FILE_MESSAGE,),
        )

    # ─────────────────────────────────────────────────────────────────
    # Entry points
    # ─────────────────────────────────────────────────────────────────

    def process_stream(
        self,
        headers: Sequence[Any],
        rows: Iterable[Sequence[Any]],
        filename: str = "unknown",
        file_size: int = 0,
        file_type: Optional[str] = None,
    ) -> ImportReport:
        """Run the pipeline over a header row and a (possibly lazy) row iterable."""
        mapping = self.detector.detect(list(headers))
        validator = RowValidator(mapping)
        run = _ImportRun()

        for offset, row in enumerate(rows):
            self._process_row(row, FIRST_DATA_ROW + offset, validator, run)

        file_info = FileInfo(
            name=filename,
            size=file_size,
            type=file_type or file_extension(filename) or "unknown",
            row_count=run.total_rows + 1,
            column_count=len(mapping.headers),
        )
        report = self._assemble(run, mapping, file_info)

        logger.info(
            "Processed %s: %d rows, %d records, %d error rows, %d duplicate groups",
            filename, report.stats.total, report.stats.success,
            report.stats.errors, report.stats.duplicates,
        )
        return report

    def process(
        self,
        grid: RawGrid,
        filename: str = "unknown",
        file_size: int = 0,
        file_type: Optional[str] = None,
    ) -> ImportReport:
        if not grid:
            logger.info("Processed %s: empty file", filename)
            return self._empty_report(filename, file_size, file_type)
        return self.process_stream(grid[0], grid[1:], filename, file_size, file_type)


def process_upload(
    content: bytes,
    filename: str,
    declared_format: Optional[str] = None,
    pipeline: Optional[ContactImportPipeline] = None,
) -> ImportReport:
    """Decode an uploaded file and run the pipeline on it."""
    grid = decode_file(content, filename, declared_format)
    pipeline = pipeline or ContactImportPipeline()
    return pipeline.process(grid, filename, len(content), file_extension(filename) or declared_format)


def remove_duplicate_contacts(report: ImportReport) -> ImportReport:
    """Drop every record whose phone belongs to a duplicate group."""
    if not report.duplicates:
        return report
    duplicate_phones = {group.phone for group in report.duplicates}
    records = tuple(r for r in report.records if r.phone not in duplicate_phones)
    return replace(
        report,
        records=records,
        duplicates=(),
        stats=replace(report.stats, success=len(records), duplicates=0),
    )
