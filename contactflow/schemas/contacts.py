from typing import Any, List, Optional

from pydantic import BaseModel, Field

from contactflow.services.contact_store import ImportOutcome
from contactflow.services.import_pipeline import ImportReport


class ContactRecordResponse(BaseModel):
    name: str
    phone: str
    email: Optional[str] = None
    tags: List[str] = []

    model_config = {"from_attributes": True}


class ValidationIssueResponse(BaseModel):
    row: int
    field: str
    column: str
    value: str
    error: str
    severity: str


class DuplicateGroupResponse(BaseModel):
    phone: str
    rows: List[int]
    count: int
    action: str


class EmailStatsResponse(BaseModel):
    total: int
    valid: int
    invalid: int
    missing: int


class ProcessingStatsResponse(BaseModel):
    total: int
    success: int
    errors: int
    warnings: int
    duplicates: int
    phone_numbers_processed: int
    valid_phone_numbers: int
    invalid_phone_numbers: int
    multiple_number_cells: int
    email_validation_results: EmailStatsResponse


class FileInfoResponse(BaseModel):
    name: str
    size: int
    type: str
    row_count: int
    column_count: int


class ColumnMappingResponse(BaseModel):
    detected: dict[str, str]
    missing: List[str]
    suggestions: dict[str, List[str]]
    confidence: dict[str, int]


class DataQualityResponse(BaseModel):
    completeness: float
    accuracy: float
    consistency: float


class ValidationReportSection(BaseModel):
    file_info: FileInfoResponse
    column_mapping: ColumnMappingResponse
    data_quality: DataQualityResponse
    recommendations: List[str]


class ImportReportResponse(BaseModel):
    success: List[ContactRecordResponse]
    errors: List[ValidationIssueResponse]
    duplicates: List[DuplicateGroupResponse]
    stats: ProcessingStatsResponse
    validation_report: ValidationReportSection

    @classmethod
    def from_report(cls, report: ImportReport) -> "ImportReportResponse":
        stats = report.stats
        mapping = report.mapping
        info = report.file_info
        return cls(
            success=[
                ContactRecordResponse(name=r.name, phone=r.phone, email=r.email, tags=list(r.tags))
                for r in report.records
            ],
            errors=[
                ValidationIssueResponse(
                    row=i.row, field=i.field, column=i.column, value=i.value,
                    error=i.message, severity=i.severity.value,
                )
                for i in report.issues
            ],
            duplicates=[
                DuplicateGroupResponse(phone=g.phone, rows=list(g.rows), count=g.count, action=g.resolution)
                for g in report.duplicates
            ],
            stats=ProcessingStatsResponse(
                total=stats.total,
                success=stats.success,
                errors=stats.errors,
                warnings=stats.warnings,
                duplicates=stats.duplicates,
                phone_numbers_processed=stats.phone_numbers_processed,
                valid_phone_numbers=stats.valid_phone_numbers,
                invalid_phone_numbers=stats.invalid_phone_numbers,
                multiple_number_cells=stats.multiple_number_cells,
                email_validation_results=EmailStatsResponse(
                    total=stats.email.total,
                    valid=stats.email.valid,
                    invalid=stats.email.invalid,
                    missing=stats.email.missing,
                ),
            ),
            validation_report=ValidationReportSection(
                file_info=FileInfoResponse(
                    name=info.name, size=info.size, type=info.type,
                    row_count=info.row_count, column_count=info.column_count,
                ),
                column_mapping=ColumnMappingResponse(
                    detected=mapping.detected,
                    missing=mapping.missing,
                    suggestions=mapping.suggestions,
                    confidence=mapping.confidence,
                ),
                data_quality=DataQualityResponse(
                    completeness=report.quality.completeness,
                    accuracy=report.quality.accuracy,
                    consistency=report.quality.consistency,
                ),
                recommendations=list(report.recommendations),
            ),
        )


class UploadResponse(BaseModel):
    message: str
    filename: str
    results: ImportReportResponse


class ValidateOptions(BaseModel):
    remove_duplicates: bool = False


class ValidateRequest(BaseModel):
    data: List[List[Any]]
    filename: Optional[str] = None
    options: ValidateOptions = Field(default_factory=ValidateOptions)


class ImportResponse(BaseModel):
    message: str
    filename: str
    imported: int
    existing: int
    conflicts: int
    conflict_details: List[str]
    stats: ProcessingStatsResponse

    @classmethod
    def from_outcome(cls, filename: str, outcome: ImportOutcome, report: ImportReport) -> "ImportResponse":
        return cls(
            message=f"Successfully imported {outcome.created} contacts",
            filename=filename,
            imported=outcome.created,
            existing=outcome.existing,
            conflicts=outcome.conflicts,
            conflict_details=[reason for _, reason in outcome.reconciliation.conflicts],
            stats=ImportReportResponse.from_report(report).stats,
        )


class PhoneCheckResponse(BaseModel):
    phone: str
    is_valid: bool
    standardized: Optional[str] = None
    display: Optional[str] = None
    is_whatsapp_compatible: bool
    error: Optional[str] = None
