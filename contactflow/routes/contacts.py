import logging

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from contactflow.config import settings
from contactflow.database import get_db
from contactflow.schemas.contacts import (
    ImportReportResponse,
    ImportResponse,
    PhoneCheckResponse,
    UploadResponse,
    ValidateRequest,
)
from contactflow.services.contact_rules import format_phone_for_display, validate_phone_detailed
from contactflow.services.contact_store import SqlAlchemyContactStore, import_contacts
from contactflow.services.exports import (
    export_validation_report,
    generate_sample_csv,
    generate_sample_xlsx,
    generate_validation_summary,
)
from contactflow.services.file_decoder import FileDecodeError, validate_upload
from contactflow.services.import_pipeline import (
    ContactImportPipeline,
    ImportReport,
    process_upload,
    remove_duplicate_contacts,
)
from contactflow.services.validation_report import build_validation_report

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contacts", tags=["contacts"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _read_upload(file: UploadFile) -> bytes:
    """Read an upload after checking its extension and size."""
    content = file.file.read()
    validation = validate_upload(
        file.filename or "",
        len(content),
        settings.allowed_extensions,
        settings.max_upload_bytes,
    )
    if not validation["valid"]:
        raise HTTPException(status_code=400, detail=validation["error"])
    return content


def _report_from_upload(content: bytes, filename: str) -> ImportReport:
    try:
        return process_upload(content, filename)
    except FileDecodeError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _report_from_grid(body: ValidateRequest) -> ImportReport:
    grid = [["" if cell is None else str(cell) for cell in row] for row in body.data]
    report = ContactImportPipeline().process(grid, body.filename or "validation-data")
    if body.options.remove_duplicates:
        report = remove_duplicate_contacts(report)
    return report


@router.post("/upload", response_model=UploadResponse)
def upload_contacts(file: UploadFile = File(...)):
    """Decode and validate a CSV / Excel contact file without saving anything."""
    content = _read_upload(file)
    report = _report_from_upload(content, file.filename)
    return UploadResponse(
        message="File processed successfully",
        filename=file.filename,
        results=ImportReportResponse.from_report(report),
    )


@router.post("/validate", response_model=UploadResponse)
def validate_contacts(body: ValidateRequest):
    """Validate an already-parsed grid (row 0 = headers)."""
    report = _report_from_grid(body)
    return UploadResponse(
        message="Validation completed",
        filename=report.file_info.name,
        results=ImportReportResponse.from_report(report),
    )


@router.post("/import", response_model=ImportResponse)
def import_contact_file(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    """Validate a contact file and store its new contacts."""
    content = _read_upload(file)
    report = _report_from_upload(content, file.filename)

    try:
        outcome = import_contacts(report, SqlAlchemyContactStore(db), source=file.filename)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Contact import failed for %s", file.filename)
        raise HTTPException(status_code=500, detail=f"Import failed: {str(e)}")

    return ImportResponse.from_outcome(file.filename, outcome, report)


@router.get("/template")
def download_template(format: str = Query("csv", pattern="^(csv|xlsx)$")):
    """Sample import file showing the supported phone formats."""
    if format == "xlsx":
        return Response(
            content=generate_sample_xlsx(),
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": 'attachment; filename="contacts_template.xlsx"'},
        )
    return Response(
        content=generate_sample_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="contacts_template.csv"'},
    )


@router.post("/validation-report")
def validation_report(
    body: ValidateRequest,
    format: str = Query("json", pattern="^(json|csv|text)$"),
):
    """Detailed review of a grid: structured JSON, issue CSV, or text summary."""
    report = _report_from_grid(body)

    if format == "csv":
        return Response(
            content=export_validation_report(report.issues),
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="validation_report.csv"'},
        )
    if format == "text":
        return PlainTextResponse(generate_validation_summary(report))

    return {
        "message": "Validation report generated successfully",
        "report": build_validation_report(report),
    }


@router.get("/phone-check", response_model=PhoneCheckResponse)
def phone_check(phone: str = Query(..., min_length=1)):
    """Standardize and validate a single phone number."""
    result = validate_phone_detailed(phone)
    return PhoneCheckResponse(
        phone=phone,
        is_valid=result.is_valid,
        standardized=result.standardized,
        display=format_phone_for_display(result.standardized) if result.standardized else None,
        is_whatsapp_compatible=result.is_whatsapp_compatible,
        error=result.error,
    )
