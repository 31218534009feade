"""
File Decoder — turns an uploaded contact file into a RawGrid.

A RawGrid is a list of rows, each a list of string cells; row 0 holds the
headers. Rows may differ in length. Blank rows are dropped.

Supported inputs:
- csv   — quote-aware line splitter (commas inside double quotes do not split)
- xlsx  — first sheet of a workbook, read through pandas/openpyxl
          (``.xls`` uploads are routed through the same spreadsheet path)
"""

import io
import logging
import os
from typing import Dict, Iterable, Iterator, List, Optional

import pandas as pd

logger = logging.getLogger(__name__)

RawGrid = List[List[str]]

# extension -> decoder format
SUPPORTED_FORMATS: Dict[str, str] = {
    "csv": "csv",
    "xlsx": "xlsx",
    "xls": "xlsx",
}


# ============================================================================
# EXCEPTIONS
# ============================================================================

class FileDecodeError(ValueError):
    """Fatal decoding failure; aborts the run before any row is processed."""


class UnsupportedFormatError(FileDecodeError):
    """Raised for an unrecognised file extension or declared format."""


class SpreadsheetParseError(FileDecodeError):
    """Raised when spreadsheet bytes cannot be read as a workbook."""


# ============================================================================
# FORMAT DETECTION
# ============================================================================

def file_extension(filename: str) -> str:
    """Lower-cased extension without the dot ('' when there is none)."""
    return os.path.splitext(filename or "")[1].lower().lstrip(".")


def detect_format(filename: str, declared_format: Optional[str] = None) -> str:
    """Resolve the decoder format from a declared format or the file name."""
    candidate = (declared_format or file_extension(filename)).lower().lstrip(".")
    if candidate not in SUPPORTED_FORMATS:
        raise UnsupportedFormatError(
            "Unsupported file format. Please upload CSV or XLSX files only."
        )
    return SUPPORTED_FORMATS[candidate]


def validate_upload(filename: str, file_size: int, allowed_extensions: List[str], max_size: int) -> dict:
    """Check extension and size of an upload before it is decoded."""
    ext = file_extension(filename)

    if ext not in allowed_extensions:
        return {
            "valid": False,
            "error": f"File type '.{ext}' not allowed. Only CSV and Excel files accepted.",
            "file_type": None,
            "file_size": file_size,
        }

    if file_size > max_size:
        return {
            "valid": False,
            "error": f"File too large ({file_size / 1024 / 1024:.1f}MB). Maximum {max_size // (1024 * 1024)}MB.",
            "file_type": None,
            "file_size": file_size,
        }

    return {"valid": True, "error": None, "file_type": SUPPORTED_FORMATS.get(ext, ext), "file_size": file_size}


# ============================================================================
# CSV
# ============================================================================

def split_csv_line(line: str) -> List[str]:
    """
    Split one CSV line into trimmed cells.

    Each double quote toggles the in-quotes state and is dropped; a comma
    only separates fields outside quotes.
    """
    values: List[str] = []
    current: List[str] = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    values.append("".join(current).strip())
    return values


def iter_csv_rows(lines: Iterable[str]) -> Iterator[List[str]]:
    """Lazily yield split rows, skipping lines that are blank after trimming."""
    for line in lines:
        if line.strip():
            yield split_csv_line(line)


def parse_csv(text: str) -> RawGrid:
    return list(iter_csv_rows(text.split("\n")))


def decode_text(content: bytes) -> str:
    """Decode CSV bytes, tolerating a UTF-8 BOM and stray invalid bytes."""
    return content.decode("utf-8-sig", errors="replace")


# ============================================================================
# SPREADSHEET
# ============================================================================

def _cell_to_str(value) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    if isinstance(value, float) and value.is_integer():
        # Excel stores bare phone numbers as floats
        return str(int(value))
    return str(value)


def parse_xlsx(content: bytes) -> RawGrid:
    """Convert the first sheet to an array of string rows, dropping blank rows."""
    try:
        df = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, dtype=object)
    except Exception as e:
        raise SpreadsheetParseError(f"Failed to parse XLSX file: {e}") from e

    grid: RawGrid = []
    for row in df.itertuples(index=False, name=None):
        cells = [_cell_to_str(v) for v in row]
        if any(cell.strip() for cell in cells):
            grid.append(cells)
    return grid


# ============================================================================
# ENTRY POINT
# ============================================================================

def decode_file(content: bytes, filename: str, declared_format: Optional[str] = None) -> RawGrid:
    """Decode an upload into a RawGrid; raises FileDecodeError subclasses on fatal input."""
    try:
        file_format = detect_format(filename, declared_format)
    except UnsupportedFormatError:
        logger.warning("Rejected upload %r: unsupported format", filename)
        raise

    if file_format == "csv":
        return parse_csv(decode_text(content))

    try:
        return parse_xlsx(content)
    except SpreadsheetParseError:
        logger.warning("Rejected upload %r: unreadable spreadsheet", filename)
        raise
