"""
Tests for ContactImportPipeline

End-to-end runs over decoded grids:
- reference scenario (success, duplicate, missing name, short phone)
- multi-number cells and duplicate detection across formats
- missing phone column, empty input, streaming input
- report determinism and duplicate removal
"""

import pytest

from contactflow.services.column_detector import ColumnPatternRegistry
from contactflow.services.file_decoder import UnsupportedFormatError
from contactflow.services.import_pipeline import (
    ContactImportPipeline,
    ContactRecord,
    process_upload,
    remove_duplicate_contacts,
)
from contactflow.services.recommendations import ALL_CLEAR_MESSAGE, EMPTY_FILE_MESSAGE
from contactflow.services.row_validator import Severity

SCENARIO_CSV = (
    b"Name,Phone,Email,Tags\n"
    b"Rajesh Kumar,9876543210,rajesh@example.com,personal-loan\n"
    b"Priya Sharma,+91-9876543210,priya@example.com,business-loan\n"
    b",9123456780,,\n"
    b"Amit Patel,123456789,amit@example.com,home-loan\n"
)

HEADERS = ["Name", "Phone", "Email", "Tags"]


@pytest.fixture
def pipeline():
    return ContactImportPipeline(registry=ColumnPatternRegistry())


# ============================================================================
# REFERENCE SCENARIO
# ============================================================================

class TestReferenceScenario:
    @pytest.fixture
    def report(self):
        return process_upload(SCENARIO_CSV, "contacts.csv")

    def test_records(self, report):
        assert report.records == (
            ContactRecord("Rajesh Kumar", "9876543210", "rajesh@example.com", ("personal-loan",)),
        )

    def test_stats(self, report):
        assert report.stats.total == 4
        assert report.stats.success == 1
        assert report.stats.duplicates == 1
        assert report.stats.errors == 2
        assert report.stats.warnings == 0

    def test_duplicate_group(self, report):
        assert len(report.duplicates) == 1
        assert report.duplicates[0].phone == "9876543210"
        assert report.duplicates[0].rows == (2, 3)

    def test_error_rows(self, report):
        assert [(i.row, i.field) for i in report.issues] == [(4, "name"), (5, "phone")]
        assert report.issues[0].message == "Name is required"
        assert report.issues[1].message == "No valid phone numbers found in: 123456789"

    def test_phone_counts(self, report):
        assert report.stats.phone_numbers_processed == 3
        assert report.stats.valid_phone_numbers == 2
        assert report.stats.invalid_phone_numbers == 1

    def test_email_counts(self, report):
        email = report.stats.email
        assert (email.total, email.valid, email.invalid, email.missing) == (3, 3, 0, 0)

    def test_quality(self, report):
        assert report.quality.completeness == 25.0
        assert report.quality.accuracy == 50.0
        assert report.quality.consistency == 100.0

    def test_recommendations(self, report):
        assert len(report.recommendations) == 4
        assert report.recommendations[0].startswith("Low data completeness")
        assert report.recommendations[-1].startswith("1 duplicate phone numbers found")

    def test_file_info(self, report):
        info = report.file_info
        assert info.name == "contacts.csv"
        assert info.size == len(SCENARIO_CSV)
        assert info.type == "csv"
        assert info.row_count == 5
        assert info.column_count == 4

    def test_idempotent(self, report):
        assert process_upload(SCENARIO_CSV, "contacts.csv") == report


# ============================================================================
# ROW BEHAVIOUR
# ============================================================================

class TestRowBehaviour:
    def test_multi_number_cell(self, pipeline):
        report = pipeline.process([HEADERS, ["Family", "9876543210,9876543211", "", ""]])
        assert [r.name for r in report.records] == ["Family (1)", "Family (2)"]
        assert [r.phone for r in report.records] == ["9876543210", "9876543211"]
        assert report.stats.multiple_number_cells == 1

    def test_multi_number_records_differ_only_by_suffix_and_phone(self, pipeline):
        report = pipeline.process([HEADERS, ["Family", "9876543210,9876543211", "f@x.com", "a,b"]])
        first, second = report.records
        assert first.email == second.email == "f@x.com"
        assert first.tags == second.tags == ("a", "b")

    def test_duplicate_across_formats(self, pipeline):
        report = pipeline.process([
            HEADERS,
            ["Rajesh", "9876543210", "", ""],
            ["Other", "+91-9876543210", "", ""],
        ])
        assert len(report.records) == 1
        assert report.records[0].name == "Rajesh"
        assert report.duplicates[0].rows == (2, 3)

    def test_invalid_tokens_dropped_when_one_valid(self, pipeline):
        report = pipeline.process([HEADERS, ["Mixed", "+91-9876543220, 123", "", ""]])
        assert [r.phone for r in report.records] == ["9876543220"]
        assert report.issues == ()
        assert report.stats.invalid_phone_numbers == 1

    def test_short_name_still_imports(self, pipeline):
        report = pipeline.process([HEADERS, ["R", "9876543210", "", ""]])
        assert report.stats.success == 1
        assert report.stats.warnings == 1
        assert report.issues[0].severity == Severity.WARNING

    def test_invalid_email_rejects_row(self, pipeline):
        report = pipeline.process([HEADERS, ["Rajesh", "9876543210", "bad-email", ""]])
        assert report.records == ()
        assert report.issues[0].message == "Invalid email format: bad-email"
        assert report.stats.email.invalid == 1

    def test_blank_email_counted_missing(self, pipeline):
        report = pipeline.process([HEADERS, ["Rajesh", "9876543210"]])
        assert report.records[0].email is None
        assert report.stats.email.missing == 1

    def test_tags_parsed_with_limits(self):
        pipeline = ContactImportPipeline(registry=ColumnPatternRegistry(), max_tags=2)
        report = pipeline.process([HEADERS, ["Rajesh", "9876543210", "", "a, b ,c"]])
        assert report.records[0].tags == ("a", "b")

    def test_missing_phone_column(self, pipeline):
        report = pipeline.process([
            ["Name", "City"],
            ["Rajesh", "9876543210"],
            ["Priya", "Pune"],
        ])
        assert "phone" in report.mapping.missing
        assert [i.message for i in report.issues] == ["Phone number is required"] * 2
        assert report.stats.success == 0


# ============================================================================
# RUN-LEVEL BEHAVIOUR
# ============================================================================

class TestRunLevel:
    def test_all_rows_succeed(self, pipeline):
        report = pipeline.process([
            HEADERS,
            ["Rajesh Kumar", "9876543210", "rajesh@example.com", "x"],
            ["Priya Sharma", "9876543211", "priya@example.com", "y"],
        ])
        assert report.quality.completeness == 100.0
        assert report.quality.accuracy == 100.0
        assert report.quality.consistency == 100.0
        assert report.recommendations == (ALL_CLEAR_MESSAGE,)

    def test_empty_grid(self, pipeline):
        report = pipeline.process([], "empty.csv")
        assert report.stats.total == 0
        assert report.recommendations == (EMPTY_FILE_MESSAGE,)
        assert report.mapping.missing == ["name", "phone", "email", "tags"]

    def test_header_only(self, pipeline):
        report = pipeline.process([HEADERS])
        assert report.stats.total == 0
        assert report.quality.completeness == 0.0

    def test_stream_matches_grid(self, pipeline):
        rows = [
            ["Rajesh", "9876543210", "", ""],
            ["Other", "09876543210", "", ""],
            ["Priya", "9876543211;9876543212", "", ""],
        ]
        from_grid = pipeline.process([HEADERS] + rows, "c.csv")
        from_stream = pipeline.process_stream(HEADERS, iter(rows), "c.csv")
        assert from_stream == from_grid

    def test_unsupported_upload(self):
        with pytest.raises(UnsupportedFormatError):
            process_upload(b"data", "contacts.txt")


class TestRemoveDuplicateContacts:
    def test_drops_duplicated_phones(self, pipeline):
        report = pipeline.process([
            HEADERS,
            ["Rajesh", "9876543210", "", ""],
            ["Other", "9876543210", "", ""],
            ["Priya", "9876543211", "", ""],
        ])
        cleaned = remove_duplicate_contacts(report)
        assert [r.phone for r in cleaned.records] == ["9876543211"]
        assert cleaned.duplicates == ()
        assert cleaned.stats.success == 1
        assert cleaned.stats.duplicates == 0

    def test_no_duplicates_unchanged(self, pipeline):
        report = pipeline.process([HEADERS, ["Rajesh", "9876543210", "", ""]])
        assert remove_duplicate_contacts(report) is report


class TestNameAndPhoneOnly:
    def test_clean_file_is_all_clear(self, pipeline):
        report = pipeline.process([["Name", "Phone"], ["Rajesh", "9876543210"]])
        assert report.mapping.missing == ["email", "tags"]
        assert report.recommendations == (ALL_CLEAR_MESSAGE,)
