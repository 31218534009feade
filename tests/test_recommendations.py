"""
Tests for the Recommendation Generator

Rules fire in table order and the output is capped.
"""

from contactflow.services.column_detector import detect_columns
from contactflow.services.duplicate_tracker import DuplicateGroup
from contactflow.services.quality import QualityMetrics
from contactflow.services.recommendations import (
    ALL_CLEAR_MESSAGE,
    generate_recommendations,
)
from contactflow.services.row_validator import Severity, ValidationIssue

FULL_MAPPING = detect_columns(["Name", "Phone", "Email", "Tags"])
PERFECT = QualityMetrics(100.0, 100.0, 100.0)


def _issue(field_name, row=2):
    return ValidationIssue(row, field_name, field_name, "", "bad", Severity.ERROR)


class TestGenerateRecommendations:
    def test_all_clear(self):
        assert generate_recommendations(FULL_MAPPING, [], [], PERFECT) == [ALL_CLEAR_MESSAGE]

    def test_missing_columns_named(self):
        mapping = detect_columns(["Name", "Email", "Tags"])
        recs = generate_recommendations(mapping, [], [], PERFECT)
        assert recs[0].startswith("Missing required columns: phone.")

    def test_optional_columns_not_required(self):
        mapping = detect_columns(["Name", "Phone"])
        assert generate_recommendations(mapping, [], [], PERFECT) == [ALL_CLEAR_MESSAGE]

    def test_both_required_columns_named(self):
        mapping = detect_columns(["Email", "Tags"])
        recs = generate_recommendations(mapping, [], [], PERFECT)
        assert recs[0].startswith("Missing required columns: name, phone.")

    def test_low_completeness(self):
        recs = generate_recommendations(FULL_MAPPING, [], [], QualityMetrics(79.99, 100.0, 100.0))
        assert recs == ["Low data completeness detected. Consider reviewing rows with missing required fields."]

    def test_low_accuracy(self):
        recs = generate_recommendations(FULL_MAPPING, [], [], QualityMetrics(100.0, 89.0, 100.0))
        assert "Data accuracy issues" in recs[0]

    def test_phone_error_count(self):
        recs = generate_recommendations(FULL_MAPPING, [_issue("phone"), _issue("phone", 3)], [], PERFECT)
        assert recs[0].startswith("2 phone number validation errors found.")
        assert "10-digit Indian mobile" in recs[0]

    def test_email_error_count(self):
        recs = generate_recommendations(FULL_MAPPING, [_issue("email")], [], PERFECT)
        assert recs[0].startswith("1 email validation errors found.")

    def test_duplicates(self):
        groups = [DuplicateGroup("9876543210", (2, 3))]
        recs = generate_recommendations(FULL_MAPPING, [], groups, PERFECT)
        assert recs == ["1 duplicate phone numbers found. Consider merging or removing duplicate entries."]

    def test_rule_order_and_cap(self):
        mapping = detect_columns(["Name", "Email"])
        issues = [_issue("phone"), _issue("email")]
        groups = [DuplicateGroup("9876543210", (2, 3))]
        recs = generate_recommendations(mapping, issues, groups, QualityMetrics(10.0, 10.0, 100.0))
        assert len(recs) == 5
        assert recs[0].startswith("Missing required columns")
        assert recs[1].startswith("Low data completeness")
        assert recs[2].startswith("Data accuracy")
        assert "phone number validation" in recs[3]
        assert "email validation" in recs[4]

    def test_custom_limit(self):
        mapping = detect_columns(["Name"])
        recs = generate_recommendations(mapping, [], [], QualityMetrics(0.0, 0.0, 0.0), limit=2)
        assert len(recs) == 2
