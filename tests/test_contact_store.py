"""
Tests for the contact store collaborator

Reconciliation against stored contacts through both the in-memory and the
SQLAlchemy-backed store.
"""

from unittest.mock import MagicMock

import pytest

from contactflow.models.contact import Contact
from contactflow.services.contact_store import (
    ContactStore,
    SqlAlchemyContactStore,
    StaticContactStore,
    import_contacts,
    reconcile_contacts,
)
from contactflow.services.import_pipeline import ContactImportPipeline, ContactRecord

HEADERS = ["Name", "Phone", "Email", "Tags"]


def _report(*rows, filename="contacts.csv"):
    return ContactImportPipeline().process([HEADERS] + [list(r) for r in rows], filename)


# ============================================================================
# RECONCILIATION
# ============================================================================

class TestReconcileContacts:
    def test_all_new(self):
        records = [ContactRecord("Rajesh", "9876543210")]
        result = reconcile_contacts(records, StaticContactStore())
        assert result.new_contacts == tuple(records)
        assert result.existing_contacts == ()

    def test_existing_phone(self):
        store = StaticContactStore([ContactRecord("Old", "9876543210")])
        result = reconcile_contacts([ContactRecord("Rajesh", "9876543210")], store)
        assert result.new_contacts == ()
        assert result.existing_contacts[0][1] == "static-1"

    def test_email_owned_by_other_phone(self):
        store = StaticContactStore([ContactRecord("Old", "9876543211", "r@example.com")])
        result = reconcile_contacts([ContactRecord("Rajesh", "9876543210", "r@example.com")], store)
        assert result.new_contacts == ()
        record, reason = result.conflicts[0]
        assert record.phone == "9876543210"
        assert "9876543211" in reason

    def test_uses_store_interface_only(self):
        store = MagicMock(spec=ContactStore)
        store.find_existing.return_value = {}
        store.find_emails.return_value = {}
        reconcile_contacts([ContactRecord("Rajesh", "9876543210", "r@example.com")], store)
        store.find_existing.assert_called_once_with(["9876543210"])
        store.find_emails.assert_called_once_with(["r@example.com"])


class TestImportContactsStatic:
    def test_creates_new_records(self):
        store = StaticContactStore()
        outcome = import_contacts(_report(["Rajesh", "9876543210", "", ""]), store)
        assert outcome.created == 1
        assert store.records == [ContactRecord("Rajesh", "9876543210")]

    def test_second_import_finds_existing(self):
        store = StaticContactStore()
        report = _report(["Rajesh", "9876543210", "", ""])
        import_contacts(report, store)
        outcome = import_contacts(report, store)
        assert outcome.created == 0
        assert outcome.existing == 1


# ============================================================================
# SQLALCHEMY STORE
# ============================================================================

class TestSqlAlchemyContactStore:
    def test_add_and_find(self, db_session):
        store = SqlAlchemyContactStore(db_session)
        created = store.add_many([ContactRecord("Rajesh", "9876543210", "r@example.com", ("vip",))], "test")
        assert created == 1

        contact = db_session.query(Contact).one()
        assert contact.phone == "9876543210"
        assert contact.tags == ["vip"]
        assert contact.source == "test"

        assert "9876543210" in store.find_existing(["9876543210", "9876543211"])
        assert store.find_emails(["r@example.com"]) == {"r@example.com": "9876543210"}

    def test_empty_lookups(self, db_session):
        store = SqlAlchemyContactStore(db_session)
        assert store.find_existing([]) == {}
        assert store.find_emails([]) == {}

    def test_import_uses_filename_as_source(self, db_session):
        report = _report(["Rajesh", "9876543210", "", ""], filename="leads.csv")
        outcome = import_contacts(report, SqlAlchemyContactStore(db_session))
        assert outcome.created == 1
        assert db_session.query(Contact).one().source == "leads.csv"

    def test_import_skips_stored_phones(self, db_session):
        store = SqlAlchemyContactStore(db_session)
        store.add_many([ContactRecord("Old", "9876543210")], "seed")
        report = _report(["Rajesh", "9876543210", "", ""], ["Priya", "9876543211", "", ""])
        outcome = import_contacts(report, store, source="manual")
        assert (outcome.created, outcome.existing, outcome.conflicts) == (1, 1, 0)
        assert db_session.query(Contact).count() == 2
