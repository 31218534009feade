"""
Contact store collaborator — persists pipeline records.

The import pipeline only dedupes inside one batch; the store checks records
against contacts that already exist. Two interchangeable implementations:

- SqlAlchemyContactStore — the ``contacts`` table through a DB session
- StaticContactStore     — in-memory seed data, no database
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from contactflow.models.contact import Contact
from contactflow.services.import_pipeline import ContactRecord, ImportReport

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "CSV Import"


class ContactStore(ABC):
    @abstractmethod
    def find_existing(self, phones: Sequence[str]) -> Dict[str, str]:
        """phone -> existing contact id, for phones already stored."""

    @abstractmethod
    def find_emails(self, emails: Sequence[str]) -> Dict[str, str]:
        """email -> phone of the stored contact using it."""

    @abstractmethod
    def add_many(self, records: Sequence[ContactRecord], source: str) -> int:
        """Insert records, returning the number created."""


class SqlAlchemyContactStore(ContactStore):
    def __init__(self, db: Session):
        self.db = db

    def find_existing(self, phones: Sequence[str]) -> Dict[str, str]:
        if not phones:
            return {}
        rows = self.db.query(Contact.phone, Contact.id).filter(Contact.phone.in_(list(phones))).all()
        return {phone: str(contact_id) for phone, contact_id in rows}

    def find_emails(self, emails: Sequence[str]) -> Dict[str, str]:
        if not emails:
            return {}
        rows = self.db.query(Contact.email, Contact.phone).filter(Contact.email.in_(list(emails))).all()
        return {email: phone for email, phone in rows}

    def add_many(self, records: Sequence[ContactRecord], source: str) -> int:
        for record in records:
            self.db.add(Contact(
                name=record.name,
                phone=record.phone,
                email=record.email,
                tags=list(record.tags),
                source=source,
            ))
        self.db.commit()
        return len(records)


class StaticContactStore(ContactStore):
    def __init__(self, seed: Iterable[ContactRecord] = ()):
        self._contacts: List[Tuple[str, ContactRecord, str]] = []
        for record in seed:
            self._append(record, "seed")

    def _append(self, record: ContactRecord, source: str) -> None:
        contact_id = f"static-{len(self._contacts) + 1}"
        self._contacts.append((contact_id, record, source))

    @property
    def records(self) -> List[ContactRecord]:
        return [record for _, record, _ in self._contacts]

    def find_existing(self, phones: Sequence[str]) -> Dict[str, str]:
        wanted = set(phones)
        return {r.phone: cid for cid, r, _ in self._contacts if r.phone in wanted}

    def find_emails(self, emails: Sequence[str]) -> Dict[str, str]:
        wanted = set(emails)
        return {r.email: r.phone for _, r, _ in self._contacts if r.email and r.email in wanted}

    def add_many(self, records: Sequence[ContactRecord], source: str) -> int:
        for record in records:
            self._append(record, source)
        return len(records)


@dataclass(frozen=True)
class ContactReconciliation:
    new_contacts: Tuple[ContactRecord, ...]
    existing_contacts: Tuple[Tuple[ContactRecord, str], ...]
    conflicts: Tuple[Tuple[ContactRecord, str], ...]


@dataclass(frozen=True)
class ImportOutcome:
    created: int
    existing: int
    conflicts: int
    reconciliation: ContactReconciliation


def reconcile_contacts(records: Sequence[ContactRecord], store: ContactStore) -> ContactReconciliation:
    """Split records into new / already stored / conflicting with stored data."""
    existing_ids = store.find_existing([r.phone for r in records])
    email_owners = store.find_emails([r.email for r in records if r.email])

    new_contacts = []
    existing = []
    conflicts = []
    for record in records:
        if record.phone in existing_ids:
            existing.append((record, existing_ids[record.phone]))
            continue
        owner = email_owners.get(record.email) if record.email else None
        if owner and owner != record.phone:
            conflicts.append((record, f"Email {record.email} already belongs to contact {owner}"))
            continue
        new_contacts.append(record)

    return ContactReconciliation(tuple(new_contacts), tuple(existing), tuple(conflicts))


def import_contacts(report: ImportReport, store: ContactStore, source: Optional[str] = None) -> ImportOutcome:
    """Persist the report's new records through the store."""
    reconciliation = reconcile_contacts(report.records, store)
    created = store.add_many(reconciliation.new_contacts, source or report.file_info.name or DEFAULT_SOURCE)

    logger.info(
        "Imported %s: %d created, %d already stored, %d conflicts",
        report.file_info.name, created,
        len(reconciliation.existing_contacts), len(reconciliation.conflicts),
    )
    return ImportOutcome(
        created=created,
        existing=len(reconciliation.existing_contacts),
        conflicts=len(reconciliation.conflicts),
        reconciliation=reconciliation,
    )
