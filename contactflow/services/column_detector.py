"""
Column Detection Engine

Maps arbitrary header text to the four contact fields (name, phone, email,
tags) by scoring every header against a per-field pattern table.

Scoring, per header and field:
1. Exact match with a pattern  -> exact_score (2)
2. Pattern contained in header -> partial_score (1)
Scores accumulate over every pattern of the field. The highest nonzero
score wins; ties go to the first header.

The pattern table is data (ColumnPatternRegistry) and can be replaced from
a JSON file without touching the detection logic.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

CONTACT_FIELDS: Tuple[str, ...] = ("name", "phone", "email", "tags")
REQUIRED_FIELDS: Tuple[str, ...] = ("name", "phone")

DEFAULT_COLUMN_PATTERNS: Dict[str, Dict[str, Any]] = {
    "name": {
        "patterns": ["name", "full name", "customer name", "contact name", "person", "client name"],
        "exact_score": 2,
        "partial_score": 1,
    },
    "phone": {
        "patterns": ["phone", "mobile", "number", "contact", "cell", "whatsapp", "telephone", "mob"],
        "exact_score": 2,
        "partial_score": 1,
    },
    "email": {
        "patterns": ["email", "mail", "e-mail", "email address", "e_mail"],
        "exact_score": 2,
        "partial_score": 1,
    },
    "tags": {
        "patterns": ["tags", "category", "type", "segment", "group", "classification"],
        "exact_score": 2,
        "partial_score": 1,
    },
}


@dataclass(frozen=True)
class FieldPatterns:
    """Ordered patterns and weights for one contact field."""
    patterns: Tuple[str, ...]
    exact_score: int = 2
    partial_score: int = 1


class ColumnPatternRegistry:
    """Field -> FieldPatterns table used by ColumnDetector."""

    def __init__(self, table: Optional[Dict[str, Dict[str, Any]]] = None):
        table = table if table is not None else DEFAULT_COLUMN_PATTERNS
        self._fields: Dict[str, FieldPatterns] = {}
        for field_name in CONTACT_FIELDS:
            config = table.get(field_name, {})
            self._fields[field_name] = FieldPatterns(
                patterns=tuple(p.lower().strip() for p in config.get("patterns", [])),
                exact_score=int(config.get("exact_score", 2)),
                partial_score=int(config.get("partial_score", 1)),
            )

    @classmethod
    def from_json(cls, path: str) -> "ColumnPatternRegistry":
        with open(path, encoding="utf-8") as fh:
            table = json.load(fh)
        logger.info("Loaded column patterns from %s", path)
        return cls(table)

    def fields(self) -> Tuple[str, ...]:
        return CONTACT_FIELDS

    def get(self, field_name: str) -> FieldPatterns:
        return self._fields[field_name]


def default_registry(patterns_file: str = "") -> ColumnPatternRegistry:
    if patterns_file:
        return ColumnPatternRegistry.from_json(patterns_file)
    return ColumnPatternRegistry()


@dataclass(frozen=True)
class FieldDetection:
    """Detection result for one contact field."""
    field: str
    index: Optional[int]
    header: Optional[str]
    confidence: int
    suggestions: Tuple[str, ...] = ()

    @property
    def is_mapped(self) -> bool:
        return self.index is not None


@dataclass(frozen=True)
class ColumnMapping:
    headers: Tuple[str, ...]
    detections: Tuple[FieldDetection, ...] = field(default_factory=tuple)

    def detection(self, field_name: str) -> FieldDetection:
        for d in self.detections:
            if d.field == field_name:
                return d
        raise KeyError(field_name)

    def index_of(self, field_name: str) -> Optional[int]:
        return self.detection(field_name).index

    def header_of(self, field_name: str) -> str:
        """Mapped header, or the field name itself when unmapped."""
        return self.detection(field_name).header or field_name

    @property
    def indices(self) -> Dict[str, Optional[int]]:
        return {d.field: d.index for d in self.detections}

    @property
    def detected(self) -> Dict[str, str]:
        return {d.field: d.header for d in self.detections if d.is_mapped}

    @property
    def missing(self) -> List[str]:
        return [d.field for d in self.detections if not d.is_mapped]

    @property
    def missing_required(self) -> List[str]:
        return [f for f in self.missing if f in REQUIRED_FIELDS]

    @property
    def suggestions(self) -> Dict[str, List[str]]:
        return {d.field: list(d.suggestions) for d in self.detections if not d.is_mapped}

    @property
    def confidence(self) -> Dict[str, int]:
        return {d.field: d.confidence for d in self.detections}


class ColumnDetector:
    """Detects which header carries each contact field."""

    def __init__(self, registry: Optional[ColumnPatternRegistry] = None):
        self.registry = registry or ColumnPatternRegistry()

    @staticmethod
    def normalize_header(header: Any) -> str:
        return str(header if header is not None else "").lower().strip()

    def score_header(self, header: str, field_name: str) -> int:
        """Accumulated score of one normalized header for a field."""
        weights = self.registry.get(field_name)
        score = 0
        for pattern in weights.patterns:
            if pattern and pattern in header:
                score += weights.exact_score if header == pattern else weights.partial_score
        return score

    def _ranked_candidates(self, headers: List[str], field_name: str) -> List[Tuple[int, int]]:
        """(score, index) pairs with nonzero score, best first, ties by position."""
        scored = [(self.score_header(h, field_name), i) for i, h in enumerate(headers)]
        return sorted([s for s in scored if s[0] > 0], key=lambda s: (-s[0], s[1]))

    def _suggest(self, headers: List[str], field_name: str) -> Tuple[str, ...]:
        """Headers sharing a first-word prefix with any of the field's patterns."""
        prefixes = [p.split(" ")[0] for p in self.registry.get(field_name).patterns if p]
        return tuple(h for h in headers if any(prefix in h for prefix in prefixes))

    def detect(self, raw_headers: List[Any]) -> ColumnMapping:
        headers = [self.normalize_header(h) for h in raw_headers]
        ranked = {f: self._ranked_candidates(headers, f) for f in self.registry.fields()}

        # Each field starts on its best header; a field losing a contested
        # index moves to its next unclaimed candidate.
        cursor = {f: 0 for f in self.registry.fields()}
        assigned: Dict[int, str] = {}
        pending = list(self.registry.fields())

        while pending:
            field_name = pending.pop(0)
            candidates = ranked[field_name]
            while cursor[field_name] < len(candidates):
                score, index = candidates[cursor[field_name]]
                holder = assigned.get(index)
                if holder is None:
                    assigned[index] = field_name
                    break
                holder_score = ranked[holder][cursor[holder]][0]
                if score > holder_score:
                    assigned[index] = field_name
                    cursor[holder] += 1
                    pending.append(holder)
                    logger.debug("Column %r reassigned from %s to %s", headers[index], holder, field_name)
                    break
                cursor[field_name] += 1

        detections = []
        for field_name in self.registry.fields():
            candidates = ranked[field_name]
            if cursor[field_name] < len(candidates):
                score, index = candidates[cursor[field_name]]
                detections.append(FieldDetection(field_name, index, headers[index], score))
            else:
                detections.append(FieldDetection(
                    field_name, None, None, 0, self._suggest(headers, field_name)
                ))

        mapping = ColumnMapping(headers=tuple(headers), detections=tuple(detections))
        logger.debug("Column mapping detected=%s missing=%s", mapping.detected, mapping.missing)
        return mapping


def detect_columns(headers: List[Any], registry: Optional[ColumnPatternRegistry] = None) -> ColumnMapping:
    """Convenience wrapper around ColumnDetector.detect."""
    return ColumnDetector(registry).detect(headers)
