"""
Tool: Subject Catalog
Purpose: Map subject names to icons and derive the subject list from the feed

The feed has no subject endpoint of its own; subjects are whatever distinct
subject names appear in the session records. Ten subjects are known and
carry their own icon, anything else gets the default icon.

Usage:
    from studytracker.sync.subject_catalog import icon_for, extract_distinct_subjects

    icon_for("physics")                 # case-insensitive match
    extract_distinct_subjects(records)  # sorted, ids "1", "2", ...
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Optional

from studytracker.models import ExternalSessionRecord, SubjectCatalogEntry


logger = logging.getLogger(__name__)

ICON_BASE_URL = "https://cdn-icons-png.flaticon.com/512/2103"

CANONICAL_SUBJECTS: dict[str, str] = {
    "Mathematics": f"{ICON_BASE_URL}/2103633.png",
    "Physics": f"{ICON_BASE_URL}/2103662.png",
    "Chemistry": f"{ICON_BASE_URL}/2103651.png",
    "Biology": f"{ICON_BASE_URL}/2103632.png",
    "History": f"{ICON_BASE_URL}/2103683.png",
    "Geography": f"{ICON_BASE_URL}/2103659.png",
    "English Literature": f"{ICON_BASE_URL}/2103663.png",
    "Computer Science": f"{ICON_BASE_URL}/2103645.png",
    "Economics": f"{ICON_BASE_URL}/2103654.png",
    "Art": f"{ICON_BASE_URL}/2103642.png",
}

DEFAULT_ICON_URL = f"{ICON_BASE_URL}/2103637.png"

_CANONICAL_BY_LOWER = {name.lower(): name for name in CANONICAL_SUBJECTS}


def canonical_subject(name: Optional[str]) -> Optional[str]:
    """Return the canonical spelling if name is a known subject, else None."""
    if not name:
        return None
    if name in CANONICAL_SUBJECTS:
        return name
    return _CANONICAL_BY_LOWER.get(name.lower())


def icon_for(subject_name: Optional[str]) -> str:
    """Icon for a subject: exact match, then case-insensitive, then the default."""
    canonical = canonical_subject(subject_name)
    if canonical is None:
        return DEFAULT_ICON_URL
    return CANONICAL_SUBJECTS[canonical]


def resolve_subject_name(record: ExternalSessionRecord) -> Optional[str]:
    """
    Decide which subject a feed record refers to.

    The subject_name field wins when it has content. Otherwise the `name`
    field is only trusted when it is one of the known subjects; other
    values there are unrelated labels.
    """
    if record.subject_name and record.subject_name.strip():
        return record.subject_name
    if record.name and record.name.strip() and canonical_subject(record.name) is not None:
        return record.name
    return None


def extract_distinct_subjects(records: Iterable[ExternalSessionRecord]) -> list[SubjectCatalogEntry]:
    """
    Build the subject catalog from a batch of feed records.

    Names are de-duplicated and sorted so the same set of records always
    yields the same ids, regardless of record order.
    """
    names = set()
    skipped = 0
    for record in records:
        name = resolve_subject_name(record)
        if name is None:
            skipped += 1
            continue
        names.add(name)

    if skipped:
        logger.debug(f"Catalog extraction skipped {skipped} record(s) without a usable subject")

    return [
        SubjectCatalogEntry(id=str(index), name=name, icon_url=icon_for(name))
        for index, name in enumerate(sorted(names), start=1)
    ]


class SubjectCatalog:
    """
    In-memory cache of the subject list.

    The cache is only replaced on a successful refresh, so a feed outage
    keeps the last known subjects.
    """

    def __init__(self):
        self._entries: Optional[list[SubjectCatalogEntry]] = None

    @property
    def is_loaded(self) -> bool:
        return self._entries is not None

    @property
    def entries(self) -> list[SubjectCatalogEntry]:
        return list(self._entries or [])

    def replace(self, records: Iterable[ExternalSessionRecord]) -> list[SubjectCatalogEntry]:
        self._entries = extract_distinct_subjects(records)
        logger.info(f"Subject catalog refreshed with {len(self._entries)} subject(s)")
        return self.entries
