"""Sync Tools - Bring external feed records into the local store

Components:
    date_normalizer.py: Parse the feed's loosely specified date strings
    subject_catalog.py: Canonical subjects, icons, catalog extraction
    reconciler.py: Convert feed records and drop duplicates

Usage:
    from studytracker.sync.reconciler import reconcile

    result = reconcile(records, existing_sessions)
    for session in result.to_insert:
        store.insert(session)
"""

# Sessions closer together than this, with the same subject and duration,
# are the same real-world session.
DUPLICATE_WINDOW_SECONDS = 60

__all__ = ["DUPLICATE_WINDOW_SECONDS"]
