"""
Tool: Date Normalizer
Purpose: Parse the session feed's date strings into timezone-aware instants

The feed does not commit to a single date format. Formats are tried in
order and the first match wins:

    1. 2025-07-14T09:00:00.000Z        UTC, millisecond precision
    2. 2025-07-14T09:00:00Z            UTC, second precision
    3. 2025-07-17T00:00:00+07:00       explicit offset
    4. 2025-10-27                      date only, local midnight
    5. 2025-07-14T09:00:00             no zone, local time
    6. 2025-07-17T00:00:00+07:00[Asia/Ho_Chi_Minh]
                                       zone-name annotation stripped, then (3)

Usage:
    from studytracker.sync.date_normalizer import normalize_date

    instant = normalize_date("2025-07-14T09:00:00Z")

Dependencies:
    - datetime, re (stdlib)
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone, tzinfo
from typing import Optional

from studytracker.errors import DateParseFailure


logger = logging.getLogger(__name__)

UTC_MILLIS_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
UTC_SECONDS_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
OFFSET_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
DATE_ONLY_FORMAT = "%Y-%m-%d"
LOCAL_FORMAT = "%Y-%m-%dT%H:%M:%S"

# (format, how to attach a zone to the parsed value)
_FORMATS = [
    (UTC_MILLIS_FORMAT, "utc"),
    (UTC_SECONDS_FORMAT, "utc"),
    (OFFSET_FORMAT, "aware"),
    (DATE_ONLY_FORMAT, "local"),
    (LOCAL_FORMAT, "local"),
]

_ZONE_ANNOTATION = re.compile(r"^(.+?)\[.*?\]")


def localize(naive: datetime, local_tz: Optional[tzinfo] = None) -> datetime:
    """Attach local_tz to a naive datetime; without one, use the host zone rules."""
    if local_tz is None:
        return naive.astimezone()
    return naive.replace(tzinfo=local_tz)


def _attach_zone(parsed: datetime, mode: str, local_tz: Optional[tzinfo]) -> datetime:
    if mode == "utc":
        return parsed.replace(tzinfo=timezone.utc)
    if mode == "local":
        return localize(parsed, local_tz)
    return parsed


def normalize_date(value: Optional[str], local_tz: Optional[tzinfo] = None) -> datetime:
    """
    Parse a feed date string.

    Args:
        value: Raw date string (None or blank is a failure)
        local_tz: Zone for formats without offset (default: host zone)

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        DateParseFailure: No supported format matched
    """
    if value is None or not value.strip():
        raise DateParseFailure(value)

    cleaned = value.strip()

    for fmt, mode in _FORMATS:
        try:
            parsed = datetime.strptime(cleaned, fmt)
            return _attach_zone(parsed, mode, local_tz).astimezone(timezone.utc)
        except (ValueError, OverflowError, OSError):
            continue

    # Offset followed by a zone name, e.g. +07:00[Asia/Ho_Chi_Minh]
    match = _ZONE_ANNOTATION.match(cleaned)
    if match:
        try:
            parsed = datetime.strptime(match.group(1), OFFSET_FORMAT)
            return parsed.astimezone(timezone.utc)
        except (ValueError, OverflowError):
            pass

    logger.warning(f"Could not parse date: {value!r}")
    raise DateParseFailure(value)
