"""
Session Feed Client

Fetches session records from the remote feed. The feed returns a JSON
array of objects shaped like:

    {"id": "1", "subject_name": "Physics", "subject_date": "2025-07-14T09:00:00.000Z",
     "duration": 60, "level": 4, "notes": "...", "name": "..."}

Records that fail field validation are dropped and counted; the batch
itself only fails when the feed cannot be reached or is not a list.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from studytracker.errors import CollaboratorFailure
from studytracker.models import ExternalSessionRecord, FeedBatch


logger = logging.getLogger(__name__)

DEFAULT_FEED_BASE_URL = "https://687319aac75558e273535336.mockapi.io/api/"
DEFAULT_FEED_ENDPOINT = "subjects"


def parse_feed_payload(payload: Any) -> tuple[list[ExternalSessionRecord], int]:
    """
    Validate a decoded feed payload.

    Returns:
        (valid records, number of malformed records dropped)

    Raises:
        CollaboratorFailure: payload is not a list
    """
    if not isinstance(payload, list):
        raise CollaboratorFailure("feed", f"expected a JSON array, got {type(payload).__name__}")

    records = []
    malformed = 0
    for idx, item in enumerate(payload):
        try:
            records.append(ExternalSessionRecord.model_validate(item))
        except ValidationError as e:
            malformed += 1
            logger.warning(f"Dropping malformed feed record {idx}: {e.error_count()} field error(s)")

    return records, malformed


class SessionFeedClient:
    """
    HTTP client for the session feed.

    The underlying httpx.AsyncClient is created lazily and reused; pass
    `transport` to route requests elsewhere (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_FEED_BASE_URL,
        endpoint: str = DEFAULT_FEED_ENDPOINT,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url
        self._endpoint = endpoint
        self._timeout = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def get_external_sessions(self) -> FeedBatch:
        """Fetch and validate the feed; malformed entries are counted, not returned."""
        client = await self._get_client()

        try:
            response = await client.get(self._endpoint)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Feed API error: {e.response.status_code}")
            raise CollaboratorFailure("feed", f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Feed request error: {e}")
            raise CollaboratorFailure("feed", f"request failed: {e}") from e
        except ValueError as e:
            raise CollaboratorFailure("feed", f"invalid JSON: {e}") from e

        records, malformed = parse_feed_payload(payload)
        logger.debug(f"Fetched {len(records)} feed record(s), {malformed} malformed")
        return FeedBatch(records=records, malformed=malformed)

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
