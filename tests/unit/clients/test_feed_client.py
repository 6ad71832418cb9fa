"""Tests for studytracker/clients/feed.py

HTTP traffic is served by httpx.MockTransport; nothing leaves the process.
"""

import httpx
import pytest

from studytracker.clients.base import SessionFeed
from studytracker.clients.feed import SessionFeedClient, parse_feed_payload
from studytracker.errors import CollaboratorFailure


FEED_BODY = [
    {
        "id": "1",
        "subject_name": "Physics",
        "subject_date": "2025-07-14T09:00:00.000Z",
        "duration": 60,
        "level": 4,
        "notes": "Kinematics",
        "name": "Jane Doe",
        "createdAt": "ignored",
    },
    {"id": 2, "subject_name": "Mathematics", "subject_date": "2025-07-15", "duration": "45"},
    {"id": "3", "subject_name": "Art", "duration": "about an hour"},
    "not an object",
]


def feed_client(handler) -> SessionFeedClient:
    return SessionFeedClient(
        base_url="https://feed.test/api/",
        endpoint="subjects",
        transport=httpx.MockTransport(handler),
    )


class TestParseFeedPayload:
    def test_valid_and_malformed_split(self):
        records, malformed = parse_feed_payload(FEED_BODY)

        assert [r.id for r in records] == ["1", "2"]
        assert malformed == 2

    def test_numeric_fields_coerced(self):
        records, _ = parse_feed_payload(FEED_BODY)
        assert records[1].duration == 45
        assert records[1].level is None

    def test_unknown_fields_ignored(self):
        records, _ = parse_feed_payload(FEED_BODY[:1])
        assert not hasattr(records[0], "createdAt")
        assert records[0].name == "Jane Doe"

    def test_non_list_payload(self):
        with pytest.raises(CollaboratorFailure, match="expected a JSON array"):
            parse_feed_payload({"items": []})

    def test_empty_list(self):
        assert parse_feed_payload([]) == ([], 0)


class TestSessionFeedClient:
    def test_satisfies_protocol(self):
        assert isinstance(SessionFeedClient(), SessionFeed)

    @pytest.mark.asyncio
    async def test_fetches_records(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=FEED_BODY)

        client = feed_client(handler)
        batch = await client.get_external_sessions()
        await client.close()

        assert [r.subject_name for r in batch.records] == ["Physics", "Mathematics"]
        assert batch.malformed == 2
        assert seen[0].method == "GET"
        assert str(seen[0].url) == "https://feed.test/api/subjects"

    @pytest.mark.asyncio
    async def test_malformed_count_belongs_to_each_fetch(self):
        bodies = [FEED_BODY, FEED_BODY[:2]]
        client = feed_client(lambda request: httpx.Response(200, json=bodies.pop(0)))

        first = await client.get_external_sessions()
        second = await client.get_external_sessions()
        await client.close()

        assert first.malformed == 2
        assert second.malformed == 0
        assert len(second.records) == 2

    @pytest.mark.asyncio
    async def test_http_error(self):
        client = feed_client(lambda request: httpx.Response(503))

        with pytest.raises(CollaboratorFailure, match="HTTP 503") as exc_info:
            await client.get_external_sessions()
        await client.close()

        assert exc_info.value.collaborator == "feed"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = feed_client(handler)

        with pytest.raises(CollaboratorFailure, match="request failed"):
            await client.get_external_sessions()
        await client.close()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client = feed_client(lambda request: httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(CollaboratorFailure, match="invalid JSON"):
            await client.get_external_sessions()
        await client.close()

    @pytest.mark.asyncio
    async def test_object_instead_of_array(self):
        client = feed_client(lambda request: httpx.Response(200, json={"error": "rate limited"}))

        with pytest.raises(CollaboratorFailure):
            await client.get_external_sessions()
        await client.close()

    @pytest.mark.asyncio
    async def test_client_reused(self):
        client = feed_client(lambda request: httpx.Response(200, json=[]))

        first = await client._get_client()
        await client.get_external_sessions()
        second = await client._get_client()
        await client.close()

        assert first is second
        assert first.is_closed
