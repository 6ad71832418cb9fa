"""
Gemini Text Generation Client

Thin wrapper over the Gemini generateContent REST endpoint:

    POST {base_url}v1beta/models/{model}:generateContent?key={api_key}
    {"contents": [{"parts": [{"text": prompt}]}]}

The text of the first candidate's parts is joined with newlines.

Usage:
    generator = GeminiTextGenerator(api_key=os.environ["GEMINI_API_KEY"])
    text = await generator.generate("Give me three study tips")
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from studytracker.errors import CollaboratorFailure


logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/"
DEFAULT_MODEL = "gemini-1.5-flash"


def extract_text(body: Any) -> str:
    """
    Pull the generated text out of a generateContent response body.

    Raises:
        CollaboratorFailure: body has no candidate text
    """
    try:
        parts = body["candidates"][0]["content"]["parts"]
        texts = [part["text"] for part in parts if "text" in part]
    except (KeyError, IndexError, TypeError) as e:
        raise CollaboratorFailure("gemini", f"malformed response: {e!r}") from e

    if not texts:
        raise CollaboratorFailure("gemini", "response contained no text")
    return "\n".join(texts)


class GeminiTextGenerator:
    """Text generation backed by the Gemini API."""

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        base_url: str = GEMINI_BASE_URL,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self._model = model
        self._base_url = base_url
        self._timeout = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def model(self) -> str:
        return self._model

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def generate(self, prompt: str) -> str:
        if not self._api_key:
            raise CollaboratorFailure("gemini", "no API key configured")

        client = await self._get_client()
        request = {"contents": [{"parts": [{"text": prompt}]}]}

        try:
            response = await client.post(
                f"v1beta/models/{self._model}:generateContent",
                params={"key": self._api_key},
                json=request,
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            # Never log the URL, it carries the key
            logger.error(f"Gemini API error: {e.response.status_code}")
            raise CollaboratorFailure("gemini", f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Gemini request error: {type(e).__name__}")
            raise CollaboratorFailure("gemini", f"request failed: {type(e).__name__}") from e
        except ValueError as e:
            raise CollaboratorFailure("gemini", f"invalid JSON: {e}") from e

        return extract_text(body)

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
