"""
Collaborator interfaces.

The core only needs these two operations; anything with the same shape
(an HTTP client, a fixture in tests) can be injected.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from studytracker.models import FeedBatch


@runtime_checkable
class SessionFeed(Protocol):
    """Source of external session records."""

    async def get_external_sessions(self) -> FeedBatch:
        """Fetch the current feed with its malformed-entry count. Raises CollaboratorFailure."""
        ...


@runtime_checkable
class TextGenerator(Protocol):
    """Free-form text generation."""

    async def generate(self, prompt: str) -> str:
        """Return generated text. Raises CollaboratorFailure."""
        ...
