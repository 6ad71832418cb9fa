"""External collaborators - session feed and text generation

Components:
    base.py: Protocols the core depends on
    feed.py: HTTP session feed client (httpx)
    gemini.py: Gemini text generation client (httpx)

Both clients raise CollaboratorFailure on any transport, HTTP or payload
error; timeouts are owned by the client configuration.
"""

from .base import SessionFeed, TextGenerator

__all__ = ["SessionFeed", "TextGenerator"]
