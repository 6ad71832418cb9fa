"""
Study Service Facade

Central entry point for everything above the core: CLI, dashboards, any
presentation layer. Holds no global state; every collaborator comes from
an explicit StudyContext built once at start-up.

Features:
    - Feed sync with duplicate suppression (store untouched on feed failure)
    - Subject catalog cache (previous value kept on refresh failure)
    - Session listing, manual add/delete
    - Weekly summary and per-subject breakdown
    - AI tips with heuristic fallback

Usage:
    from studytracker.service import StudyContext, StudyService

    context = StudyContext.from_config(load_config())
    service = StudyService(context)

    result = await service.sync_external_to_local()
    summary = await service.compute_summary()
    tips = await service.get_tips()

    await context.close()
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone, tzinfo
from typing import Any, Optional

from studytracker import MAX_FOCUS, MIN_FOCUS
from studytracker.analysis.ai_tips import AITipAdapter, tip_from_line
from studytracker.analysis.aggregation import compute_summary, weekly_breakdown
from studytracker.analysis.tip_analyzer import analyze_study_patterns
from studytracker.clients.base import SessionFeed, TextGenerator
from studytracker.clients.feed import SessionFeedClient
from studytracker.clients.gemini import GeminiTextGenerator
from studytracker.config_models import StudyTrackerConfig
from studytracker.errors import CollaboratorFailure, StoreFailure, ValidationFailure
from studytracker.logging_config import get_logger
from studytracker.models import AggregateSummary, SessionFilter, StudySession, SubjectCatalogEntry
from studytracker.store import SessionStore
from studytracker.sync.date_normalizer import localize
from studytracker.sync.reconciler import reconcile
from studytracker.sync.subject_catalog import SubjectCatalog, icon_for
from studytracker.windows import TimeWindow, current_week, last_seven_days


logger = get_logger(__name__)


@dataclass
class StudyContext:
    """
    Single-instance collaborators shared by the service.

    generator is None when AI tips are disabled or no API key is set.
    """
    config: StudyTrackerConfig
    store: SessionStore
    feed: SessionFeed
    generator: Optional[TextGenerator] = None
    catalog: SubjectCatalog = field(default_factory=SubjectCatalog)

    @property
    def tz(self) -> Optional[tzinfo]:
        return self.config.analysis.zone()

    @classmethod
    def from_config(cls, config: StudyTrackerConfig) -> StudyContext:
        store = SessionStore(config.storage.resolved_path())
        feed = SessionFeedClient(
            base_url=config.feed.base_url,
            endpoint=config.feed.endpoint,
            timeout_seconds=config.feed.timeout_seconds,
        )

        generator = None
        if config.ai.enabled:
            api_key = config.ai.api_key()
            if config.ai.provider != "gemini":
                logger.warning(f"Unsupported AI provider {config.ai.provider!r}, AI tips disabled")
            elif not api_key:
                logger.info(f"{config.ai.api_key_env} not set, AI tips disabled")
            else:
                generator = GeminiTextGenerator(
                    api_key=api_key,
                    model=config.ai.model,
                    base_url=config.ai.base_url,
                    timeout_seconds=config.ai.timeout_seconds,
                )

        return cls(config=config, store=store, feed=feed, generator=generator)

    async def close(self) -> None:
        for client in (self.feed, self.generator):
            close = getattr(client, "close", None)
            if close is not None:
                await close()


def _failure(error: CollaboratorFailure, **data: Any) -> dict[str, Any]:
    return {
        "success": False,
        "error": str(error),
        "error_type": error.error_type,
        "data": data,
    }


class StudyService:
    """Operations exposed to the presentation layer."""

    def __init__(self, context: StudyContext):
        self.context = context

    @property
    def store(self) -> SessionStore:
        return self.context.store

    # =========================================================================
    # Feed sync and subject catalog
    # =========================================================================

    async def sync_external_to_local(self) -> dict[str, Any]:
        """
        Pull the feed and insert sessions that are not already stored.

        Returns:
            dict with success status, per-batch counts and the number of
            sessions stored afterwards. A feed failure leaves the store
            untouched. Insert failures are counted, not raised.
        """
        try:
            batch = await self.context.feed.get_external_sessions()
        except CollaboratorFailure as e:
            logger.error(f"Sync aborted, feed unavailable: {e}")
            return _failure(e, inserted=0)

        existing = await asyncio.to_thread(self.store.get_all)
        result = reconcile(
            batch.records,
            existing,
            local_tz=self.context.tz,
            window_seconds=self.context.config.analysis.duplicate_window_seconds,
        )

        inserted = 0
        failed = 0
        for session in result.to_insert:
            try:
                await asyncio.to_thread(self.store.insert, session)
                inserted += 1
            except StoreFailure as e:
                logger.warning(f"Skipping session during sync: {e}")
                failed += 1

        stored = await asyncio.to_thread(self.store.count)
        logger.info(
            f"Synced {inserted} new session(s) from feed "
            f"({result.skipped_duplicate} duplicates skipped, {stored} stored)"
        )
        return {
            "success": True,
            "data": {
                "fetched": len(batch.records) + batch.malformed,
                "inserted": inserted,
                "skipped_invalid": result.skipped_invalid + batch.malformed,
                "skipped_duplicate": result.skipped_duplicate,
                "failed_inserts": failed,
                "stored": stored,
            },
        }

    async def refresh_subject_catalog(self) -> dict[str, Any]:
        """Rebuild the subject catalog from the feed, keeping the old one on failure."""
        catalog = self.context.catalog
        try:
            batch = await self.context.feed.get_external_sessions()
        except CollaboratorFailure as e:
            logger.warning(f"Subject refresh failed, keeping {len(catalog.entries)} cached subject(s): {e}")
            return _failure(e, subjects=[entry.to_dict() for entry in catalog.entries])

        entries = catalog.replace(batch.records)
        return {"success": True, "data": {"subjects": [entry.to_dict() for entry in entries]}}

    async def get_subjects(self) -> list[SubjectCatalogEntry]:
        """Cached subjects, loading them from the feed on first use."""
        if not self.context.catalog.is_loaded:
            await self.refresh_subject_catalog()
        return self.context.catalog.entries

    # =========================================================================
    # Sessions
    # =========================================================================

    async def list_sessions(self, criteria: Optional[SessionFilter] = None) -> list[StudySession]:
        """Current snapshot, newest first."""
        return await asyncio.to_thread(self.store.filter_sessions, criteria)

    async def add_session(
        self,
        subject_name: str,
        duration: int,
        focus_level: int = 3,
        date: Optional[datetime] = None,
        notes: Optional[str] = None,
        subject_icon_url: Optional[str] = None,
    ) -> StudySession:
        """
        Record a session entered by the user.

        Raises:
            ValidationFailure: blank subject, duration <= 0, focus out of range
            StoreFailure: the store rejected the write
        """
        if not subject_name or not subject_name.strip():
            raise ValidationFailure("Please select a subject")
        if duration is None or duration <= 0:
            raise ValidationFailure("Duration must be greater than 0")
        if not MIN_FOCUS <= focus_level <= MAX_FOCUS:
            raise ValidationFailure(f"Focus level must be between {MIN_FOCUS} and {MAX_FOCUS}")

        if date is None:
            date = datetime.now(timezone.utc)
        elif date.tzinfo is None:
            date = localize(date, self.context.tz)

        session = StudySession(
            subject_name=subject_name,
            subject_icon_url=subject_icon_url or icon_for(subject_name),
            date=date.astimezone(timezone.utc),
            duration=duration,
            focus_level=focus_level,
            notes=notes if notes and notes.strip() else None,
        )
        session_id = await asyncio.to_thread(self.store.insert, session)
        return replace(session, id=session_id)

    async def delete_session(self, session_id: str) -> bool:
        return await asyncio.to_thread(self.store.delete, session_id)

    # =========================================================================
    # Aggregation
    # =========================================================================

    async def compute_summary(self, window: Optional[TimeWindow] = None) -> AggregateSummary:
        """Summary for the window (default: current week)."""
        window = window or current_week(tz=self.context.tz)
        sessions = await asyncio.to_thread(self.store.sessions_in_range, window.start, window.end)
        return compute_summary(sessions, window)

    async def compute_weekly_breakdown(self, window: Optional[TimeWindow] = None) -> list[dict]:
        """Per-subject minutes for the window (default: last seven days)."""
        window = window or last_seven_days(tz=self.context.tz)
        sessions = await asyncio.to_thread(self.store.sessions_in_range, window.start, window.end)
        return weekly_breakdown(sessions, window)

    # =========================================================================
    # Tips
    # =========================================================================

    async def get_tips(
        self,
        sessions: Optional[Sequence[StudySession]] = None,
        use_ai: bool = True,
    ) -> dict[str, Any]:
        """
        Study tips for the history, AI first with heuristic fallback.

        Returns:
            dict with data.source ("ai" | "heuristic") and data.tips
        """
        if sessions is None:
            sessions = await asyncio.to_thread(self.store.get_all)

        analysis = self.context.config.analysis
        tz = self.context.tz
        ai_error = None

        if use_ai and self.context.generator is not None:
            adapter = AITipAdapter(
                self.context.generator,
                language=self.context.config.ai.tip_language,
                tz=tz,
                min_sessions=analysis.min_sessions,
                max_tips=analysis.max_tips,
            )
            try:
                lines = await adapter.generate_tips(sessions)
            except CollaboratorFailure as e:
                logger.warning(f"AI tips unavailable, using local analysis: {e}")
                ai_error = str(e)
            else:
                if lines:
                    tips = [tip_from_line(line, rank) for rank, line in enumerate(lines, start=1)]
                    return {"success": True, "data": {"source": "ai", "tips": tips}}

        tips = analyze_study_patterns(
            sessions,
            tz=tz,
            max_tips=analysis.max_tips,
            min_sessions=analysis.min_sessions,
        )
        data: dict[str, Any] = {"source": "heuristic", "tips": tips}
        if ai_error:
            data["ai_error"] = ai_error
        return {"success": True, "data": data}


class SummaryRefresher:
    """
    Recomputes summary and breakdown after every store change.

    A newer request cancels the one in flight, so only the last
    recomputation publishes its result. Store writes happen on worker
    threads, so change notifications are handed to the loop captured by
    attach().
    """

    def __init__(
        self,
        service: StudyService,
        on_update: Optional[Callable[[AggregateSummary, list[dict]], None]] = None,
    ):
        self.service = service
        self.on_update = on_update
        self.summary: Optional[AggregateSummary] = None
        self.breakdown: list[dict] = []
        self._task: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def attach(self) -> None:
        """Start listening to store changes, refreshing on the current event loop."""
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None
        if self._unsubscribe is None:
            self._unsubscribe = self.service.store.subscribe(self._on_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_change(self, event: str, session_id: str) -> None:
        # May run on a worker thread
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug(f"No event loop for refresh after {event} {session_id}")
            return
        try:
            loop.call_soon_threadsafe(self.request_refresh)
        except RuntimeError:
            logger.debug(f"Event loop closed before refresh after {event} {session_id}")

    def request_refresh(self) -> asyncio.Task:
        """Schedule a recomputation, cancelling any still running."""
        loop = asyncio.get_running_loop()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = loop.create_task(self._refresh())
        return self._task

    async def _refresh(self) -> None:
        summary = await self.service.compute_summary()
        breakdown = await self.service.compute_weekly_breakdown()
        self.summary = summary
        self.breakdown = breakdown
        if self.on_update is not None:
            self.on_update(summary, breakdown)

    async def wait(self) -> None:
        """Wait for the latest scheduled refresh, following any that replace it."""
        while self._task is not None:
            task = self._task
            try:
                await task
            except asyncio.CancelledError:
                pass
            if task is self._task:
                return
