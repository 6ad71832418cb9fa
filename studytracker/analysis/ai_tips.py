"""
Tool: AI Tip Adapter
Purpose: Ask a text-generation collaborator for study tips

Builds an analysis of the session history, renders it into the tip
prompt, and keeps only the numbered lines ("1.", "2.", "3.") of the reply.

This adapter never substitutes heuristic tips on failure; it raises
CollaboratorFailure and the caller decides what to fall back to.

Usage:
    from studytracker.analysis.ai_tips import AITipAdapter

    adapter = AITipAdapter(generator)
    lines = await adapter.generate_tips(sessions)

Prompt template: hardprompts/tips/study_tips.md
"""

from __future__ import annotations

import logging
import re
from collections import Counter, defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional

from studytracker import PROJECT_ROOT
from studytracker.analysis import MAX_TIPS, MIN_SESSIONS_FOR_TIPS, time_of_day_label
from studytracker.analysis.aggregation import top_subject
from studytracker.clients.base import TextGenerator
from studytracker.errors import CollaboratorFailure
from studytracker.models import StudySession, StudyTip, TipCategory


logger = logging.getLogger(__name__)

PROMPT_PATH = PROJECT_ROOT / "hardprompts" / "tips" / "study_tips.md"

TIP_MARKERS = ("1.", "2.", "3.")
_NUMBER_MARKER = re.compile(r"^\s*\d+\.")


@dataclass
class StudyAnalysis:
    """Figures embedded in the tip prompt."""
    session_count: int
    average_focus: float
    most_studied_subject: Optional[str]
    total_minutes: int
    time_of_day_distribution: str
    subject_distribution: str


def load_tip_prompt() -> str:
    """Load the tip prompt template."""
    if PROMPT_PATH.exists():
        with open(PROMPT_PATH) as f:
            return f.read()
    # Fallback prompt if file doesn't exist
    return """Based on the following study session analysis, provide 2-3 personalized study tips in {language}.
Each tip should be concise (under 100 words) and actionable.

Study Analysis:
- Total sessions: {session_count}
- Average focus level: {average_focus:.1f}
- Most studied subject: {most_studied_subject}
- Total study time: {total_minutes} minutes
- Sessions by time of day: {time_of_day_distribution}
- Subject distribution: {subject_distribution}

Provide tips in this format:
1. [Title]: [Description]
2. [Title]: [Description]
3. [Title]: [Description]
"""


def analyze_sessions(sessions: Sequence[StudySession], tz: Optional[tzinfo] = None) -> StudyAnalysis:
    """Summarize the full history for the prompt."""

    durations: dict[str, int] = defaultdict(int)
    for session in sessions:
        durations[session.subject_name] += session.duration

    times_of_day = Counter(
        time_of_day_label(s.date.astimezone(tz).hour).capitalize() for s in sessions
    )
    subjects = Counter(s.subject_name for s in sessions)

    return StudyAnalysis(
        session_count=len(sessions),
        average_focus=sum(s.focus_level for s in sessions) / len(sessions) if sessions else 0.0,
        most_studied_subject=top_subject(durations),
        total_minutes=sum(durations.values()),
        time_of_day_distribution=", ".join(
            f"{label}: {count} sessions" for label, count in sorted(times_of_day.items())
        ),
        subject_distribution=", ".join(
            f"{name} ({count} sessions)" for name, count in sorted(subjects.items())
        ),
    )


def build_prompt(analysis: StudyAnalysis, language: str = "English") -> str:
    return load_tip_prompt().format(
        language=language,
        session_count=analysis.session_count,
        average_focus=analysis.average_focus,
        most_studied_subject=analysis.most_studied_subject or "N/A",
        total_minutes=analysis.total_minutes,
        time_of_day_distribution=analysis.time_of_day_distribution,
        subject_distribution=analysis.subject_distribution,
    ).strip()


def parse_tips(text: str, max_tips: int = MAX_TIPS) -> list[str]:
    """Numbered lines of a free-form reply, trimmed, in order."""
    tips = []
    for line in text.splitlines():
        trimmed = line.strip()
        if trimmed.startswith(TIP_MARKERS):
            tips.append(trimmed)
    return tips[:max_tips]


def tip_from_line(line: str, rank: int) -> StudyTip:
    """
    Turn "2. Title: Description" into a StudyTip.

    Without a colon the whole line becomes the description.
    """
    head, sep, tail = line.partition(":")
    if sep:
        title = _NUMBER_MARKER.sub("", head, count=1).strip()
        description = tail.strip()
    else:
        title = ""
        description = line
    return StudyTip(
        title=title or "Study Tip",
        description=description or line,
        category=TipCategory.TIME_PATTERN,
        rank=rank,
    )


class AITipAdapter:
    """Tips from a text-generation collaborator."""

    def __init__(
        self,
        generator: TextGenerator,
        language: str = "English",
        tz: Optional[tzinfo] = None,
        min_sessions: int = MIN_SESSIONS_FOR_TIPS,
        max_tips: int = MAX_TIPS,
    ):
        self.generator = generator
        self.language = language
        self.tz = tz
        self.min_sessions = min_sessions
        self.max_tips = max_tips

    async def generate_tips(self, sessions: Sequence[StudySession]) -> list[str]:
        """
        Request tips for the given history.

        Returns:
            Up to max_tips numbered tip lines; empty without calling the
            generator when there are too few sessions

        Raises:
            CollaboratorFailure: generator failed or reply had no numbered tips
        """
        if len(sessions) < self.min_sessions:
            return []

        prompt = build_prompt(analyze_sessions(sessions, self.tz), self.language)
        try:
            text = await self.generator.generate(prompt)
        except CollaboratorFailure:
            raise
        except Exception as e:
            logger.error(f"Text generation failed: {e}")
            raise CollaboratorFailure("ai_tips", str(e)) from e

        tips = parse_tips(text, self.max_tips)
        if not tips:
            logger.warning("Text generation reply contained no numbered tips")
            raise CollaboratorFailure("ai_tips", "no numbered tips in response")

        logger.info(f"Generated {len(tips)} AI tip(s)")
        return tips
