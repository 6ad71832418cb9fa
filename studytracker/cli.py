"""
StudyTracker Command Line Interface

Usage:
    python -m studytracker --action sync
    python -m studytracker --action subjects
    python -m studytracker --action list --subject Physics --min-focus 4
    python -m studytracker --action add --subject Physics --duration 45 --focus 4 --notes "optics"
    python -m studytracker --action delete --session-id abc123
    python -m studytracker --action summary
    python -m studytracker --action weekly
    python -m studytracker --action tips --no-ai

Output:
    JSON result with success status and data
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import datetime
from typing import Any

from studytracker.config_models import load_config
from studytracker.errors import StudyTrackerError
from studytracker.logging_config import setup_logging
from studytracker.models import SessionFilter
from studytracker.service import StudyContext, StudyService
from studytracker.sync.date_normalizer import localize


ACTIONS = ["sync", "subjects", "list", "add", "delete", "summary", "weekly", "tips"]


def _parse_instant(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _to_json(value: Any) -> Any:
    """Convert result objects to JSON-serializable structures."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: _to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json(v) for v in value]
    return value


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="studytracker",
        description="StudyTracker - study session sync, summaries and tips",
    )
    parser.add_argument("--action", required=True, choices=ACTIONS, help="Action to perform")
    parser.add_argument("--config", help="Path to configuration YAML")

    # Session identification
    parser.add_argument("--session-id", help="Session ID for delete")

    # Session creation / list filters
    parser.add_argument("--subject", help="Subject name")
    parser.add_argument("--duration", type=int, help="Duration in minutes")
    parser.add_argument("--focus", type=int, default=3, help="Focus level 1-5 (default: 3)")
    parser.add_argument("--notes", help="Session notes")
    parser.add_argument("--date", help="Session start, ISO-8601 (default: now)")
    parser.add_argument("--min-focus", type=int, help="Minimum focus level")
    parser.add_argument("--max-focus", type=int, help="Maximum focus level")
    parser.add_argument("--since", help="Earliest session start, ISO-8601")
    parser.add_argument("--until", help="Latest session start, ISO-8601")
    parser.add_argument("--search", help="Substring to look for in notes")

    # Tips
    parser.add_argument("--no-ai", action="store_true", help="Use local analysis only")

    parser.add_argument("--log-level", help="Log level (default: STUDYTRACKER_LOG_LEVEL or INFO)")
    return parser


async def run_action(service: StudyService, args: argparse.Namespace) -> dict[str, Any]:
    tz = service.context.tz

    def parse_local(value: str | None) -> datetime | None:
        instant = _parse_instant(value)
        if instant is not None and instant.tzinfo is None:
            instant = localize(instant, tz)
        return instant

    if args.action == "sync":
        return await service.sync_external_to_local()

    if args.action == "subjects":
        return await service.refresh_subject_catalog()

    if args.action == "list":
        criteria = SessionFilter(
            subject=args.subject,
            min_focus=args.min_focus,
            max_focus=args.max_focus,
            start=parse_local(args.since),
            end=parse_local(args.until),
            search_query=args.search,
        )
        sessions = await service.list_sessions(criteria)
        return {"success": True, "data": {"count": len(sessions), "sessions": sessions}}

    if args.action == "add":
        if not args.subject or args.duration is None:
            return {"success": False, "error": "--subject and --duration required for add"}
        session = await service.add_session(
            subject_name=args.subject,
            duration=args.duration,
            focus_level=args.focus,
            date=parse_local(args.date),
            notes=args.notes,
        )
        return {"success": True, "data": {"session": session}, "message": f"Session created with ID {session.id}"}

    if args.action == "delete":
        if not args.session_id:
            return {"success": False, "error": "--session-id required for delete"}
        deleted = await service.delete_session(args.session_id)
        if not deleted:
            return {"success": False, "error": f"Session not found: {args.session_id}"}
        return {"success": True, "data": {"session_id": args.session_id}}

    if args.action == "summary":
        return {"success": True, "data": await service.compute_summary()}

    if args.action == "weekly":
        return {"success": True, "data": {"subjects": await service.compute_weekly_breakdown()}}

    if args.action == "tips":
        return await service.get_tips(use_ai=not args.no_ai)

    return {"success": False, "error": f"Unknown action: {args.action}"}


async def _main(args: argparse.Namespace) -> dict[str, Any]:
    context = StudyContext.from_config(load_config(args.config))
    service = StudyService(context)
    try:
        return await run_action(service, args)
    except (StudyTrackerError, ValueError) as e:
        return {"success": False, "error": str(e), "error_type": getattr(e, "error_type", "error")}
    finally:
        await context.close()


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(level=args.log_level)

    result = asyncio.run(_main(args))
    print(json.dumps(_to_json(result), indent=2))
    return 0 if result.get("success") else 1


if __name__ == "__main__":
    sys.exit(main())
