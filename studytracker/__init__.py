"""StudyTracker - Study session tracking, reconciliation and study tips

Philosophy:
    Log the session, not the paperwork.
    Sessions arrive from the user or from an external feed, get
    reconciled into one local store, and the history turns into
    weekly summaries and a handful of actionable tips.

Components:
    sync/: Bring external feed records into the local store
        - date_normalizer.py: Parse loosely formatted feed dates
        - subject_catalog.py: Canonical subjects, icons, catalog extraction
        - reconciler.py: Convert, validate and de-duplicate feed records

    analysis/: Derive statistics and tips from the session history
        - aggregation.py: Window-scoped totals, averages, breakdowns
        - tip_analyzer.py: Local heuristic pattern detection
        - ai_tips.py: Prompt building and tip parsing for text generation

    clients/: External collaborators (session feed, text generation)
    store.py: SQLite session store with change notifications
    service.py: Facade used by the CLI and any presentation layer

Database: data/studytracker.db
    - study_sessions: Canonical, locally owned sessions

Configuration: args/studytracker.yaml
"""

from pathlib import Path

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
ARGS_DIR = PROJECT_ROOT / "args"
CONFIG_PATH = ARGS_DIR / "studytracker.yaml"
DB_PATH = DATA_DIR / "studytracker.db"

# Focus scale
MIN_FOCUS = 1
MAX_FOCUS = 5
DEFAULT_FOCUS = 3

__all__ = [
    "PROJECT_ROOT",
    "DATA_DIR",
    "ARGS_DIR",
    "CONFIG_PATH",
    "DB_PATH",
    "MIN_FOCUS",
    "MAX_FOCUS",
    "DEFAULT_FOCUS",
]
