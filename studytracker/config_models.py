"""
Configuration models for args/studytracker.yaml.

Values of the form ${ENV_VAR} are expanded from the environment. A missing
or invalid file falls back to defaults with a warning.
"""

from __future__ import annotations

import logging
import os
from datetime import tzinfo
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field

from studytracker import CONFIG_PATH, PROJECT_ROOT
from studytracker.clients.feed import DEFAULT_FEED_BASE_URL, DEFAULT_FEED_ENDPOINT
from studytracker.clients.gemini import DEFAULT_MODEL, GEMINI_BASE_URL

logger = logging.getLogger(__name__)


class StorageConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    db_path: str = Field(default="data/studytracker.db")

    def resolved_path(self) -> Path:
        path = Path(self.db_path)
        return path if path.is_absolute() else PROJECT_ROOT / path


class FeedConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    base_url: str = Field(default=DEFAULT_FEED_BASE_URL)
    endpoint: str = Field(default=DEFAULT_FEED_ENDPOINT)
    timeout_seconds: float = Field(default=30.0, gt=0)


class AIConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = Field(default=True)
    provider: str = Field(default="gemini")
    model: str = Field(default=DEFAULT_MODEL)
    api_key_env: str = Field(default="GEMINI_API_KEY")
    base_url: str = Field(default=GEMINI_BASE_URL)
    timeout_seconds: float = Field(default=30.0, gt=0)
    tip_language: str = Field(default="English")

    def api_key(self) -> Optional[str]:
        return os.getenv(self.api_key_env) or None


class AnalysisConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    min_sessions: int = Field(default=3, ge=1)
    max_tips: int = Field(default=3, ge=1)
    duplicate_window_seconds: int = Field(default=60, ge=0)
    timezone: Optional[str] = None

    def zone(self) -> Optional[tzinfo]:
        """Configured zone; None means the host zone."""
        if not self.timezone:
            return None
        try:
            return ZoneInfo(self.timezone)
        except ZoneInfoNotFoundError:
            logger.warning(f"Unknown timezone {self.timezone!r}, using host zone")
            return None


class StudyTrackerConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    storage: StorageConfig = Field(default_factory=StorageConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)


def _expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            env_var = value[2:-1]
            return os.getenv(env_var, "")
        return value
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    return value


def load_config(config_path: Path | str | None = None) -> StudyTrackerConfig:
    """Load and validate configuration, falling back to defaults."""
    path = Path(config_path) if config_path else CONFIG_PATH

    if not path.exists():
        logger.warning(f"Config file not found: {path}, using defaults")
        return StudyTrackerConfig()

    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return StudyTrackerConfig.model_validate(_expand_env_vars(raw))
    except Exception as e:
        logger.warning(f"Config validation failed for {path}: {e}, using defaults")
        return StudyTrackerConfig()
