"""Tests for studytracker/config_models.py"""

from datetime import datetime, timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError

from studytracker import PROJECT_ROOT
from studytracker.clients.feed import DEFAULT_FEED_BASE_URL
from studytracker.config_models import AnalysisConfig, StorageConfig, StudyTrackerConfig, load_config


class TestDefaults:
    def test_defaults(self):
        config = StudyTrackerConfig()

        assert config.feed.base_url == DEFAULT_FEED_BASE_URL
        assert config.feed.endpoint == "subjects"
        assert config.ai.provider == "gemini"
        assert config.ai.tip_language == "English"
        assert config.analysis.min_sessions == 3
        assert config.analysis.max_tips == 3
        assert config.analysis.duplicate_window_seconds == 60
        assert config.analysis.zone() is None

    def test_shipped_config_loads(self):
        config = load_config(PROJECT_ROOT / "args" / "studytracker.yaml")
        assert config.feed.endpoint == "subjects"
        assert config.ai.api_key_env == "GEMINI_API_KEY"

    def test_relative_db_path_resolved_from_project_root(self):
        assert StorageConfig(db_path="data/x.db").resolved_path() == PROJECT_ROOT / "data" / "x.db"

    def test_absolute_db_path_kept(self, tmp_path):
        assert StorageConfig(db_path=str(tmp_path / "x.db")).resolved_path() == tmp_path / "x.db"


class TestValidation:
    def test_rejects_zero_max_tips(self):
        with pytest.raises(ValidationError):
            AnalysisConfig(max_tips=0)

    def test_rejects_negative_timeout(self):
        with pytest.raises(ValidationError):
            StudyTrackerConfig(feed={"timeout_seconds": -1})

    def test_extra_keys_allowed(self):
        config = StudyTrackerConfig(analysis={"future_option": True})
        assert config.analysis.min_sessions == 3


class TestZone:
    def test_named_zone(self):
        zone = AnalysisConfig(timezone="Asia/Ho_Chi_Minh").zone()
        assert datetime(2025, 1, 1, tzinfo=zone).utcoffset() == timedelta(hours=7)

    def test_unknown_zone_falls_back_to_host(self):
        assert AnalysisConfig(timezone="Mars/Olympus_Mons").zone() is None


class TestLoadConfig:
    def test_missing_file_uses_defaults(self, tmp_path: Path):
        config = load_config(tmp_path / "missing.yaml")
        assert config == StudyTrackerConfig()

    def test_partial_file(self, tmp_path: Path):
        path = tmp_path / "studytracker.yaml"
        path.write_text("analysis:\n  max_tips: 2\n  timezone: Asia/Ho_Chi_Minh\n")

        config = load_config(path)

        assert config.analysis.max_tips == 2
        assert config.analysis.timezone == "Asia/Ho_Chi_Minh"
        assert config.feed.endpoint == "subjects"

    def test_env_vars_expanded(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("STUDY_FEED_URL", "https://feed.example/api/")
        path = tmp_path / "studytracker.yaml"
        path.write_text("feed:\n  base_url: ${STUDY_FEED_URL}\n")

        assert load_config(path).feed.base_url == "https://feed.example/api/"

    def test_invalid_file_uses_defaults(self, tmp_path: Path):
        path = tmp_path / "studytracker.yaml"
        path.write_text("analysis:\n  min_sessions: -4\n")

        assert load_config(path).analysis.min_sessions == 3

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "studytracker.yaml"
        path.write_text("")
        assert load_config(path) == StudyTrackerConfig()

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("MY_GEMINI_KEY", "secret")
        config = StudyTrackerConfig(ai={"api_key_env": "MY_GEMINI_KEY"})
        assert config.ai.api_key() == "secret"

    def test_api_key_missing(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        assert StudyTrackerConfig().ai.api_key() is None
