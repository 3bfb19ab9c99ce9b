"""
Unit tests for loading pipeline settings and topic briefs from YAML.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from src.config.loader import (
    DEFAULT_SETTINGS_PATH,
    apply_env_overrides,
    load_pipeline_settings,
    load_topic_brief,
    substitute_env_vars,
)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _write(tmp_path: Path, text: str, name: str = "pipeline.yaml") -> str:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_shipped_settings_match_defaults():
    settings = load_pipeline_settings(str(PROJECT_ROOT / DEFAULT_SETTINGS_PATH), environ={})

    assert settings.max_revision_cycles == 3
    assert settings.skip_verification is False
    assert settings.skip_review is False
    assert settings.min_quality_score == 0.8
    assert settings.retry_policy.max_attempts == 3
    assert settings.retry_policy.backoff_multiplier == 2.0
    assert settings.approval.auto_approve is True
    assert settings.approval.timeout_minutes == 30
    assert settings.output.directory == "output"


def test_shipped_topic_example_loads():
    brief = load_topic_brief(str(PROJECT_ROOT / "config" / "topic.example.yaml"))

    assert brief.topic
    assert brief.target_length > 0


def test_partial_file_uses_defaults(tmp_path):
    path = _write(tmp_path, "skip_review: true\nretry_policy:\n  max_attempts: 5\n")

    settings = load_pipeline_settings(path, environ={})

    assert settings.skip_review is True
    assert settings.retry_policy.max_attempts == 5
    assert settings.retry_policy.initial_delay == 1.0
    assert settings.max_revision_cycles == 3


def test_empty_file_gives_defaults(tmp_path):
    settings = load_pipeline_settings(_write(tmp_path, ""), environ={})

    assert settings.min_quality_score == 0.8


def test_env_overrides_win_over_file(tmp_path):
    path = _write(tmp_path, "max_revision_cycles: 3\nskip_verification: false\n")
    environ = {
        "PIPELINE_MAX_REVISION_CYCLES": "2",
        "PIPELINE_SKIP_VERIFICATION": "true",
        "PIPELINE_MIN_QUALITY_SCORE": " 0.75 ",
        "PIPELINE_SKIP_REVIEW": "",
    }

    settings = load_pipeline_settings(path, environ=environ)

    assert settings.max_revision_cycles == 2
    assert settings.skip_verification is True
    assert settings.min_quality_score == 0.75
    assert settings.skip_review is False


def test_apply_env_overrides_does_not_mutate_input():
    raw = {"skip_review": False}

    merged = apply_env_overrides(raw, {"PIPELINE_SKIP_REVIEW": "true"})

    assert merged["skip_review"] == "true"
    assert raw == {"skip_review": False}


def test_missing_file_fails_fast(tmp_path):
    with pytest.raises(FileNotFoundError, match="Missing config file"):
        load_pipeline_settings(str(tmp_path / "nope.yaml"), environ={})


def test_non_mapping_root_is_rejected(tmp_path):
    with pytest.raises(ValueError, match="Expected object"):
        load_pipeline_settings(_write(tmp_path, "- one\n- two\n"), environ={})


@pytest.mark.parametrize(
    "text",
    [
        "max_revision_cycles: 0\n",
        "min_quality_score: 1.5\n",
        "retry_policy:\n  backoff_multiplier: 0.5\n",
        "retry_policy:\n  max_attempts: 0\n",
    ],
)
def test_invalid_values_are_rejected(tmp_path, text):
    with pytest.raises(ValidationError):
        load_pipeline_settings(_write(tmp_path, text), environ={})


def test_substitute_env_vars(monkeypatch):
    monkeypatch.setenv("ARTICLE_AUDIENCE", "students")
    monkeypatch.delenv("UNSET_VARIABLE_FOR_TEST", raising=False)

    value = substitute_env_vars(
        {"audience": "${ARTICLE_AUDIENCE}", "pages": ["${UNSET_VARIABLE_FOR_TEST}"], "length": 800}
    )

    assert value == {"audience": "students", "pages": ["${UNSET_VARIABLE_FOR_TEST}"], "length": 800}


def test_load_topic_brief(tmp_path, monkeypatch):
    monkeypatch.setenv("ARTICLE_AUDIENCE", "hobbyists")
    path = _write(
        tmp_path,
        "topic: Sourdough starters\naudience: ${ARTICLE_AUDIENCE}\ntarget_length: 800\n"
        "required_sections:\n  - History\n  - Feeding\n",
        name="topic.yaml",
    )

    brief = load_topic_brief(path)

    assert brief.topic == "Sourdough starters"
    assert brief.audience == "hobbyists"
    assert brief.required_sections == ["History", "Feeding"]


def test_topic_brief_without_topic_is_rejected(tmp_path):
    with pytest.raises(ValidationError):
        load_topic_brief(_write(tmp_path, "audience: anyone\n", name="topic.yaml"))
