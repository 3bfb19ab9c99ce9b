"""YAML and env loader with fail-fast validation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from src.models import PipelineSettings, TopicBrief

DEFAULT_SETTINGS_PATH = "config/pipeline.yaml"

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

# Environment variable -> top-level PipelineSettings field
_ENV_OVERRIDES: dict[str, str] = {
    "PIPELINE_MAX_REVISION_CYCLES": "max_revision_cycles",
    "PIPELINE_SKIP_VERIFICATION": "skip_verification",
    "PIPELINE_SKIP_REVIEW": "skip_review",
    "PIPELINE_MIN_QUALITY_SCORE": "min_quality_score",
}


def _read_yaml(path: str) -> dict:
    resolved = Path(path)
    if not resolved.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with resolved.open("r", encoding="utf-8") as file_obj:
        loaded = yaml.safe_load(file_obj) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Expected object at root of YAML file: {path}")
    return loaded


def substitute_env_vars(value: Any) -> Any:
    """Recursively replace ${VAR_NAME} placeholders; unknown variables are left as-is."""
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda match: os.getenv(match.group(1), match.group(0)), value)
    if isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [substitute_env_vars(item) for item in value]
    return value


def apply_env_overrides(raw: dict, environ: Mapping[str, str] | None = None) -> dict:
    """Return a copy of ``raw`` with PIPELINE_* environment overrides applied.

    Values stay strings; pydantic coerces them ("true", "2", "0.75") during validation.
    """
    environ = os.environ if environ is None else environ
    merged = dict(raw)
    for env_key, field_name in _ENV_OVERRIDES.items():
        value = environ.get(env_key)
        if value is not None and value.strip():
            merged[field_name] = value.strip()
    return merged


def load_pipeline_settings(
    path: str = DEFAULT_SETTINGS_PATH,
    environ: Mapping[str, str] | None = None,
) -> PipelineSettings:
    load_dotenv()
    raw = substitute_env_vars(_read_yaml(path))
    return PipelineSettings.model_validate(apply_env_overrides(raw, environ))


def load_topic_brief(path: str) -> TopicBrief:
    """Load a topic brief from YAML (keys: topic, audience, target_length, ...)."""
    return TopicBrief.model_validate(substitute_env_vars(_read_yaml(path)))
