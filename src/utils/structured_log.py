"""Structured logging for a machine-parseable audit trail of pipeline runs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
from structlog.processors import JSONRenderer
from structlog.typing import Processor

_configured = False
_logger: structlog.BoundLogger | None = None


def configure_run_logging(log_dir: str) -> Path:
    """One-time setup at pipeline start. Writes JSON lines to {log_dir}/pipeline.jsonl."""
    global _configured, _logger
    events_path = Path(log_dir) / "pipeline.jsonl"
    if _configured:
        return events_path
    events_path.parent.mkdir(parents=True, exist_ok=True)
    file_handle = open(events_path, "a", encoding="utf-8")

    def _file_logger_factory(*args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file_handle)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        JSONRenderer(),
    ]
    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=_file_logger_factory,
        cache_logger_on_first_use=True,
    )
    _configured = True
    _logger = structlog.get_logger()
    return events_path


def log_phase(phase: str, action: str, **summary: Any) -> None:
    """Log a phase boundary (action: start|done|skipped|failed)."""
    if _logger is not None:
        _logger.info("phase", phase=phase, action=action, **summary)


def log_event(event_type: str, message: str, **data: Any) -> None:
    """Log a monitoring event (approvals, revisions, run start and end)."""
    if _logger is not None:
        _logger.info(event_type, message=message, **data)


# ---------------------------------------------------------------------------
# JSONL replay helpers
# ---------------------------------------------------------------------------

_INTERNAL_FIELDS = ("event", "level", "timestamp")


def normalize_jsonl_event(entry: dict[str, Any]) -> dict[str, Any] | None:
    """Convert one pipeline.jsonl line to a flat event dict.

    structlog writes the event name into the "event" key and adds "timestamp"
    and "level". We remap to "type" + "ts" and drop the internal fields.
    """
    ev = entry.get("event")
    if not ev:
        return None
    ts = entry.get("timestamp", "")

    if ev == "phase":
        action = entry.get("action")
        if action not in ("start", "done", "skipped", "failed"):
            return None
        out = {k: v for k, v in entry.items() if k not in (*_INTERNAL_FIELDS, "action")}
        out["type"] = f"phase_{action}"
        out["ts"] = ts
        return out

    out = {k: v for k, v in entry.items() if k not in _INTERNAL_FIELDS}
    out["type"] = ev
    out["ts"] = ts
    return out


def load_events_from_jsonl(path: str) -> list[dict[str, Any]]:
    """Read a pipeline.jsonl file and return normalized event dicts.

    Skips lines that fail to parse or map to no known event type.
    """
    result: list[dict[str, Any]] = []
    try:
        with open(path, encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    continue
                normalized = normalize_jsonl_event(entry)
                if normalized is not None:
                    result.append(normalized)
    except OSError:
        pass
    return result
