"""
Pytest configuration and fixtures.
"""

import sys
from pathlib import Path

import pytest
import structlog

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.models import PipelineSettings, RetryPolicy, TopicBrief
from src.monitoring import PipelineMonitoringService
from src.orchestration.pipeline import PipelineOrchestrator
from tests.fixtures.mock_executors import (
    RecordingApprovalGate,
    RecordingDiagnosticSink,
    RecordingOutputSink,
    RecordingSleep,
    make_executors,
)


@pytest.fixture
def topic_brief() -> TopicBrief:
    """Topic brief used by the pipeline scenarios."""
    return TopicBrief(topic="Test", audience="testers", target_length=500)


@pytest.fixture
def retry_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, initial_delay=1.0, backoff_multiplier=2.0)


@pytest.fixture
def settings(retry_policy) -> PipelineSettings:
    return PipelineSettings(max_revision_cycles=3, min_quality_score=0.8, retry_policy=retry_policy)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def approval_gate() -> RecordingApprovalGate:
    return RecordingApprovalGate()


@pytest.fixture
def output_sink() -> RecordingOutputSink:
    return RecordingOutputSink()


@pytest.fixture
def diagnostic_sink() -> RecordingDiagnosticSink:
    return RecordingDiagnosticSink()


@pytest.fixture
def executors():
    return make_executors()


@pytest.fixture
def build_orchestrator(approval_gate, output_sink, diagnostic_sink, sleep, settings):
    """Factory building an orchestrator around the recording collaborators."""

    def _build(executors, settings_override=None, **kwargs):
        options = {
            "approval_gate": approval_gate,
            "output_sink": output_sink,
            "settings": settings_override or settings,
            "diagnostic_sink": diagnostic_sink,
            "monitoring": PipelineMonitoringService(listeners=[]),
            "sleep": sleep,
        }
        options.update(kwargs)
        return PipelineOrchestrator(executors, **options)

    return _build


@pytest.fixture(autouse=True)
def clear_log_context():
    """Keep bound run context from leaking between tests."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
