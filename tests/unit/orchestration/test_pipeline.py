"""
Unit tests for PipelineOrchestrator.
"""

import pytest

from src.models import DocumentState, PipelineSettings, RecommendedAction, StateTransitionError, WorkItem
from src.monitoring import PipelineMonitoringService
from src.orchestration.exceptions import ExecutorError, ResponseParseError
from tests.fixtures.mock_executors import (
    REVIEW_ISSUE,
    VERIFICATION_ISSUE,
    RecordingApprovalGate,
    RecordingDiagnosticSink,
    RecordingOutputSink,
    make_executors,
    research_brief,
)

APPROVE = RecommendedAction.APPROVE
REVISE = RecommendedAction.REVISE
REJECT = RecommendedAction.REJECT

PHASE_ORDER = [
    DocumentState.RESEARCHING,
    DocumentState.DRAFTING,
    DocumentState.VERIFYING,
    DocumentState.EDITING,
    DocumentState.REVIEWING,
]


def _settings(**overrides) -> PipelineSettings:
    return PipelineSettings(**overrides)


# Happy path


def test_happy_path_publishes(build_orchestrator, executors, topic_brief, approval_gate, output_sink):
    """All phases approve and the quality score clears the minimum."""
    result = build_orchestrator(executors).run(topic_brief)

    assert result.success is True
    assert result.error_message is None
    assert result.failed_at_state is None
    assert result.output_path is not None
    assert result.output_path.name == "Test.txt"
    assert result.work_item.state == DocumentState.PUBLISHED
    assert approval_gate.call_count == 5
    assert approval_gate.states == PHASE_ORDER
    assert len(output_sink.written) == 1
    assert result.elapsed_seconds >= 0


def test_happy_path_invokes_each_executor_once(build_orchestrator, executors, topic_brief):
    build_orchestrator(executors).run(topic_brief)

    for state in PHASE_ORDER:
        assert executors[state].process_calls == 1
        assert executors[state].validate_calls == 1


def test_contributions_recorded_in_execution_order(build_orchestrator, executors, topic_brief):
    result = build_orchestrator(executors).run(topic_brief)

    contributions = result.work_item.contributions
    assert [c.phase for c in contributions] == [state.value for state in PHASE_ORDER]
    assert all(c.metrics["attempts"] == 1 for c in contributions)
    assert all(c.metrics["cycle"] == 0 for c in contributions)
    assert all(c.duration_seconds >= 0 for c in contributions)


def test_contributions_include_revision_reruns_in_order(build_orchestrator, topic_brief):
    executors = make_executors(verification_actions=[REVISE, APPROVE], review_actions=[REVISE, APPROVE])

    result = build_orchestrator(executors).run(topic_brief)

    assert result.success is True
    contributions = result.work_item.contributions
    assert [c.phase for c in contributions] == [
        state.value
        for state in [
            DocumentState.RESEARCHING,
            DocumentState.DRAFTING,
            DocumentState.VERIFYING,
            DocumentState.DRAFTING,
            DocumentState.VERIFYING,
            DocumentState.EDITING,
            DocumentState.REVIEWING,
            DocumentState.EDITING,
            DocumentState.REVIEWING,
        ]
    ]
    assert [c.metrics["cycle"] for c in contributions] == [0, 0, 0, 1, 1, 0, 0, 1, 1]


def test_execute_is_alias_for_run(build_orchestrator, executors, topic_brief):
    result = build_orchestrator(executors).execute(topic_brief)

    assert result.success is True


def test_published_work_item_is_immutable(build_orchestrator, executors, topic_brief):
    result = build_orchestrator(executors).run(topic_brief)

    with pytest.raises(StateTransitionError):
        result.work_item.set_output(DocumentState.RESEARCHING, research_brief())
    with pytest.raises(StateTransitionError):
        result.work_item.transition_to(DocumentState.FAILED)


def test_runs_do_not_share_work_items(build_orchestrator, topic_brief):
    orchestrator = build_orchestrator(make_executors())

    first = orchestrator.run(topic_brief)
    second = orchestrator.run(topic_brief)

    assert first.work_item is not second.work_item
    assert first.work_item.id != second.work_item.id
    assert first.success and second.success


# Verification revision loop


def test_verification_revise_twice_then_approve(build_orchestrator, topic_brief, diagnostic_sink):
    executors = make_executors(verification_actions=[REVISE, REVISE, APPROVE])

    result = build_orchestrator(executors).run(topic_brief)

    assert result.success is True
    assert executors[DocumentState.DRAFTING].process_calls == 3
    assert executors[DocumentState.VERIFYING].process_calls == 3
    assert result.work_item.verification_cycles == 2
    assert diagnostic_sink.reports == []


def test_verification_feedback_reaches_drafting(build_orchestrator, topic_brief):
    executors = make_executors(verification_actions=[REVISE, APPROVE])

    result = build_orchestrator(executors).run(topic_brief)

    seen = executors[DocumentState.DRAFTING].feedback_seen
    assert seen[0] is None
    assert any(VERIFICATION_ISSUE in issue for issue in seen[1].issues)
    assert seen[1].source == DocumentState.VERIFYING
    assert result.work_item.feedback_for(DocumentState.DRAFTING) is None


def test_redrafting_follows_backward_edge(build_orchestrator, topic_brief, approval_gate):
    executors = make_executors(verification_actions=[REVISE, APPROVE])

    build_orchestrator(executors).run(topic_brief)

    assert approval_gate.states == [
        DocumentState.RESEARCHING,
        DocumentState.DRAFTING,
        DocumentState.VERIFYING,
        DocumentState.DRAFTING,
        DocumentState.VERIFYING,
        DocumentState.EDITING,
        DocumentState.REVIEWING,
    ]


@pytest.mark.parametrize("max_cycles", [1, 2, 3, 4])
def test_verification_stuck_on_revise_is_bounded(build_orchestrator, topic_brief, diagnostic_sink, max_cycles):
    executors = make_executors(verification_actions=[REVISE])

    result = build_orchestrator(executors, settings_override=_settings(max_revision_cycles=max_cycles)).run(
        topic_brief
    )

    assert result.success is True
    assert executors[DocumentState.VERIFYING].process_calls == max_cycles
    assert executors[DocumentState.DRAFTING].process_calls == max_cycles
    assert result.work_item.verification_cycles == max_cycles
    assert len(diagnostic_sink.reports) == 1


def test_scenario_b_issues_go_to_diagnostics_not_content(build_orchestrator, topic_brief, diagnostic_sink, output_sink):
    """One revision cycle allowed, verification always asks for changes."""
    executors = make_executors(verification_actions=[REVISE])

    result = build_orchestrator(executors, settings_override=_settings(max_revision_cycles=1)).run(topic_brief)

    assert result.success is True
    assert VERIFICATION_ISSUE not in result.work_item.content
    assert VERIFICATION_ISSUE not in result.work_item.draft.content
    assert VERIFICATION_ISSUE not in output_sink.contents[0]
    assert len(diagnostic_sink.reports) == 1
    identifier, report = diagnostic_sink.reports[0]
    assert identifier == "Test"
    assert report is result.work_item.verification_report
    assert any(VERIFICATION_ISSUE in line for line in report.issue_lines())


def test_verification_reject_stops_immediately(build_orchestrator, topic_brief):
    executors = make_executors(verification_actions=[REJECT])

    result = build_orchestrator(executors).run(topic_brief)

    assert result.success is False
    assert result.failed_at_state == DocumentState.VERIFYING
    assert "rejected" in result.error_message
    assert result.work_item.state == DocumentState.REJECTED
    assert executors[DocumentState.VERIFYING].process_calls == 1
    assert executors[DocumentState.DRAFTING].process_calls == 1
    assert executors[DocumentState.EDITING].process_calls == 0


def test_verification_reject_after_revision(build_orchestrator, topic_brief):
    executors = make_executors(verification_actions=[REVISE, REJECT])

    result = build_orchestrator(executors).run(topic_brief)

    assert result.failed_at_state == DocumentState.VERIFYING
    assert executors[DocumentState.VERIFYING].process_calls == 2


def test_diagnostic_sink_failure_does_not_fail_run(build_orchestrator, topic_brief):
    executors = make_executors(verification_actions=[REVISE])
    failing_sink = RecordingDiagnosticSink(error=RuntimeError("disk full"))

    result = build_orchestrator(
        executors,
        settings_override=_settings(max_revision_cycles=1),
        diagnostic_sink=failing_sink,
    ).run(topic_brief)

    assert result.success is True
    assert len(failing_sink.reports) == 1


# Review revision loop


def test_review_revise_twice_then_approve(build_orchestrator, topic_brief):
    executors = make_executors(review_actions=[REVISE, REVISE, APPROVE])

    result = build_orchestrator(executors).run(topic_brief)

    assert result.success is True
    assert executors[DocumentState.EDITING].process_calls == 3
    assert executors[DocumentState.REVIEWING].process_calls == 3
    assert result.work_item.review_cycles == 2
    assert result.work_item.verification_cycles == 0


def test_review_stuck_on_revise_is_bounded(build_orchestrator, topic_brief, diagnostic_sink):
    executors = make_executors(review_actions=[REVISE])

    result = build_orchestrator(executors, settings_override=_settings(max_revision_cycles=2)).run(topic_brief)

    assert result.success is True
    assert executors[DocumentState.REVIEWING].process_calls == 2
    assert executors[DocumentState.EDITING].process_calls == 2
    assert len(diagnostic_sink.reports) == 1
    assert REVIEW_ISSUE not in result.work_item.content


def test_review_feedback_reaches_editing(build_orchestrator, topic_brief):
    executors = make_executors(review_actions=[REVISE, APPROVE])

    build_orchestrator(executors).run(topic_brief)

    seen = executors[DocumentState.EDITING].feedback_seen
    assert seen[0] is None
    assert REVIEW_ISSUE in seen[1].issues


def test_review_reject_fails_at_reviewing(build_orchestrator, topic_brief, output_sink):
    executors = make_executors(review_actions=[REJECT])

    result = build_orchestrator(executors).run(topic_brief)

    assert result.success is False
    assert result.failed_at_state == DocumentState.REVIEWING
    assert "rejected" in result.error_message
    assert result.work_item.state == DocumentState.REJECTED
    assert output_sink.written == []


# Quality gate


@pytest.mark.parametrize("review_action", [APPROVE, REVISE, REJECT])
def test_low_quality_score_fails_at_editing(build_orchestrator, topic_brief, review_action):
    executors = make_executors(quality_scores=[0.7], review_actions=[review_action])

    result = build_orchestrator(executors).run(topic_brief)

    assert result.success is False
    assert result.failed_at_state == DocumentState.EDITING
    assert "Quality score" in result.error_message
    assert result.error_message == "Quality score 0.70 below minimum 0.80"
    assert executors[DocumentState.REVIEWING].process_calls == 0


def test_quality_score_equal_to_minimum_passes(build_orchestrator, topic_brief):
    executors = make_executors(quality_scores=[0.8])

    result = build_orchestrator(executors).run(topic_brief)

    assert result.success is True


def test_quality_gate_checks_re_edited_article(build_orchestrator, topic_brief):
    executors = make_executors(review_actions=[REVISE, APPROVE], quality_scores=[0.9, 0.6])

    result = build_orchestrator(executors).run(topic_brief)

    assert result.failed_at_state == DocumentState.EDITING
    assert "Quality score 0.60" in result.error_message


def test_quality_gate_runs_before_approval(build_orchestrator, topic_brief, approval_gate):
    executors = make_executors(quality_scores=[0.5])

    build_orchestrator(executors).run(topic_brief)

    assert DocumentState.EDITING not in approval_gate.states


# Skipping phases


def test_scenario_c_skip_verification_and_review(build_orchestrator, topic_brief, approval_gate):
    executors = make_executors()

    result = build_orchestrator(
        executors, settings_override=_settings(skip_verification=True, skip_review=True)
    ).run(topic_brief)

    assert result.success is True
    assert executors[DocumentState.RESEARCHING].process_calls == 1
    assert executors[DocumentState.DRAFTING].process_calls == 1
    assert executors[DocumentState.EDITING].process_calls == 1
    assert executors[DocumentState.VERIFYING].process_calls == 0
    assert executors[DocumentState.REVIEWING].process_calls == 0
    assert approval_gate.call_count == 3
    assert result.work_item.verification_report is None
    assert result.work_item.review_report is None


@pytest.mark.parametrize(
    "flag, skipped_state, report_attr",
    [
        ("skip_verification", DocumentState.VERIFYING, "verification_report"),
        ("skip_review", DocumentState.REVIEWING, "review_report"),
    ],
)
def test_skipping_one_phase(build_orchestrator, topic_brief, approval_gate, flag, skipped_state, report_attr):
    executors = make_executors()

    result = build_orchestrator(executors, settings_override=_settings(**{flag: True})).run(topic_brief)

    assert result.success is True
    assert approval_gate.call_count == 4
    assert skipped_state not in approval_gate.states
    assert executors[skipped_state].process_calls == 0
    assert getattr(result.work_item, report_attr) is None


def test_skipped_phase_needs_no_executor(build_orchestrator, topic_brief):
    executors = make_executors()
    del executors[DocumentState.VERIFYING]

    result = build_orchestrator(executors, settings_override=_settings(skip_verification=True)).run(topic_brief)

    assert result.success is True


def test_missing_executor_is_rejected_at_construction(build_orchestrator):
    executors = make_executors()
    del executors[DocumentState.REVIEWING]

    with pytest.raises(ValueError, match="Reviewing"):
        build_orchestrator(executors)


# Approval gate


@pytest.mark.parametrize("state", PHASE_ORDER)
def test_changes_requested_stops_run(build_orchestrator, topic_brief, output_sink, state):
    gate = RecordingApprovalGate(answers={state: False})
    executors = make_executors()

    result = build_orchestrator(executors, approval_gate=gate).run(topic_brief)

    assert result.success is False
    assert "Changes requested" in result.error_message
    assert result.failed_at_state == state
    assert result.work_item.state == DocumentState.FAILED
    assert gate.states[-1] == state
    later = PHASE_ORDER[PHASE_ORDER.index(state) + 1:]
    assert all(executors[s].process_calls == 0 for s in later)
    assert output_sink.written == []


def test_approval_rejection_ends_in_rejected_state(build_orchestrator, topic_brief):
    gate = RecordingApprovalGate(answers={DocumentState.DRAFTING: "reject"})
    executors = make_executors()

    result = build_orchestrator(executors, approval_gate=gate).run(topic_brief)

    assert result.success is False
    assert "rejected" in result.error_message
    assert result.failed_at_state == DocumentState.DRAFTING
    assert result.work_item.state == DocumentState.REJECTED
    assert executors[DocumentState.VERIFYING].process_calls == 0


def test_approval_timeout_fails_run(build_orchestrator, topic_brief, output_sink):
    gate = RecordingApprovalGate(answers={DocumentState.EDITING: "timeout"})
    executors = make_executors()

    result = build_orchestrator(executors, approval_gate=gate).run(topic_brief)

    assert result.success is False
    assert result.failed_at_state == DocumentState.EDITING
    assert result.work_item.state == DocumentState.FAILED
    assert "No approval decision at Editing" in result.error_message
    assert output_sink.written == []


# Retries and failures


def test_transient_failure_is_retried(build_orchestrator, topic_brief, sleep):
    executors = make_executors()
    executors[DocumentState.DRAFTING].failures = [ExecutorError("Request timed out"), None]

    result = build_orchestrator(executors).run(topic_brief)

    assert result.success is True
    assert executors[DocumentState.DRAFTING].process_calls == 2
    assert sleep.delays == [1.0]
    drafting = [c for c in result.work_item.contributions if c.phase == DocumentState.DRAFTING.value]
    assert drafting[0].metrics["attempts"] == 2


def test_retries_exhausted_fails_phase(build_orchestrator, topic_brief, sleep):
    executors = make_executors()
    executors[DocumentState.DRAFTING].failures = [ResponseParseError("bad json")] * 3

    result = build_orchestrator(executors).run(topic_brief)

    assert result.success is False
    assert result.failed_at_state == DocumentState.DRAFTING
    assert "failed after 3 attempts" in result.error_message
    assert "bad json" in result.error_message
    assert sleep.delays == [1.0, 2.0]
    assert result.work_item.state == DocumentState.FAILED


def test_fatal_failure_is_not_retried(build_orchestrator, topic_brief, sleep):
    executors = make_executors()
    executors[DocumentState.RESEARCHING].failures = [ExecutorError("invalid API key", retryable=False)]

    result = build_orchestrator(executors).run(topic_brief)

    assert result.success is False
    assert result.failed_at_state == DocumentState.RESEARCHING
    assert executors[DocumentState.RESEARCHING].process_calls == 1
    assert sleep.delays == []
    assert "invalid API key" in result.error_message


def test_executor_returning_another_work_item_fails_phase(build_orchestrator, topic_brief, sleep):
    executors = make_executors()
    drafting = executors[DocumentState.DRAFTING]
    drafting.process = lambda work_item: WorkItem(work_item.topic_brief)

    result = build_orchestrator(executors).run(topic_brief)

    assert result.success is False
    assert result.failed_at_state == DocumentState.DRAFTING
    assert "returned a different work item" in result.error_message
    assert sleep.delays == []


def test_validation_failure_stops_run(build_orchestrator, topic_brief):
    executors = make_executors()
    executors[DocumentState.DRAFTING].valid = False

    result = build_orchestrator(executors).run(topic_brief)

    assert result.success is False
    assert result.failed_at_state == DocumentState.DRAFTING
    assert result.error_message == "Drafting validation failed"


def test_output_write_failure(build_orchestrator, topic_brief):
    sink = RecordingOutputSink(error=OSError("read-only file system"))

    result = build_orchestrator(make_executors(), output_sink=sink).run(topic_brief)

    assert result.success is False
    assert result.failed_at_state == DocumentState.REVIEWING
    assert "read-only file system" in result.error_message
    assert result.work_item.state == DocumentState.FAILED


def test_output_write_failure_with_review_skipped(build_orchestrator, topic_brief):
    sink = RecordingOutputSink(error=OSError("no space left"))

    result = build_orchestrator(
        make_executors(), output_sink=sink, settings_override=_settings(skip_review=True)
    ).run(topic_brief)

    assert result.failed_at_state == DocumentState.EDITING


def test_unexpected_error_becomes_failure_at_current_state(build_orchestrator, topic_brief):
    class ExplodingGate:
        def check_and_approve(self, work_item):
            raise RuntimeError("gate exploded")

    result = build_orchestrator(make_executors(), approval_gate=ExplodingGate()).run(topic_brief)

    assert result.success is False
    assert result.failed_at_state == DocumentState.RESEARCHING
    assert "gate exploded" in result.error_message
    assert result.work_item.state == DocumentState.FAILED


# Failed document capture


def test_failed_document_saved_when_draft_exists(build_orchestrator, topic_brief, output_sink):
    executors = make_executors(verification_actions=[REJECT])

    result = build_orchestrator(executors).run(topic_brief)

    assert len(output_sink.failed) == 1
    _, failed_state, message = output_sink.failed[0]
    assert failed_state == DocumentState.VERIFYING
    assert message == result.error_message
    assert result.failed_document_path is not None
    assert result.failed_document_path.name == "Test-VERIFYING.txt"


def test_failed_document_not_saved_without_content(build_orchestrator, topic_brief, output_sink):
    executors = make_executors()
    executors[DocumentState.RESEARCHING].failures = [ExecutorError("boom", retryable=False)]

    result = build_orchestrator(executors).run(topic_brief)

    assert output_sink.failed == []
    assert result.failed_document_path is None


def test_failed_document_capture_can_be_disabled(build_orchestrator, topic_brief, output_sink):
    executors = make_executors(verification_actions=[REJECT])
    settings = _settings(output={"save_failed_documents": False})

    result = build_orchestrator(executors, settings_override=settings).run(topic_brief)

    assert output_sink.failed == []
    assert result.failed_document_path is None


# Monitoring


def test_metrics_follow_the_run(build_orchestrator, topic_brief):
    monitoring = PipelineMonitoringService(listeners=[])
    executors = make_executors(verification_actions=[REVISE, APPROVE])

    build_orchestrator(executors, monitoring=monitoring).run(topic_brief)

    metrics = monitoring.metrics
    assert metrics.pipelines_started == 1
    assert metrics.pipelines_completed == 1
    assert metrics.pipelines_failed == 0
    assert metrics.revision_cycles == 1
    assert metrics.phase_invocations(DocumentState.DRAFTING) == 2
    assert metrics.phase_invocations(DocumentState.REVIEWING) == 1


def test_metrics_record_failure_state(build_orchestrator, topic_brief):
    monitoring = PipelineMonitoringService(listeners=[])

    build_orchestrator(make_executors(quality_scores=[0.1]), monitoring=monitoring).run(topic_brief)

    assert monitoring.metrics.pipelines_failed == 1
    assert monitoring.metrics.failures_by_state[DocumentState.EDITING] == 1
