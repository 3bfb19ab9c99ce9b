"""
Pipeline Initializer

Wires the orchestrator's collaborators from a settings file.
"""

from typing import Mapping, Optional

from ..agents.base_agent import LLMBackend
from ..agents.phase_agents import build_agents
from ..approval.service import ApprovalService
from ..config.loader import DEFAULT_SETTINGS_PATH, load_pipeline_settings
from ..models.config import PipelineSettings
from ..models.enums import DocumentState
from ..monitoring.listeners import LoggingEventListener, StructuredLogListener
from ..monitoring.service import PipelineMonitoringService
from ..output.diagnostics import LoggingDiagnosticSink
from ..output.file_sink import FileOutputSink
from ..utils import structured_log
from ..utils.logging_config import LogLevel, get_logger, setup_logging
from .phases import PhaseExecutor
from .pipeline import PipelineOrchestrator

logger = get_logger(__name__)


class PipelineInitializer:
    """Builds a ready-to-run PipelineOrchestrator."""

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        config_path: str = DEFAULT_SETTINGS_PATH,
        log_dir: Optional[str] = None,
        log_level: LogLevel = LogLevel.NORMAL,
    ):
        """
        Initialize pipeline components.

        Args:
            settings: Settings to use; loaded from ``config_path`` when omitted
            config_path: Path to the pipeline YAML file
            log_dir: Directory for the log file and JSON-lines audit trail
            log_level: Console log level
        """
        self.settings = settings or load_pipeline_settings(config_path)

        setup_logging(
            level=log_level,
            log_to_file=log_dir is not None,
            log_file=f"{log_dir}/pipeline.log" if log_dir else None,
        )

        listeners = [LoggingEventListener()]
        if log_dir is not None:
            events_path = structured_log.configure_run_logging(log_dir)
            listeners.append(StructuredLogListener())
            logger.debug(f"Writing pipeline events to {events_path}")

        self.monitoring = PipelineMonitoringService(listeners)
        self.approval_service = ApprovalService.from_settings(self.settings.approval, self.monitoring)
        self.output_sink = FileOutputSink(self.settings.output)
        self.diagnostic_sink = LoggingDiagnosticSink()

    def create_orchestrator(
        self,
        backend: Optional[LLMBackend] = None,
        executors: Optional[Mapping[DocumentState, PhaseExecutor]] = None,
    ) -> PipelineOrchestrator:
        """
        Create the orchestrator.

        Args:
            backend: Text-generation client for the default agents
            executors: Custom executor table (takes precedence over ``backend``)
        """
        if executors is None:
            if backend is None:
                raise ValueError("Either backend or executors must be provided")
            executors = build_agents(backend, existing_pages=self.output_sink.existing_pages)

        return PipelineOrchestrator(
            executors=executors,
            approval_gate=self.approval_service,
            output_sink=self.output_sink,
            settings=self.settings,
            diagnostic_sink=self.diagnostic_sink,
            monitoring=self.monitoring,
        )
