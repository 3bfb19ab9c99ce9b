"""
Output and diagnostic sinks.
"""

from .diagnostics import LoggingDiagnosticSink
from .file_sink import FileOutputSink
from .protocols import DiagnosticSink, FailedDocumentSink, IssueReport, OutputSink

__all__ = [
    "DiagnosticSink",
    "FailedDocumentSink",
    "FileOutputSink",
    "IssueReport",
    "LoggingDiagnosticSink",
    "OutputSink",
]
