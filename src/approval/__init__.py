"""
Human approval checkpoints.
"""

from .callbacks import ApprovalCallback, AutoApprovalCallback, ConsoleApprovalCallback
from .models import ApprovalDecision, ApprovalRequest
from .service import ApprovalGate, ApprovalService

__all__ = [
    "ApprovalCallback",
    "ApprovalDecision",
    "ApprovalGate",
    "ApprovalRequest",
    "ApprovalService",
    "AutoApprovalCallback",
    "ConsoleApprovalCallback",
]
