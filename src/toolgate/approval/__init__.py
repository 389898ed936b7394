"""Approval subsystem: human-in-the-loop tokens for review decisions."""

from toolgate.approval.models import (
    ApprovalFailure,
    ApprovalOutcome,
    ApprovalStatus,
    PendingApproval,
)
from toolgate.approval.store import ApprovalStore
from toolgate.approval.sweeper import ApprovalSweeper

__all__ = [
    "ApprovalFailure",
    "ApprovalOutcome",
    "ApprovalStatus",
    "ApprovalStore",
    "ApprovalSweeper",
    "PendingApproval",
]
