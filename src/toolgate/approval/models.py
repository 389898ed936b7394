"""Data models for the approval lifecycle."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from toolgate.policy.models import CallerIdentity, Decision, ToolCallContext


class ApprovalStatus(str, Enum):
    """Lifecycle state of an approval. Only ``PENDING`` is non-terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    EXPIRED = "expired"


class ApprovalFailure(str, Enum):
    """Why a grant or deny did not go through."""

    NOT_FOUND = "not_found"
    ALREADY_PROCESSED = "already_processed"
    EXPIRED = "expired"


class PendingApproval(BaseModel):
    """Snapshot of an approval record.

    Instances are immutable; the store replaces the whole record on every
    transition so readers never see a half-applied change.
    """

    model_config = ConfigDict(frozen=True)

    token: str
    context: ToolCallContext
    decision: Decision
    created_at: datetime
    expires_at: datetime | None = None
    status: ApprovalStatus = ApprovalStatus.PENDING
    resolved_by: CallerIdentity | None = None
    resolved_at: datetime | None = None

    def is_overdue(self, now: datetime) -> bool:
        """``True`` once wall-clock time has reached ``expires_at``."""
        return self.expires_at is not None and now >= self.expires_at


class ApprovalOutcome(BaseModel):
    """Result of a grant or deny on the store."""

    model_config = ConfigDict(frozen=True)

    success: bool
    approval: PendingApproval | None = None
    failure: ApprovalFailure | None = None
    status: ApprovalStatus | None = Field(
        default=None,
        description="Status that blocked the transition (already_processed only).",
    )
    error: str | None = None

    @classmethod
    def ok(cls, approval: PendingApproval) -> ApprovalOutcome:
        return cls(success=True, approval=approval)

    @classmethod
    def failed(
        cls,
        failure: ApprovalFailure,
        error: str,
        *,
        status: ApprovalStatus | None = None,
    ) -> ApprovalOutcome:
        return cls(success=False, failure=failure, status=status, error=error)
