"""Audit sink protocol and event model.

The gateway awaits every notification before moving on, and does not catch
sink failures: a broken audit trail fails the whole operation.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from toolgate.policy.models import CallerIdentity, Decision, ToolCallContext


class AuditEventType(str, Enum):
    TOOL_CALL = "tool_call"
    POLICY_DECISION = "policy_decision"
    APPROVAL_GRANTED = "approval_granted"
    APPROVAL_DENIED = "approval_denied"
    EXECUTION_SUCCESS = "execution_success"
    EXECUTION_FAILURE = "execution_failure"


class AuditEvent(BaseModel):
    """One audit trail entry."""

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    event_type: AuditEventType
    context: ToolCallContext
    decision: Decision | None = None
    actor: CallerIdentity | None = None
    output: Any = None
    error: str | None = None


@runtime_checkable
class AuditSink(Protocol):
    """Receives every decision, approval and execution event."""

    async def tool_call(self, context: ToolCallContext, decision: Decision) -> None: ...

    async def approval_granted(self, context: ToolCallContext, approver: CallerIdentity) -> None: ...

    async def approval_denied(self, context: ToolCallContext, denier: CallerIdentity) -> None: ...

    async def execution_success(self, context: ToolCallContext, output: Any = None) -> None: ...

    async def execution_failure(self, context: ToolCallContext, error: str) -> None: ...
