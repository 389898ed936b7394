"""In-memory audit sink: keeps events in a list (embedding, dry runs, tests)."""

from __future__ import annotations

from typing import Any

from toolgate.audit.base import AuditEvent, AuditEventType
from toolgate.policy.models import CallerIdentity, Decision, ToolCallContext


class InMemoryAuditSink:
    """Append every notification to :attr:`events`.

    Satisfies the :class:`~toolgate.audit.base.AuditSink` protocol.
    """

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    async def tool_call(self, context: ToolCallContext, decision: Decision) -> None:
        self._record(AuditEventType.TOOL_CALL, context, decision=decision)

    async def approval_granted(self, context: ToolCallContext, approver: CallerIdentity) -> None:
        self._record(AuditEventType.APPROVAL_GRANTED, context, actor=approver)

    async def approval_denied(self, context: ToolCallContext, denier: CallerIdentity) -> None:
        self._record(AuditEventType.APPROVAL_DENIED, context, actor=denier)

    async def execution_success(self, context: ToolCallContext, output: Any = None) -> None:
        self._record(AuditEventType.EXECUTION_SUCCESS, context, output=output)

    async def execution_failure(self, context: ToolCallContext, error: str) -> None:
        self._record(AuditEventType.EXECUTION_FAILURE, context, error=error)

    def of_type(self, event_type: AuditEventType) -> list[AuditEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def clear(self) -> None:
        self.events.clear()

    def _record(self, event_type: AuditEventType, context: ToolCallContext, **fields: Any) -> None:
        self.events.append(AuditEvent(event_type=event_type, context=context, **fields))
