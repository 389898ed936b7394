"""Audit sink that writes JSON entries through :mod:`logging`.

Argument and metadata maps are redacted before they are written; any key
containing a sensitive fragment (``password``, ``token``, ``secret`` ...)
is replaced with ``[REDACTED]``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from toolgate.audit.base import AuditEvent, AuditEventType
from toolgate.policy.models import CallerIdentity, Decision, ToolCallContext

REDACTED = "[REDACTED]"

SENSITIVE_FIELD_FRAGMENTS: tuple[str, ...] = (
    "password",
    "token",
    "secret",
    "apikey",
    "api_key",
    "authorization",
    "auth",
    "credential",
    "privatekey",
    "private_key",
    "sessionid",
    "session_id",
    "cookie",
)


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(fragment in lowered for fragment in SENSITIVE_FIELD_FRAGMENTS)


def redact_sensitive_fields(value: Any, redact_value: str = REDACTED) -> Any:
    """Return a copy of *value* with sensitive mapping keys redacted, recursively."""
    if isinstance(value, dict):
        return {
            k: redact_value if _is_sensitive(str(k)) else redact_sensitive_fields(v, redact_value)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_sensitive_fields(v, redact_value) for v in value]
    return value


def sanitize_for_log(value: str) -> str:
    """Escape line breaks and tabs and drop NUL bytes."""
    return (
        value.replace("\r", "\\r")
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )


class LoggingAuditSink:
    """Serialize each audit event as one JSON log line.

    Satisfies the :class:`~toolgate.audit.base.AuditSink` protocol.
    Tool-call notifications emit a ``tool_call`` and a ``policy_decision``
    entry.
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        *,
        level: int = logging.INFO,
        redact: bool = True,
    ) -> None:
        self._logger = logger or logging.getLogger("toolgate.audit")
        self._level = level
        self._redact = redact

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    async def tool_call(self, context: ToolCallContext, decision: Decision) -> None:
        self._write(AuditEvent(event_type=AuditEventType.TOOL_CALL, context=context, decision=decision))
        self._write(
            AuditEvent(event_type=AuditEventType.POLICY_DECISION, context=context, decision=decision)
        )

    async def approval_granted(self, context: ToolCallContext, approver: CallerIdentity) -> None:
        self._write(AuditEvent(event_type=AuditEventType.APPROVAL_GRANTED, context=context, actor=approver))

    async def approval_denied(self, context: ToolCallContext, denier: CallerIdentity) -> None:
        self._write(AuditEvent(event_type=AuditEventType.APPROVAL_DENIED, context=context, actor=denier))

    async def execution_success(self, context: ToolCallContext, output: Any = None) -> None:
        self._write(AuditEvent(event_type=AuditEventType.EXECUTION_SUCCESS, context=context, output=output))

    async def execution_failure(self, context: ToolCallContext, error: str) -> None:
        self._write(
            AuditEvent(
                event_type=AuditEventType.EXECUTION_FAILURE,
                context=context,
                error=sanitize_for_log(error),
            )
        )

    def format_event(self, event: AuditEvent) -> str:
        """Render *event* as a single-line JSON string."""
        data = event.model_dump(mode="json", exclude={"output"}, exclude_none=True)
        if event.output is not None:
            data["output"] = event.output
        if self._redact:
            ctx = data["context"]
            for key in ("args", "metadata"):
                if ctx.get(key) is not None:
                    ctx[key] = redact_sensitive_fields(ctx[key])
            if "output" in data:
                data["output"] = redact_sensitive_fields(data["output"])
        return json.dumps(data, default=str, sort_keys=True)

    def _write(self, event: AuditEvent) -> None:
        self._logger.log(self._level, "%s", self.format_event(event))
