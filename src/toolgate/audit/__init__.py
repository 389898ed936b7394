"""Audit subsystem: sinks that record every gateway event."""

from toolgate.audit.base import AuditEvent, AuditEventType, AuditSink
from toolgate.audit.logging_sink import LoggingAuditSink, redact_sensitive_fields, sanitize_for_log
from toolgate.audit.memory import InMemoryAuditSink

__all__ = [
    "AuditEvent",
    "AuditEventType",
    "AuditSink",
    "InMemoryAuditSink",
    "LoggingAuditSink",
    "redact_sensitive_fields",
    "sanitize_for_log",
]
