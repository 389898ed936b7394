"""Tests for LoggingAuditSink and its redaction helpers."""

import json
import logging

import pytest

from toolgate.audit.base import AuditSink
from toolgate.audit.logging_sink import (
    REDACTED,
    LoggingAuditSink,
    redact_sensitive_fields,
    sanitize_for_log,
)
from toolgate.policy.models import Decision, PolicyEffect


def _entries(caplog: pytest.LogCaptureFixture) -> list[dict]:
    return [json.loads(r.getMessage()) for r in caplog.records if r.name == "toolgate.audit"]


class TestRedaction:
    def test_sensitive_keys_redacted(self) -> None:
        data = {"query": "open bugs", "apiKey": "abc", "Authorization": "Bearer x"}
        assert redact_sensitive_fields(data) == {
            "query": "open bugs",
            "apiKey": REDACTED,
            "Authorization": REDACTED,
        }

    def test_nested_structures(self) -> None:
        data = {"items": [{"password": "p", "name": "n"}], "inner": {"session_id": "s"}}
        assert redact_sensitive_fields(data) == {
            "items": [{"password": REDACTED, "name": "n"}],
            "inner": {"session_id": REDACTED},
        }

    def test_input_not_mutated(self) -> None:
        data = {"token": "t"}
        redact_sensitive_fields(data)
        assert data == {"token": "t"}

    def test_scalars_pass_through(self) -> None:
        assert redact_sensitive_fields("token") == "token"
        assert redact_sensitive_fields(None) is None


class TestSanitize:
    def test_escapes_line_breaks(self) -> None:
        assert sanitize_for_log("a\nb\r\tc\x00") == "a\\nb\\r\\tc"


class TestLoggingAuditSink:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(LoggingAuditSink(), AuditSink)

    async def test_tool_call_writes_call_and_decision(self, caplog, make_context) -> None:
        caplog.set_level(logging.INFO, logger="toolgate.audit")
        sink = LoggingAuditSink()
        ctx = make_context(args={"project": "OPS", "password": "hunter2"})
        decision = Decision(effect=PolicyEffect.ALLOW, reason="ok", rule_id="r1")

        await sink.tool_call(ctx, decision)

        entries = _entries(caplog)
        assert [e["event_type"] for e in entries] == ["tool_call", "policy_decision"]
        assert entries[0]["decision"]["rule_id"] == "r1"
        assert entries[0]["context"]["args"] == {"project": "OPS", "password": REDACTED}
        assert "hunter2" not in caplog.text

    async def test_redaction_can_be_disabled(self, caplog, make_context) -> None:
        caplog.set_level(logging.INFO, logger="toolgate.audit")
        sink = LoggingAuditSink(redact=False)
        await sink.execution_success(make_context(), {"token": "visible"})
        assert _entries(caplog)[0]["output"] == {"token": "visible"}

    async def test_output_is_redacted(self, caplog, make_context) -> None:
        caplog.set_level(logging.INFO, logger="toolgate.audit")
        await LoggingAuditSink().execution_success(make_context(), {"secret": "s", "n": 1})
        assert _entries(caplog)[0]["output"] == {"secret": REDACTED, "n": 1}

    async def test_failure_message_sanitized(self, caplog, make_context) -> None:
        caplog.set_level(logging.INFO, logger="toolgate.audit")
        await LoggingAuditSink().execution_failure(make_context(), "line1\nline2")
        entry = _entries(caplog)[0]
        assert entry["event_type"] == "execution_failure"
        assert entry["error"] == "line1\\nline2"

    async def test_actor_recorded(self, caplog, make_context, approver) -> None:
        caplog.set_level(logging.INFO, logger="toolgate.audit")
        await LoggingAuditSink().approval_denied(make_context(), approver)
        entry = _entries(caplog)[0]
        assert entry["event_type"] == "approval_denied"
        assert entry["actor"]["id"] == approver.id

    async def test_custom_logger_and_level(self, caplog, make_context) -> None:
        custom = logging.getLogger("audit.custom")
        caplog.set_level(logging.DEBUG, logger="audit.custom")
        sink = LoggingAuditSink(custom, level=logging.DEBUG)
        await sink.approval_granted(make_context(), make_context().caller)
        assert sink.logger is custom
        assert [r.levelno for r in caplog.records if r.name == "audit.custom"] == [logging.DEBUG]

    async def test_non_json_output_stringified(self, caplog, make_context) -> None:
        caplog.set_level(logging.INFO, logger="toolgate.audit")

        class Opaque:
            def __str__(self) -> str:
                return "opaque-result"

        await LoggingAuditSink().execution_success(make_context(), Opaque())
        assert _entries(caplog)[0]["output"] == "opaque-result"
