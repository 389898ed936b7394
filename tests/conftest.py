"""Shared fixtures for gateway tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from toolgate.policy.models import CallerIdentity, CallerKind, Severity, ToolCallContext


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def agent() -> CallerIdentity:
    return CallerIdentity(id="agent-001", name="Test Agent", kind=CallerKind.AGENT)


@pytest.fixture
def approver() -> CallerIdentity:
    return CallerIdentity(id="approver-001", name="Approver", kind=CallerKind.HUMAN)


@pytest.fixture
def make_context(agent: CallerIdentity):
    def _make(
        tool: str = "jira",
        action: str = "search_issues",
        severity: Severity = Severity.SAFE,
        caller: CallerIdentity | None = None,
        **kwargs,
    ) -> ToolCallContext:
        return ToolCallContext.new(tool, action, severity, caller or agent, **kwargs)

    return _make
