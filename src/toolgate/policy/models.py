"""Data models for the policy subsystem.

Wire models accept both snake_case field names and the camelCase names used
by policy documents (``minSeverity``, ``callerType``, ``defaultEffect``).
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Severity(str, Enum):
    """Declared risk tier of an operation, ordered SAFE < ... < CRITICAL."""

    SAFE = "safe"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def at_least(self, other: Severity) -> bool:
        """Ordinal comparison; never compares the string values."""
        return self.rank >= other.rank


_SEVERITY_RANK: dict[Severity, int] = {s: i for i, s in enumerate(Severity)}


class CallerKind(str, Enum):
    """Kind of principal invoking a tool."""

    HUMAN = "human"
    AGENT = "agent"
    SERVICE = "service"


class PolicyEffect(str, Enum):
    """Effect a policy rule prescribes for a call."""

    ALLOW = "allow"
    DENY = "deny"
    REVIEW = "review"


class CallerIdentity(BaseModel):
    """Who is making the call."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    kind: CallerKind = Field(..., alias="type")
    metadata: dict[str, Any] = Field(default_factory=dict)


class ToolCallContext(BaseModel):
    """Immutable record of one tool-call attempt."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    call_id: str = Field(..., alias="callId")
    tool: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)
    severity: Severity
    caller: CallerIdentity
    args: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None
    timestamp: datetime

    @classmethod
    def new(
        cls,
        tool: str,
        action: str,
        severity: Severity,
        caller: CallerIdentity,
        *,
        args: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
        timestamp: datetime | None = None,
    ) -> ToolCallContext:
        """Build a context with a fresh call id."""
        return cls(
            call_id=str(uuid.uuid4()),
            tool=tool,
            action=action,
            severity=severity,
            caller=caller,
            args=args,
            metadata=metadata,
            timestamp=timestamp or datetime.now(UTC),
        )


Predicate = Callable[[ToolCallContext], bool]


class RuleMatch(BaseModel):
    """Match conditions of a rule. Absent fields match anything."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tool: str | None = Field(
        default=None,
        description="Tool name or '*' glob; an empty string matches any tool.",
    )
    action: str | None = Field(
        default=None,
        description="Action name or '*' glob; an empty string matches any action.",
    )
    min_severity: Severity | None = Field(default=None, alias="minSeverity")
    caller_kind: CallerKind | None = Field(default=None, alias="callerType")
    condition: str | None = Field(
        default=None,
        description="Name of a predicate in the engine's PredicateRegistry.",
    )
    predicate: Predicate | None = Field(default=None, exclude=True, repr=False)


class PolicyRule(BaseModel):
    """A single ordered policy rule."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    description: str | None = None
    match: RuleMatch = Field(default_factory=RuleMatch)
    effect: PolicyEffect
    reason: str | None = None


class Policy(BaseModel):
    """Ordered rules (first match wins) plus a fallback effect."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    rules: tuple[PolicyRule, ...] = ()
    default_effect: PolicyEffect = Field(..., alias="defaultEffect")
    default_reason: str | None = Field(default=None, alias="defaultReason")

    @model_validator(mode="after")
    def _unique_rule_ids(self) -> Policy:
        seen: set[str] = set()
        for rule in self.rules:
            if rule.id in seen:
                msg = f"duplicate rule id '{rule.id}'"
                raise ValueError(msg)
            seen.add(rule.id)
        return self

    def get_rule(self, rule_id: str) -> PolicyRule | None:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the camelCase document shape; predicates are dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Decision(BaseModel):
    """The engine's verdict on a context."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    effect: PolicyEffect
    reason: str
    rule_id: str | None = Field(default=None, alias="rule")
    approval_token: str | None = Field(default=None, alias="approvalToken")

    @model_validator(mode="after")
    def _token_iff_review(self) -> Decision:
        if self.effect == PolicyEffect.REVIEW and not self.approval_token:
            msg = "review decisions require an approval token"
            raise ValueError(msg)
        if self.effect != PolicyEffect.REVIEW and self.approval_token is not None:
            msg = f"{self.effect.value} decisions cannot carry an approval token"
            raise ValueError(msg)
        return self
