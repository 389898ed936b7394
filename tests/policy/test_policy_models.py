"""Tests for policy data models."""

import pytest
from pydantic import ValidationError

from toolgate.policy.models import (
    CallerIdentity,
    CallerKind,
    Decision,
    Policy,
    PolicyEffect,
    PolicyRule,
    RuleMatch,
    Severity,
    ToolCallContext,
)


class TestSeverity:
    def test_ordinal_not_lexical(self) -> None:
        # "critical" < "safe" lexically, but CRITICAL is the highest tier
        assert Severity.CRITICAL.rank > Severity.SAFE.rank
        assert Severity.CRITICAL.at_least(Severity.HIGH)
        assert not Severity.LOW.at_least(Severity.MEDIUM)

    def test_full_order(self) -> None:
        order = [Severity.SAFE, Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL]
        assert [s.rank for s in order] == [0, 1, 2, 3, 4]

    def test_at_least_is_reflexive(self) -> None:
        for s in Severity:
            assert s.at_least(s)


class TestCallerIdentity:
    def test_wire_alias(self) -> None:
        caller = CallerIdentity.model_validate({"id": "u1", "name": "User", "type": "human"})
        assert caller.kind == CallerKind.HUMAN
        assert caller.metadata == {}

    def test_immutable(self) -> None:
        caller = CallerIdentity(id="u1", name="User", kind=CallerKind.AGENT)
        with pytest.raises(ValidationError):
            caller.name = "Other"  # type: ignore[misc]


class TestToolCallContext:
    def test_new_assigns_unique_call_ids(self) -> None:
        caller = CallerIdentity(id="a", name="A", kind=CallerKind.AGENT)
        first = ToolCallContext.new("jira", "get_issue", Severity.SAFE, caller)
        second = ToolCallContext.new("jira", "get_issue", Severity.SAFE, caller)
        assert first.call_id != second.call_id
        assert first.timestamp.tzinfo is not None

    def test_requires_tool_name(self) -> None:
        caller = CallerIdentity(id="a", name="A", kind=CallerKind.AGENT)
        with pytest.raises(ValidationError):
            ToolCallContext.new("", "get_issue", Severity.SAFE, caller)


class TestPolicy:
    def test_wire_shape_round_trip(self) -> None:
        policy = Policy.model_validate(
            {
                "rules": [
                    {
                        "id": "deny-deletes",
                        "match": {"action": "delete_*", "minSeverity": "critical", "callerType": "agent"},
                        "effect": "deny",
                    }
                ],
                "defaultEffect": "review",
                "defaultReason": "needs a human",
            }
        )
        rule = policy.rules[0]
        assert rule.match.min_severity == Severity.CRITICAL
        assert rule.match.caller_kind == CallerKind.AGENT
        assert policy.default_effect == PolicyEffect.REVIEW

        wire = policy.to_wire()
        assert wire["defaultEffect"] == "review"
        assert wire["rules"][0]["match"] == {
            "action": "delete_*",
            "minSeverity": "critical",
            "callerType": "agent",
        }

    def test_predicate_never_serialized(self) -> None:
        policy = Policy(
            rules=(
                PolicyRule(
                    id="custom",
                    match=RuleMatch(predicate=lambda ctx: True),
                    effect=PolicyEffect.ALLOW,
                ),
            ),
            default_effect=PolicyEffect.DENY,
        )
        assert "predicate" not in policy.to_wire()["rules"][0]["match"]

    def test_default_effect_required(self) -> None:
        with pytest.raises(ValidationError):
            Policy.model_validate({"rules": []})

    def test_duplicate_rule_ids_rejected(self) -> None:
        rule = PolicyRule(id="dup", effect=PolicyEffect.ALLOW)
        with pytest.raises(ValidationError, match="duplicate rule id"):
            Policy(rules=(rule, rule), default_effect=PolicyEffect.DENY)

    def test_get_rule(self) -> None:
        policy = Policy(
            rules=(PolicyRule(id="r1", effect=PolicyEffect.ALLOW),),
            default_effect=PolicyEffect.DENY,
        )
        assert policy.get_rule("r1") is policy.rules[0]
        assert policy.get_rule("missing") is None


class TestDecision:
    def test_review_requires_token(self) -> None:
        with pytest.raises(ValidationError):
            Decision(effect=PolicyEffect.REVIEW, reason="r")

    def test_allow_cannot_carry_token(self) -> None:
        with pytest.raises(ValidationError):
            Decision(effect=PolicyEffect.ALLOW, reason="r", approval_token="t")

    def test_review_with_token(self) -> None:
        decision = Decision(effect=PolicyEffect.REVIEW, reason="r", approval_token="t")
        assert decision.approval_token == "t"
