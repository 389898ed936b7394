"""Tests for the built-in policy."""

import pytest

from toolgate.policy.defaults import default_policy
from toolgate.policy.engine import DecisionEngine
from toolgate.policy.models import PolicyEffect, Severity


class TestDefaultPolicy:
    @pytest.mark.parametrize(
        ("action", "severity", "effect", "rule_id"),
        [
            ("delete_database", Severity.CRITICAL, PolicyEffect.DENY, "deny-critical-delete"),
            ("restart_cluster", Severity.CRITICAL, PolicyEffect.REVIEW, "review-high-risk"),
            ("delete_pod", Severity.HIGH, PolicyEffect.REVIEW, "review-high-risk"),
            ("add_comment", Severity.MEDIUM, PolicyEffect.REVIEW, "review-medium-writes"),
            ("search_issues", Severity.SAFE, PolicyEffect.ALLOW, "allow-safe-reads"),
            ("list_pods", Severity.LOW, PolicyEffect.ALLOW, "allow-safe-reads"),
        ],
    )
    def test_decisions(self, make_context, action, severity, effect, rule_id) -> None:
        engine = DecisionEngine(default_policy())
        decision = engine.evaluate(make_context(action=action, severity=severity))
        assert decision.effect == effect
        assert decision.rule_id == rule_id

    def test_default_effect_is_review(self) -> None:
        policy = default_policy()
        assert policy.default_effect == PolicyEffect.REVIEW
        assert policy.default_reason
