"""Policy subsystem: ordered glob rules and the decision engine."""

from toolgate.policy.defaults import default_policy
from toolgate.policy.engine import DecisionEngine, evaluate_policy, matches_pattern
from toolgate.policy.loader import PolicyLoader
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
from toolgate.policy.predicates import PredicateRegistry

__all__ = [
    "CallerIdentity",
    "CallerKind",
    "Decision",
    "DecisionEngine",
    "Policy",
    "PolicyEffect",
    "PolicyLoader",
    "PolicyRule",
    "PredicateRegistry",
    "RuleMatch",
    "Severity",
    "ToolCallContext",
    "default_policy",
    "evaluate_policy",
    "matches_pattern",
]
