"""DecisionEngine: evaluates a call context against an ordered policy.

Pure logic, no I/O.  The engine walks ``policy.rules`` in order
(first-match-wins) and falls back to ``policy.default_effect``.  Review
decisions get a fresh approval token; allow/deny decisions never do.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable, Mapping
from functools import lru_cache
from typing import Any

from pydantic import ValidationError

from toolgate.errors import ConfigurationError
from toolgate.policy.models import Decision, Policy, PolicyEffect, PolicyRule, ToolCallContext
from toolgate.policy.predicates import PredicateRegistry

logger = logging.getLogger(__name__)

TokenFactory = Callable[[], str]


def _new_token() -> str:
    return str(uuid.uuid4())


@lru_cache(maxsize=512)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a ``*`` glob into a case-insensitive regex for ``fullmatch``."""
    body = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.compile(body, re.IGNORECASE | re.DOTALL)


def matches_pattern(value: str, pattern: str) -> bool:
    """Match *value* against *pattern*.

    Only ``*`` is special (any run of characters, possibly empty); all other
    characters are literal.  Matching is case-insensitive, with the same
    per-character folding whether or not the pattern contains ``*``.
    """
    return _compile_glob(pattern).fullmatch(value) is not None


def default_reason(effect: PolicyEffect, rule_id: str | None = None) -> str:
    suffix = f" (rule: {rule_id})" if rule_id else ""
    if effect == PolicyEffect.ALLOW:
        return f"Operation allowed by policy{suffix}"
    if effect == PolicyEffect.DENY:
        return f"Operation denied by policy{suffix}"
    return f"Operation requires human approval{suffix}"


def coerce_policy(policy: Policy | Mapping[str, Any]) -> Policy:
    """Validate a wire-shaped mapping into a :class:`Policy`."""
    if isinstance(policy, Policy):
        return policy
    try:
        return Policy.model_validate(policy)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid policy: {exc}") from exc


def rule_matches(
    rule: PolicyRule,
    context: ToolCallContext,
    registry: PredicateRegistry | None = None,
) -> bool:
    """Return ``True`` iff every present match field is satisfied."""
    match = rule.match

    if match.tool and not matches_pattern(context.tool, match.tool):
        return False

    if match.action and not matches_pattern(context.action, match.action):
        return False

    if match.min_severity is not None and not context.severity.at_least(match.min_severity):
        return False

    if match.caller_kind is not None and context.caller.kind != match.caller_kind:
        return False

    if match.condition is not None:
        fn = registry.get(match.condition) if registry is not None else None
        if fn is None:
            raise ConfigurationError(
                f"unknown condition '{match.condition}'", rule_id=rule.id
            )
        if not _run_predicate(rule, fn, context):
            return False

    if match.predicate is not None and not _run_predicate(rule, match.predicate, context):
        return False

    return True


def _run_predicate(
    rule: PolicyRule,
    fn: Callable[[ToolCallContext], bool],
    context: ToolCallContext,
) -> bool:
    try:
        return bool(fn(context))
    except Exception as exc:
        raise ConfigurationError(
            f"predicate for rule '{rule.id}' raised {type(exc).__name__}: {exc}",
            rule_id=rule.id,
        ) from exc


def evaluate_policy(
    policy: Policy,
    context: ToolCallContext,
    *,
    registry: PredicateRegistry | None = None,
    token_factory: TokenFactory = _new_token,
) -> Decision:
    """Resolve the decision for *context* under *policy*.

    Resolution order:
    1. ``policy.rules``: first matching rule wins.
    2. ``policy.default_effect``: fallback.
    """
    effect = policy.default_effect
    reason = policy.default_reason or default_reason(effect)
    rule_id: str | None = None

    for rule in policy.rules:
        if rule_matches(rule, context, registry):
            effect = rule.effect
            reason = rule.reason or default_reason(effect, rule.id)
            rule_id = rule.id
            break

    token = token_factory() if effect == PolicyEffect.REVIEW else None
    return Decision(effect=effect, reason=reason, rule_id=rule_id, approval_token=token)


class DecisionEngine:
    """Evaluate call contexts against a swappable :class:`Policy`."""

    def __init__(
        self,
        policy: Policy | Mapping[str, Any],
        *,
        registry: PredicateRegistry | None = None,
        token_factory: TokenFactory | None = None,
    ) -> None:
        self._registry = registry if registry is not None else PredicateRegistry()
        self._token_factory = token_factory or _new_token
        self._policy = self._validate(coerce_policy(policy))

    @property
    def policy(self) -> Policy:
        """The active policy snapshot."""
        return self._policy

    @property
    def registry(self) -> PredicateRegistry:
        return self._registry

    def update_policy(self, policy: Policy | Mapping[str, Any]) -> None:
        """Swap the active policy.

        The swap is a single reference assignment, so in-flight evaluations
        see either the old or the new policy, never a mix.
        """
        new_policy = self._validate(coerce_policy(policy))
        self._policy = new_policy
        logger.info(
            "Policy updated: %d rule(s), default=%s",
            len(new_policy.rules),
            new_policy.default_effect.value,
        )

    def evaluate(self, context: ToolCallContext) -> Decision:
        """Return the decision for *context* under the current policy."""
        policy = self._policy
        decision = evaluate_policy(
            policy,
            context,
            registry=self._registry,
            token_factory=self._token_factory,
        )
        logger.debug(
            "Decision for %s.%s (%s): %s via %s",
            context.tool,
            context.action,
            context.severity.value,
            decision.effect.value,
            decision.rule_id or "default",
        )
        return decision

    def _validate(self, policy: Policy) -> Policy:
        for rule in policy.rules:
            condition = rule.match.condition
            if condition is not None and condition not in self._registry:
                raise ConfigurationError(
                    f"rule '{rule.id}' references unknown condition '{condition}'",
                    rule_id=rule.id,
                )
        return policy
