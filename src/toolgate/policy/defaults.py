"""Built-in policy used when no policy file is configured."""

from __future__ import annotations

from toolgate.policy.models import Policy, PolicyEffect, PolicyRule, RuleMatch, Severity


def default_policy() -> Policy:
    """Deny critical deletes, review medium+ operations, allow the rest."""
    return Policy(
        rules=(
            PolicyRule(
                id="deny-critical-delete",
                description="Deny critical delete operations",
                match=RuleMatch(action="delete_*", min_severity=Severity.CRITICAL),
                effect=PolicyEffect.DENY,
                reason="Critical delete operations are not allowed",
            ),
            PolicyRule(
                id="review-high-risk",
                description="Require review for high-risk operations",
                match=RuleMatch(min_severity=Severity.HIGH),
                effect=PolicyEffect.REVIEW,
                reason="High-risk operations require human approval",
            ),
            PolicyRule(
                id="review-medium-writes",
                description="Require review for medium-risk operations",
                match=RuleMatch(min_severity=Severity.MEDIUM),
                effect=PolicyEffect.REVIEW,
                reason="Medium-risk operations require human approval",
            ),
            PolicyRule(
                id="allow-safe-reads",
                description="Allow safe read-only operations",
                match=RuleMatch(min_severity=Severity.SAFE),
                effect=PolicyEffect.ALLOW,
                reason="Safe read-only operation",
            ),
        ),
        default_effect=PolicyEffect.REVIEW,
        default_reason="Default policy requires review for unclassified operations",
    )
