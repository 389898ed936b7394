"""Shared CLI output formatters."""

from __future__ import annotations

import json

from rich.console import Console
from rich.table import Table

from toolgate.policy.models import Decision, Policy  # noqa: TC001

console = Console()

_EFFECT_STYLES = {
    "allow": "green",
    "deny": "red",
    "review": "yellow",
}


def print_policy_table(policy: Policy, *, as_json: bool = False) -> None:
    """Pretty-print the ordered rules of *policy*."""
    if as_json:
        console.print_json(json.dumps(policy.to_wire()))
        return

    table = Table(title="Policy Rules (first match wins)")
    table.add_column("#", justify="right")
    table.add_column("ID", style="cyan")
    table.add_column("Tool")
    table.add_column("Action")
    table.add_column("Min Severity")
    table.add_column("Caller")
    table.add_column("Condition")
    table.add_column("Effect")

    for index, rule in enumerate(policy.rules, start=1):
        match = rule.match
        table.add_row(
            str(index),
            rule.id,
            match.tool or "*",
            match.action or "*",
            match.min_severity.value if match.min_severity else "-",
            match.caller_kind.value if match.caller_kind else "-",
            match.condition or "-",
            _effect(rule.effect.value),
        )

    console.print(table)
    default_reason = policy.default_reason or "(none)"
    console.print(f"  Default: {_effect(policy.default_effect.value)} ({default_reason})")


def print_decision(decision: Decision, *, as_json: bool = False) -> None:
    """Print a dry-run decision."""
    if as_json:
        console.print_json(decision.model_dump_json(by_alias=True))
        return

    console.print(f"\n[bold]Effect:[/bold] {_effect(decision.effect.value)}")
    console.print(f"  Reason: {decision.reason}")
    console.print(f"  Rule:   {decision.rule_id or '(default)'}")
    if decision.approval_token:
        console.print("  Approval token would be issued")


def _effect(value: str) -> str:
    style = _EFFECT_STYLES.get(value, "white")
    return f"[{style}]{value}[/{style}]"
