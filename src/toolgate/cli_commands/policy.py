"""``toolgate policy``: inspect, validate and dry-run policy files."""

from __future__ import annotations

import sys

import click
from rich.markup import escape

from toolgate.cli_commands._output import console, print_decision, print_policy_table
from toolgate.errors import ConfigurationError
from toolgate.policy.defaults import default_policy
from toolgate.policy.engine import DecisionEngine
from toolgate.policy.loader import PolicyLoader
from toolgate.policy.models import CallerIdentity, CallerKind, Policy, Severity, ToolCallContext
from toolgate.policy.predicates import PredicateRegistry
from toolgate.utils.telemetry import (
    ATTR_ACTION,
    ATTR_EFFECT,
    ATTR_SEVERITY,
    ATTR_TOOL,
    configure_telemetry,
    get_tracer,
)

_SEVERITIES = [s.value for s in Severity]
_CALLER_KINDS = [k.value for k in CallerKind]


def _load(policy_file: str | None) -> Policy:
    if policy_file is None:
        return default_policy()
    try:
        return PolicyLoader(policy_file).load()
    except ConfigurationError as exc:
        console.print(f"[red]Invalid policy:[/red] {escape(str(exc))}")
        sys.exit(1)


@click.group()
def policy() -> None:
    """Inspect and test policy files."""


@policy.command("show")
@click.argument("policy_file", required=False, type=click.Path(exists=True))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def show(policy_file: str | None, as_json: bool) -> None:
    """Show the rules of POLICY_FILE (the built-in policy if omitted)."""
    print_policy_table(_load(policy_file), as_json=as_json)


@policy.command("validate")
@click.argument("policy_file", type=click.Path(exists=True))
def validate(policy_file: str) -> None:
    """Validate POLICY_FILE and exit non-zero on errors."""
    loaded = _load(policy_file)
    conditions = sorted({r.match.condition for r in loaded.rules if r.match.condition})
    console.print(
        f"[green]OK[/green] {len(loaded.rules)} rule(s), "
        f"default effect: {loaded.default_effect.value}"
    )
    if conditions:
        console.print(
            f"[yellow]Note:[/yellow] named conditions must be registered at runtime: "
            f"{', '.join(conditions)}"
        )


@policy.command("check")
@click.argument("policy_file", required=False, type=click.Path(exists=True))
@click.option("--tool", required=True, help="Tool name.")
@click.option("--action", required=True, help="Action name.")
@click.option(
    "--severity",
    type=click.Choice(_SEVERITIES),
    default=Severity.SAFE.value,
    help="Operation severity.",
)
@click.option(
    "--caller-type",
    type=click.Choice(_CALLER_KINDS),
    default=CallerKind.AGENT.value,
    help="Kind of caller.",
)
@click.option("--telemetry", is_flag=True, help="Print the evaluation span to stdout.")
@click.option("--otlp-endpoint", default=None, help="Export the evaluation span via OTLP/gRPC.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def check(
    policy_file: str | None,
    tool: str,
    action: str,
    severity: str,
    caller_type: str,
    telemetry: bool,
    otlp_endpoint: str | None,
    as_json: bool,
) -> None:
    """Dry-run one call against POLICY_FILE (the built-in policy if omitted).

    Rules that use named conditions cannot be evaluated here.
    """
    loaded = _load(policy_file)
    if telemetry or otlp_endpoint:
        try:
            configure_telemetry(export_to_console=telemetry, otlp_endpoint=otlp_endpoint)
        except ImportError as exc:
            console.print(f"[red]Telemetry unavailable:[/red] {escape(str(exc))}")
            sys.exit(1)

    caller = CallerIdentity(id="toolgate-cli", name="toolgate CLI", kind=CallerKind(caller_type))
    context = ToolCallContext.new(tool, action, Severity(severity), caller)

    try:
        with get_tracer(__name__).start_as_current_span("toolgate.check") as span:
            span.set_attribute(ATTR_TOOL, tool)
            span.set_attribute(ATTR_ACTION, action)
            span.set_attribute(ATTR_SEVERITY, severity)
            decision = DecisionEngine(loaded, registry=PredicateRegistry()).evaluate(context)
            span.set_attribute(ATTR_EFFECT, decision.effect.value)
    except ConfigurationError as exc:
        console.print(f"[red]Cannot evaluate:[/red] {escape(str(exc))}")
        sys.exit(1)

    print_decision(decision, as_json=as_json)
