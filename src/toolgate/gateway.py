"""ToolGateway: sequences decision, audit, approval and execution.

Flow for one call::

    evaluate_call -> DecisionEngine -> AuditSink.tool_call
        allow  -> caller may execute
        deny   -> rejected
        review -> ApprovalStore.create_approval -> caller holds token

    grant_and_execute(token) -> ApprovalStore.grant -> AuditSink.approval_granted
        -> executor -> AuditSink.execution_success / execution_failure
    deny_call(token) -> ApprovalStore.deny -> AuditSink.approval_denied

Every audit notification is awaited before the next step so the audit log
order matches causal order.  Audit failures are not caught.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from toolgate.approval.store import DEFAULT_RETENTION, DEFAULT_TTL, ApprovalStore
from toolgate.approval.sweeper import DEFAULT_SWEEP_INTERVAL, ApprovalSweeper
from toolgate.audit.logging_sink import LoggingAuditSink
from toolgate.audit.memory import InMemoryAuditSink
from toolgate.config import GatewayConfig, load_gateway_config
from toolgate.errors import ApprovalError
from toolgate.policy.defaults import default_policy
from toolgate.policy.engine import DecisionEngine
from toolgate.policy.models import (
    CallerIdentity,
    Decision,
    Policy,
    PolicyEffect,
    Severity,
    ToolCallContext,
)
from toolgate.utils.telemetry import (
    ATTR_ACTION,
    ATTR_APPROVAL_TOKEN,
    ATTR_CALL_ID,
    ATTR_CALLER_KIND,
    ATTR_EFFECT,
    ATTR_EXECUTION_SUCCESS,
    ATTR_RULE,
    ATTR_SEVERITY,
    ATTR_TOOL,
    configure_telemetry,
    get_tracer,
)

if TYPE_CHECKING:
    from types import TracebackType

    from toolgate.approval.models import PendingApproval
    from toolgate.audit.base import AuditSink
    from toolgate.policy.predicates import PredicateRegistry

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

Executor = Callable[[], Awaitable[Any]]


class ExecutionResult(BaseModel):
    """Outcome of running the caller-supplied executor."""

    model_config = ConfigDict(frozen=True)

    success: bool
    output: Any = None
    error: str | None = None


class CallResult(BaseModel):
    """What the gateway returns for a mediated call."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    decision: Decision
    context: ToolCallContext
    approval_token: str | None = None
    result: ExecutionResult | None = None


class ToolGateway:
    """Policy-enforcing front door for agent tool calls.

    Policy outcomes (deny, review) and executor failures come back as
    :class:`CallResult` data.  Only approval-token misuse raises
    (:class:`~toolgate.errors.ApprovalError`).
    """

    def __init__(
        self,
        policy: Policy | Mapping[str, Any] | None = None,
        *,
        audit_sink: AuditSink | None = None,
        approval_store: ApprovalStore | None = None,
        registry: PredicateRegistry | None = None,
        approval_ttl: float | None = DEFAULT_TTL,
        sweep_interval: float | None = DEFAULT_SWEEP_INTERVAL,
        retention: float = DEFAULT_RETENTION,
    ) -> None:
        self._engine = DecisionEngine(
            policy if policy is not None else default_policy(),
            registry=registry,
        )
        self._audit: AuditSink = audit_sink if audit_sink is not None else LoggingAuditSink()
        self._store = (
            approval_store if approval_store is not None else ApprovalStore(default_ttl=approval_ttl)
        )
        self._sweeper = (
            ApprovalSweeper(self._store, interval=sweep_interval, retention=retention)
            if sweep_interval is not None
            else None
        )

    @classmethod
    def from_config(
        cls,
        config: GatewayConfig,
        *,
        audit_sink: AuditSink | None = None,
        registry: PredicateRegistry | None = None,
    ) -> ToolGateway:
        """Build a gateway from validated settings."""
        if audit_sink is None and config.audit.enabled:
            audit_sink = LoggingAuditSink(
                logging.getLogger(config.audit.logger_name),
                redact=config.audit.redact,
            )
        elif audit_sink is None:
            audit_sink = InMemoryAuditSink()
        if config.telemetry.enabled:
            configure_telemetry(
                service_name=config.telemetry.service_name,
                export_to_console=config.telemetry.export_to_console,
                otlp_endpoint=config.telemetry.otlp_endpoint,
            )
        return cls(
            config.policy,
            audit_sink=audit_sink,
            registry=registry,
            approval_ttl=config.approval_ttl,
            sweep_interval=config.sweep_interval,
            retention=config.retention,
        )

    @classmethod
    def from_yaml(
        cls,
        path: str | Path,
        *,
        audit_sink: AuditSink | None = None,
        registry: PredicateRegistry | None = None,
    ) -> ToolGateway:
        """Load a gateway config file and return a ready gateway."""
        return cls.from_config(load_gateway_config(path), audit_sink=audit_sink, registry=registry)

    # -- accessors ---------------------------------------------------------

    @property
    def decision_engine(self) -> DecisionEngine:
        return self._engine

    @property
    def approval_store(self) -> ApprovalStore:
        return self._store

    @property
    def audit_sink(self) -> AuditSink:
        return self._audit

    @property
    def sweeper(self) -> ApprovalSweeper | None:
        return self._sweeper

    def list_pending_approvals(self) -> list[PendingApproval]:
        return self._store.list_pending()

    # -- lifecycle ---------------------------------------------------------

    async def __aenter__(self) -> ToolGateway:
        if self._sweeper is not None:
            self._sweeper.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._sweeper is not None:
            await self._sweeper.stop()

    # -- calls -------------------------------------------------------------

    async def evaluate_call(
        self,
        tool: str,
        action: str,
        severity: Severity | str,
        caller: CallerIdentity,
        args: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> CallResult:
        """Decide on a call without executing it.

        Review decisions register a pending approval whose token is
        returned in :attr:`CallResult.approval_token`.
        """
        context = ToolCallContext.new(
            tool,
            action,
            Severity(severity),
            caller,
            args=args,
            metadata=metadata,
            timestamp=self._store.now(),
        )

        with _tracer.start_as_current_span("toolgate.evaluate") as span:
            span.set_attribute(ATTR_CALL_ID, context.call_id)
            span.set_attribute(ATTR_TOOL, tool)
            span.set_attribute(ATTR_ACTION, action)
            span.set_attribute(ATTR_SEVERITY, context.severity.value)
            span.set_attribute(ATTR_CALLER_KIND, caller.kind.value)

            decision = self._engine.evaluate(context)
            span.set_attribute(ATTR_EFFECT, decision.effect.value)
            if decision.rule_id:
                span.set_attribute(ATTR_RULE, decision.rule_id)

            await self._audit.tool_call(context, decision)

            if decision.effect != PolicyEffect.REVIEW:
                return CallResult(
                    allowed=decision.effect == PolicyEffect.ALLOW,
                    decision=decision,
                    context=context,
                )

            approval = self._store.create_approval(context, decision)
            span.set_attribute(ATTR_APPROVAL_TOKEN, approval.token)
            return CallResult(
                allowed=False,
                decision=decision,
                approval_token=approval.token,
                context=context,
            )

    async def execute_call(
        self,
        tool: str,
        action: str,
        severity: Severity | str,
        caller: CallerIdentity,
        executor: Executor,
        args: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> CallResult:
        """Evaluate, then run *executor* only if the call is allowed outright."""
        evaluated = await self.evaluate_call(tool, action, severity, caller, args, metadata)
        if not evaluated.allowed:
            return evaluated

        with _tracer.start_as_current_span("toolgate.execute") as span:
            span.set_attribute(ATTR_CALL_ID, evaluated.context.call_id)
            execution = await self._run_executor(evaluated.context, executor)
            span.set_attribute(ATTR_EXECUTION_SUCCESS, execution.success)

        return evaluated.model_copy(update={"result": execution})

    async def grant_and_execute(
        self,
        token: str,
        approver: CallerIdentity,
        executor: Executor,
    ) -> CallResult:
        """Grant a pending approval and run *executor*.

        Raises:
            ApprovalError: If the token is unknown, already processed or expired.
        """
        with _tracer.start_as_current_span("toolgate.grant") as span:
            span.set_attribute(ATTR_APPROVAL_TOKEN, token)

            outcome = self._store.grant(token, approver)
            if not outcome.success or outcome.approval is None:
                raise ApprovalError("grant", token, outcome.failure, outcome.error or "unknown error")

            approval = outcome.approval
            await self._audit.approval_granted(approval.context, approver)

            execution = await self._run_executor(approval.context, executor)
            span.set_attribute(ATTR_EXECUTION_SUCCESS, execution.success)

        return CallResult(
            allowed=True,
            decision=approval.decision,
            context=approval.context,
            result=execution,
        )

    async def deny_call(self, token: str, denier: CallerIdentity) -> None:
        """Deny a pending approval. No executor is ever run.

        Raises:
            ApprovalError: If the token is unknown or already processed.
        """
        with _tracer.start_as_current_span("toolgate.deny") as span:
            span.set_attribute(ATTR_APPROVAL_TOKEN, token)

            outcome = self._store.deny(token, denier)
            if not outcome.success or outcome.approval is None:
                raise ApprovalError("deny", token, outcome.failure, outcome.error or "unknown error")

            await self._audit.approval_denied(outcome.approval.context, denier)

    async def _run_executor(self, context: ToolCallContext, executor: Executor) -> ExecutionResult:
        """Run *executor*, capturing any ``Exception`` as a failed result."""
        try:
            output = executor()
            if inspect.isawaitable(output):
                output = await output
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            logger.debug("Executor for %s.%s failed: %s", context.tool, context.action, message)
            await self._audit.execution_failure(context, message)
            return ExecutionResult(success=False, error=message)

        await self._audit.execution_success(context, output)
        return ExecutionResult(success=True, output=output)
