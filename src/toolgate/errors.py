"""Shared error types for the gateway.

Policy outcomes (deny, review) and executor failures are returned as data.
Only structural problems surface as exceptions:

- ``ConfigurationError``: the policy (or a predicate it references) is broken.
- ``MissingApprovalTokenError``: a review decision reached the approval
  store without a token.
- ``ApprovalError``: a grant/deny was attempted on an unknown or already
  finalized token.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from toolgate.approval.models import ApprovalFailure


class GatewayError(Exception):
    """Base error for all gateway failures."""

    code = "gateway_error"

    def to_dict(self) -> dict[str, Any]:
        """Structured form for transports that translate errors to responses."""
        return {"code": self.code, "message": str(self)}


class ConfigurationError(GatewayError):
    """The policy configuration is malformed or a rule predicate failed."""

    code = "configuration_error"

    def __init__(self, detail: str = "", *, rule_id: str | None = None) -> None:
        self.detail = detail
        self.rule_id = rule_id
        msg = "Configuration error"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.rule_id is not None:
            data["rule_id"] = self.rule_id
        return data


class MissingApprovalTokenError(GatewayError):
    """An approval was registered for a decision that carries no token."""

    code = "missing_approval_token"

    def __init__(self, call_id: str) -> None:
        self.call_id = call_id
        super().__init__(f"Cannot create approval without approval token (call {call_id})")


class ApprovalError(GatewayError):
    """Granting or denying an approval token failed."""

    code = "approval_error"

    def __init__(
        self,
        operation: str,
        token: str,
        failure: ApprovalFailure,
        reason: str,
    ) -> None:
        self.operation = operation
        self.token = token
        self.failure = failure
        self.reason = reason
        super().__init__(f"failed to {operation} approval: {reason}")

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["token"] = self.token
        data["failure"] = self.failure.value
        return data
