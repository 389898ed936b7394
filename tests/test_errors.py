"""Tests for the gateway error hierarchy."""

from toolgate.approval.models import ApprovalFailure
from toolgate.errors import (
    ApprovalError,
    ConfigurationError,
    GatewayError,
    MissingApprovalTokenError,
)


class TestConfigurationError:
    def test_message_and_dict(self) -> None:
        err = ConfigurationError("bad rule", rule_id="r1")
        assert str(err) == "Configuration error: bad rule"
        assert isinstance(err, GatewayError)
        assert err.to_dict() == {
            "code": "configuration_error",
            "message": "Configuration error: bad rule",
            "rule_id": "r1",
        }

    def test_without_detail(self) -> None:
        err = ConfigurationError()
        assert str(err) == "Configuration error"
        assert "rule_id" not in err.to_dict()


class TestMissingApprovalTokenError:
    def test_carries_call_id(self) -> None:
        err = MissingApprovalTokenError("call-1")
        assert err.call_id == "call-1"
        assert "call-1" in str(err)
        assert err.to_dict()["code"] == "missing_approval_token"


class TestApprovalError:
    def test_grant_message(self) -> None:
        err = ApprovalError("grant", "tok", ApprovalFailure.NOT_FOUND, "approval token not found")
        assert str(err) == "failed to grant approval: approval token not found"
        assert err.to_dict() == {
            "code": "approval_error",
            "message": "failed to grant approval: approval token not found",
            "token": "tok",
            "failure": "not_found",
        }

    def test_deny_message(self) -> None:
        err = ApprovalError("deny", "tok", ApprovalFailure.ALREADY_PROCESSED, "approval is already denied")
        assert str(err).startswith("failed to deny approval")
        assert err.failure == ApprovalFailure.ALREADY_PROCESSED
