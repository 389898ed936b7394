"""Gateway settings and their YAML loader."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from toolgate.approval.store import DEFAULT_RETENTION, DEFAULT_TTL
from toolgate.approval.sweeper import DEFAULT_SWEEP_INTERVAL
from toolgate.errors import ConfigurationError
from toolgate.policy.defaults import default_policy
from toolgate.policy.loader import read_document
from toolgate.policy.models import Policy


class AuditSettings(BaseModel):
    """Settings for the default :class:`~toolgate.audit.LoggingAuditSink`."""

    enabled: bool = True
    logger_name: str = "toolgate.audit"
    redact: bool = True


class TelemetrySettings(BaseModel):
    """OpenTelemetry export settings; spans are no-ops unless enabled."""

    enabled: bool = False
    service_name: str = "toolgate"
    export_to_console: bool = False
    otlp_endpoint: str | None = None


class GatewayConfig(BaseModel):
    """Top-level gateway configuration."""

    model_config = ConfigDict(populate_by_name=True)

    policy: Policy = Field(default_factory=default_policy)
    approval_ttl: float | None = Field(
        default=DEFAULT_TTL,
        ge=0,
        alias="approvalTTL",
        description="Seconds before a pending approval expires; None never expires.",
    )
    sweep_interval: float | None = Field(
        default=DEFAULT_SWEEP_INTERVAL,
        gt=0,
        description="Seconds between expiry/cleanup sweeps; None disables the sweeper.",
    )
    retention: float = Field(
        default=DEFAULT_RETENTION,
        ge=0,
        description="Finalized approvals older than this many seconds are purged.",
    )
    audit: AuditSettings = Field(default_factory=AuditSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)


def load_gateway_config(path: str | Path) -> GatewayConfig:
    """Read a gateway YAML/JSON file into a :class:`GatewayConfig`.

    Raises:
        ConfigurationError: On read, parse or schema validation failures.
    """
    data = read_document(Path(path))
    try:
        return GatewayConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
