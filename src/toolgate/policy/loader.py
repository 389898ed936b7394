"""Load policy documents from YAML or JSON files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from toolgate.errors import ConfigurationError
from toolgate.policy.engine import coerce_policy
from toolgate.policy.models import Policy


def read_document(path: Path) -> dict[str, Any]:
    """Read a YAML/JSON mapping, expanding ``$VAR`` / ``${VAR}`` first.

    Raises:
        ConfigurationError: On read errors, parse errors, or non-mapping documents.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot read {path}: {exc}") from exc

    expanded = os.path.expandvars(raw)

    try:
        data: Any = yaml.safe_load(expanded)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"YAML parse error in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping")
    return data


class PolicyLoader:
    """Load and validate a policy file into a :class:`Policy`.

    The file may hold the policy at the top level or under a ``policy`` key.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Policy:
        data = read_document(self._path)
        if "policy" in data and isinstance(data["policy"], dict):
            data = data["policy"]
        return coerce_policy(data)
