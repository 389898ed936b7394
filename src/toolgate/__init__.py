"""toolgate: policy gateway for agent tool calls with human approvals."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from toolgate.gateway import CallResult as CallResult
    from toolgate.gateway import ToolGateway as ToolGateway

_GATEWAY_EXPORTS = {
    "ToolGateway": "toolgate.gateway",
    "CallResult": "toolgate.gateway",
    "ExecutionResult": "toolgate.gateway",
}


def __getattr__(name: str) -> object:
    module_path = _GATEWAY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'toolgate' has no attribute {name!r}")
