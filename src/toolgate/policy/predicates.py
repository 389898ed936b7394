"""Named predicate registry.

Policy documents cannot embed closures, so custom conditions are referenced
by name (``match.condition``) and resolved against a registry at evaluation
time::

    registry = PredicateRegistry()

    @registry.predicate("production_namespace")
    def _prod(ctx: ToolCallContext) -> bool:
        return (ctx.args or {}).get("namespace") == "production"
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from toolgate.policy.models import Predicate


class PredicateRegistry:
    """In-memory mapping of predicate names to callables."""

    def __init__(self) -> None:
        self._predicates: dict[str, Predicate] = {}

    def register(self, name: str, fn: Predicate, *, replace: bool = False) -> None:
        if not name:
            raise ValueError("predicate name must be non-empty")
        if name in self._predicates and not replace:
            raise ValueError(f"predicate '{name}' is already registered")
        self._predicates[name] = fn

    def predicate(self, name: str) -> Callable[[Predicate], Predicate]:
        """Decorator form of :meth:`register`."""

        def decorator(fn: Predicate) -> Predicate:
            self.register(name, fn)
            return fn

        return decorator

    def get(self, name: str) -> Predicate | None:
        return self._predicates.get(name)

    def names(self) -> list[str]:
        return sorted(self._predicates)

    def __contains__(self, name: object) -> bool:
        return name in self._predicates

    def __len__(self) -> int:
        return len(self._predicates)
