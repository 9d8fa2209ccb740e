"""
Declarations for host functions exposed to policies.
"""

import json
from typing import Any, Callable, Dict, Tuple
from dataclasses import dataclass


@dataclass(frozen=True)
class BuiltinFunction:
    """A function policies can call by ``name``.

    ``arg_types`` and ``result_type`` mirror the declaration a backend needs to
    type-check calls. Memoizable builtins may be served from a per-evaluation
    cache, so identical arguments must always produce the same answer.
    """
    name: str
    implementation: Callable[..., Any]
    arg_types: Tuple[str, ...] = ()
    result_type: str = "any"
    memoize: bool = False

    @property
    def arity(self) -> int:
        return len(self.arg_types)

    def bind(self) -> Callable[..., Any]:
        """Return a callable scoped to a single evaluation."""
        if not self.memoize:
            return self.implementation

        cache: Dict[str, Any] = {}

        def call(*args: Any) -> Any:
            key = cache_key(args)
            if key not in cache:
                cache[key] = self.implementation(*args)
            return cache[key]

        return call


def cache_key(args: Tuple[Any, ...]) -> str:
    """Stable key for builtin arguments; object key order does not matter."""
    return json.dumps(args, sort_keys=True, separators=(",", ":"), default=str)
