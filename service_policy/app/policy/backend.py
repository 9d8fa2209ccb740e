"""
Interface to the external policy evaluation backend.

The check pipeline never parses or evaluates Rego itself. It talks to a
backend that can parse a module, compile a module set into a queryable
program and run an ad-hoc query against that program with an input document.
"""

from typing import Any, Dict, List, Mapping, Protocol, Sequence, runtime_checkable
from dataclasses import dataclass, field

from .models import Module
from ..builtins.base import BuiltinFunction

ResultSet = List[Any]


@dataclass(frozen=True)
class CompiledProgram:
    """A module set accepted by a backend.

    ``handle`` is opaque backend state (a server-side bundle id, an in-process
    compiler...). Builtins are kept by name so backends able to host them can
    bind a fresh instance for every evaluation.
    """
    modules: Dict[str, Module]
    builtins: Dict[str, BuiltinFunction] = field(default_factory=dict)
    handle: Any = None


@runtime_checkable
class EvaluationBackend(Protocol):
    """Black-box policy engine consumed by the check pipeline."""

    name: str

    def parse_module(self, filename: str, source: str) -> Module:
        """Parse one module; raise CompileError when the source is rejected."""
        ...

    def compile(self, modules: Mapping[str, Module], builtins: Sequence[BuiltinFunction] = ()) -> CompiledProgram:
        """Compile the module set; raise CompileError with every problem found."""
        ...

    def evaluate(self, program: CompiledProgram, query: str, input: Any) -> ResultSet:
        """Run ``query`` against ``program``; an empty list means undefined."""
        ...
