"""
Policy check engine.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Union

from shared.logging import get_logger, set_check_context, clear_context

from .backend import CompiledProgram, EvaluationBackend
from .discovery import discover_rules
from .loader import load_modules
from .models import Module
from .query import QueryExecutor
from .report import Report
from ..builtins.base import BuiltinFunction


class PolicyEngine:
    """Owns the loaded modules and compiled program; runs checks against them."""

    def __init__(self, modules: Dict[str, Module], program: CompiledProgram, backend: EvaluationBackend):
        self.logger = get_logger("policy.engine")
        self._modules = modules
        self._program = program
        self.backend = backend

    @classmethod
    def load(
        cls,
        paths: Iterable[Union[str, Path]],
        backend: EvaluationBackend,
        builtins: Sequence[BuiltinFunction] = (),
    ) -> "PolicyEngine":
        """Load, parse and compile every policy module under ``paths``.

        Raises LoadError (including ParseError) or CompileError; no engine is
        returned if any module is rejected.
        """
        modules = load_modules(paths, backend)

        program = backend.compile(modules, builtins)

        engine = cls(modules, program, backend)
        engine.logger.info(
            "Policy engine ready",
            modules=len(modules),
            namespaces=len(engine.namespaces()),
            builtins=[b.name for b in builtins]
        )
        return engine

    @property
    def modules(self) -> Dict[str, Module]:
        """Loaded modules keyed by filename."""
        return self._modules

    @property
    def compiler(self) -> CompiledProgram:
        """The compiled program shared by every check."""
        return self._program

    def namespaces(self) -> List[str]:
        """Namespaces of all loaded modules, deduplicated case-insensitively."""
        namespaces: List[str] = []
        seen = set()
        for module in self._modules.values():
            namespace = module.namespace
            if namespace.lower() in seen:
                continue
            seen.add(namespace.lower())
            namespaces.append(namespace)

        return namespaces

    def check(self, namespace: str, input: Any) -> Report:
        """Evaluate every checkable rule of ``namespace`` against ``input``.

        All-or-nothing: the first evaluation failure raises EvalError and no
        partial report is returned.
        """
        set_check_context(namespace=namespace)
        try:
            report = Report()

            for rule in discover_rules(self._modules.values(), namespace):
                report.add_rule(rule)

            executor = QueryExecutor(self.backend, self._program)
            for rule in list(report.rules.values()):
                report.add_result(executor.execute(rule, input))

            self.logger.info("Check finished", **report.summary())
            return report
        finally:
            clear_context()
