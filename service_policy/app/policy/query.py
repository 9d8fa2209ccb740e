"""
Rule query execution.
"""

import time
from typing import Any

from shared.errors import EvalError, PolicyException
from shared.logging import get_logger

from .backend import CompiledProgram, EvaluationBackend
from .models import Result, Rule


def build_rule_query(rule: Rule) -> str:
    """``data.<namespace>.<kind>_<id>``, or ``data.<namespace>.<kind>`` for a bare kind."""
    return rule.query


class QueryExecutor:
    """Evaluates rule queries against a compiled program."""

    def __init__(self, backend: EvaluationBackend, program: CompiledProgram):
        self.backend = backend
        self.program = program
        self.logger = get_logger("policy.query")

    def execute(self, rule: Rule, input: Any) -> Result:
        """Evaluate one rule.

        Warning and failure rules only produce a value when the condition they
        guard against holds, so an empty result set means the rule passed.
        """
        query = build_rule_query(rule)
        start_time = time.time()

        try:
            result_set = self.backend.evaluate(self.program, query, input)
        except PolicyException as e:
            self.logger.error("Rule evaluation error", rule=rule.uid, query=query, error=e.message)
            raise EvalError(rule.uid, query, e.message, details={"cause": e.code}) from e

        result = Result(rule=rule, query=query, passed=len(result_set) == 0)

        self.logger.debug(
            "Rule evaluation result",
            rule=rule.uid,
            passed=result.passed,
            evaluation_time_ms=(time.time() - start_time) * 1000
        )

        return result
