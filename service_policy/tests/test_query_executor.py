"""
Unit tests for rule query execution.
"""

import pytest

from shared.errors import BackendError, BuiltinError, EvalError
from service_policy.app.policy.backend import CompiledProgram
from service_policy.app.policy.models import Rule, RuleKind
from service_policy.app.policy.query import QueryExecutor, build_rule_query


class TestQueryExecutor:
    """Test cases for QueryExecutor."""

    @pytest.fixture
    def executor(self, fake_backend):
        """Executor over an empty compiled program."""
        return QueryExecutor(fake_backend, CompiledProgram(modules={}))

    def test_build_rule_query(self):
        """Test query naming."""
        assert build_rule_query(Rule("org.repo", RuleKind.DENY, "missing_license")) == \
            "data.org.repo.deny_missing_license"
        assert build_rule_query(Rule("org.repo", RuleKind.WARN, "")) == "data.org.repo.warn"

    def test_rule_that_triggers_fails(self, executor, fake_backend):
        """Test that a non-empty result set fails the rule."""
        fake_backend.behaviours["data.ns.deny_always"] = lambda input, builtins: [{"expressions": [{"value": True}]}]

        result = executor.execute(Rule("ns", RuleKind.DENY, "always"), {})

        assert result.passed is False
        assert result.query == "data.ns.deny_always"
        assert result.rule.uid == "ns.deny_always"

    def test_rule_that_never_triggers_passes(self, executor, fake_backend):
        """Test that an empty result set passes the rule."""
        fake_backend.behaviours["data.ns.deny_never"] = lambda input, builtins: []

        result = executor.execute(Rule("ns", RuleKind.DENY, "never"), {})

        assert result.passed is True

    def test_input_is_passed_through(self, executor, fake_backend):
        """Test that the input document reaches the backend unchanged."""
        seen = []

        def behaviour(input, builtins):
            seen.append(input)
            return [] if input["license"] else [True]

        fake_backend.behaviours["data.ns.deny_missing_license"] = behaviour

        result = executor.execute(Rule("ns", RuleKind.DENY, "missing_license"), {"license": None})

        assert seen == [{"license": None}]
        assert result.passed is False

    @pytest.mark.parametrize("error", [
        BackendError("fake", "server unavailable"),
        BuiltinError("github.request", "forbidden: rate limited"),
    ])
    def test_backend_error_becomes_eval_error(self, executor, fake_backend, error):
        """Test that backend failures identify the offending rule."""
        def behaviour(input, builtins):
            raise error

        fake_backend.behaviours["data.ns.deny_broken"] = behaviour

        with pytest.raises(EvalError) as exc_info:
            executor.execute(Rule("ns", RuleKind.DENY, "broken"), {})

        assert exc_info.value.rule == "ns.deny_broken"
        assert exc_info.value.query == "data.ns.deny_broken"
        assert exc_info.value.message.startswith("check: query rule: ns.deny_broken:")
        assert error.message in exc_info.value.message
        assert exc_info.value.__cause__ is error
