"""
Shared pytest fixtures and factories for the Policy Check service.
"""

import re
import textwrap
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import httpx
import pytest
import yaml

from shared.errors import CompileError
from service_policy.app.builtins.base import BuiltinFunction
from service_policy.app.policy.backend import CompiledProgram, ResultSet
from service_policy.app.policy.models import Annotation, AnnotationScope, Module, ModuleRule

PACKAGE_PATTERN = re.compile(r"^package\s+([\w.]+)\s*$", re.MULTILINE)
RULE_HEAD_PATTERN = re.compile(r"^(?:default\s+)?([a-zA-Z_][a-zA-Z0-9_]*)\b")
NOT_RULE_HEADS = {"package", "import"}

Behaviour = Callable[[Any, Dict[str, Callable[..., Any]]], ResultSet]


class FakeBackend:
    """In-memory stand-in for the evaluation backend.

    Parsing only understands what the tests write: a ``package`` line,
    column-zero rule heads and ``# METADATA`` YAML comment blocks. Query
    results come from ``behaviours`` keyed by query string; unknown queries
    are undefined (empty result set).
    """

    name = "fake"

    def __init__(self, behaviours: Optional[Dict[str, Behaviour]] = None):
        self.behaviours: Dict[str, Behaviour] = dict(behaviours or {})
        self.queries: List[str] = []
        self.parsed: List[str] = []

    def parse_module(self, filename: str, source: str) -> Module:
        self.parsed.append(filename)
        match = PACKAGE_PATTERN.search(source)
        if not match:
            raise CompileError([f"{filename}: rego_parse_error: package expected"])

        package_path = f"data.{match.group(1)}"
        rules: List[ModuleRule] = []
        annotations: List[Annotation] = []
        pending: Optional[Dict[str, Any]] = None
        lines = source.splitlines()

        index = 0
        while index < len(lines):
            line = lines[index]
            if line.strip() == "# METADATA":
                block = []
                index += 1
                while index < len(lines) and lines[index].startswith("#"):
                    block.append(lines[index][1:].removeprefix(" "))
                    index += 1
                pending = yaml.safe_load("\n".join(block)) or {}
                if pending.get("scope") == AnnotationScope.PACKAGE.value:
                    annotations.append(_annotation(pending, package_path))
                    pending = None
                continue

            head = RULE_HEAD_PATTERN.match(line)
            if head and head.group(1) not in NOT_RULE_HEADS:
                path = f"{package_path}.{head.group(1)}"
                rules.append(ModuleRule(name=head.group(1), path=path, row=index + 1))
                if pending is not None:
                    annotations.append(_annotation(pending, path))
                    pending = None
            index += 1

        return Module(
            filename=filename,
            package_path=package_path,
            rules=rules,
            annotations=annotations,
            source=source,
        )

    def compile(self, modules: Mapping[str, Module], builtins: Sequence[BuiltinFunction] = ()) -> CompiledProgram:
        errors = [
            f"{filename}: rego_parse_error: unbalanced braces"
            for filename, module in modules.items()
            if module.source.count("{") != module.source.count("}")
        ]
        if errors:
            raise CompileError(errors)

        return CompiledProgram(modules=dict(modules), builtins={b.name: b for b in builtins})

    def evaluate(self, program: CompiledProgram, query: str, input: Any) -> ResultSet:
        self.queries.append(query)
        behaviour = self.behaviours.get(query)
        if behaviour is None:
            return []

        bound = {name: builtin.bind() for name, builtin in program.builtins.items()}
        return behaviour(input, bound)


def _annotation(raw: Dict[str, Any], target_path: str) -> Annotation:
    return Annotation(
        scope=str(raw.get("scope", AnnotationScope.RULE.value)),
        target_path=target_path,
        title=raw.get("title"),
        description=raw.get("description"),
        custom=dict(raw.get("custom") or {}),
    )


@pytest.fixture
def fake_backend():
    """Fresh fake evaluation backend."""
    return FakeBackend()


@pytest.fixture
def write_policy(tmp_path):
    """Factory writing a dedented policy file under tmp_path."""

    def _write(relative: str, source: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source).lstrip(), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def github_client_factory():
    """Factory for httpx clients answering through a MockTransport handler."""
    clients: List[httpx.Client] = []

    def _create(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        client = httpx.Client(base_url="https://api.github.com", transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _create

    for client in clients:
        client.close()
