"""
OPA server evaluation backend.

Talks to an Open Policy Agent server over its REST API:

- ``PUT /v1/policies/{id}`` installs (and so parses and compiles) a module,
- ``GET /v1/policies/{id}`` returns its AST,
- ``POST /v1/query`` runs an ad-hoc query with an input document.
"""

from pathlib import PurePath
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import quote

import httpx

from shared.errors import BackendError, CompileError
from shared.logging import get_logger

from ..builtins.base import BuiltinFunction
from ..policy.backend import CompiledProgram, ResultSet
from ..policy.models import Annotation, AnnotationScope, Module, ModuleRule, DATA_ROOT


class OpaServerBackend:
    """EvaluationBackend backed by a running OPA server.

    Modules are installed under ``<policy_prefix>/<filename>`` so several
    checkers can share one server. Host builtins cannot run inside the
    server, so compiling with builtins is rejected.
    """

    name = "opa"

    def __init__(self, client: httpx.Client, policy_prefix: str = "policy-check"):
        self.client = client
        self.policy_prefix = policy_prefix.strip("/")
        self.logger = get_logger("policy.backends.opa")

    def policy_id(self, filename: str) -> str:
        return f"{self.policy_prefix}/{PurePath(filename).as_posix().lstrip('/')}"

    def parse_module(self, filename: str, source: str) -> Module:
        """Install the module on the server and read its AST back.

        The server parses and compiles on install; any error it reports,
        syntax errors included, raises CompileError for this module.
        """
        policy_url = f"/v1/policies/{quote(self.policy_id(filename))}"

        response = self._request(
            "PUT",
            policy_url,
            content=source.encode("utf-8"),
            headers={"Content-Type": "text/plain"}
        )
        if response.status_code == 400:
            self._raise_policy_errors(filename, response)
        self._check_status(response)

        response = self._request("GET", policy_url)
        self._check_status(response)

        policy = self._payload(response).get("result") or {}
        return module_from_ast(filename, source, policy.get("ast") or {})

    def compile(self, modules: Mapping[str, Module], builtins: Sequence[BuiltinFunction] = ()) -> CompiledProgram:
        """Confirm every module is installed on the server."""
        errors = [f"{b.name}: builtin cannot be hosted by the OPA server" for b in builtins]

        response = self._request("GET", "/v1/policies")
        self._check_status(response)

        installed = {item.get("id") for item in self._payload(response).get("result") or []}
        errors.extend(
            f"{filename}: module not installed on server"
            for filename in modules
            if self.policy_id(filename) not in installed
        )
        if errors:
            raise CompileError(errors)

        return CompiledProgram(
            modules=dict(modules),
            handle=[self.policy_id(filename) for filename in modules],
        )

    def evaluate(self, program: CompiledProgram, query: str, input: Any) -> ResultSet:
        response = self._request("POST", "/v1/query", json={"query": query, "input": input})
        self._check_status(response)

        return self._payload(response).get("result") or []

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            self.logger.error("OPA server timeout", method=method, url=url)
            raise BackendError(self.name, "server timeout", details={"url": url}) from e
        except httpx.RequestError as e:
            self.logger.error("OPA server request error", method=method, url=url, error=str(e))
            raise BackendError(self.name, f"server unavailable: {e}", details={"url": url}) from e

    def _payload(self, response: httpx.Response) -> Dict[str, Any]:
        """Decode a successful response body, which must be a JSON object."""
        try:
            payload = response.json()
        except ValueError as e:
            self.logger.error("OPA server sent invalid JSON", url=str(response.request.url))
            raise BackendError(
                self.name,
                f"invalid response: {e}",
                details={"status_code": response.status_code}
            ) from e

        if not isinstance(payload, dict):
            raise BackendError(
                self.name,
                f"invalid response: expected a JSON object, got {type(payload).__name__}",
                details={"status_code": response.status_code}
            )
        return payload

    def _check_status(self, response: httpx.Response):
        if response.is_success:
            return

        message = _error_message(response)
        self.logger.error(
            "OPA server error",
            status_code=response.status_code,
            response=message
        )
        raise BackendError(
            self.name,
            message,
            details={"status_code": response.status_code}
        )

    def _raise_policy_errors(self, filename: str, response: httpx.Response):
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        errors = payload.get("errors") or []
        messages = [_format_policy_error(filename, error) for error in errors]
        if not messages:
            messages = [f"{filename}: {payload.get('message') or response.text}"]

        raise CompileError(
            messages,
            details={"filename": filename, "codes": sorted({e.get("code", "error") for e in errors})}
        )


def module_from_ast(filename: str, source: str, ast: Dict[str, Any]) -> Module:
    """Map OPA's JSON module AST to a Module."""
    package_path = ref_to_path((ast.get("package") or {}).get("path") or [])

    rules: List[ModuleRule] = []
    annotations: List[Annotation] = []

    for item in ast.get("annotations") or []:
        if item.get("scope") in (AnnotationScope.PACKAGE.value, AnnotationScope.SUBPACKAGES.value):
            annotations.append(annotation_from_ast(item, package_path))

    for rule in ast.get("rules") or []:
        name = rule_name(rule.get("head") or {})
        if not name:
            continue

        path = f"{package_path}.{name}"
        location = rule.get("location") or {}
        rules.append(ModuleRule(name=name, path=path, row=int(location.get("row") or 0)))

        for item in rule.get("annotations") or []:
            annotations.append(annotation_from_ast(item, path))

    return Module(
        filename=filename,
        package_path=package_path,
        rules=rules,
        annotations=annotations,
        source=source,
    )


def ref_to_path(ref: List[Dict[str, Any]]) -> str:
    """``[{"type": "var", "value": "data"}, {"type": "string", "value": "a"}]`` -> ``data.a``."""
    parts = [str(term.get("value")) for term in ref if term.get("value") is not None]
    if not parts:
        return DATA_ROOT
    return ".".join(parts)


def rule_name(head: Dict[str, Any]) -> Optional[str]:
    """Declared name of a rule head; newer servers only send the head ref."""
    name = head.get("name")
    if name:
        return str(name)

    ref = head.get("ref") or []
    if ref:
        return str(ref[0].get("value"))

    return None


def annotation_from_ast(item: Dict[str, Any], target_path: str) -> Annotation:
    return Annotation(
        scope=str(item.get("scope") or AnnotationScope.RULE.value),
        target_path=target_path,
        title=item.get("title"),
        description=item.get("description"),
        custom=dict(item.get("custom") or {}),
        authors=list(item.get("authors") or []),
        organizations=list(item.get("organizations") or []),
        related_resources=list(item.get("related_resources") or []),
    )


def _format_policy_error(filename: str, error: Dict[str, Any]) -> str:
    location = error.get("location") or {}
    where = location.get("file") or filename
    if location.get("row"):
        where = f"{where}:{location['row']}"
    return f"{where}: {error.get('code', 'error')}: {error.get('message', '')}"


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return f"HTTP {response.status_code}"
