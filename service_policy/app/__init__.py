"""
Policy Check Service package.

This package evaluates Rego policies against an input document (typically a
repository or organization fetched from GitHub) and reports which rules
passed. It provides:

- app.policy: Module loading, rule discovery, query execution and reports.
- app.backends: Evaluation backends (OPA server over REST).
- app.builtins: Host functions such as github.request.
- app.clients: httpx client factories fed from shared configuration.

Guidelines:
- Keep package import side-effects minimal; no network calls at import.
- Clients are created by the caller and passed in, never kept globally.
- Use the shared/ utilities for logging, configuration and errors.
"""

from .policy.engine import PolicyEngine
from .policy.report import Report
from .backends import OpaServerBackend
from .builtins import github_request_builtin
from .clients import create_github_client, create_opa_client

__all__ = [
    "PolicyEngine",
    "Report",
    "OpaServerBackend",
    "github_request_builtin",
    "create_github_client",
    "create_opa_client",
]
