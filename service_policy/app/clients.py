"""
HTTP client factories for the Policy Check service.

These are the only places that read credentials or transport settings; the
builtins and backends receive ready-made clients.
"""

from typing import Dict, Optional

import httpx

from shared.config import PolicyConfig


def create_github_client(config: PolicyConfig, transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    """Client for the github.request builtin."""
    headers: Dict[str, str] = {"Accept": "application/vnd.github+json"}
    if config.github_token:
        headers["Authorization"] = f"Bearer {config.github_token}"

    return httpx.Client(
        base_url=config.github_api_url.rstrip("/"),
        headers=headers,
        timeout=config.github_timeout,
        transport=transport,
    )


def create_opa_client(config: PolicyConfig, transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    """Client for the OPA server backend."""
    return httpx.Client(
        base_url=config.opa_url.rstrip("/"),
        timeout=config.opa_timeout,
        transport=transport,
    )
