"""
Shared configuration management for the Policy Check service.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PolicyConfig(BaseSettings):
    """Configuration for loading policies and reaching external services.

    Every field can be overridden through a ``POLICY_``-prefixed environment
    variable (``POLICY_OPA_URL``, ``POLICY_GITHUB_TOKEN``...) or a ``.env`` file.
    List values such as ``policy_paths`` are read from the environment as JSON.
    """

    model_config = SettingsConfigDict(
        env_prefix="POLICY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Policies
    policy_paths: List[str] = Field(default_factory=lambda: ["policy"])

    # Evaluation backend
    opa_url: str = Field(default="http://localhost:8181")
    opa_timeout: float = Field(default=10.0)

    # GitHub API used by the github.request builtin
    github_api_url: str = Field(default="https://api.github.com")
    github_token: Optional[str] = Field(default=None)
    github_timeout: float = Field(default=30.0)


def get_config(**overrides) -> PolicyConfig:
    """Get configuration, applying explicit overrides on top of the environment."""
    return PolicyConfig(**overrides)
