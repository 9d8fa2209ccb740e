"""
Shared utilities for the Policy Check service.

This package aggregates common building blocks consumed by the policy
service packages:

- config: Service configuration via pydantic-settings
- logging: Structured logging with check correlation
- errors: Canonical error types and responses

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service_* packages into shared/.
"""
