"""
Evaluation backends.

- opa: OPA server over its REST API.
"""

from .opa import OpaServerBackend

__all__ = ["OpaServerBackend"]
