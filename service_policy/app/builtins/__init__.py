"""
Host functions callable from policy bodies.

- base: BuiltinFunction declaration and per-evaluation memoization.
- github_request: the ``github.request`` declarative HTTP builtin.
"""

from .base import BuiltinFunction, cache_key
from .github_request import GITHUB_REQUEST, GitHubRequest, github_request_builtin

__all__ = [
    "BuiltinFunction",
    "cache_key",
    "GITHUB_REQUEST",
    "GitHubRequest",
    "github_request_builtin",
]
