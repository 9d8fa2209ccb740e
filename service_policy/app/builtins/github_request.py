"""
github.request builtin.

Policies describe a GitHub REST call with a compact request line and a data
object, e.g.::

    github.request("GET /repos/{owner}/{repo}/issues", {"owner": "o", "repo": "r", "state": "open"})

``{name}`` tokens are filled from the data object. For GET and POST every
remaining key becomes a query parameter; whatever is left after that is sent
as the JSON body. The policy receives ``{"statusCode": ..., "body": ...}``.
"""

import json
import math
import re
from typing import Any, Dict, List, Tuple

import httpx

from shared.errors import BuiltinError
from shared.logging import get_logger

from .base import BuiltinFunction
from ..policy.models import GitHubResponse

GITHUB_REQUEST = "github.request"
USER_AGENT = "policy-check"

PATH_PARAM_PATTERN = re.compile(r"\{([a-z]+)\}")
QUERY_STRING_METHODS = frozenset({"GET", "POST"})


class GitHubRequest:
    """Issues one GitHub API call per invocation over an injected client.

    The client owns base URL, credentials, timeouts and retries; nothing here
    is retried or cached beyond the builtin's per-evaluation memoization.
    """

    def __init__(self, client: httpx.Client):
        self.client = client
        self.logger = get_logger("policy.builtins.github")

    def __call__(self, line: Any, data: Any) -> Dict[str, Any]:
        if not isinstance(line, str):
            raise BuiltinError(GITHUB_REQUEST, f"request line must be a string, got {type(line).__name__}")
        if not isinstance(data, dict):
            raise BuiltinError(GITHUB_REQUEST, f"data must be an object, got {type(data).__name__}")

        method, path = parse_request_line(line)

        # Work on a copy; the policy's object must stay untouched for memoization
        remaining = dict(data)
        path = substitute_path_params(path, remaining)

        try:
            url = httpx.URL(path)
        except httpx.InvalidURL as e:
            raise BuiltinError(GITHUB_REQUEST, f"invalid url '{path}': {e}") from e

        params: List[Tuple[str, str]] = list(url.params.multi_items())
        if method in QUERY_STRING_METHODS:
            for key in list(remaining):
                params.append((key, value_to_string(remaining.pop(key))))

        url = url.copy_with(params=sorted(params, key=lambda item: item[0]))

        try:
            body = json.dumps(remaining, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise BuiltinError(GITHUB_REQUEST, f"encode body: {e}") from e

        try:
            response = self.client.request(
                method,
                url,
                content=body.encode("utf-8"),
                headers={
                    "User-Agent": USER_AGENT,
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            self.logger.error("GitHub request failed", method=method, url=str(url), error=str(e))
            raise BuiltinError(GITHUB_REQUEST, f"request failed: {e}") from e

        self.logger.debug(
            "GitHub request",
            method=method,
            url=str(url),
            status_code=response.status_code
        )

        try:
            payload = response.json()
        except ValueError as e:
            raise BuiltinError(
                GITHUB_REQUEST,
                f"decode response: {e}",
                details={"status_code": response.status_code}
            ) from e

        if response.status_code == httpx.codes.FORBIDDEN:
            message = payload.get("message") if isinstance(payload, dict) else payload
            raise BuiltinError(
                GITHUB_REQUEST,
                f"forbidden: {message}",
                details={"status_code": response.status_code}
            )

        return GitHubResponse(status_code=response.status_code, body=payload).to_value()


def parse_request_line(line: str) -> Tuple[str, str]:
    """Split ``"GET /path"`` into an upper-cased method and the path."""
    method, sep, path = line.strip().partition(" ")
    path = path.strip()
    if not sep or not method or not path:
        raise BuiltinError(GITHUB_REQUEST, f"malformed request line '{line}': expected '<METHOD> <path>'")

    return method.upper(), path


def parse_path_params(path: str) -> List[str]:
    """Names of the ``{param}`` tokens in ``path``, in order of appearance."""
    return PATH_PARAM_PATTERN.findall(path)


def substitute_path_params(path: str, data: Dict[str, Any]) -> str:
    """Fill ``{param}`` tokens from ``data``, removing each consumed key."""
    for name in parse_path_params(path):
        if name not in data:
            raise BuiltinError(GITHUB_REQUEST, f"missing value for path parameter '{name}'")

        value = value_to_string(data[name])
        path = path.replace("{" + name + "}", value, 1)
        data.pop(name, None)

    return path


def value_to_string(value: Any) -> str:
    """Coerce a URL value to text; strings and finite numbers are accepted."""
    if isinstance(value, bool):
        raise BuiltinError(GITHUB_REQUEST, f"parse error: can't parse '{value}' to string")

    if isinstance(value, str):
        return value

    if isinstance(value, int):
        return str(value)

    # JSON numbers may arrive as floats; whole ones render without a fraction
    if isinstance(value, float) and math.isfinite(value):
        if value.is_integer():
            return str(int(value))
        return json.dumps(value)

    raise BuiltinError(GITHUB_REQUEST, f"parse error: can't parse '{value}' to string")


def github_request_builtin(client: httpx.Client) -> BuiltinFunction:
    """Declare github.request bound to ``client``."""
    return BuiltinFunction(
        name=GITHUB_REQUEST,
        implementation=GitHubRequest(client),
        arg_types=("string", "object<string, any>"),
        result_type="any",
        memoize=True,
    )
