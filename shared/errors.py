"""
Shared error handling for the Policy Check service.

Every fatal condition in the check pipeline is raised as a subclass of
PolicyException carrying a stage-labelled message (load / compiler / query)
so operators can tell which phase failed.
"""

from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class PolicyException(Exception):
    """Base exception for Policy Check components."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class LoadError(PolicyException):
    """Policy files could not be found or read."""

    def __init__(self, message: str = "Failed to load policies", details: Optional[Dict[str, Any]] = None):
        super().__init__("LOAD_ERROR", f"load: {message}", details)


class ParseError(LoadError):
    """A single policy module failed to parse."""

    def __init__(self, filename: str, message: str, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.setdefault("filename", filename)
        super().__init__(f"{filename}: {message}", details)
        self.code = "PARSE_ERROR"
        self.filename = filename


class CompileError(PolicyException):
    """The evaluation backend rejected the module set."""

    def __init__(self, errors: List[str], details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details["errors"] = list(errors)
        summary = "; ".join(errors) if errors else "compilation failed"
        super().__init__("COMPILE_ERROR", f"compiler: {summary}", details)
        self.errors = list(errors)


class EvalError(PolicyException):
    """Evaluating a rule query failed; the whole check is aborted."""

    def __init__(self, rule: str, query: str, message: str, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.update({"rule": rule, "query": query})
        super().__init__("EVAL_ERROR", f"check: query rule: {rule}: {message}", details)
        self.rule = rule
        self.query = query


class BuiltinError(PolicyException):
    """A builtin function invoked from a rule body failed."""

    def __init__(self, builtin: str, message: str, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details["builtin"] = builtin
        super().__init__("BUILTIN_ERROR", f"{builtin}: {message}", details)
        self.builtin = builtin


class BackendError(PolicyException):
    """External evaluation backend errors."""

    def __init__(self, backend: str, message: str = "Evaluation backend error", details: Optional[Dict[str, Any]] = None):
        super().__init__("BACKEND_ERROR", f"{backend}: {message}", details)
        self.backend = backend
