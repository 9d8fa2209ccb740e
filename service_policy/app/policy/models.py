"""
Policy data models for the Policy Check service.
"""

from typing import Dict, Any, Optional, List, Mapping, Tuple
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, Field

DATA_ROOT = "data"


class RuleKind(str, Enum):
    """Rule kinds recognised from a rule's declared name."""
    WARN = "warn"
    DENY = "deny"
    VIOLATION = "violation"
    FAIL = "fail"

    @property
    def category(self) -> "RuleCategory":
        if self is RuleKind.WARN:
            return RuleCategory.WARNING
        return RuleCategory.FAILURE


class RuleCategory(str, Enum):
    """Report grouping for rule kinds."""
    WARNING = "warning"
    FAILURE = "failure"


class AnnotationScope(str, Enum):
    """Annotation scopes understood by the evaluation backend."""
    RULE = "rule"
    DOCUMENT = "document"
    PACKAGE = "package"
    SUBPACKAGES = "subpackages"


def strip_data_root(path: str) -> str:
    """Turn ``data.org.repo`` into ``org.repo``."""
    prefix = DATA_ROOT + "."
    if path.startswith(prefix):
        return path[len(prefix):]
    if path == DATA_ROOT:
        return ""
    return path


@dataclass(frozen=True)
class Annotation:
    """Metadata block attached to a rule or package."""
    scope: str
    target_path: str
    title: Optional[str] = None
    description: Optional[str] = None
    custom: Dict[str, Any] = field(default_factory=dict)
    authors: List[Any] = field(default_factory=list)
    organizations: List[str] = field(default_factory=list)
    related_resources: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scope": self.scope,
            "target_path": self.target_path,
            "title": self.title,
            "description": self.description,
            "custom": dict(self.custom),
            "authors": list(self.authors),
            "organizations": list(self.organizations),
            "related_resources": list(self.related_resources),
        }


@dataclass(frozen=True)
class ModuleRule:
    """A rule definition as declared inside a module."""
    name: str
    path: str
    row: int = 0


@dataclass(frozen=True)
class Module:
    """A parsed policy module, immutable once built.

    ``rule_annotations`` is a read-only index of rule-scoped annotations by
    their target path. When several annotations target the same rule the last
    one declared wins.
    """
    filename: str
    package_path: str
    rules: Tuple[ModuleRule, ...] = ()
    annotations: Tuple[Annotation, ...] = ()
    source: str = ""
    rule_annotations: Mapping[str, Annotation] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "rules", tuple(self.rules))
        object.__setattr__(self, "annotations", tuple(self.annotations))

        index: Dict[str, Annotation] = {}
        for annotation in self.annotations:
            if annotation.scope == AnnotationScope.RULE.value:
                index[annotation.target_path] = annotation
        object.__setattr__(self, "rule_annotations", MappingProxyType(index))

    @property
    def namespace(self) -> str:
        return strip_data_root(self.package_path)

    def annotation_for(self, rule: ModuleRule) -> Optional[Annotation]:
        return self.rule_annotations.get(rule.path)


@dataclass(frozen=True)
class Rule:
    """A checkable rule discovered in a namespace."""
    namespace: str
    kind: RuleKind
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    custom: Dict[str, Any] = field(default_factory=dict)
    annotation: Optional[Annotation] = None

    @property
    def name(self) -> str:
        """The rule's declared name, e.g. ``deny_missing_license``."""
        if self.id:
            return f"{self.kind.value}_{self.id}"
        return self.kind.value

    @property
    def uid(self) -> str:
        return f"{self.namespace}.{self.name}"

    @property
    def query(self) -> str:
        return f"{DATA_ROOT}.{self.uid}"

    @property
    def category(self) -> RuleCategory:
        return self.kind.category

    def __str__(self) -> str:
        return self.uid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "namespace": self.namespace,
            "kind": self.kind.value,
            "id": self.id,
            "category": self.category.value,
            "title": self.title,
            "description": self.description,
            "custom": dict(self.custom),
        }


@dataclass(frozen=True)
class Result:
    """Outcome of evaluating one rule against one input."""
    rule: Rule
    query: str
    passed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule.uid,
            "query": self.query,
            "passed": self.passed,
        }


class GitHubResponse(BaseModel):
    """Value returned to policies by the github.request builtin."""
    status_code: int = Field(..., alias="statusCode", description="HTTP status code")
    body: Any = Field(None, description="Decoded JSON response body")

    model_config = {"populate_by_name": True}

    def to_value(self) -> Dict[str, Any]:
        """Convert to the plain object handed back to the policy."""
        return self.model_dump(by_alias=True)
