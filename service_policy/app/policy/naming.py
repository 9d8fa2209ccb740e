"""
Rule name classification.

A rule is checkable only when its declared name matches one of the kind
patterns below; the kind is the leading segment and the rule id is whatever
follows it.
"""

import re
from typing import Optional

from .models import RuleKind

WARNING_PATTERN = re.compile(r"^warn(_[a-zA-Z0-9]+)*$")
FAILURE_PATTERN = re.compile(r"^(deny|violation|fail)(_[a-zA-Z0-9]+)*$")

_KIND_PREFIXES = tuple(f"{kind.value}_" for kind in RuleKind)


def is_warning(name: str) -> bool:
    return WARNING_PATTERN.match(name) is not None


def is_failure(name: str) -> bool:
    return FAILURE_PATTERN.match(name) is not None


def classify_rule_name(name: str) -> Optional[RuleKind]:
    """Return the kind of a rule name, or None if it is not a checkable rule."""
    if is_warning(name):
        return RuleKind.WARN

    match = FAILURE_PATTERN.match(name)
    if match:
        return RuleKind(match.group(1))

    return None


def remove_rule_prefix(name: str) -> str:
    """Strip the kind prefix: ``deny_missing_license`` -> ``missing_license``."""
    if name in {kind.value for kind in RuleKind}:
        return ""

    for prefix in _KIND_PREFIXES:
        if name.startswith(prefix):
            return name[len(prefix):]

    return name
