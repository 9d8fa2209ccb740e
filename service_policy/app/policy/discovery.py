"""
Rule discovery for a namespace.
"""

from typing import Iterable, List, Optional

from shared.logging import get_logger

from .models import Annotation, Module, ModuleRule, Rule
from .naming import classify_rule_name, remove_rule_prefix

logger = get_logger("policy.discovery")


def build_rule(namespace: str, module_rule: ModuleRule, annotation: Optional[Annotation] = None) -> Optional[Rule]:
    """Create a Rule from a declared rule, or None if its name is not checkable."""
    kind = classify_rule_name(module_rule.name)
    if kind is None:
        return None

    return Rule(
        namespace=namespace,
        kind=kind,
        id=remove_rule_prefix(module_rule.name),
        title=annotation.title if annotation else None,
        description=annotation.description if annotation else None,
        custom=dict(annotation.custom) if annotation else {},
        annotation=annotation,
    )


def discover_rules(modules: Iterable[Module], namespace: str) -> List[Rule]:
    """Checkable rules declared by every module in ``namespace``.

    Rules with several bodies are returned once per definition; callers key
    them by uid. Names matching no kind pattern (helpers, ``allow``...) are
    skipped silently.
    """
    rules: List[Rule] = []
    for module in modules:
        if module.namespace != namespace:
            continue

        for module_rule in module.rules:
            rule = build_rule(namespace, module_rule, module.annotation_for(module_rule))
            if rule is None:
                continue
            rules.append(rule)

    logger.debug("Rules discovered", namespace=namespace, rules=len(rules))
    return rules
