"""
Check report aggregation.
"""

from typing import Any, Dict, List
from dataclasses import dataclass, field

from .models import Result, Rule, RuleCategory


@dataclass
class Report:
    """Rules and results of one check, keyed by rule uid."""
    rules: Dict[str, Rule] = field(default_factory=dict)
    results: Dict[str, Result] = field(default_factory=dict)

    def add_rule(self, rule: Rule):
        self.rules[rule.uid] = rule

    def add_result(self, result: Result):
        self.results[result.rule.uid] = result

    def _results_in(self, category: RuleCategory) -> List[Result]:
        return [r for r in self.results.values() if r.rule.category == category]

    @property
    def warnings(self) -> List[Result]:
        """Results of warning rules that produced a finding."""
        return [r for r in self._results_in(RuleCategory.WARNING) if not r.passed]

    @property
    def failures(self) -> List[Result]:
        """Results of failure rules that produced a finding."""
        return [r for r in self._results_in(RuleCategory.FAILURE) if not r.passed]

    @property
    def passed(self) -> bool:
        """True when no failure rule produced a finding; warnings do not fail."""
        return not self.failures

    def summary(self) -> Dict[str, int]:
        return {
            "rules": len(self.rules),
            "passed": len([r for r in self.results.values() if r.passed]),
            "warnings": len(self.warnings),
            "failures": len(self.failures),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rules": {uid: rule.to_dict() for uid, rule in self.rules.items()},
            "results": {uid: result.to_dict() for uid, result in self.results.items()},
            "summary": self.summary(),
        }
