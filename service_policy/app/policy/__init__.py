"""
Policy check package.

Loads Rego policy modules, discovers the checkable rules of a namespace and
evaluates each of them through an external evaluation backend, producing a
report of passed and failed rules.

Modules of interest:
- models: Data classes for modules, annotations, rules, results.
- naming: Rule kind classification from declared rule names.
- loader: Policy file discovery and parsing through the backend.
- discovery: Namespace rule discovery and annotation matching.
- query: Per-rule query construction and execution.
- report: Report aggregation.
- engine: PolicyEngine tying the pipeline together.
- backend: The narrow interface an evaluation backend implements.

A rule named ``deny_x`` fails the check when ``data.<namespace>.deny_x`` is
defined for the given input; ``warn_x`` rules are reported as warnings.
"""
