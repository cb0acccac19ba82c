"""Registry of optimization rules.

Rule modules register their instances when imported (see the subpackage
``__init__`` modules). Registration order is the order suggestions at the
same source position are presented in.
"""

from __future__ import annotations

from typing import Optional

from gaslens.rules.base import OptimizationRule


class RuleRegistry:
    """Holds registered rule instances keyed by rule ID."""

    def __init__(self) -> None:
        self._rules: dict[str, OptimizationRule] = {}

    def register(self, rule: OptimizationRule) -> OptimizationRule:
        """Register a rule instance.

        Args:
            rule: Rule to register

        Returns:
            The registered rule

        Raises:
            ValueError: If a different rule with the same ID is registered
        """
        existing = self._rules.get(rule.rule_id)
        if existing is not None and existing is not rule:
            raise ValueError(f"Rule {rule.rule_id} is already registered")
        self._rules[rule.rule_id] = rule
        return rule

    def get_rules(self) -> list[OptimizationRule]:
        """All registered rules in registration order."""
        return list(self._rules.values())

    def get_rule_by_id(self, rule_id: str) -> Optional[OptimizationRule]:
        return self._rules.get(rule_id)

    def list_all_rules(self) -> dict[str, OptimizationRule]:
        return dict(self._rules)


registry = RuleRegistry()
