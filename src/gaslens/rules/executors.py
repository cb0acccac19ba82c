"""Execution of registered optimization rules."""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from gaslens.config import GasLensConfig
from gaslens.models.rules import OptimizationSuggestion
from gaslens.models.static import DetectedConstruct
from gaslens.rules.base import OptimizationRule
from gaslens.rules.registry import registry

logger = logging.getLogger(__name__)


class RuleExecutor:
    """Runs enabled rules and merges their suggestions.

    A rule that raises is logged and skipped; suggestions without a positive
    saving are dropped. The merged list is ordered by range start, ties
    keeping registration order.
    """

    def __init__(
        self,
        config: GasLensConfig | None = None,
        rules: Optional[list[OptimizationRule]] = None,
    ) -> None:
        """Initialize the executor.

        Args:
            config: Optional configuration for rule filtering
            rules: Rules to run instead of the registry's
        """
        self.config = config or GasLensConfig()
        self._rules = rules

    @property
    def rules(self) -> list[OptimizationRule]:
        candidates = self._rules if self._rules is not None else registry.get_rules()
        return [r for r in candidates if self.config.is_rule_enabled(r.rule_id)]

    def execute(self, constructs: list[DetectedConstruct], source: str) -> list[OptimizationSuggestion]:
        """Run every enabled rule.

        Args:
            constructs: Scanner output in source order
            source: Source text the constructs were found in

        Returns:
            Suggestions in source order with unique IDs
        """
        suggestions: list[OptimizationSuggestion] = []
        for rule in self.rules:
            try:
                found = rule.check(constructs, source, self.config)
            except Exception as e:
                logger.warning("Rule %s failed and was skipped: %s", rule.rule_id, e)
                continue
            suggestions.extend(s for s in found if s.savings > 0)

        suggestions.sort(key=lambda s: (s.range.start_line, s.range.start_column))
        return self._unique_ids(suggestions)

    @staticmethod
    def _unique_ids(suggestions: list[OptimizationSuggestion]) -> list[OptimizationSuggestion]:
        seen: dict[str, int] = {}
        unique = []
        for suggestion in suggestions:
            count = seen.get(suggestion.id, 0)
            seen[suggestion.id] = count + 1
            if count:
                suggestion = dataclasses.replace(suggestion, id=f"{suggestion.id}#{count + 1}")
            unique.append(suggestion)
        return unique


def detect(
    constructs: list[DetectedConstruct], source: str, config: GasLensConfig | None = None
) -> list[OptimizationSuggestion]:
    """Run all registered rules against scanner output.

    Args:
        constructs: Scanner output in source order
        source: Source text the constructs were found in
        config: Optional configuration for rule filtering

    Returns:
        Suggestions in source order
    """
    return RuleExecutor(config).execute(constructs, source)
