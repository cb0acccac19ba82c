"""Base class for optimization rules."""

from __future__ import annotations

from abc import ABC, abstractmethod

from gaslens.config import GasLensConfig
from gaslens.models.core import LineIndex, SourceRange
from gaslens.models.rules import Impact, OptimizationSuggestion, Rule
from gaslens.models.static import DetectedConstruct
from gaslens.static.aggregator import loop_factor


def loop_iterations(loop: DetectedConstruct, config: GasLensConfig | None = None) -> int:
    """Iteration count the aggregator charges a loop's body with.

    Uses the same factor as cost aggregation, capped at
    ``config.max_loop_multiplier``.
    """
    config = config or GasLensConfig()
    return min(loop_factor(loop, config), config.max_loop_multiplier)


def leading_indent(index: LineIndex, line: int) -> str:
    text = index.line_text(line)
    return text[: len(text) - len(text.lstrip())]


class OptimizationRule(ABC):
    """Base class for optimization rules.

    A rule inspects scanner output together with the raw source text and
    returns suggestions. Rules must be pure: the same input always yields
    the same suggestions, and nothing outside the rule is modified.

    Attributes:
        rule: Static metadata (ID, name, category, difficulty)
    """

    def __init__(self, rule: Rule) -> None:
        """Initialize the rule.

        Args:
            rule: Rule metadata
        """
        self.rule = rule

    @property
    def rule_id(self) -> str:
        return self.rule.rule_id

    @abstractmethod
    def check(
        self,
        constructs: list[DetectedConstruct],
        source: str,
        config: GasLensConfig | None = None,
    ) -> list[OptimizationSuggestion]:
        """Look for optimization opportunities.

        Args:
            constructs: Scanner output in source order
            source: Source text the constructs were found in
            config: Settings the savings estimates follow (loop iterations)

        Returns:
            Suggestions, possibly empty
        """

    def suggestion(
        self,
        *,
        title: str,
        description: str,
        impact: Impact,
        before_code: str,
        after_code: str,
        source_range: SourceRange,
        savings: int,
        auto_fix_available: bool,
    ) -> OptimizationSuggestion:
        """Build a suggestion carrying this rule's metadata."""
        return OptimizationSuggestion(
            id=f"{self.rule_id}@{source_range.start_line}:{source_range.start_column}",
            rule_id=self.rule_id,
            title=title,
            description=description,
            category=self.rule.category,
            difficulty=self.rule.difficulty,
            impact=impact,
            before_code=before_code,
            after_code=after_code,
            range=source_range,
            savings=max(0, savings),
            auto_fix_available=auto_fix_available,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.rule_id})"
