"""Tests for rule registration and execution."""

import pytest

from gaslens.config import GasLensConfig
from gaslens.models.core import SourceRange
from gaslens.models.rules import Difficulty, Impact, OptimizationCategory, Rule
from gaslens.rules import get_all_rules, get_rule_by_id
from gaslens.rules.base import OptimizationRule
from gaslens.rules.executors import RuleExecutor, detect
from gaslens.rules.registry import RuleRegistry
from gaslens.rules.visibility.gl001_external_visibility import rule_gl001
from gaslens.static.parsers.solidity import scan

RULE_TEST = Rule(
    rule_id="GL-900",
    name="Test Rule",
    description="Emits fixed suggestions",
    category=OptimizationCategory.COMPUTATION,
    difficulty=Difficulty.EASY,
)


class FailingRule(OptimizationRule):
    def check(self, constructs, source, config=None):
        raise RuntimeError("rule bug")


class FixedRule(OptimizationRule):
    """Emits one suggestion per given (line, savings) pair."""

    def __init__(self, rule: Rule, items: list[tuple[int, int]]) -> None:
        super().__init__(rule)
        self.items = items

    def check(self, constructs, source, config=None):
        return [
            self.suggestion(
                title="Fixed",
                description="",
                impact=Impact.LOW,
                before_code="",
                after_code="",
                source_range=SourceRange(line, 1, line, 1),
                savings=savings,
                auto_fix_available=False,
            )
            for line, savings in self.items
        ]


class TestRuleRegistry:
    """Test suite for RuleRegistry."""

    def test_registered_rules(self) -> None:
        """Test that every rule module registered itself."""
        assert [r.rule_id for r in get_all_rules()] == ["GL-201", "GL-101", "GL-102", "GL-001"]
        assert get_rule_by_id("GL-001") is rule_gl001
        assert get_rule_by_id("GL-999") is None

    def test_duplicate_registration(self) -> None:
        """Test that an ID can only belong to one rule instance."""
        registry = RuleRegistry()
        rule = FixedRule(RULE_TEST, [])
        registry.register(rule)
        registry.register(rule)

        with pytest.raises(ValueError, match="GL-900"):
            registry.register(FixedRule(RULE_TEST, []))

        assert registry.list_all_rules() == {"GL-900": rule}

    def test_repr(self) -> None:
        """Test the rule representation."""
        assert repr(rule_gl001) == "ExternalVisibilityRule(GL-001)"


class TestRuleExecutor:
    """Test suite for RuleExecutor."""

    def test_failing_rule_is_skipped(self, counter_source: str) -> None:
        """Test that one broken rule does not hide the others."""
        executor = RuleExecutor(rules=[FailingRule(RULE_TEST), rule_gl001])

        suggestions = executor.execute(scan(counter_source), counter_source)

        assert [s.rule_id for s in suggestions] == ["GL-001", "GL-001"]

    def test_non_positive_savings_are_dropped(self) -> None:
        """Test that suggestions saving nothing are discarded."""
        executor = RuleExecutor(rules=[FixedRule(RULE_TEST, [(1, 0), (2, 10)])])

        assert [s.range.start_line for s in executor.execute([], "")] == [2]

    def test_suggestions_are_sorted_and_unique(self) -> None:
        """Test ordering by position and ID de-duplication."""
        executor = RuleExecutor(rules=[FixedRule(RULE_TEST, [(5, 1), (2, 1), (5, 2)])])

        suggestions = executor.execute([], "")

        assert [s.id for s in suggestions] == ["GL-900@2:1", "GL-900@5:1", "GL-900@5:1#2"]
        assert [s.savings for s in suggestions] == [1, 1, 2]

    def test_disabled_rules(self) -> None:
        """Test filtering through the configuration."""
        executor = RuleExecutor(GasLensConfig(disabled_rules={"GL-001", "GL-101"}))

        assert [r.rule_id for r in executor.rules] == ["GL-201", "GL-102"]

    def test_enabled_rules(self) -> None:
        """Test running an explicit subset."""
        executor = RuleExecutor(GasLensConfig(enabled_rules={"GL-001"}))

        assert [r.rule_id for r in executor.rules] == ["GL-001"]

    def test_detect_orders_same_position_by_registration(self, registry_source: str) -> None:
        """Test that GL-201 precedes GL-102 on the same loop header."""
        suggestions = detect(scan(registry_source), registry_source)

        assert [s.id for s in suggestions] == ["GL-201@6:9", "GL-102@6:9"]

    def test_rules_are_pure(self, vault_source: str) -> None:
        """Test that repeated runs give equal results."""
        constructs = scan(vault_source)

        assert detect(constructs, vault_source) == detect(constructs, vault_source)
