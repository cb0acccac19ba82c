"""Tests for summary metrics and recommendations."""

import pytest

from gaslens.models.core import SourceRange
from gaslens.models.report import AnalysisResult, RecommendationType
from gaslens.models.rules import Difficulty, Impact, OptimizationCategory, OptimizationSuggestion
from gaslens.static.analyzer import analyze_source
from gaslens.static.metrics import build_recommendations, compute_metrics


def _suggestion(
    savings: int,
    difficulty: Difficulty = Difficulty.MEDIUM,
    impact: Impact = Impact.LOW,
    category: OptimizationCategory = OptimizationCategory.COMPUTATION,
) -> OptimizationSuggestion:
    return OptimizationSuggestion(
        id=f"GL-900@{savings}:1",
        rule_id="GL-900",
        title="",
        description="",
        category=category,
        difficulty=difficulty,
        impact=impact,
        before_code="",
        after_code="",
        range=SourceRange(1, 1, 1, 1),
        savings=savings,
        auto_fix_available=False,
    )


def _result(total: int, *suggestions: OptimizationSuggestion) -> AnalysisResult:
    savings = sum(s.savings for s in suggestions)
    return AnalysisResult(
        optimizations=suggestions,
        total_gas_cost=total,
        total_savings=savings,
        optimized_gas_cost=max(0, total - savings),
    )


class TestComputeMetrics:
    """Test suite for compute_metrics."""

    def test_empty_result(self) -> None:
        """Test that an empty result does not divide by zero."""
        metrics = compute_metrics(AnalysisResult())

        assert metrics.total_cost == 0
        assert metrics.savings_percentage == 0.0
        assert metrics.average_savings_per_optimization == 0.0

    def test_counts_and_ratios(self) -> None:
        """Test per-difficulty counts and averages."""
        result = _result(
            10000,
            _suggestion(1000, Difficulty.EASY),
            _suggestion(2000, Difficulty.MEDIUM, Impact.HIGH),
            _suggestion(3000, Difficulty.HARD, Impact.HIGH),
        )

        metrics = compute_metrics(result)

        assert metrics.potential_savings == 6000
        assert metrics.savings_percentage == pytest.approx(60.0)
        assert metrics.optimization_count == 3
        assert (metrics.easy_optimizations, metrics.medium_optimizations, metrics.hard_optimizations) == (1, 1, 1)
        assert metrics.high_impact_optimizations == 2
        assert metrics.average_savings_per_optimization == pytest.approx(2000.0)

    def test_registry_contract(self, registry_source: str) -> None:
        """Test metrics of an analyzed contract."""
        metrics = compute_metrics(analyze_source(registry_source))

        assert metrics.total_cost == 92200
        assert metrics.potential_savings == 82800
        assert metrics.easy_optimizations == 1
        assert metrics.medium_optimizations == 1
        assert metrics.high_impact_optimizations == 1


class TestBuildRecommendations:
    """Test suite for build_recommendations."""

    def test_nothing_to_say(self) -> None:
        """Test that a clean, cheap result gets no advice."""
        assert build_recommendations(_result(5000)) == []

    def test_high_total_cost(self) -> None:
        """Test the warning for very expensive contracts."""
        recommendations = build_recommendations(_result(2_500_000))

        assert len(recommendations) == 1
        assert recommendations[0].type == RecommendationType.WARNING
        assert "2.5M" in recommendations[0].message
        assert recommendations[0].priority == "high"

    def test_easy_wins(self) -> None:
        """Test the easy optimization summary."""
        recommendations = build_recommendations(
            _result(100000, _suggestion(50, Difficulty.EASY), _suggestion(150, Difficulty.EASY))
        )

        assert [r.title for r in recommendations] == ["Easy Optimizations Available"]
        assert recommendations[0].message == "2 easy optimizations can save 200 gas."

    def test_storage_focus(self) -> None:
        """Test that more than two storage suggestions trigger the focus hint."""
        storage = [_suggestion(10 + i, category=OptimizationCategory.STORAGE) for i in range(3)]

        titles = [r.title for r in build_recommendations(_result(100000, *storage))]

        assert titles == ["Storage Optimization Focus"]

    def test_ordering_by_priority(self, registry_source: str) -> None:
        """Test that high priority advice comes first."""
        recommendations = build_recommendations(analyze_source(registry_source))

        assert [r.title for r in recommendations] == [
            "High Impact Optimizations",
            "Easy Optimizations Available",
            "Good Optimization Potential",
        ]
        assert [r.priority for r in recommendations] == ["high", "medium", "low"]
        assert recommendations[-1].message.startswith("Potential to save 90%")
