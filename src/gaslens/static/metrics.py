"""Summary metrics and recommendations derived from an analysis result."""

from gaslens.models.report import AnalysisResult, GasMetrics, Recommendation, RecommendationType
from gaslens.models.rules import Difficulty, Impact, OptimizationCategory

HIGH_TOTAL_COST = 1_000_000
STORAGE_FOCUS_THRESHOLD = 2
GOOD_SAVINGS_RATIO = 0.2

PRIORITY_ORDER = {"high": 3, "medium": 2, "low": 1}


def compute_metrics(result: AnalysisResult) -> GasMetrics:
    """Summarize an analysis result.

    Args:
        result: Analysis result

    Returns:
        GasMetrics with counts and ratios (zeros for an empty result)
    """
    optimizations = result.optimizations
    count = len(optimizations)
    total = result.total_gas_cost
    savings = result.total_savings

    return GasMetrics(
        total_cost=total,
        potential_savings=savings,
        savings_percentage=(savings / total * 100) if total > 0 else 0.0,
        optimization_count=count,
        easy_optimizations=sum(1 for o in optimizations if o.difficulty is Difficulty.EASY),
        medium_optimizations=sum(1 for o in optimizations if o.difficulty is Difficulty.MEDIUM),
        hard_optimizations=sum(1 for o in optimizations if o.difficulty is Difficulty.HARD),
        high_impact_optimizations=sum(1 for o in optimizations if o.impact is Impact.HIGH),
        average_savings_per_optimization=(savings / count) if count else 0.0,
    )


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def build_recommendations(result: AnalysisResult) -> list[Recommendation]:
    """Derive high level advice from an analysis result.

    Args:
        result: Analysis result

    Returns:
        Recommendations ordered by priority, high first
    """
    recommendations = []
    total = result.total_gas_cost
    savings = result.total_savings
    optimizations = result.optimizations

    if total > HIGH_TOTAL_COST:
        recommendations.append(
            Recommendation(
                type=RecommendationType.WARNING,
                title="High Gas Cost Detected",
                message=(
                    f"Total gas cost of {total / 1_000_000:.1f}M is very high. "
                    "Consider major optimizations."
                ),
                priority="high",
            )
        )

    easy = [o for o in optimizations if o.difficulty is Difficulty.EASY]
    if easy:
        recommendations.append(
            Recommendation(
                type=RecommendationType.SUCCESS,
                title="Easy Optimizations Available",
                message=(
                    f"{_plural(len(easy), 'easy optimization')} can save "
                    f"{sum(o.savings for o in easy)} gas."
                ),
                priority="medium",
            )
        )

    high_impact = [o for o in optimizations if o.impact is Impact.HIGH]
    if high_impact:
        recommendations.append(
            Recommendation(
                type=RecommendationType.INFO,
                title="High Impact Optimizations",
                message=(
                    f"{_plural(len(high_impact), 'high-impact optimization')} available "
                    "for significant gas savings."
                ),
                priority="high",
            )
        )

    storage = [o for o in optimizations if o.category is OptimizationCategory.STORAGE]
    if len(storage) > STORAGE_FOCUS_THRESHOLD:
        recommendations.append(
            Recommendation(
                type=RecommendationType.INFO,
                title="Storage Optimization Focus",
                message=(
                    "Multiple storage optimizations available. "
                    "Focus on storage packing and access patterns."
                ),
                priority="medium",
            )
        )

    if savings > 0 and total > 0 and savings / total > GOOD_SAVINGS_RATIO:
        recommendations.append(
            Recommendation(
                type=RecommendationType.SUCCESS,
                title="Good Optimization Potential",
                message=(
                    f"Potential to save {round(savings / total * 100)}% of gas costs "
                    "through optimizations."
                ),
                priority="low",
            )
        )

    # sort is stable, equal priorities keep insertion order
    return sorted(recommendations, key=lambda r: -PRIORITY_ORDER.get(r.priority, 0))
