"""Data models for gaslens."""

from gaslens.models.core import LineIndex, SourceRange
from gaslens.models.report import (
    AnalysisResult,
    CostEntry,
    GasMetrics,
    GasSeverity,
    HeatmapPoint,
    Recommendation,
    RecommendationType,
)
from gaslens.models.rules import (
    Difficulty,
    Impact,
    OptimizationCategory,
    OptimizationSuggestion,
    Rule,
)
from gaslens.models.static import (
    ConstructKind,
    DetectedConstruct,
    FunctionSpan,
    ScanResult,
    StateVariable,
)

__all__ = [
    "AnalysisResult",
    "ConstructKind",
    "CostEntry",
    "DetectedConstruct",
    "Difficulty",
    "FunctionSpan",
    "GasMetrics",
    "GasSeverity",
    "HeatmapPoint",
    "Impact",
    "LineIndex",
    "OptimizationCategory",
    "OptimizationSuggestion",
    "Recommendation",
    "RecommendationType",
    "Rule",
    "ScanResult",
    "SourceRange",
    "StateVariable",
]
