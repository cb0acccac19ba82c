"""Models for analysis results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from gaslens.models.rules import OptimizationCategory, OptimizationSuggestion
from gaslens.models.static import DetectedConstruct


class GasSeverity(Enum):
    """Coarse severity buckets for a gas cost."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def for_cost(cls, gas_cost: int) -> "GasSeverity":
        if gas_cost < 100:
            return cls.LOW
        if gas_cost < 1_000:
            return cls.MEDIUM
        if gas_cost < 10_000:
            return cls.HIGH
        return cls.CRITICAL


@dataclass(frozen=True)
class CostEntry:
    """Estimated cost of one detected construct.

    Attributes:
        construct: The construct being costed
        operation_name: Canonical operation label (e.g., "SLOAD")
        category: Cost category
        unit_cost: Cost of a single execution
        multiplier: Loop-derived execution estimate (1 outside loops)
        total_cost: ``unit_cost * multiplier``
    """

    construct: DetectedConstruct
    operation_name: str
    category: OptimizationCategory
    unit_cost: int
    multiplier: int
    total_cost: int

    @property
    def line(self) -> int:
        return self.construct.line

    def to_dict(self) -> dict:
        return {
            "operation": self.operation_name,
            "category": self.category.value,
            "line": self.construct.line,
            "column": self.construct.column,
            "length": self.construct.length,
            "unit_cost": self.unit_cost,
            "multiplier": self.multiplier,
            "total_cost": self.total_cost,
            "construct": self.construct.to_dict(),
        }


@dataclass(frozen=True)
class HeatmapPoint:
    """Per-line cost projected for visualization.

    Attributes:
        line: 1-based source line
        gas_cost: Summed cost of the line
        intensity: ``gas_cost`` relative to the costliest line, in [0, 1]
        category: Category of the costliest entry on the line
        description: Operations on the line
        severity: Severity bucket for ``gas_cost``
    """

    line: int
    gas_cost: int
    intensity: float
    category: str
    description: str
    severity: GasSeverity = GasSeverity.LOW

    def to_dict(self) -> dict:
        return {
            "line": self.line,
            "gas_cost": self.gas_cost,
            "intensity": self.intensity,
            "category": self.category,
            "description": self.description,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Complete result of one analysis pass.

    Results are never mutated; a new pass produces a new result.

    Attributes:
        estimates: Cost entries in source order
        optimizations: Suggestions in source order
        total_gas_cost: Sum of all entry costs
        total_savings: Sum of suggestion savings
        optimized_gas_cost: ``max(0, total_gas_cost - total_savings)``
        function_breakdown: Function name to summed cost
        heatmap_data: Per-line projection of ``estimates``
        contract_name: First contract declared in the source, if any
        cost_model_version: Version of the cost table used
    """

    estimates: tuple[CostEntry, ...] = ()
    optimizations: tuple[OptimizationSuggestion, ...] = ()
    total_gas_cost: int = 0
    total_savings: int = 0
    optimized_gas_cost: int = 0
    function_breakdown: dict[str, int] = field(default_factory=dict, hash=False)
    heatmap_data: tuple[HeatmapPoint, ...] = ()
    contract_name: Optional[str] = None
    cost_model_version: str = ""

    def to_dict(self) -> dict:
        return {
            "contract_name": self.contract_name,
            "cost_model_version": self.cost_model_version,
            "total_gas_cost": self.total_gas_cost,
            "total_savings": self.total_savings,
            "optimized_gas_cost": self.optimized_gas_cost,
            "function_breakdown": dict(self.function_breakdown),
            "estimates": [e.to_dict() for e in self.estimates],
            "optimizations": [o.to_dict() for o in self.optimizations],
            "heatmap_data": [p.to_dict() for p in self.heatmap_data],
        }


@dataclass
class GasMetrics:
    """Summary numbers derived from an analysis result.

    Attributes:
        total_cost: Total estimated gas
        potential_savings: Sum of suggestion savings
        savings_percentage: Savings relative to total cost, 0-100
        optimization_count: Number of suggestions
        easy_optimizations: Suggestions rated easy
        medium_optimizations: Suggestions rated medium
        hard_optimizations: Suggestions rated hard
        high_impact_optimizations: Suggestions with high impact
        average_savings_per_optimization: Mean savings per suggestion
    """

    total_cost: int = 0
    potential_savings: int = 0
    savings_percentage: float = 0.0
    optimization_count: int = 0
    easy_optimizations: int = 0
    medium_optimizations: int = 0
    hard_optimizations: int = 0
    high_impact_optimizations: int = 0
    average_savings_per_optimization: float = 0.0


class RecommendationType(Enum):
    """Tone of a recommendation."""

    WARNING = "warning"
    SUCCESS = "success"
    INFO = "info"


@dataclass
class Recommendation:
    """High level advice derived from an analysis result."""

    type: RecommendationType
    title: str
    message: str
    priority: str
