"""Cost aggregation over scanner output."""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from typing import Optional

from gaslens.config import GasLensConfig
from gaslens.models.report import CostEntry
from gaslens.models.static import ConstructKind, DetectedConstruct
from gaslens.static.cost_model import CostModel, default_cost_model


def loop_factor(loop: DetectedConstruct, config: GasLensConfig | None = None) -> int:
    """Iteration estimate for a loop: its literal trip count or the configured proxy.

    Args:
        loop: Loop construct from the scanner
        config: Configuration supplying the proxy for non-literal bounds

    Returns:
        Iteration count, at least 1
    """
    literal = loop.attr("iterations")
    if literal.isdigit():
        return max(1, int(literal))
    return (config or GasLensConfig()).loop_iterations


@dataclass
class Aggregation:
    """Costed constructs with their totals.

    Attributes:
        estimates: One entry per construct, in source order
        total_gas_cost: Sum of all entries, assigned to a function or not
        function_breakdown: Function name to summed cost
        line_totals: Line number to summed cost
    """

    estimates: list[CostEntry] = field(default_factory=list)
    total_gas_cost: int = 0
    function_breakdown: dict[str, int] = field(default_factory=dict)
    line_totals: dict[int, int] = field(default_factory=dict)


@dataclass(frozen=True)
class _OpenLoop:
    end_line: int
    factor: int


class CostAggregator:
    """Turns detected constructs into cost entries and totals.

    Constructs inside open loop spans are multiplied by the loop's iteration
    factor: its literal trip count when known, otherwise the configured
    proxy. Nested factors multiply and are capped at
    ``config.max_loop_multiplier``.
    """

    def __init__(
        self, config: GasLensConfig | None = None, cost_model: CostModel | None = None
    ) -> None:
        """Initialize the aggregator.

        Args:
            config: Optional configuration
            cost_model: Cost table, defaults to the shared heuristic model
        """
        self.config = config or GasLensConfig()
        self.cost_model = cost_model or default_cost_model

    def loop_factor(self, loop: DetectedConstruct) -> int:
        """Estimated iteration count of a single loop."""
        return loop_factor(loop, self.config)

    def aggregate(self, constructs: list[DetectedConstruct]) -> Aggregation:
        """Cost constructs and compute totals.

        Args:
            constructs: Scanner output in source order

        Returns:
            Aggregation with entries, grand total and per-function totals
        """
        result = Aggregation()
        ordered = sorted(constructs, key=lambda c: (c.line, c.column))

        functions = [c for c in ordered if c.kind is ConstructKind.FUNCTION_DECL]
        starts = [(f.line, f.column) for f in functions]
        for function in functions:
            result.function_breakdown.setdefault(function.attr("name"), 0)

        open_loops: list[_OpenLoop] = []
        for construct in ordered:
            while open_loops and open_loops[-1].end_line < construct.line:
                open_loops.pop()

            multiplier = 1
            for loop in open_loops:
                multiplier = min(multiplier * loop.factor, self.config.max_loop_multiplier)

            spec = self.cost_model.cost_of(construct.kind, construct.attributes)
            unit_cost = max(0, spec.unit_cost)
            entry = CostEntry(
                construct=construct,
                operation_name=spec.operation_name,
                category=spec.category,
                unit_cost=unit_cost,
                multiplier=multiplier,
                total_cost=unit_cost * multiplier,
            )
            result.estimates.append(entry)
            result.total_gas_cost += entry.total_cost
            result.line_totals[entry.line] = result.line_totals.get(entry.line, 0) + entry.total_cost

            owner = self._enclosing_function(functions, starts, construct)
            if owner is not None:
                name = owner.attr("name")
                result.function_breakdown[name] += entry.total_cost

            # The loop's own overhead is charged once per enclosing iteration
            if construct.kind is ConstructKind.LOOP:
                open_loops.append(
                    _OpenLoop(end_line=construct.end_line, factor=self.loop_factor(construct))
                )

        return result

    @staticmethod
    def _enclosing_function(
        functions: list[DetectedConstruct],
        starts: list[tuple[int, int]],
        construct: DetectedConstruct,
    ) -> Optional[DetectedConstruct]:
        idx = bisect.bisect_right(starts, (construct.line, construct.column)) - 1
        if idx < 0:
            return None
        candidate = functions[idx]
        if candidate.end_line >= construct.line:
            return candidate
        return None


def aggregate(
    constructs: list[DetectedConstruct], config: GasLensConfig | None = None
) -> Aggregation:
    """Aggregate constructs with a default-configured aggregator."""
    return CostAggregator(config).aggregate(constructs)
