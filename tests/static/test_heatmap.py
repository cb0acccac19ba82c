"""Tests for the heatmap projector."""

from gaslens.models.report import CostEntry, GasSeverity
from gaslens.models.rules import OptimizationCategory
from gaslens.models.static import ConstructKind, DetectedConstruct
from gaslens.static.aggregator import aggregate
from gaslens.static.heatmap import project
from gaslens.static.parsers.solidity import scan


def _entry(
    line: int,
    total: int,
    operation: str = "SLOAD",
    category: OptimizationCategory = OptimizationCategory.STORAGE,
    column: int = 1,
) -> CostEntry:
    construct = DetectedConstruct(ConstructKind.STORAGE_READ, line=line, column=column)
    return CostEntry(
        construct=construct,
        operation_name=operation,
        category=category,
        unit_cost=total,
        multiplier=1,
        total_cost=total,
    )


class TestProject:
    """Test suite for heatmap projection."""

    def test_empty(self) -> None:
        """Test that no entries give no points."""
        assert project([]) == []

    def test_all_zero_costs(self) -> None:
        """Test that zero-cost input is not divided by zero."""
        assert project([_entry(1, 0, operation="FUNCTION")]) == []

    def test_intensity_is_relative_to_costliest_line(self) -> None:
        """Test intensity scaling and line ordering."""
        points = project([_entry(9, 2100), _entry(5, 7000), _entry(5, 100, column=9)])

        assert [p.line for p in points] == [5, 9]
        assert points[0].gas_cost == 7100
        assert points[0].intensity == 1.0
        assert points[1].intensity == 2100 / 7100
        assert all(0.0 <= p.intensity <= 1.0 for p in points)

    def test_zero_cost_lines_are_skipped(self) -> None:
        """Test that a line whose entries all cost zero gets no point.

        Such lines carry only FUNCTION entries (a bare function header), so
        the heatmap has one point per line with a positive total rather than
        one per line with any entry. A zero-cost entry sharing a line with
        costed ones still counts towards that line's point.
        """
        points = project(
            [
                _entry(4, 0, operation="FUNCTION"),
                _entry(5, 2100),
                _entry(6, 0, operation="FUNCTION"),
                _entry(6, 2100, column=30),
            ]
        )

        assert [p.line for p in points] == [5, 6]
        assert points[1].gas_cost == 2100
        assert points[1].description == "SLOAD"

    def test_category_and_description(self) -> None:
        """Test the dominant category and the operation summary."""
        points = project(
            [
                _entry(3, 2100, column=5),
                _entry(3, 2100, column=20),
                _entry(3, 5000, operation="SSTORE", column=30),
                _entry(3, 700, operation="CALL", category=OptimizationCategory.CALL, column=40),
            ]
        )

        assert points[0].category == "storage"
        assert points[0].description == "SLOAD x2, SSTORE, CALL"

    def test_ties_keep_first_category(self) -> None:
        """Test that the earliest costliest entry names the category."""
        points = project(
            [
                _entry(2, 700, operation="CALL", category=OptimizationCategory.CALL),
                _entry(2, 700, operation="MEMORY", category=OptimizationCategory.MEMORY, column=9),
            ]
        )

        assert points[0].category == "call"

    def test_severity_buckets(self) -> None:
        """Test severity assignment from the line total."""
        points = project([_entry(1, 50), _entry(2, 500), _entry(3, 5000), _entry(4, 50000)])

        assert [p.severity for p in points] == [
            GasSeverity.LOW,
            GasSeverity.MEDIUM,
            GasSeverity.HIGH,
            GasSeverity.CRITICAL,
        ]

    def test_counter_contract(self, counter_source: str) -> None:
        """Test projection of a scanned contract."""
        points = project(aggregate(scan(counter_source)).estimates)

        assert [(p.line, p.gas_cost) for p in points] == [(5, 7100), (9, 2100)]
        assert points[0].description == "SLOAD, SSTORE"
