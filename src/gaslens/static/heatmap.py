"""Per-line projection of cost entries for visualization."""

from collections import Counter

from gaslens.models.report import CostEntry, GasSeverity, HeatmapPoint


def project(estimates: list[CostEntry]) -> list[HeatmapPoint]:
    """Project cost entries onto source lines.

    Lines with a zero total are not costed lines and get no point. Intensity
    is the line total relative to the costliest line.

    Args:
        estimates: Cost entries in any order

    Returns:
        One point per costed line, ordered by line
    """
    by_line: dict[int, list[CostEntry]] = {}
    for entry in estimates:
        by_line.setdefault(entry.line, []).append(entry)

    totals = {line: sum(e.total_cost for e in entries) for line, entries in by_line.items()}
    max_cost = max(totals.values(), default=0)
    if max_cost <= 0:
        return []

    points = []
    for line in sorted(by_line):
        gas_cost = totals[line]
        if gas_cost <= 0:
            continue
        entries = by_line[line]
        # First entry wins ties
        costliest = max(entries, key=lambda e: e.total_cost)
        points.append(
            HeatmapPoint(
                line=line,
                gas_cost=gas_cost,
                intensity=min(1.0, gas_cost / max_cost),
                category=costliest.category.value,
                description=_describe(entries),
                severity=GasSeverity.for_cost(gas_cost),
            )
        )
    return points


def _describe(entries: list[CostEntry]) -> str:
    counts = Counter(e.operation_name for e in entries if e.total_cost > 0)
    parts = []
    for name, count in counts.items():
        parts.append(f"{name} x{count}" if count > 1 else name)
    return ", ".join(parts)
