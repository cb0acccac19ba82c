"""GL-101: Storage Variables Could Be Packed.

Detects runs of consecutive state variable declarations whose order wastes
storage slots. Solidity packs variables smaller than 32 bytes into one slot
only while they fit in declaration order, so grouping small types together
can save whole slots.
"""

import re
from typing import Optional

from gaslens import constants
from gaslens.config import GasLensConfig
from gaslens.models.core import LineIndex
from gaslens.models.rules import (
    Difficulty,
    Impact,
    OptimizationCategory,
    OptimizationSuggestion,
    Rule,
)
from gaslens.models.static import DetectedConstruct, StateVariable
from gaslens.rules.base import OptimizationRule
from gaslens.static.parsers.solidity import Declarations, parse_declarations

ADDRESS_SIZE = 20


def type_size(type_name: str, declarations: Optional[Declarations] = None) -> int:
    """Bytes a value of ``type_name`` occupies in storage.

    Types that always start a new slot (mappings, arrays, strings, dynamic
    bytes, structs) report a full slot.

    Args:
        type_name: Normalized type name
        declarations: Used to resolve enums and contract types

    Returns:
        Size in bytes, between 1 and 32
    """
    if "[" in type_name or type_name.startswith("mapping"):
        return constants.SLOT_SIZE
    if type_name == "bool":
        return 1
    if type_name.startswith("address"):
        return ADDRESS_SIZE

    match = re.fullmatch(r"u?int(\d*)", type_name)
    if match:
        return int(match.group(1)) // 8 if match.group(1) else constants.SLOT_SIZE
    match = re.fullmatch(r"bytes(\d+)", type_name)
    if match:
        return int(match.group(1))

    if declarations is not None:
        kind = declarations.declared_types.get(type_name)
        if kind == "enum":
            return 1
        if kind in ("contract", "interface") or (
            kind is None and declarations.is_contract_type(type_name)
        ):
            return ADDRESS_SIZE
    return constants.SLOT_SIZE


def slots_in_order(sizes: list[int]) -> int:
    """Slots used when variables are laid out in the given order."""
    slots = 0
    used = 0
    for size in sizes:
        if size >= constants.SLOT_SIZE:
            slots += 1 if used else 0
            slots += 1
            used = 0
        elif used + size > constants.SLOT_SIZE:
            slots += 1
            used = size
        else:
            used += size
    return slots + (1 if used else 0)


def pack_first_fit(items: list[tuple[int, int]]) -> list[list[int]]:
    """Bin sub-slot items by first-fit decreasing.

    Args:
        items: (index, size) pairs, sizes below a full slot

    Returns:
        Bins of item indexes; ties keep declaration order
    """
    bins: list[list[int]] = []
    free: list[int] = []
    for index, size in sorted(items, key=lambda item: -item[1]):
        for b, space in enumerate(free):
            if size <= space:
                bins[b].append(index)
                free[b] -= size
                break
        else:
            bins.append([index])
            free.append(constants.SLOT_SIZE - size)
    return bins


class StoragePackingRule(OptimizationRule):
    """Suggest reordering state variables to share storage slots.

    Only maximal runs of storage declarations separated by nothing but
    whitespace are considered, so the suggested reordering never moves
    comments or other members.
    """

    def check(
        self,
        constructs: list[DetectedConstruct],
        source: str,
        config: Optional[GasLensConfig] = None,
    ) -> list[OptimizationSuggestion]:
        """Check declaration runs for wasted slots.

        Args:
            constructs: Scanner output (unused, declarations are re-read)
            source: Source text
            config: Optional configuration (unused)

        Returns:
            One suggestion per run that packs into fewer slots
        """
        declarations = parse_declarations(source)
        index = LineIndex(source)
        suggestions = []

        for run in self._runs(declarations.state_variables, source):
            suggestion = self._check_run(run, source, declarations, index)
            if suggestion is not None:
                suggestions.append(suggestion)
        return suggestions

    @staticmethod
    def _runs(variables: tuple[StateVariable, ...], source: str) -> list[list[StateVariable]]:
        runs: list[list[StateVariable]] = []
        current: list[StateVariable] = []
        for variable in variables:
            if not variable.is_storage:
                if len(current) > 1:
                    runs.append(current)
                current = []
                continue
            if current and (
                current[-1].contract != variable.contract
                or source[current[-1].end : variable.start].strip()
            ):
                if len(current) > 1:
                    runs.append(current)
                current = []
            current.append(variable)
        if len(current) > 1:
            runs.append(current)
        return runs

    def _check_run(
        self,
        run: list[StateVariable],
        source: str,
        declarations: Declarations,
        index: LineIndex,
    ) -> Optional[OptimizationSuggestion]:
        sizes = [type_size(v.type_name, declarations) for v in run]
        small = [(i, size) for i, size in enumerate(sizes) if size < constants.SLOT_SIZE]
        if len(small) < 2:
            return None

        current_slots = slots_in_order(sizes)
        bins = pack_first_fit(small)
        full = [i for i, size in enumerate(sizes) if size >= constants.SLOT_SIZE]
        packed_slots = len(full) + len(bins)
        saved = current_slots - packed_slots
        if saved <= 0:
            return None

        order = full + [i for b in bins for i in b]
        first, last = run[0], run[-1]
        line_text = index.line_text(first.line)
        indent = line_text[: len(line_text) - len(line_text.lstrip())]
        after_code = f"\n{indent}".join(source[run[i].start : run[i].end] for i in order)

        names = ", ".join(v.name for v in run)
        return self.suggestion(
            title=f"Pack storage variables in {first.contract}",
            description=(
                f"Reordering {names} lets small types share slots: "
                f"{packed_slots} slot(s) instead of {current_slots}. Each slot saved avoids "
                f"a zero to non-zero SSTORE. Do not reorder storage of deployed upgradeable "
                f"contracts."
            ),
            impact=Impact.HIGH if saved >= 2 else Impact.MEDIUM,
            before_code=source[first.start : last.end],
            after_code=after_code,
            source_range=index.span(first.start, last.end),
            savings=saved * constants.SSTORE_SET,
            auto_fix_available=False,
        )


RULE_GL_101 = Rule(
    rule_id="GL-101",
    name="Storage Variables Could Be Packed",
    description="Consecutive state variables can be reordered to use fewer storage slots",
    category=OptimizationCategory.STORAGE,
    difficulty=Difficulty.MEDIUM,
    references=[
        "https://docs.soliditylang.org/en/latest/internals/layout_in_storage.html",
    ],
)

rule_gl101 = StoragePackingRule(RULE_GL_101)
