"""GL-102: Storage Access Inside Loop.

Detects value-type state variables read or written inside a loop body. Each
iteration pays for the storage access again; working on a local copy and
writing it back once after the loop avoids that.
"""

import re
from collections import defaultdict
from typing import Optional

from gaslens.config import GasLensConfig
from gaslens.models.core import LineIndex
from gaslens.models.rules import (
    Difficulty,
    Impact,
    OptimizationCategory,
    OptimizationSuggestion,
    Rule,
)
from gaslens.models.static import ConstructKind, DetectedConstruct
from gaslens.rules.base import OptimizationRule, leading_indent, loop_iterations
from gaslens.static.cost_model import cost_of
from gaslens.static.parsers.solidity import find_matching, parse_declarations, skip_whitespace

STORAGE_KINDS = (ConstructKind.STORAGE_READ, ConstructKind.STORAGE_WRITE)
RETURN_PATTERN = re.compile(r"(?<![\w$.])return\b")


def is_value_type(type_name: str) -> bool:
    return bool(type_name) and "mapping" not in type_name and "[" not in type_name


def _identifier(name: str) -> re.Pattern:
    return re.compile(r"(?<![\w$.])" + re.escape(name) + r"(?![\w$])")


class StorageInLoopRule(OptimizationRule):
    """Suggest caching state variables accessed inside loop bodies.

    Accesses in the loop header are left to GL-201. Each access is attributed
    to its innermost enclosing loop and one suggestion is made per loop and
    variable. The suggested edit replaces the whole loop: the variable is
    copied into a local before it, every body occurrence uses the local, and
    a written variable is stored back once after the loop.

    No suggestion is made when that edit could change behaviour: ``do``
    loops and loops without a braced body, a variable also named in the
    loop header, a local name already taken, or a written variable in a
    body that can ``return`` before the write-back.
    """

    def check(
        self,
        constructs: list[DetectedConstruct],
        source: str,
        config: Optional[GasLensConfig] = None,
    ) -> list[OptimizationSuggestion]:
        """Check loop bodies for repeated storage access.

        Args:
            constructs: Scanner output
            source: Source text
            config: Optional configuration for loop iteration estimates

        Returns:
            One suggestion per (loop, variable) pair
        """
        index = LineIndex(source)
        masked = parse_declarations(source).masked
        loops = []
        for loop in constructs:
            if loop.kind is not ConstructKind.LOOP:
                continue
            start = index.offset(loop.line, loop.column)
            if start is not None:
                loops.append((loop, start, start + loop.length))

        # (loop position, variable) -> accesses
        accesses: dict[tuple[int, str], list[DetectedConstruct]] = defaultdict(list)
        for access in constructs:
            if access.kind not in STORAGE_KINDS or access.attr("context") == "initializer":
                continue
            if not is_value_type(access.attr("type")):
                continue
            offset = index.offset(access.line, access.column)
            if offset is None:
                continue
            enclosing = [
                (i, header_end)
                for i, (loop, _, header_end) in enumerate(loops)
                if header_end <= offset and access.line <= loop.end_line
            ]
            if not enclosing:
                continue
            innermost = max(enclosing, key=lambda item: item[1])[0]
            accesses[(innermost, access.attr("variable"))].append(access)

        suggestions = []
        for (loop_idx, variable), found in accesses.items():
            loop, start, header_end = loops[loop_idx]
            suggestion = self._suggest(
                loop, start, header_end, variable, found, source, masked, index, config
            )
            if suggestion is not None:
                suggestions.append(suggestion)
        return suggestions

    def _suggest(
        self,
        loop: DetectedConstruct,
        start: int,
        header_end: int,
        variable: str,
        accesses: list[DetectedConstruct],
        source: str,
        masked: str,
        index: LineIndex,
        config: Optional[GasLensConfig],
    ) -> Optional[OptimizationSuggestion]:
        iterations = loop_iterations(loop, config)
        if iterations < 2 or loop.attr("keyword") not in ("for", "while"):
            return None

        body_open = skip_whitespace(masked, header_end)
        if body_open >= len(masked) or masked[body_open] != "{":
            return None
        body_close = find_matching(masked, body_open)
        if masked[body_close] != "}":
            return None
        end = body_close + 1

        written = any(a.kind is ConstructKind.STORAGE_WRITE for a in accesses)
        local = f"{variable}Cached"
        name = _identifier(variable)
        if name.search(masked, start, header_end) or _identifier(local).search(masked):
            return None
        if written and RETURN_PATTERN.search(masked, body_open, end):
            return None

        pieces = []
        last = start
        for match in name.finditer(masked, body_open, end):
            pieces.append(source[last : match.start()])
            pieces.append(local)
            last = match.end()
        pieces.append(source[last:end])
        rewritten_loop = "".join(pieces)

        var_type = accesses[0].attr("type")
        indent = leading_indent(index, loop.line)
        after_code = f"{var_type} {local} = {variable};\n{indent}{rewritten_loop}"
        if written:
            after_code += f"\n{indent}{variable} = {local};"

        # One copy in, and one write back when the loop writes
        added = cost_of(ConstructKind.STORAGE_READ).unit_cost
        if written:
            added += cost_of(ConstructKind.STORAGE_WRITE).unit_cost
        removed = iterations * sum(cost_of(a.kind, a.attributes).unit_cost for a in accesses)

        description = (
            f"'{variable}' is accessed in storage on every iteration of the loop at line "
            f"{loop.line}. Copy it into a local before the loop and use the local inside."
        )
        if written:
            description += f" Write the local back to '{variable}' once after the loop."
        description += f" Only valid if nothing called from the loop uses '{variable}'."

        return self.suggestion(
            title=f"Cache '{variable}' outside the loop",
            description=description,
            impact=Impact.HIGH,
            before_code=source[start:end],
            after_code=after_code,
            source_range=index.span(start, end),
            savings=removed - added,
            auto_fix_available=False,
        )


RULE_GL_102 = Rule(
    rule_id="GL-102",
    name="Storage Access Inside Loop",
    description="State variable is read or written from storage on every loop iteration",
    category=OptimizationCategory.STORAGE,
    difficulty=Difficulty.MEDIUM,
    references=[
        "https://docs.soliditylang.org/en/latest/internals/layout_in_storage.html",
    ],
)

rule_gl102 = StorageInLoopRule(RULE_GL_102)
