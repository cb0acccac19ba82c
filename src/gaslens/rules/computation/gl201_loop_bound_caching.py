"""GL-201: Loop Bound Read From Storage.

Detects loops whose condition reads a state variable, typically the length of
a storage array. The condition is evaluated on every iteration, so each pass
pays another SLOAD; hoisting the read into a local before the loop pays it
once.
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
from gaslens.models.static import ConstructKind, DetectedConstruct
from gaslens.rules.base import OptimizationRule, leading_indent, loop_iterations
from gaslens.static.parsers.solidity import IDENTIFIER, find_matching, parse_declarations

LENGTH_BOUND = re.compile(r"^(" + IDENTIFIER + r")\s*\.\s*length$")
PLAIN_BOUND = re.compile(r"^(" + IDENTIFIER + r")$")


class LoopBoundCachingRule(OptimizationRule):
    """Suggest caching a storage-backed loop bound in a local variable.

    Handles ``for`` and ``while`` loops whose bound is ``name.length`` or a
    bare state variable ``name``, where ``name`` is read from storage in the
    loop header.
    """

    def check(
        self,
        constructs: list[DetectedConstruct],
        source: str,
        config: Optional[GasLensConfig] = None,
    ) -> list[OptimizationSuggestion]:
        """Check loop conditions for storage reads.

        Args:
            constructs: Scanner output
            source: Source text
            config: Optional configuration

        Returns:
            One suggestion per loop with a storage-backed bound
        """
        index = LineIndex(source)
        masked = parse_declarations(source).masked
        suggestions = []

        for loop in constructs:
            if loop.kind is not ConstructKind.LOOP or loop.attr("keyword") not in ("for", "while"):
                continue
            suggestion = self._check_loop(loop, constructs, source, masked, index, config)
            if suggestion is not None:
                suggestions.append(suggestion)
        return suggestions

    def _check_loop(
        self,
        loop: DetectedConstruct,
        constructs: list[DetectedConstruct],
        source: str,
        masked: str,
        index: LineIndex,
        config: Optional[GasLensConfig],
    ) -> Optional[OptimizationSuggestion]:
        bound = loop.attr("bound")
        length_match = LENGTH_BOUND.match(bound)
        plain_match = PLAIN_BOUND.match(bound)
        if not (length_match or plain_match):
            return None
        variable = (length_match or plain_match).group(1)

        start = index.offset(loop.line, loop.column)
        if start is None:
            return None
        header_end = start + loop.length

        read = next(
            (
                c
                for c in constructs
                if c.kind is ConstructKind.STORAGE_READ
                and c.attr("variable") == variable
                and start <= (index.offset(c.line, c.column) or -1) < header_end
            ),
            None,
        )
        if read is None:
            return None

        condition_span = self._condition_span(masked, start, header_end, loop.attr("keyword"))
        if condition_span is None:
            return None
        cond_start, cond_end = condition_span

        if length_match:
            local = f"{variable}Length"
            local_type = "uint256"
            pattern = re.compile(r"(?<![\w$.])" + re.escape(variable) + r"\s*\.\s*length\b")
            initializer = f"{variable}.length"
        else:
            local = f"cached{variable[0].upper()}{variable[1:]}"
            local_type = read.attr("type") or "uint256"
            pattern = re.compile(r"(?<![\w$.])" + re.escape(variable) + r"\b")
            initializer = variable

        condition = source[cond_start:cond_end]
        new_condition, replaced = pattern.subn(local, condition)
        if not replaced:
            return None

        before_code = source[start:header_end]
        new_header = source[start:cond_start] + new_condition + source[cond_end:header_end]
        indent = leading_indent(index, loop.line)
        iterations = loop_iterations(loop, config)

        return self.suggestion(
            title=f"Cache '{initializer}' before the loop",
            description=(
                f"The loop condition reads '{initializer}' from storage on every iteration. "
                f"Reading it once into a local saves about {iterations - 1} SLOAD(s). "
                f"Only valid if the loop body does not change '{variable}'."
            ),
            impact=Impact.MEDIUM,
            before_code=before_code,
            after_code=f"{local_type} {local} = {initializer};\n{indent}{new_header}",
            source_range=index.span(start, header_end),
            savings=(iterations - 1) * constants.SLOAD,
            auto_fix_available=True,
        )

    @staticmethod
    def _condition_span(
        masked: str, start: int, header_end: int, keyword: str
    ) -> Optional[tuple[int, int]]:
        """Offsets of the loop condition inside the header parentheses."""
        open_idx = masked.find("(", start, header_end)
        if open_idx == -1:
            return None
        close_idx = find_matching(masked, open_idx)
        if keyword == "while":
            return open_idx + 1, close_idx

        separators = []
        depth = 0
        for i in range(open_idx + 1, close_idx):
            c = masked[i]
            if c in "([{":
                depth += 1
            elif c in ")]}":
                depth -= 1
            elif c == ";" and depth == 0:
                separators.append(i)
        if len(separators) < 2:
            return None
        return separators[0] + 1, separators[1]


RULE_GL_201 = Rule(
    rule_id="GL-201",
    name="Loop Bound Read From Storage",
    description="Loop condition re-reads a storage value on every iteration",
    category=OptimizationCategory.COMPUTATION,
    difficulty=Difficulty.EASY,
    references=[
        "https://www.evm.codes/#54",
    ],
)

rule_gl201 = LoopBoundCachingRule(RULE_GL_201)
