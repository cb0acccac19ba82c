"""GL-001: Public Function Could Be External.

Detects public functions that are never called from inside the contract.
Declaring them ``external`` lets reference-type arguments be read from
calldata instead of being copied to memory.
"""

import re
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
from gaslens.rules.base import OptimizationRule
from gaslens.static.parsers.solidity import (
    IDENTIFIER,
    find_matching,
    parse_declarations,
    skip_whitespace,
    split_top_level,
)

BASE_SAVINGS = 50
MEMORY_PARAM_SAVINGS = 100

ASSIGNMENT = r"(?:=(?!=)|[-+*/%|&^]=|<<=|>>=|\+\+|--)"


def _is_modified(body: str, name: str) -> bool:
    """True if ``body`` assigns to ``name`` or one of its elements or members.

    Calldata parameters are read-only, so such parameters must stay in memory.
    """
    escaped = re.escape(name)
    target = r"(?<![\w$.])" + escaped + r"\s*(?:\[[^\]]*\]\s*|\.\s*" + IDENTIFIER + r"\s*)*"
    if re.search(target + ASSIGNMENT, body):
        return True
    return bool(re.search(r"(?:\+\+|--|\bdelete\s)\s*" + escaped + r"(?![\w$])", body))


class ExternalVisibilityRule(OptimizationRule):
    """Suggest ``external`` for public functions with no internal callers.

    A function counts as internally called when its name appears as a bare
    call (``name(``) or through ``super.name(`` anywhere other than its own
    definition. Virtual and overriding functions are skipped because their
    visibility is constrained by the inheritance hierarchy.

    The edit also declares ``memory`` parameters the body never modifies as
    ``calldata``; only those parameters count towards the savings.
    """

    def check(
        self,
        constructs: list[DetectedConstruct],
        source: str,
        config: Optional[GasLensConfig] = None,
    ) -> list[OptimizationSuggestion]:
        """Check public functions for internal calls.

        Args:
            constructs: Scanner output
            source: Source text
            config: Optional configuration

        Returns:
            One suggestion per public function that could be external
        """
        suggestions = []
        masked = parse_declarations(source).masked
        index = LineIndex(source)

        for construct in constructs:
            if construct.kind is not ConstructKind.FUNCTION_DECL:
                continue
            if construct.attr("kind") != "function" or construct.attr("visibility") != "public":
                continue
            if construct.attr("virtual") == "true":
                continue

            name = construct.attr("name")
            start = index.offset(construct.line, construct.column)
            if start is None:
                continue
            header = masked[start : start + construct.length]
            if re.search(r"\boverride\b", header):
                continue
            if self._is_called_internally(masked, name):
                continue

            keyword = re.search(r"\bpublic\b", header)
            if keyword is None:
                continue

            body = self._body(masked, start + construct.length)
            memory_offsets = self._calldata_candidates(masked, start, header, body)
            # (start, end, replacement) in source order
            edits = [(offset, offset + len("memory"), "calldata") for offset in memory_offsets]
            edits.append((start + keyword.start(), start + keyword.end(), "external"))
            edit_start = edits[0][0]
            edit_end = edits[-1][1]

            after_code = ""
            last = edit_start
            for edit_from, edit_to, replacement in edits:
                after_code += source[last:edit_from] + replacement
                last = edit_to

            converted = len(memory_offsets)
            savings = BASE_SAVINGS + MEMORY_PARAM_SAVINGS * converted
            description = (
                f"'{name}' is public but never called from inside the contract. "
                "External functions read their arguments directly from calldata."
            )
            if converted:
                description += (
                    f" Declaring {converted} reference-type parameter(s) calldata "
                    "avoids copying them to memory."
                )
            suggestions.append(
                self.suggestion(
                    title=f"Make '{name}' external",
                    description=description,
                    impact=Impact.MEDIUM if converted else Impact.LOW,
                    before_code=source[edit_start:edit_end],
                    after_code=after_code,
                    source_range=index.span(edit_start, edit_end),
                    savings=savings,
                    auto_fix_available=True,
                )
            )

        return suggestions

    @staticmethod
    def _body(masked: str, header_end: int) -> str:
        body_open = skip_whitespace(masked, header_end)
        if body_open >= len(masked) or masked[body_open] != "{":
            return ""
        return masked[body_open : find_matching(masked, body_open) + 1]

    @staticmethod
    def _calldata_candidates(masked: str, start: int, header: str, body: str) -> list[int]:
        """Offsets of ``memory`` keywords on parameters the body never modifies."""
        open_idx = header.find("(")
        if open_idx == -1:
            return []
        close_idx = find_matching(header, open_idx)

        offsets = []
        pos = start + open_idx + 1
        for param in split_top_level(masked[pos : start + close_idx]):
            location = re.search(r"\bmemory\b", param)
            words = param.split()
            if location and len(words) > 2 and not _is_modified(body, words[-1]):
                offsets.append(pos + location.start())
            pos += len(param) + 1
        return offsets

    @staticmethod
    def _is_called_internally(masked: str, name: str) -> bool:
        escaped = re.escape(name)
        bare_call = re.compile(r"(?<![\w$.])" + escaped + r"\s*\(")
        for match in bare_call.finditer(masked):
            preceding = masked[max(0, match.start() - 20) : match.start()]
            # Skip definitions, declarations and emits of same-named events
            if re.search(r"\b(function|event|error|emit|modifier)\s+$", preceding):
                continue
            return True
        return bool(re.search(r"\bsuper\s*\.\s*" + escaped + r"\s*\(", masked))


RULE_GL_001 = Rule(
    rule_id="GL-001",
    name="Public Function Could Be External",
    description="Public function is never called internally and can be declared external",
    category=OptimizationCategory.CALL,
    difficulty=Difficulty.EASY,
    references=[
        "https://docs.soliditylang.org/en/latest/contracts.html#function-visibility",
    ],
)

rule_gl001 = ExternalVisibilityRule(RULE_GL_001)
