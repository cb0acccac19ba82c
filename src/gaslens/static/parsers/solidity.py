"""Pattern scanner for Solidity source text.

The scanner is deliberately heuristic: it masks comments and string literals,
locates contracts and function bodies by brace matching, and then recognizes
storage accesses, loops, external calls and memory allocations with regular
expressions. It never raises on malformed input; unparseable regions simply
yield fewer constructs.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterator, Optional

from gaslens.models.core import LineIndex
from gaslens.models.static import (
    ConstructKind,
    DetectedConstruct,
    FunctionSpan,
    ScanResult,
    StateVariable,
)

logger = logging.getLogger(__name__)

IDENTIFIER = r"[A-Za-z_$][\w$]*"
ELEMENTARY_TYPE = r"(?:u?int\d*|bool|address(?:\s+payable)?|bytes\d*|string)\b"

_PAIRS = {"(": ")", "[": "]", "{": "}"}
_REVERSE_PAIRS = {v: k for k, v in _PAIRS.items()}


def mask_source(source: str) -> str:
    """Blank out comments and string literal contents.

    Offsets and newlines are preserved so positions found in the masked text
    are valid in the original source. Quote characters are kept.

    Args:
        source: Solidity source code

    Returns:
        Masked copy of ``source`` with the same length
    """
    out = list(source)
    n = len(source)
    i = 0
    while i < n:
        ch = source[i]
        if source.startswith("//", i):
            while i < n and source[i] != "\n":
                out[i] = " "
                i += 1
        elif source.startswith("/*", i):
            end = source.find("*/", i + 2)
            end = n if end == -1 else end + 2
            for j in range(i, end):
                if source[j] != "\n":
                    out[j] = " "
            i = end
        elif ch in "\"'":
            j = i + 1
            while j < n and source[j] != ch and source[j] != "\n":
                if source[j] == "\\":
                    j += 1
                j += 1
            for k in range(i + 1, min(j, n)):
                if source[k] != "\n":
                    out[k] = " "
            i = j + 1
        else:
            i += 1
    return "".join(out)


def find_matching(text: str, open_idx: int) -> int:
    """Return the index of the bracket closing the one at ``open_idx``.

    Unterminated brackets match the last character of the text.
    """
    open_char = text[open_idx]
    close_char = _PAIRS[open_char]
    depth = 0
    for i in range(open_idx, len(text)):
        c = text[i]
        if c == open_char:
            depth += 1
        elif c == close_char:
            depth -= 1
            if depth == 0:
                return i
    return len(text) - 1


def find_matching_backward(text: str, close_idx: int) -> int:
    """Return the index of the bracket opening the one at ``close_idx``."""
    close_char = text[close_idx]
    open_char = _REVERSE_PAIRS[close_char]
    depth = 0
    for i in range(close_idx, -1, -1):
        c = text[i]
        if c == close_char:
            depth += 1
        elif c == open_char:
            depth -= 1
            if depth == 0:
                return i
    return 0


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split ``text`` on ``separator`` outside of any brackets."""
    parts = []
    depth = 0
    start = 0
    for i, c in enumerate(text):
        if c in _PAIRS:
            depth += 1
        elif c in _REVERSE_PAIRS:
            depth = max(0, depth - 1)
        elif c == separator and depth == 0:
            parts.append(text[start:i])
            start = i + 1
    parts.append(text[start:])
    return parts


def skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def normalize_type(type_text: str) -> str:
    """Collapse whitespace in a type name (``uint256 [ ]`` -> ``uint256[]``)."""
    collapsed = " ".join(type_text.split())
    collapsed = re.sub(r"\s*\[\s*", "[", collapsed)
    return re.sub(r"\s*\]", "]", collapsed)


@dataclass(frozen=True)
class ContractSpan:
    """Location of a contract, library or interface body."""

    kind: str
    name: str
    body_start: int
    body_end: int


@dataclass(frozen=True)
class Declarations:
    """Declarations shared by the scanner and the optimization rules.

    Attributes:
        masked: Source with comments and string contents blanked
        contracts: Contract-like bodies in source order
        state_variables: Contract-level variable declarations
        functions: Function-like definitions
        declared_types: User type names mapped to their kind
    """

    masked: str
    contracts: tuple[ContractSpan, ...] = ()
    state_variables: tuple[StateVariable, ...] = ()
    functions: tuple[FunctionSpan, ...] = ()
    declared_types: dict[str, str] = field(default_factory=dict, hash=False)

    @property
    def storage_variables(self) -> dict[str, StateVariable]:
        return {v.name: v for v in self.state_variables if v.is_storage}

    def is_contract_type(self, type_name: str) -> bool:
        """True if ``type_name`` names a contract or interface."""
        base = type_name.split("[")[0].strip()
        kind = self.declared_types.get(base)
        if kind is not None:
            return kind in ("contract", "interface")
        return bool(re.match(r"^I[A-Z][\w$]*$", base))


class DeclarationParser:
    """Finds contracts, state variables and function definitions."""

    CONTRACT_PATTERN = re.compile(
        r"(?<![\w$])(?:abstract\s+)?(contract|library|interface)\s+(" + IDENTIFIER + r")\b[^{;]*\{"
    )
    TYPE_DECL_PATTERN = re.compile(r"(?<![\w$])(struct|enum)\s+(" + IDENTIFIER + r")\s*\{")
    FUNCTION_PATTERN = re.compile(
        r"(?<![\w$.])(?:function\s+(?P<name>" + IDENTIFIER + r")"
        r"|(?P<special>constructor|fallback|receive)"
        r"|modifier\s+(?P<modifier>" + IDENTIFIER + r"))\s*(?=[({])"
    )
    LOCAL_DECL_PATTERN = re.compile(
        r"(?<![\w$.])(?P<type>" + ELEMENTARY_TYPE + r"|[A-Z][\w$]*(?:\.[A-Z][\w$]*)?)"
        r"(?P<array>(?:\s*\[[^\]]*\])*)\s+(?:(?:memory|storage|calldata)\s+)?"
        r"(?P<name>" + IDENTIFIER + r")\s*(?=[=;,)])"
    )

    # Contract-level statements that are not variable declarations
    NON_VARIABLE_KEYWORDS: set[str] = {
        "function",
        "modifier",
        "constructor",
        "fallback",
        "receive",
        "event",
        "error",
        "using",
        "struct",
        "enum",
        "pragma",
        "import",
        "type",
    }

    VARIABLE_MODIFIERS: set[str] = {
        "public",
        "private",
        "internal",
        "constant",
        "immutable",
        "override",
        "transient",
    }

    DATA_LOCATIONS: set[str] = {"memory", "storage", "calldata"}

    def parse(self, source: str) -> Declarations:
        """Parse declarations from Solidity source.

        Args:
            source: Solidity source code

        Returns:
            Declarations found in the source
        """
        masked = mask_source(source)
        index = LineIndex(source)

        contracts = self._find_contracts(masked)
        declared_types = {c.name: c.kind for c in contracts}
        for match in self.TYPE_DECL_PATTERN.finditer(masked):
            declared_types.setdefault(match.group(2), match.group(1))

        state_variables = []
        for contract in contracts:
            if contract.kind == "interface":
                continue
            for seg_start, seg_end in self._contract_statements(
                masked, contract.body_start + 1, contract.body_end
            ):
                variable = self._parse_state_variable(
                    source, masked, seg_start, seg_end, contract.name, index
                )
                if variable is not None:
                    state_variables.append(variable)

        functions = self._find_functions(masked)

        return Declarations(
            masked=masked,
            contracts=tuple(contracts),
            state_variables=tuple(state_variables),
            functions=tuple(functions),
            declared_types=declared_types,
        )

    def _find_contracts(self, masked: str) -> list[ContractSpan]:
        contracts = []
        for match in self.CONTRACT_PATTERN.finditer(masked):
            open_idx = match.end() - 1
            if contracts and open_idx < contracts[-1].body_end:
                continue
            close_idx = find_matching(masked, open_idx)
            contracts.append(
                ContractSpan(
                    kind=match.group(1),
                    name=match.group(2),
                    body_start=open_idx,
                    body_end=close_idx,
                )
            )
        return contracts

    def _contract_statements(self, masked: str, start: int, end: int) -> Iterator[tuple[int, int]]:
        """Yield offsets of contract-level statements terminated by ``;``.

        Brace blocks (function bodies, structs, enums) are skipped.
        """
        seg_start = start
        depth = 0
        i = start
        while i < end:
            c = masked[i]
            if c in "([":
                depth += 1
            elif c in ")]":
                depth = max(0, depth - 1)
            elif c == "{" and depth == 0:
                i = find_matching(masked, i) + 1
                seg_start = i
                continue
            elif c == ";" and depth == 0:
                yield seg_start, i + 1
                seg_start = i + 1
            i += 1

    def _parse_state_variable(
        self,
        source: str,
        masked: str,
        seg_start: int,
        seg_end: int,
        contract: str,
        index: LineIndex,
    ) -> Optional[StateVariable]:
        """Parse one contract-level statement as a variable declaration."""
        raw = masked[seg_start:seg_end]
        lead = len(raw) - len(raw.lstrip())
        start = seg_start + lead
        text = raw.strip()
        if not text.endswith(";"):
            return None

        first = re.match(IDENTIFIER, text)
        if not first or first.group(0) in self.NON_VARIABLE_KEYWORDS:
            return None

        body = text[:-1]
        initializer = None
        eq = self._find_assignment(body)
        if eq != -1:
            initializer = source[start + eq + 1 : seg_end - 1].strip()
            body = body[:eq]

        if body.startswith("mapping"):
            open_idx = body.find("(")
            if open_idx == -1:
                return None
            close_idx = find_matching(body, open_idx)
            type_text = body[: close_idx + 1]
            rest = body[close_idx + 1 :]
        else:
            type_match = re.match(
                IDENTIFIER + r"(?:\." + IDENTIFIER + r")*(?:\s+payable)?(?:\s*\[[^\]]*\])*", body
            )
            if not type_match:
                return None
            type_text = type_match.group(0)
            rest = body[type_match.end() :]

        words = re.sub(r"override\s*\([^)]*\)", "override", rest).split()
        if not words or not re.fullmatch(IDENTIFIER, words[-1]):
            return None
        name, modifiers = words[-1], words[:-1]
        if any(m not in self.VARIABLE_MODIFIERS for m in modifiers):
            return None

        visibility = next((m for m in modifiers if m in ("public", "private", "internal")), "")
        line, column = index.position(start)
        return StateVariable(
            name=name,
            type_name=normalize_type(type_text),
            contract=contract,
            start=start,
            end=seg_end,
            line=line,
            column=column,
            visibility=visibility,
            is_constant="constant" in modifiers,
            is_immutable="immutable" in modifiers,
            initializer=initializer or None,
        )

    @staticmethod
    def _find_assignment(text: str) -> int:
        """Index of the first top-level ``=`` that is an assignment, or -1."""
        depth = 0
        for i, c in enumerate(text):
            if c in _PAIRS:
                depth += 1
            elif c in _REVERSE_PAIRS:
                depth = max(0, depth - 1)
            elif c == "=" and depth == 0:
                prev = text[i - 1] if i > 0 else ""
                nxt = text[i + 1] if i + 1 < len(text) else ""
                if nxt in "=>" or prev in "=!<>":
                    continue
                return i
        return -1

    def _find_functions(self, masked: str) -> list[FunctionSpan]:
        functions: list[FunctionSpan] = []
        for match in self.FUNCTION_PATTERN.finditer(masked):
            header_start = match.start()
            if functions and functions[-1].body_end and header_start < functions[-1].body_end:
                continue

            if match.group("name"):
                name, kind = match.group("name"), "function"
            elif match.group("modifier"):
                name, kind = match.group("modifier"), "modifier"
            else:
                name = kind = match.group("special")

            pos = match.end()
            params = ""
            if masked[pos] == "(":
                params_close = find_matching(masked, pos)
                params = masked[pos + 1 : params_close]
                after = params_close + 1
            elif kind == "modifier":
                after = pos
            else:
                continue

            header_end = self._find_header_end(masked, after)
            modifiers = masked[after:header_end]
            returns_params = ""
            returns_match = re.search(r"\breturns\b", modifiers)
            if returns_match:
                open_idx = modifiers.find("(", returns_match.end())
                if open_idx != -1:
                    returns_params = modifiers[open_idx + 1 : find_matching(modifiers, open_idx)]
                modifiers = modifiers[: returns_match.start()]

            visibility = re.search(r"\b(public|external|internal|private)\b", modifiers)
            mutability = re.search(r"\b(pure|view|payable)\b", modifiers)

            body_start: Optional[int] = None
            body_end: Optional[int] = None
            if header_end < len(masked) and masked[header_end] == "{":
                body_start = header_end
                body_end = find_matching(masked, header_end) + 1

            local_types = self._parameter_types(params)
            local_types.update(self._parameter_types(returns_params))
            if body_start is not None:
                for decl in self.LOCAL_DECL_PATTERN.finditer(masked, body_start, body_end):
                    local_types[decl.group("name")] = normalize_type(
                        decl.group("type") + decl.group("array")
                    )

            functions.append(
                FunctionSpan(
                    name=name,
                    kind=kind,
                    header_start=header_start,
                    header_end=header_end,
                    body_start=body_start,
                    body_end=body_end,
                    params=params,
                    visibility=visibility.group(1) if visibility else "",
                    mutability=mutability.group(1) if mutability else "",
                    is_virtual=bool(re.search(r"\bvirtual\b", modifiers)),
                    local_types=local_types,
                )
            )
        return functions

    @staticmethod
    def _find_header_end(masked: str, pos: int) -> int:
        """Index of the body brace or terminating semicolon after a header."""
        depth = 0
        while pos < len(masked):
            c = masked[pos]
            if c == "(":
                depth += 1
            elif c == ")":
                depth = max(0, depth - 1)
            elif depth == 0 and c in "{;":
                return pos
            pos += 1
        return len(masked)

    def _parameter_types(self, params: str) -> dict[str, str]:
        types = {}
        for param in split_top_level(params):
            words = param.split()
            if len(words) < 2:
                continue
            name = words[-1]
            if name in self.DATA_LOCATIONS or not re.fullmatch(IDENTIFIER, name):
                continue
            type_words = [w for w in words[:-1] if w not in self.DATA_LOCATIONS]
            types[name] = normalize_type(" ".join(type_words))
        return types


@lru_cache(maxsize=32)
def parse_declarations(source: str) -> Declarations:
    """Parse and memoize declarations for a source text.

    The returned object is shared between callers and must not be mutated.
    """
    return DeclarationParser().parse(source)


class SolidityPatternScanner:
    """Heuristic scanner producing DetectedConstructs from Solidity source.

    Storage accesses are only recognized inside function bodies; a state
    variable declared with an initializer is reported as a StorageWrite at
    its declaration.
    """

    IDENTIFIER_PATTERN = re.compile(r"(?<![\w$.])(" + IDENTIFIER + r")\b")
    LOOP_PATTERN = re.compile(r"(?<![\w$.])(for|while|do)\b")
    MEMBER_CALL_PATTERN = re.compile(r"\.\s*(" + IDENTIFIER + r")\s*(?=[({])")
    MEMBER_PATTERN = re.compile(r"\.\s*(" + IDENTIFIER + r")")
    NEW_PATTERN = re.compile(
        r"(?<![\w$.])new\s+(" + IDENTIFIER + r"(?:\." + IDENTIFIER + r")*)\s*((?:\[\s*\])*)\s*\("
    )
    MEMORY_DECL_PATTERN = re.compile(
        r"(?<![\w$.])(" + IDENTIFIER + r"(?:\s*\[[^\]]*\])*)\s+memory\s+(" + IDENTIFIER + r")"
    )
    LOOP_INIT_PATTERN = re.compile(r"(" + IDENTIFIER + r")\s*=\s*(.+)$", re.DOTALL)
    COMPARISON_PATTERN = re.compile(r"(<=|>=|!=|<|>)")
    INT_LITERAL_PATTERN = re.compile(r"^\d[\d_]*$")

    COMPOUND_OPERATORS = ("<<=", ">>=", "+=", "-=", "*=", "/=", "%=", "|=", "&=", "^=")
    LOW_LEVEL_METHODS: set[str] = {"call", "delegatecall", "staticcall"}
    VALUE_TRANSFER_METHODS: set[str] = {"send", "transfer"}
    BUILTIN_ROOTS: set[str] = {"abi", "block", "msg", "tx", "type", "super", "bytes", "string"}

    def scan(self, source: str) -> list[DetectedConstruct]:
        """Scan source text for constructs.

        Args:
            source: Solidity source code (may be partial or invalid)

        Returns:
            Constructs sorted by line, then column
        """
        return self.scan_source(source).constructs

    def scan_source(self, source: str) -> ScanResult:
        """Scan source text and keep the intermediate declarations.

        Args:
            source: Solidity source code (may be partial or invalid)

        Returns:
            ScanResult with constructs and declarations
        """
        result = ScanResult()
        if not source.strip():
            return result

        constructs: list[DetectedConstruct] = []
        try:
            declarations = parse_declarations(source)
            result.state_variables = list(declarations.state_variables)
            result.functions = list(declarations.functions)
            result.contract_names = [c.name for c in declarations.contracts]
            result.declared_types = dict(declarations.declared_types)

            index = LineIndex(source)
            self._scan_initializers(declarations, source, index, constructs)
            for function in declarations.functions:
                self._scan_function(declarations, function, source, index, constructs)

        except Exception as e:  # scanning degrades, it never fails
            logger.warning("Scanner stopped early: %s", e)
            result.parse_warnings.append(f"Scan error: {e}")

        result.constructs = sorted(constructs, key=lambda c: (c.line, c.column))
        return result

    def _scan_initializers(
        self,
        declarations: Declarations,
        source: str,
        index: LineIndex,
        constructs: list[DetectedConstruct],
    ) -> None:
        for variable in declarations.state_variables:
            if not variable.is_storage or variable.initializer is None:
                continue
            constructs.append(
                DetectedConstruct(
                    kind=ConstructKind.STORAGE_WRITE,
                    line=variable.line,
                    column=variable.column,
                    length=len(source[variable.start : variable.end]),
                    attributes={
                        "variable": variable.name,
                        "type": variable.type_name,
                        "context": "initializer",
                        "operator": "=",
                    },
                )
            )

    def _scan_function(
        self,
        declarations: Declarations,
        function: FunctionSpan,
        source: str,
        index: LineIndex,
        constructs: list[DetectedConstruct],
    ) -> None:
        line, column = index.position(function.header_start)
        header = source[function.header_start : function.header_end].rstrip()
        end_offset = function.body_end - 1 if function.body_end else function.header_end
        constructs.append(
            DetectedConstruct(
                kind=ConstructKind.FUNCTION_DECL,
                line=line,
                column=column,
                length=len(header),
                attributes={
                    "name": function.name,
                    "kind": function.kind,
                    "visibility": function.visibility,
                    "mutability": function.mutability,
                    "virtual": "true" if function.is_virtual else "false",
                    "end_line": str(index.position(max(end_offset, function.header_start))[0]),
                },
            )
        )

        if not function.has_body:
            return

        masked = declarations.masked
        start, end = function.body_start, function.body_end
        self._scan_storage(declarations, function, masked, start, end, index, constructs)
        self._scan_loops(masked, start, end, source, index, constructs)
        self._scan_calls(declarations, function, masked, start, end, index, constructs)
        self._scan_memory(masked, start, end, index, constructs)

    def _scan_storage(
        self,
        declarations: Declarations,
        function: FunctionSpan,
        masked: str,
        start: int,
        end: int,
        index: LineIndex,
        constructs: list[DetectedConstruct],
    ) -> None:
        storage = declarations.storage_variables
        if not storage:
            return

        for match in self.IDENTIFIER_PATTERN.finditer(masked, start, end):
            name = match.group(1)
            variable = storage.get(name)
            if variable is None or name in function.local_types:
                continue

            operator, is_read, is_write = self._classify_access(masked, match.start(), match.end())
            line, column = index.position(match.start())
            attributes = {"variable": name, "type": variable.type_name}
            if is_read:
                constructs.append(
                    DetectedConstruct(
                        kind=ConstructKind.STORAGE_READ,
                        line=line,
                        column=column,
                        length=len(name),
                        attributes=dict(attributes),
                    )
                )
            if is_write:
                constructs.append(
                    DetectedConstruct(
                        kind=ConstructKind.STORAGE_WRITE,
                        line=line,
                        column=column,
                        length=len(name),
                        attributes={**attributes, "operator": operator or "="},
                    )
                )

    def _classify_access(self, masked: str, name_start: int, name_end: int) -> tuple[Optional[str], bool, bool]:
        """Decide whether an identifier occurrence reads, writes or both.

        Returns:
            (operator, is_read, is_write)
        """
        before = masked[max(0, name_start - 8) : name_start].rstrip()
        if before.endswith(("++", "--")):
            return before[-2:], True, True
        if re.search(r"(?<![\w$])delete$", before):
            return "delete", False, True

        pos = name_end
        n = len(masked)
        while True:
            pos = skip_whitespace(masked, pos)
            if pos < n and masked[pos] == "[":
                pos = find_matching(masked, pos) + 1
                continue
            member = self.MEMBER_PATTERN.match(masked, pos)
            if member:
                pos = skip_whitespace(masked, member.end())
                if pos < n and masked[pos] in "({":
                    if member.group(1) in ("push", "pop"):
                        return member.group(1), True, True
                    return None, True, False
                continue
            break

        ahead = masked[pos : pos + 3]
        if ahead.startswith(("++", "--")):
            return ahead[:2], True, True
        for op in self.COMPOUND_OPERATORS:
            if ahead.startswith(op):
                return op, True, True
        if ahead.startswith("=") and not ahead.startswith(("==", "=>")):
            return "=", False, True
        return None, True, False

    def _scan_loops(
        self,
        masked: str,
        start: int,
        end: int,
        source: str,
        index: LineIndex,
        constructs: list[DetectedConstruct],
    ) -> None:
        do_whiles: set[int] = set()
        for match in self.LOOP_PATTERN.finditer(masked, start, end):
            keyword = match.group(1)
            if match.start() in do_whiles:
                continue

            init = ""
            if keyword == "do":
                body_open = skip_whitespace(masked, match.end())
                if body_open >= end or masked[body_open] != "{":
                    continue
                body_close = find_matching(masked, body_open)
                tail = re.compile(r"\s*while\s*\(").match(masked, body_close + 1)
                condition = ""
                loop_end = body_close
                if tail:
                    do_whiles.add(masked.index("while", body_close + 1))
                    paren_close = find_matching(masked, tail.end() - 1)
                    condition = masked[tail.end() : paren_close]
                    loop_end = paren_close
                header_end = match.end()
            else:
                paren_open = skip_whitespace(masked, match.end())
                if paren_open >= end or masked[paren_open] != "(":
                    continue
                paren_close = find_matching(masked, paren_open)
                inner = masked[paren_open + 1 : paren_close]
                if keyword == "for":
                    parts = split_top_level(inner, ";")
                    init = parts[0] if parts else ""
                    condition = parts[1] if len(parts) > 1 else ""
                else:
                    condition = inner
                header_end = paren_close + 1
                body_open = skip_whitespace(masked, header_end)
                if body_open < len(masked) and masked[body_open] == "{":
                    loop_end = find_matching(masked, body_open)
                else:
                    loop_end = self._statement_end(masked, body_open)

            condition = " ".join(condition.split())
            bound, iterations = self._loop_bound(" ".join(init.split()), condition)
            line, column = index.position(match.start())
            attributes = {
                "keyword": keyword,
                "condition": condition,
                "bound": bound,
                "end_line": str(index.position(max(loop_end, match.start()))[0]),
                "header_end_line": str(index.position(max(header_end - 1, match.start()))[0]),
            }
            if iterations is not None:
                attributes["iterations"] = str(iterations)

            constructs.append(
                DetectedConstruct(
                    kind=ConstructKind.LOOP,
                    line=line,
                    column=column,
                    length=header_end - match.start(),
                    attributes=attributes,
                )
            )

    @staticmethod
    def _statement_end(masked: str, pos: int) -> int:
        depth = 0
        while pos < len(masked):
            c = masked[pos]
            if c in _PAIRS:
                depth += 1
            elif c in _REVERSE_PAIRS:
                depth = max(0, depth - 1)
            elif c == ";" and depth == 0:
                return pos
            pos += 1
        return len(masked) - 1

    def _loop_bound(self, init: str, condition: str) -> tuple[str, Optional[int]]:
        """Extract the bound expression and, when literal, the trip count."""
        loop_var = None
        start_value = None
        init_match = self.LOOP_INIT_PATTERN.search(init)
        if init_match:
            loop_var = init_match.group(1)
            start_value = init_match.group(2).strip()

        parts = self.COMPARISON_PATTERN.split(condition, maxsplit=1)
        if len(parts) != 3:
            return condition, None

        lhs, op, rhs = (p.strip() for p in parts)
        if loop_var is not None and rhs == loop_var:
            lhs, rhs = rhs, lhs
            op = {"<": ">", ">": "<", "<=": ">=", ">=": "<="}.get(op, op)
        bound = rhs

        if start_value is None or lhs != loop_var:
            return bound, None
        if not (self.INT_LITERAL_PATTERN.match(start_value) and self.INT_LITERAL_PATTERN.match(bound)):
            return bound, None

        first = int(start_value.replace("_", ""))
        last = int(bound.replace("_", ""))
        trips = {
            "<": last - first,
            "<=": last - first + 1,
            ">": first - last,
            ">=": first - last + 1,
            "!=": abs(last - first),
        }[op]
        return bound, max(1, trips)

    def _scan_calls(
        self,
        declarations: Declarations,
        function: FunctionSpan,
        masked: str,
        start: int,
        end: int,
        index: LineIndex,
        constructs: list[DetectedConstruct],
    ) -> None:
        for match in self.MEMBER_CALL_PATTERN.finditer(masked, start, end):
            method = match.group(1)
            receiver, receiver_start = self._receiver_before(masked, match.start())
            call_type = self._classify_call(
                declarations, function, receiver, method, self._argument_count(masked, match.end())
            )
            if call_type is None:
                continue
            line, column = index.position(receiver_start)
            constructs.append(
                DetectedConstruct(
                    kind=ConstructKind.EXTERNAL_CALL,
                    line=line,
                    column=column,
                    length=match.end(1) - receiver_start,
                    attributes={"receiver": receiver, "method": method, "call_type": call_type},
                )
            )

        for match in self.NEW_PATTERN.finditer(masked, start, end):
            type_name, brackets = match.group(1), match.group(2)
            line, column = index.position(match.start())
            if brackets or type_name in ("bytes", "string"):
                constructs.append(
                    DetectedConstruct(
                        kind=ConstructKind.MEMORY_ALLOC,
                        line=line,
                        column=column,
                        length=match.end() - match.start(),
                        attributes={
                            "type": normalize_type(type_name + brackets),
                            "alloc": "new_array",
                        },
                    )
                )
            else:
                constructs.append(
                    DetectedConstruct(
                        kind=ConstructKind.EXTERNAL_CALL,
                        line=line,
                        column=column,
                        length=match.end() - match.start(),
                        attributes={"receiver": type_name, "method": "new", "call_type": "create"},
                    )
                )

    def _receiver_before(self, masked: str, dot_idx: int) -> tuple[str, int]:
        """Walk backwards from a member dot to the start of its receiver."""
        j = dot_idx - 1
        while j >= 0 and masked[j].isspace():
            j -= 1
        end = j + 1
        while j >= 0:
            c = masked[j]
            if c in ")]":
                j = find_matching_backward(masked, j) - 1
                while j >= 0 and masked[j].isspace() and masked[j] != "\n":
                    j -= 1
                continue
            if c.isalnum() or c in "_$":
                while j >= 0 and (masked[j].isalnum() or masked[j] in "_$"):
                    j -= 1
                k = j
                while k >= 0 and masked[k].isspace():
                    k -= 1
                if k >= 0 and masked[k] == ".":
                    j = k - 1
                    while j >= 0 and masked[j].isspace():
                        j -= 1
                    continue
                break
            break
        start = j + 1
        return masked[start:end].strip(), start

    @staticmethod
    def _argument_count(masked: str, pos: int) -> int:
        pos = skip_whitespace(masked, pos)
        if pos < len(masked) and masked[pos] == "{":
            pos = skip_whitespace(masked, find_matching(masked, pos) + 1)
        if pos >= len(masked) or masked[pos] != "(":
            return 0
        inner = masked[pos + 1 : find_matching(masked, pos)]
        if not inner.strip():
            return 0
        return len(split_top_level(inner))

    def _classify_call(
        self,
        declarations: Declarations,
        function: FunctionSpan,
        receiver: str,
        method: str,
        arg_count: int,
    ) -> Optional[str]:
        """Classify a member call as an external call type, or None if internal."""
        root_match = re.match(IDENTIFIER, receiver)
        if not root_match:
            return None
        root = root_match.group(0)
        is_cast = bool(re.match(IDENTIFIER + r"\s*\(", receiver))

        receiver_type = ""
        if is_cast:
            receiver_type = root
        elif root in function.local_types:
            receiver_type = function.local_types[root]
        else:
            variable = next((v for v in declarations.state_variables if v.name == root), None)
            if variable is not None:
                receiver_type = variable.type_name

        if method in self.LOW_LEVEL_METHODS:
            return "low_level"

        if method in self.VALUE_TRANSFER_METHODS and arg_count == 1:
            if root in ("msg", "tx", "payable", "address") or receiver_type.startswith("address"):
                return "value_transfer"

        if root == "this":
            return "call"
        if root in self.BUILTIN_ROOTS or "." in receiver.split("(")[0]:
            return None
        if receiver_type and declarations.is_contract_type(receiver_type):
            return "call"
        return None

    def _scan_memory(
        self,
        masked: str,
        start: int,
        end: int,
        index: LineIndex,
        constructs: list[DetectedConstruct],
    ) -> None:
        for match in self.MEMORY_DECL_PATTERN.finditer(masked, start, end):
            line, column = index.position(match.start())
            constructs.append(
                DetectedConstruct(
                    kind=ConstructKind.MEMORY_ALLOC,
                    line=line,
                    column=column,
                    length=match.end() - match.start(),
                    attributes={
                        "type": normalize_type(match.group(1)),
                        "variable": match.group(2),
                        "alloc": "declaration",
                    },
                )
            )


def scan(source: str) -> list[DetectedConstruct]:
    """Scan Solidity source for gas-relevant constructs.

    Args:
        source: Solidity source code

    Returns:
        Constructs in source order
    """
    return SolidityPatternScanner().scan(source)
