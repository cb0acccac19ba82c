"""Models for the pattern scanner output."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ConstructKind(Enum):
    """Kinds of constructs the scanner detects."""

    STORAGE_READ = "StorageRead"
    STORAGE_WRITE = "StorageWrite"
    LOOP = "Loop"
    EXTERNAL_CALL = "ExternalCall"
    FUNCTION_DECL = "FunctionDecl"
    MEMORY_ALLOC = "MemoryAlloc"


@dataclass(frozen=True)
class DetectedConstruct:
    """A construct found in the source text.

    Attributes:
        kind: What was detected
        line: 1-based line of the first character
        column: 1-based column of the first character
        length: Number of source characters covered
        attributes: Free-form details (visibility, loop bound, variable name...)
    """

    kind: ConstructKind
    line: int
    column: int
    length: int = 0
    attributes: dict[str, str] = field(default_factory=dict, hash=False)

    def attr(self, name: str, default: str = "") -> str:
        return self.attributes.get(name, default)

    @property
    def end_line(self) -> int:
        """Last line of the construct's span (body end for loops and functions)."""
        try:
            return max(self.line, int(self.attributes.get("end_line", self.line)))
        except ValueError:
            return self.line

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "line": self.line,
            "column": self.column,
            "length": self.length,
            "attributes": dict(sorted(self.attributes.items())),
        }


@dataclass
class StateVariable:
    """A state variable declaration found at contract level.

    Attributes:
        name: Variable name
        type_name: Declared type text, whitespace normalized
        contract: Name of the enclosing contract
        start: Offset of the first character of the declaration
        end: Offset just past the terminating semicolon
        line: 1-based line of the declaration
        column: 1-based column of the declaration
        visibility: public/internal/private or empty
        is_constant: Declared ``constant``
        is_immutable: Declared ``immutable``
        initializer: Initializer expression text, if any
    """

    name: str
    type_name: str
    contract: str
    start: int
    end: int
    line: int
    column: int
    visibility: str = ""
    is_constant: bool = False
    is_immutable: bool = False
    initializer: Optional[str] = None

    @property
    def is_storage(self) -> bool:
        """True if the variable occupies a storage slot."""
        return not (self.is_constant or self.is_immutable)

    @property
    def is_value_type(self) -> bool:
        """True for scalar types that can be cached in a single local."""
        return "mapping" not in self.type_name and "[" not in self.type_name


@dataclass
class FunctionSpan:
    """Location of a function-like definition.

    Attributes:
        name: Function name (``constructor``, ``fallback``, ``receive`` for specials)
        kind: function, constructor, modifier, fallback or receive
        header_start: Offset of the defining keyword
        header_end: Offset where the header ends (body brace or semicolon)
        body_start: Offset of the opening brace, None for declarations without a body
        body_end: Offset just past the closing brace
        params: Parameter list text
        visibility: Declared visibility or empty
        mutability: pure/view/payable or empty
        is_virtual: Declared ``virtual``
        local_types: Parameter, return and local variable names mapped to their types
    """

    name: str
    kind: str
    header_start: int
    header_end: int
    body_start: Optional[int]
    body_end: Optional[int]
    params: str = ""
    visibility: str = ""
    mutability: str = ""
    is_virtual: bool = False
    local_types: dict[str, str] = field(default_factory=dict)

    @property
    def has_body(self) -> bool:
        return self.body_start is not None


@dataclass
class ScanResult:
    """Everything the scanner learned about one source text.

    Attributes:
        constructs: Detected constructs in source order
        state_variables: Contract-level variable declarations in source order
        functions: Function-like definitions in source order
        contract_names: Names of contracts, libraries and interfaces
        declared_types: User type names mapped to contract, interface, library, struct or enum
        parse_warnings: Problems that made the scanner stop early
    """

    constructs: list[DetectedConstruct] = field(default_factory=list)
    state_variables: list[StateVariable] = field(default_factory=list)
    functions: list[FunctionSpan] = field(default_factory=list)
    contract_names: list[str] = field(default_factory=list)
    declared_types: dict[str, str] = field(default_factory=dict)
    parse_warnings: list[str] = field(default_factory=list)
