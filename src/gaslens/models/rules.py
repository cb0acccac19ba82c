"""Models for optimization rules and their suggestions."""

from dataclasses import dataclass, field
from enum import Enum

from gaslens.models.core import SourceRange


class OptimizationCategory(Enum):
    """Cost categories shared by cost entries and suggestions."""

    STORAGE = "storage"
    COMPUTATION = "computation"
    MEMORY = "memory"
    CALL = "call"
    DEPLOYMENT = "deployment"


class Difficulty(Enum):
    """How hard a suggested rewrite is to apply."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Impact(Enum):
    """Expected impact of a suggestion on gas usage."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class Rule:
    """Static metadata describing an optimization rule.

    Attributes:
        rule_id: Stable identifier (e.g., "GL-001")
        name: Human readable name
        description: What the rule looks for
        category: Cost category its suggestions fall into
        difficulty: Difficulty of the suggested rewrite
        references: Further reading
    """

    rule_id: str
    name: str
    description: str
    category: OptimizationCategory
    difficulty: Difficulty
    references: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class OptimizationSuggestion:
    """A concrete rewrite that is expected to reduce gas usage.

    ``difficulty == EASY`` is expected to go together with
    ``auto_fix_available``, but callers must check both fields.

    Attributes:
        id: Identifier unique within one analysis result
        rule_id: Rule that produced the suggestion
        title: Short title
        description: Why the rewrite saves gas
        category: Cost category
        difficulty: Difficulty of applying the rewrite
        impact: Expected impact
        before_code: Exact source text currently at ``range``
        after_code: Replacement text
        range: Span of source text to replace
        savings: Estimated gas saved, never negative
        auto_fix_available: True if ``after_code`` can replace ``range`` as is
    """

    id: str
    rule_id: str
    title: str
    description: str
    category: OptimizationCategory
    difficulty: Difficulty
    impact: Impact
    before_code: str
    after_code: str
    range: SourceRange
    savings: int
    auto_fix_available: bool

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "rule_id": self.rule_id,
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "difficulty": self.difficulty.value,
            "impact": self.impact.value,
            "before_code": self.before_code,
            "after_code": self.after_code,
            "range": self.range.to_dict(),
            "savings": self.savings,
            "auto_fix_available": self.auto_fix_available,
        }
