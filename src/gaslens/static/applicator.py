"""Apply accepted optimization suggestions to source text.

Applying never triggers re-analysis; callers analyze the returned text
themselves.
"""

import logging
from enum import Enum
from typing import Union

from gaslens.models.core import LineIndex
from gaslens.models.rules import OptimizationSuggestion

logger = logging.getLogger(__name__)


class ApplyError(Enum):
    """Recoverable reasons an apply did not happen."""

    # The text at the suggestion's range is not its before_code anymore
    STALE_RANGE = "stale_range"


def apply(suggestion: OptimizationSuggestion, source: str) -> Union[str, ApplyError]:
    """Replace the suggestion's range with its ``after_code``.

    Args:
        suggestion: Suggestion computed against some version of the source
        source: Current source text

    Returns:
        Rewritten source text, or ``ApplyError.STALE_RANGE`` when the range
        is out of bounds or no longer holds ``before_code``. The input text
        is never modified.
    """
    bounds = LineIndex(source).offsets(suggestion.range)
    if bounds is None:
        logger.debug("Suggestion %s range is outside the source", suggestion.id)
        return ApplyError.STALE_RANGE

    start, end = bounds
    if source[start:end] != suggestion.before_code:
        logger.debug("Suggestion %s no longer matches the source", suggestion.id)
        return ApplyError.STALE_RANGE

    logger.info(
        "Applied %s (%s) at line %d, estimated savings %d gas",
        suggestion.id,
        suggestion.rule_id,
        suggestion.range.start_line,
        suggestion.savings,
    )
    return source[:start] + suggestion.after_code + source[end:]
