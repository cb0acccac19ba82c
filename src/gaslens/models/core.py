"""Core location types shared by the scanner, rules and applicator."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass


@dataclass(frozen=True)
class SourceRange:
    """A span of source text.

    Lines and columns are 1-based. ``end_column`` is exclusive, so a range
    covering ``abc`` at the start of line 3 is ``(3, 1, 3, 4)``.

    Attributes:
        start_line: First line of the span
        start_column: Column of the first character
        end_line: Line holding the last character
        end_column: Column just past the last character
    """

    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def to_dict(self) -> dict:
        return {
            "start_line": self.start_line,
            "start_column": self.start_column,
            "end_line": self.end_line,
            "end_column": self.end_column,
        }


class LineIndex:
    """Maps between string offsets and (line, column) positions."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.line_starts = [0]
        for i, char in enumerate(text):
            if char == "\n":
                self.line_starts.append(i + 1)

    def position(self, offset: int) -> tuple[int, int]:
        """Return the 1-based (line, column) of a string offset."""
        line_idx = bisect_right(self.line_starts, offset) - 1
        return line_idx + 1, offset - self.line_starts[line_idx] + 1

    def offset(self, line: int, column: int) -> int | None:
        """Return the string offset of a position, or None when out of bounds."""
        if line < 1 or line > len(self.line_starts) or column < 1:
            return None

        start = self.line_starts[line - 1]
        if line < len(self.line_starts):
            line_end = self.line_starts[line] - 1
        else:
            line_end = len(self.text)

        offset = start + column - 1
        if offset > line_end:
            return None
        return offset

    def span(self, start: int, end: int) -> SourceRange:
        """Build a SourceRange for the half-open offset interval [start, end)."""
        start_line, start_column = self.position(start)
        end_line, end_column = self.position(end)
        return SourceRange(start_line, start_column, end_line, end_column)

    def offsets(self, source_range: SourceRange) -> tuple[int, int] | None:
        """Convert a SourceRange back into offsets, or None if it does not fit."""
        start = self.offset(source_range.start_line, source_range.start_column)
        end = self.offset(source_range.end_line, source_range.end_column)
        if start is None or end is None or end < start:
            return None
        return start, end

    def line_text(self, line: int) -> str:
        """Return the text of a 1-based line without its newline."""
        if line < 1 or line > len(self.line_starts):
            return ""
        start = self.line_starts[line - 1]
        end = self.text.find("\n", start)
        return self.text[start:] if end == -1 else self.text[start:end]
