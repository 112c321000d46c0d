"""Line addressing over a text buffer without materializing a line array."""

from bisect import bisect_right
from typing import List

from parsers.base import iter_lines

__all__ = ['LineIndex', 'count_lines', 'iter_lines']


def count_lines(text: str) -> int:
    """Number of lines; a trailing newline does not start a new line."""
    if not text:
        return 0
    return text.count('\n') + (0 if text.endswith('\n') else 1)


class LineIndex:
    """Sorted line-start offsets for one text, built once.

    Offset-to-line lookups are a binary search and line-range extraction is
    a single slice, so many extractions from the same file stay linear
    overall.
    """

    def __init__(self, text: str):
        self.text = text
        starts: List[int] = []
        if text:
            starts.append(0)
            pos = text.find('\n')
            while pos != -1 and pos + 1 < len(text):
                starts.append(pos + 1)
                pos = text.find('\n', pos + 1)
        self._starts = starts

    @property
    def line_count(self) -> int:
        return len(self._starts)

    def line_of(self, offset: int) -> int:
        """1-indexed line containing a character offset."""
        if not self._starts:
            return 1
        return max(1, bisect_right(self._starts, offset))

    def offset_of(self, line: int) -> int:
        """Character offset where a 1-indexed line starts."""
        if line < 1:
            return 0
        if line > len(self._starts):
            return len(self.text)
        return self._starts[line - 1]

    def line_end_offset(self, line: int) -> int:
        """Offset just past the last character of a line (excluding its newline)."""
        if line >= len(self._starts):
            end = len(self.text)
            if self.text.endswith('\n'):
                end -= 1
            return end
        return self._starts[line] - 1

    def extract(self, start_line: int, end_line: int) -> str:
        """Text of an inclusive line range, clamped to the text, without a trailing newline."""
        start_line = max(1, start_line)
        end_line = min(end_line, len(self._starts))
        if start_line > end_line:
            return ''
        return self.text[self._starts[start_line - 1]:self.line_end_offset(end_line)]
