"""Unit tests for fixed-window line chunking and line addressing."""

from unittest import TestCase

import pytest

from chunking.base import ChunkingOptions
from chunking.line_based import LineBasedChunker, chunk_by_lines, stream_lines
from chunking.lines import LineIndex, count_lines
from parsers.base import BoundaryKind


def numbered_lines(count: int) -> str:
    return ''.join(f"line {i}\n" for i in range(1, count + 1))


class TestChunkByLines(TestCase):
    """Test the in-memory fixed-window chunker."""

    def test_empty_input(self):
        assert chunk_by_lines('', 120) == []
        assert LineBasedChunker().chunk('', 'empty.txt') == []

    def test_whitespace_only_input(self):
        assert chunk_by_lines('   \n\n\t\n', 10) == []

    def test_windows_without_overlap(self):
        chunks = chunk_by_lines(numbered_lines(250), 100)

        assert [(c.start_line, c.end_line) for c in chunks] == [(1, 100), (101, 200), (201, 250)]
        assert chunks[0].text.split('\n')[0] == 'line 1'
        assert chunks[2].text.split('\n')[-1] == 'line 250'
        assert all(c.type == BoundaryKind.LINE_BASED for c in chunks)

    def test_windows_with_overlap(self):
        chunks = chunk_by_lines(numbered_lines(250), 100, overlap=20)

        assert [(c.start_line, c.end_line) for c in chunks] == [(1, 100), (81, 180), (161, 250)]

    def test_chunker_defaults(self):
        chunks = LineBasedChunker().chunk(numbered_lines(300), 'data.txt')

        assert [(c.start_line, c.end_line) for c in chunks] == [(1, 120), (101, 220), (201, 300)]

    def test_options_override_defaults(self):
        chunks = LineBasedChunker().chunk(numbered_lines(30), 'data.txt', ChunkingOptions(max_lines=10, overlap=0))

        assert [(c.start_line, c.end_line) for c in chunks] == [(1, 10), (11, 20), (21, 30)]

    def test_blank_window_skipped(self):
        text = "a\nb\nc\n\n\n\nd\ne\nf\n"
        chunks = chunk_by_lines(text, 3)

        assert [(c.start_line, c.end_line) for c in chunks] == [(1, 3), (7, 9)]

    def test_no_trailing_newline(self):
        chunks = chunk_by_lines("a\nb\nc", 2)

        assert [(c.start_line, c.end_line, c.text) for c in chunks] == [(1, 2, 'a\nb'), (3, 3, 'c')]

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            chunk_by_lines('a', 0)
        with pytest.raises(ValueError):
            chunk_by_lines('a', 10, overlap=10)

    def test_spans_are_valid(self):
        for chunk in chunk_by_lines(numbered_lines(57), 8, overlap=3):
            assert chunk.end_line >= chunk.start_line >= 1
            assert chunk.end_line - chunk.start_line + 1 <= 8


class TestStreamLines:
    """Test the streaming fixed-window chunker."""

    @pytest.mark.parametrize("count,max_lines,overlap", [
        (250, 100, 20),
        (260, 100, 20),
        (5, 100, 20),
        (300, 120, 20),
        (99, 10, 0),
    ])
    def test_matches_in_memory_chunking(self, tmp_path, count, max_lines, overlap):
        text = numbered_lines(count)
        path = tmp_path / "data.txt"
        path.write_text(text)

        streamed = [(c.span, c.text) for c in stream_lines(str(path), max_lines, overlap)]
        expected = [(c.span, c.text) for c in chunk_by_lines(text, max_lines, overlap)]

        assert streamed == expected

    def test_chunk_from_file(self, tmp_path):
        path = tmp_path / "data.txt"
        path.write_text(numbered_lines(130))

        chunks = LineBasedChunker().chunk_from_file(str(path))

        assert [(c.start_line, c.end_line) for c in chunks] == [(1, 120), (101, 130)]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            LineBasedChunker().chunk_from_file(str(tmp_path / "missing.txt"))


class TestLineIndex(TestCase):
    """Test offset to line addressing."""

    def setUp(self):
        self.text = "alpha\nbeta\n\ngamma\n"
        self.index = LineIndex(self.text)

    def test_line_count(self):
        assert self.index.line_count == 4
        assert count_lines(self.text) == 4
        assert count_lines('') == 0
        assert count_lines('x') == 1
        assert LineIndex('').line_count == 0

    def test_line_of(self):
        assert self.index.line_of(0) == 1
        assert self.index.line_of(5) == 1
        assert self.index.line_of(6) == 2
        assert self.index.line_of(11) == 3
        assert self.index.line_of(12) == 4

    def test_offset_of(self):
        assert self.index.offset_of(1) == 0
        assert self.index.offset_of(2) == 6
        assert self.index.offset_of(4) == 12

    def test_extract(self):
        assert self.index.extract(1, 1) == 'alpha'
        assert self.index.extract(2, 4) == 'beta\n\ngamma'
        assert self.index.extract(3, 3) == ''
        assert self.index.extract(4, 99) == 'gamma'
        assert self.index.extract(5, 6) == ''
