"""Unit tests for the sliding-window streaming primitive."""

import builtins

import pytest

import chunking.sliding_window as sliding_window_module
from chunking.base import Chunk, Span
from chunking.lines import iter_lines
from chunking.sliding_window import sliding_window_stream
from parsers.base import BoundaryKind


def marked_file(tmp_path, count: int = 40, every: int = 3):
    lines = [f"row {i:02d}{' MARK' if i % every == 0 else ''}" for i in range(1, count + 1)]
    path = tmp_path / "marked.txt"
    path.write_text('\n'.join(lines) + '\n')
    return path, lines


def find_marks(window: str):
    chunks = []
    for line_number, line in iter_lines(window):
        if 'MARK' in line:
            chunks.append(Chunk(text=line, span=Span(line_number, line_number), type=BoundaryKind.STATEMENT))
    return chunks


class TestSlidingWindowStream:

    def test_line_numbers_are_rebased(self, tmp_path):
        path, lines = marked_file(tmp_path)

        chunks = list(sliding_window_stream(str(path), find_marks, window_size=40, overlap=15))

        expected = {i + 1 for i, line in enumerate(lines) if 'MARK' in line}
        assert {c.start_line for c in chunks} == expected
        for chunk in chunks:
            assert chunk.text in lines[chunk.start_line - 1]

    def test_window_size_is_bounded(self, tmp_path):
        path, _ = marked_file(tmp_path)
        sizes = []

        def record(window):
            sizes.append(len(window))
            return []

        list(sliding_window_stream(str(path), record, window_size=50, overlap=10))

        assert len(sizes) > 1
        assert max(sizes) <= 50

    def test_single_window(self, tmp_path):
        path, lines = marked_file(tmp_path, count=6)

        chunks = list(sliding_window_stream(str(path), find_marks))

        assert [c.start_line for c in chunks] == [3, 6]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_text('')

        assert list(sliding_window_stream(str(path), find_marks)) == []

    def test_invalid_overlap(self, tmp_path):
        path, _ = marked_file(tmp_path)

        with pytest.raises(ValueError):
            list(sliding_window_stream(str(path), find_marks, window_size=10, overlap=10))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            list(sliding_window_stream(str(tmp_path / "missing.txt"), find_marks))

    def test_handle_released_on_early_stop(self, tmp_path, monkeypatch):
        path, _ = marked_file(tmp_path)
        opened = []

        def tracking_open(*args, **kwargs):
            handle = builtins.open(*args, **kwargs)
            opened.append(handle)
            return handle

        monkeypatch.setattr(sliding_window_module, 'open', tracking_open, raising=False)

        stream = sliding_window_stream(str(path), find_marks, window_size=40, overlap=15)
        next(stream)
        assert not opened[0].closed

        stream.close()
        assert opened[0].closed
