"""Fixed-window line chunking, the universal last-resort fallback."""

import logging
from typing import Iterator, List, Optional

from parsers.base import BoundaryKind

from .base import Chunk, Chunker, ChunkingOptions, Span, resolve, validate_window
from .lines import LineIndex

logger = logging.getLogger(__name__)


def _window_chunk(text: str, start_line: int, end_line: int) -> Chunk:
    return Chunk(
        text=text,
        span=Span(start_line, end_line),
        type=BoundaryKind.LINE_BASED,
        metadata={'chunk_method': 'line-based', 'line_count': end_line - start_line + 1},
    )


def chunk_by_lines(text: str, max_lines: int, overlap: int = 0) -> List[Chunk]:
    """Split text into windows of ``max_lines`` lines sharing ``overlap`` lines.

    Whitespace-only windows are skipped, so empty input yields no chunks.
    """
    validate_window(max_lines, overlap)
    index = LineIndex(text)
    total = index.line_count
    step = max_lines - overlap
    chunks = []

    start = 1
    while start <= total:
        end = min(start + max_lines - 1, total)
        window_text = index.extract(start, end)
        if window_text.strip():
            chunks.append(_window_chunk(window_text, start, end))
        if end >= total:
            break
        start += step

    return chunks


def stream_lines(file_path: str, max_lines: int, overlap: int = 0, encoding: str = 'utf-8') -> Iterator[Chunk]:
    """Streaming equivalent of :func:`chunk_by_lines`, holding at most ``max_lines`` lines."""
    validate_window(max_lines, overlap)
    step = max_lines - overlap
    buffer: List[str] = []
    buffer_start = 1
    emitted = False

    with open(file_path, 'r', encoding=encoding, errors='replace') as f:
        for line in f:
            buffer.append(line.rstrip('\n'))
            if len(buffer) == max_lines:
                window_text = '\n'.join(buffer)
                if window_text.strip():
                    yield _window_chunk(window_text, buffer_start, buffer_start + max_lines - 1)
                emitted = True
                buffer = buffer[step:]
                buffer_start += step

    # The retained overlap alone was already part of the previous window
    if buffer and (not emitted or len(buffer) > overlap):
        window_text = '\n'.join(buffer)
        if window_text.strip():
            yield _window_chunk(window_text, buffer_start, buffer_start + len(buffer) - 1)


class LineBasedChunker(Chunker):
    """Chunker that ignores structure and cuts fixed line windows."""

    id = 'line-based'
    DEFAULT_MAX_LINES = 120
    DEFAULT_OVERLAP = 20

    def chunk(self, code: str, file_path: str, options: Optional[ChunkingOptions] = None) -> List[Chunk]:
        max_lines = resolve(options, 'max_lines', self.DEFAULT_MAX_LINES)
        overlap = resolve(options, 'overlap', min(self.DEFAULT_OVERLAP, max_lines - 1))
        chunks = chunk_by_lines(code, max_lines, overlap)
        logger.debug(f"Line-based chunking produced {len(chunks)} chunks for {file_path}")
        return chunks

    def chunk_stream(self, file_path: str, options: Optional[ChunkingOptions] = None) -> Iterator[Chunk]:
        max_lines = resolve(options, 'max_lines', self.DEFAULT_MAX_LINES)
        overlap = resolve(options, 'overlap', min(self.DEFAULT_OVERLAP, max_lines - 1))
        return stream_lines(file_path, max_lines, overlap)

    def chunk_from_file(self, file_path: str, options: Optional[ChunkingOptions] = None) -> List[Chunk]:
        """Collect :meth:`chunk_stream` into a list."""
        return list(self.chunk_stream(file_path, options))
