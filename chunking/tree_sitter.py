"""AST-aware chunker building maximal chunks from parser boundaries."""

import logging
import math
import os
from dataclasses import replace
from typing import Any, Dict, Iterator, List, Optional

from parsers.base import StatementBoundary
from parsers.registry import ParserRegistry, default_registry

from .base import Chunk, Chunker, ChunkingOptions, FileTooLargeError, Span, resolve
from .line_based import chunk_by_lines, stream_lines
from .lines import LineIndex

logger = logging.getLogger(__name__)


class _Window:
    """Boundaries accumulated into the chunk being built."""

    def __init__(self, start: int, end: int, boundary: StatementBoundary):
        self.start = start
        self.end = end
        self.boundaries = [boundary]

    @property
    def size(self) -> int:
        return self.end - self.start + 1


class TreeSitterChunker(Chunker):
    """Chunker that keeps functions and classes whole where they fit.

    Boundaries come from the parser registry, so a language without a
    loaded grammar is chunked with the generic brace-counting parser, and
    a file with no boundaries at all is cut into fixed line windows.
    """

    id = 'tree-sitter'
    language = 'generic'

    DEFAULT_MAX_LINES = 120
    DEFAULT_MIN_LINES = 10
    MAX_SYNC_SIZE = 100 * 1024
    MAX_STREAM_SIZE = 10 * 1024 * 1024

    def __init__(self, language: Optional[str] = None, registry: Optional[ParserRegistry] = None):
        """Initialize chunker.

        Args:
            language: Override of the class language
            registry: Parser registry (defaults to the process-wide one)
        """
        if language is not None:
            self.language = language
        self.registry = registry or default_registry

    def find_boundaries(self, code: str, file_path: str = '') -> List[StatementBoundary]:
        parser = self.registry.get_parser(self.language)
        try:
            return parser.find_statement_boundaries(code)
        except Exception as e:
            logger.warning(f"Boundary detection failed for {file_path}: {e}, falling back to line chunking")
            return []

    def chunk(self, code: str, file_path: str, options: Optional[ChunkingOptions] = None) -> List[Chunk]:
        """Chunk source held in memory.

        Raises:
            FileTooLargeError: If the text is longer than ``MAX_SYNC_SIZE``
        """
        if len(code) > self.MAX_SYNC_SIZE:
            raise FileTooLargeError(file_path, len(code), self.MAX_SYNC_SIZE)
        return self._chunk_text(code, file_path, options)

    def chunk_stream(self, file_path: str, options: Optional[ChunkingOptions] = None) -> Iterator[Chunk]:
        size = os.stat(file_path).st_size
        if size > self.MAX_STREAM_SIZE:
            logger.debug(f"{file_path} is {size} bytes, streaming line windows instead of parsing")
            max_lines = resolve(options, 'max_lines', self.DEFAULT_MAX_LINES)
            yield from stream_lines(file_path, max_lines, resolve(options, 'overlap', 0))
            return

        with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
            code = f.read()

        yield from self._chunk_text(code, file_path, options)

    def _chunk_text(self, code: str, file_path: str, options: Optional[ChunkingOptions]) -> List[Chunk]:
        max_lines = resolve(options, 'max_lines', self.DEFAULT_MAX_LINES)
        min_lines = resolve(options, 'min_lines', self.DEFAULT_MIN_LINES)

        boundaries = self.find_boundaries(code, file_path)
        if not boundaries:
            return chunk_by_lines(code, max_lines, resolve(options, 'overlap', 0))

        chunks = self._create_semantic_chunks(
            code,
            boundaries,
            max_lines,
            min_lines,
            resolve(options, 'preserve_context', True),
        )
        logger.debug(f"Created {len(chunks)} chunks from {len(boundaries)} boundaries in {file_path}")
        return chunks

    def _create_semantic_chunks(
        self,
        code: str,
        boundaries: List[StatementBoundary],
        max_lines: int,
        min_lines: int,
        preserve_context: bool = True,
    ) -> List[Chunk]:
        index = LineIndex(code)
        total = index.line_count
        chunks: List[Chunk] = []
        window: Optional[_Window] = None
        emitted_end = 0

        # Outer boundaries first when two start on the same line
        ordered = sorted(boundaries, key=lambda b: (b.start, -b.end))

        for boundary in ordered:
            start = max(boundary.start, 1)
            end = min(boundary.end, total)
            covered = max(emitted_end, window.end if window else 0)
            if end <= covered:
                continue
            start = max(start, covered + 1)
            if start > end:
                continue
            size = end - start + 1

            if size > max_lines:
                if window is not None and window.size >= min_lines:
                    chunks.append(self._window_chunk(index, window))
                window = None
                chunks.extend(self._split_large_boundary(index, boundary, start, end, max_lines))
                emitted_end = end
                continue

            if window is None:
                window = _Window(start, end, boundary)
                continue

            if end - window.start + 1 > max_lines and window.size >= min_lines:
                chunks.append(self._window_chunk(index, window))
                emitted_end = window.end
                window = _Window(start, end, boundary)
            else:
                window.boundaries.append(boundary)
                window.end = max(window.end, end)

        # A short trailing window is dropped
        if window is not None and window.size >= min_lines:
            chunks.append(self._window_chunk(index, window))

        if preserve_context and chunks:
            chunks = self._attach_context(index, chunks, max_lines)
        return chunks

    def _attach_context(self, index: LineIndex, chunks: List[Chunk], max_lines: int) -> List[Chunk]:
        """Absorb the file header into the first chunk and the tail into the last one.

        Only applies while the grown chunk stays within ``max_lines``.
        """
        first = chunks[0]
        if first.start_line > 1 and first.end_line <= max_lines and not first.metadata.get('split_from_large'):
            chunks[0] = self._respan(index, first, 1, first.end_line)

        last = chunks[-1]
        total = index.line_count
        if (last.end_line < total and total - last.start_line + 1 <= max_lines
                and not last.metadata.get('split_from_large')):
            chunks[-1] = self._respan(index, last, last.start_line, total)
        return chunks

    def _respan(self, index: LineIndex, chunk: Chunk, start: int, end: int) -> Chunk:
        return replace(chunk, text=index.extract(start, end), span=Span(start, end), metadata=dict(chunk.metadata))

    def _window_chunk(self, index: LineIndex, window: _Window) -> Chunk:
        primary = window.boundaries[0]
        semantic_types = []
        for boundary in window.boundaries:
            if boundary.type.value not in semantic_types:
                semantic_types.append(boundary.type.value)

        return Chunk(
            text=index.extract(window.start, window.end),
            span=Span(window.start, window.end),
            type=primary.type,
            name=primary.name,
            metadata={
                'boundary_count': len(window.boundaries),
                'semantic_types': semantic_types,
                'language': self.language,
            },
        )

    def _split_large_boundary(
        self,
        index: LineIndex,
        boundary: StatementBoundary,
        start: int,
        end: int,
        max_lines: int,
    ) -> List[Chunk]:
        """Cut one oversized boundary into ``ceil(size / max_lines)`` pieces."""
        parts = math.ceil((end - start + 1) / max_lines)
        chunks = []
        for part in range(parts):
            part_start = start + part * max_lines
            part_end = min(part_start + max_lines - 1, end)
            metadata: Dict[str, Any] = {
                'split_from_large': True,
                'original_boundary': {'start': boundary.start, 'end': boundary.end},
                'part': part + 1,
                'total_parts': parts,
                'language': self.language,
            }
            chunks.append(Chunk(
                text=index.extract(part_start, part_end),
                span=Span(part_start, part_end),
                type=boundary.type,
                name=boundary.name,
                metadata=metadata,
            ))
        return chunks


class PythonChunker(TreeSitterChunker):
    language = 'python'
    extensions = ('.py', '.pyi')
    languages = ('python',)


class JavaScriptChunker(TreeSitterChunker):
    language = 'javascript'
    extensions = ('.js', '.jsx', '.mjs', '.cjs')
    languages = ('javascript', 'jsx')


class TypeScriptChunker(TreeSitterChunker):
    language = 'typescript'
    extensions = ('.ts', '.mts', '.cts')
    languages = ('typescript',)


class TSXChunker(TypeScriptChunker):
    language = 'tsx'
    extensions = ('.tsx',)
    languages = ('tsx',)


class GoChunker(TreeSitterChunker):
    language = 'go'
    extensions = ('.go',)
    languages = ('go',)


class RustChunker(TreeSitterChunker):
    language = 'rust'
    extensions = ('.rs',)
    languages = ('rust',)


class JavaChunker(TreeSitterChunker):
    language = 'java'
    extensions = ('.java',)
    languages = ('java',)


class CChunker(TreeSitterChunker):
    language = 'c'
    extensions = ('.c', '.h')
    languages = ('c',)


class CppChunker(TreeSitterChunker):
    language = 'cpp'
    extensions = ('.cpp', '.cc', '.cxx', '.c++', '.hpp', '.hh', '.hxx')
    languages = ('cpp',)


class CSharpChunker(TreeSitterChunker):
    language = 'csharp'
    extensions = ('.cs',)
    languages = ('csharp',)


LANGUAGE_CHUNKERS = (
    PythonChunker,
    JavaScriptChunker,
    TypeScriptChunker,
    TSXChunker,
    GoChunker,
    RustChunker,
    JavaChunker,
    CChunker,
    CppChunker,
    CSharpChunker,
)


def chunker_for_extension(suffix: str) -> Optional[type]:
    """Chunker class registered for a file extension, if any."""
    suffix = suffix.lower()
    for chunker_class in LANGUAGE_CHUNKERS:
        if suffix in chunker_class.extensions:
            return chunker_class
    return None
