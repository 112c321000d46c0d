"""Heading-aware chunker for markdown documents."""

import logging
import math
import os
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional

from parsers.base import BoundaryKind

from .base import Chunk, Chunker, ChunkingOptions, Span, resolve
from .line_based import chunk_by_lines, stream_lines
from .lines import LineIndex, iter_lines

logger = logging.getLogger(__name__)

HEADING_PATTERN = re.compile(r'^(#{1,6})\s+(.+)$')
FENCE_PATTERN = re.compile(r'^\s*(?:```|~~~)\s*([\w+#.-]+)?.*$')


@dataclass
class _Section:
    start: int
    end: int
    level: int
    title: Optional[str] = None


class MarkdownChunker(Chunker):
    """Splits documents at headings and extracts fenced code blocks.

    Sections shorter than ``min_lines`` are dropped and sections longer than
    ``max_lines`` are cut into sub-chunks. Documents without headings (or
    whose sections are all too short) are cut into fixed line windows.
    """

    id = 'markdown'
    extensions = ('.md', '.mdx', '.markdown')
    languages = ('markdown', 'mdx')

    DEFAULT_MAX_LINES = 150
    DEFAULT_MIN_LINES = 30
    MAX_STREAM_SIZE = 10 * 1024 * 1024

    def chunk(self, code: str, file_path: str, options: Optional[ChunkingOptions] = None) -> List[Chunk]:
        max_lines = resolve(options, 'max_lines', self.DEFAULT_MAX_LINES)
        min_lines = resolve(options, 'min_lines', self.DEFAULT_MIN_LINES)
        by_headings = resolve(options, 'by_headings', True)
        include_code_blocks = resolve(options, 'include_code_blocks', True)

        chunks: List[Chunk] = []
        if by_headings and code.strip():
            chunks = self._chunk_by_headings(code, max_lines, min_lines)
        if not chunks:
            chunks = chunk_by_lines(code, max_lines, resolve(options, 'overlap', 0))

        if include_code_blocks:
            chunks.extend(self._extract_code_blocks(code))

        logger.debug(f"Markdown chunking produced {len(chunks)} chunks for {file_path}")
        return chunks

    def chunk_stream(self, file_path: str, options: Optional[ChunkingOptions] = None) -> Iterator[Chunk]:
        size = os.stat(file_path).st_size
        if size > self.MAX_STREAM_SIZE:
            max_lines = resolve(options, 'max_lines', self.DEFAULT_MAX_LINES)
            yield from stream_lines(file_path, max_lines, resolve(options, 'overlap', 0))
            return

        with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
            code = f.read()
        yield from self.chunk(code, file_path, options)

    def find_sections(self, code: str) -> List[_Section]:
        """Heading sections; content before the first heading is a level 0 section."""
        sections: List[_Section] = []
        current: Optional[_Section] = None
        in_fence = False
        has_heading = False

        for line_number, line in iter_lines(code):
            if FENCE_PATTERN.match(line):
                in_fence = not in_fence
                match = None
            else:
                match = None if in_fence else HEADING_PATTERN.match(line)

            if match:
                has_heading = True
                if current is not None:
                    sections.append(current)
                current = _Section(
                    start=line_number,
                    end=line_number,
                    level=len(match.group(1)),
                    title=match.group(2).strip(),
                )
            elif current is None:
                current = _Section(start=line_number, end=line_number, level=0)
            current.end = line_number

        if current is not None:
            sections.append(current)
        return sections if has_heading else []

    def _chunk_by_headings(self, code: str, max_lines: int, min_lines: int) -> List[Chunk]:
        index = LineIndex(code)
        chunks = []
        for section in self.find_sections(code):
            size = section.end - section.start + 1
            if size < min_lines:
                continue
            if not index.extract(section.start, section.end).strip():
                continue

            parts = math.ceil(size / max_lines)
            for part in range(parts):
                start = section.start + part * max_lines
                end = min(start + max_lines - 1, section.end)
                metadata = {'heading_level': section.level, 'heading_title': section.title}
                if parts > 1:
                    metadata['is_sub_chunk'] = True
                chunks.append(Chunk(
                    text=index.extract(start, end),
                    span=Span(start, end),
                    type=BoundaryKind.MARKDOWN_HEADING,
                    name=section.title,
                    metadata=metadata,
                ))
        return chunks

    def _extract_code_blocks(self, code: str) -> List[Chunk]:
        chunks = []
        in_block = False
        block_start = 0
        language = None
        block_lines: List[str] = []
        last_line = 0

        for line_number, line in iter_lines(code):
            last_line = line_number
            match = FENCE_PATTERN.match(line)
            if match and not in_block:
                in_block = True
                block_start = line_number + 1
                language = match.group(1)
                block_lines = []
            elif match and in_block:
                if block_lines:
                    chunks.append(self._code_block_chunk(block_lines, block_start, line_number - 1, language))
                in_block = False
            elif in_block:
                block_lines.append(line)

        # Unclosed fence runs to the end of the document
        if in_block and block_lines:
            chunks.append(self._code_block_chunk(block_lines, block_start, last_line, language))
        return chunks

    def _code_block_chunk(self, lines: List[str], start: int, end: int, language: Optional[str]) -> Chunk:
        return Chunk(
            text='\n'.join(lines),
            span=Span(start, end),
            type=BoundaryKind.CODE_BLOCK,
            metadata={'chunk_type': 'code-block', 'language': language},
        )
