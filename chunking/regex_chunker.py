"""Declaration chunker for medium-sized brace-language files.

Works with regular expressions over the raw text instead of a syntax tree,
which keeps memory flat for files too large for in-memory AST chunking.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional

from parsers.base import BoundaryKind

from .base import Chunk, Chunker, ChunkingOptions, Span, resolve
from .line_based import chunk_by_lines
from .lines import LineIndex
from .sliding_window import DEFAULT_WINDOW_OVERLAP, DEFAULT_WINDOW_SIZE, sliding_window_stream

logger = logging.getLogger(__name__)

MAX_DECLARATION_CHARS = 50000
TRUNCATION_MARKER = '\n// [TRUNCATED]'

# Ordered; earlier patterns win ties on the same start offset
DECLARATION_PATTERNS = [
    ('function', re.compile(r'\b(?:export\s+)?(?:async\s+)?function\s+(\w+)')),
    ('class', re.compile(r'\b(?:export\s+)?(?:abstract\s+)?class\s+(\w+)')),
    ('interface', re.compile(r'\b(?:export\s+)?interface\s+(\w+)')),
    ('type', re.compile(r'\b(?:export\s+)?type\s+(\w+)\s*=')),
    ('const', re.compile(r'\b(?:export\s+)?const\s+(\w+)\s*=')),
]

DECLARATION_KINDS = {
    'function': BoundaryKind.FUNCTION,
    'class': BoundaryKind.CLASS,
}


@dataclass
class Declaration:
    type: str
    name: str
    start_index: int
    end_index: int
    start_line: int
    end_line: int
    text: str

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    @property
    def kind(self) -> BoundaryKind:
        return DECLARATION_KINDS.get(self.type, BoundaryKind.OTHER)


def capped_slice(code: str, start: int, end: int) -> str:
    """``code[start:end]`` hard-truncated to the per-declaration cap.

    Never copies more than ``MAX_DECLARATION_CHARS`` characters.
    """
    if end - start > MAX_DECLARATION_CHARS:
        return code[start:start + MAX_DECLARATION_CHARS] + TRUNCATION_MARKER
    return code[start:end]


def find_declaration_end(code: str, start_index: int, declaration_type: str) -> int:
    """Offset of the last character of a declaration.

    Type aliases and constants end at the next ``;`` (else end of line, else
    end of text). Everything else ends at the brace matching the first
    ``{`` after the keyword. Braces inside strings and comments are counted.
    """
    if declaration_type in ('type', 'const'):
        semicolon = code.find(';', start_index)
        if semicolon != -1:
            return semicolon
        newline = code.find('\n', start_index)
        return newline if newline != -1 else len(code) - 1

    i = code.find('{', start_index)
    if i == -1:
        return len(code) - 1

    depth = 0
    for i in range(i, len(code)):
        char = code[i]
        if char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return i
    return len(code) - 1


def extract_declarations(code: str, index: Optional[LineIndex] = None) -> List[Declaration]:
    """Find declarations, sorted by start and with overlapping ones removed."""
    index = index or LineIndex(code)
    found = []
    for order, (declaration_type, pattern) in enumerate(DECLARATION_PATTERNS):
        for match in pattern.finditer(code):
            start = match.start()
            end = find_declaration_end(code, start, declaration_type)
            found.append((start, order, Declaration(
                type=declaration_type,
                name=match.group(1),
                start_index=start,
                end_index=end,
                start_line=index.line_of(start),
                end_line=index.line_of(end),
                text=capped_slice(code, start, end + 1),
            )))

    found.sort(key=lambda item: (item[0], item[1]))

    declarations = []
    last_end = -1
    for _, _, declaration in found:
        if declaration.start_index > last_end:
            declarations.append(declaration)
            last_end = declaration.end_index
    return declarations


class RegexChunker(Chunker):
    """Regex declaration chunker for TypeScript, JavaScript and other brace languages."""

    id = 'regex'
    extensions = ('.ts', '.tsx', '.js', '.jsx', '.mts', '.cts', '.mjs', '.cjs')
    languages = ('typescript', 'javascript', 'tsx', 'jsx')

    DEFAULT_MAX_LINES = 200
    DEFAULT_MIN_LINES = 20

    def __init__(self, window_size: int = DEFAULT_WINDOW_SIZE, window_overlap: int = DEFAULT_WINDOW_OVERLAP):
        """Initialize chunker.

        Args:
            window_size: Characters per streaming window
            window_overlap: Characters shared by consecutive streaming windows
        """
        if window_overlap >= window_size:
            raise ValueError(f"window_overlap ({window_overlap}) must be smaller than window_size ({window_size})")
        self.window_size = window_size
        self.window_overlap = window_overlap

    def chunk(self, code: str, file_path: str, options: Optional[ChunkingOptions] = None) -> List[Chunk]:
        max_lines = resolve(options, 'max_lines', self.DEFAULT_MAX_LINES)
        min_lines = resolve(options, 'min_lines', self.DEFAULT_MIN_LINES)

        try:
            index = LineIndex(code)
            declarations = extract_declarations(code, index)
            chunks = self._declaration_chunks(index, declarations, max_lines, min_lines, 'regex-based')
        except Exception as e:
            logger.warning(f"Regex extraction failed for {file_path}: {e}, falling back to line chunking")
            chunks = []

        if not chunks:
            return chunk_by_lines(code, max_lines, resolve(options, 'overlap', 0))
        logger.debug(f"Regex chunking produced {len(chunks)} chunks for {file_path}")
        return chunks

    def chunk_stream(self, file_path: str, options: Optional[ChunkingOptions] = None) -> Iterator[Chunk]:
        """Extract declarations window by window.

        A declaration that straddles two windows may be reported by both; no
        deduplication is done across windows.
        """
        max_lines = resolve(options, 'max_lines', self.DEFAULT_MAX_LINES)
        min_lines = resolve(options, 'min_lines', self.DEFAULT_MIN_LINES)

        def process_window(window: str) -> List[Chunk]:
            index = LineIndex(window)
            declarations = extract_declarations(window, index)
            return self._declaration_chunks(index, declarations, max_lines, min_lines, 'regex-streaming')

        return sliding_window_stream(file_path, process_window, self.window_size, self.window_overlap)

    def _declaration_chunks(
        self,
        index: LineIndex,
        declarations: List[Declaration],
        max_lines: int,
        min_lines: int,
        method: str,
    ) -> List[Chunk]:
        chunks = []
        for declaration in declarations:
            if declaration.line_count > max_lines:
                chunks.extend(self._split_declaration(index, declaration, max_lines, method))
            elif declaration.line_count >= min_lines:
                chunks.append(Chunk(
                    text=declaration.text,
                    span=Span(declaration.start_line, declaration.end_line),
                    type=declaration.kind,
                    name=declaration.name,
                    metadata={'chunk_method': method, 'declaration_type': declaration.type},
                ))
        return chunks

    def _split_declaration(self, index: LineIndex, declaration: Declaration, max_lines: int, method: str) -> List[Chunk]:
        parts = math.ceil(declaration.line_count / max_lines)
        chunks = []
        for part in range(parts):
            start = declaration.start_line + part * max_lines
            end = min(start + max_lines - 1, declaration.end_line)
            chunks.append(Chunk(
                text=capped_slice(index.text, index.offset_of(start), index.line_end_offset(end)),
                span=Span(start, end),
                type=declaration.kind,
                name=declaration.name,
                metadata={
                    'chunk_method': method,
                    'declaration_type': declaration.type,
                    'is_sub_chunk': True,
                    'original_start': declaration.start_line,
                    'original_end': declaration.end_line,
                },
            ))
        return chunks
