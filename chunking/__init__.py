"""Chunkers turning source files into bounded, line-addressed chunks."""

from .base import Chunk, Chunker, ChunkingError, ChunkingOptions, FileTooLargeError, Span
from .lines import LineIndex, count_lines, iter_lines
from .sliding_window import sliding_window_stream
from .line_based import LineBasedChunker, chunk_by_lines, stream_lines
from .tree_sitter import (
    CChunker,
    CppChunker,
    CSharpChunker,
    GoChunker,
    JavaChunker,
    JavaScriptChunker,
    PythonChunker,
    RustChunker,
    TreeSitterChunker,
    TSXChunker,
    TypeScriptChunker,
)
from .regex_chunker import RegexChunker
from .markdown import MarkdownChunker
from .multi_language_chunker import MultiLanguageChunker

__all__ = [
    'Chunk', 'Chunker', 'ChunkingError', 'ChunkingOptions', 'FileTooLargeError', 'Span',
    'LineIndex', 'count_lines', 'iter_lines', 'sliding_window_stream',
    'LineBasedChunker', 'chunk_by_lines', 'stream_lines',
    'TreeSitterChunker', 'PythonChunker', 'JavaScriptChunker', 'TypeScriptChunker', 'TSXChunker',
    'GoChunker', 'RustChunker', 'JavaChunker', 'CChunker', 'CppChunker', 'CSharpChunker',
    'RegexChunker', 'MarkdownChunker', 'MultiLanguageChunker',
]
