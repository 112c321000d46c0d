"""Adaptive chunker that picks a strategy per file by extension and size."""

import logging
import os
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from parsers.registry import ParserRegistry, default_registry

from .base import Chunk, Chunker, ChunkingOptions
from .line_based import LineBasedChunker
from .markdown import MarkdownChunker
from .regex_chunker import RegexChunker
from .tree_sitter import LANGUAGE_CHUNKERS, TreeSitterChunker, chunker_for_extension

logger = logging.getLogger(__name__)

GENERATED_PATH_PATTERN = re.compile(
    r'(?:^|/)(?:dist|build|node_modules|vendor)/|\.min\.|\.bundle\.|(?:^|[/._-])bundle\.js$|vendor\.js$'
)


class MultiLanguageChunker:
    """Unified entry point choosing a chunker per file."""

    AST_SYNC_LIMIT = 100 * 1024
    REGEX_LIMIT = 500 * 1024

    MARKDOWN_EXTENSIONS = set(MarkdownChunker.extensions)

    # Extensions the regex declaration chunker handles for medium files
    BRACE_EXTENSIONS = {
        '.ts', '.tsx', '.js', '.jsx', '.mjs', '.cjs', '.mts', '.cts',
        '.java', '.cs', '.go', '.rs', '.c', '.h', '.cpp', '.cc', '.cxx', '.c++', '.hpp', '.hh', '.hxx',
    }

    # Memory estimate multipliers over file size
    MEMORY_MULTIPLIERS = {
        'tree-sitter': 4,
        'regex': 3,
        'markdown': 3,
        'line-based': 2,
    }

    # Common large/build/tooling directories to skip during traversal
    DEFAULT_IGNORED_DIRS = {
        '__pycache__', '.git', '.hg', '.svn',
        '.venv', 'venv', 'env', '.env', '.direnv',
        'node_modules', '.pnpm-store', '.yarn',
        '.pytest_cache', '.mypy_cache', '.ruff_cache', '.pytype', '.ipynb_checkpoints',
        'build', 'dist', 'out',
        '.next', '.nuxt', '.svelte-kit', '.angular', '.vite',
        '.cache', '.parcel-cache', '.turbo',
        'coverage', '.coverage', '.nyc_output',
        '.gradle', '.idea', '.vscode', '.tox',
        'target', 'bin', 'obj',
    }

    def __init__(self, registry: Optional[ParserRegistry] = None):
        """Initialize multi-language chunker.

        Args:
            registry: Parser registry shared by the AST chunkers
        """
        self.registry = registry or default_registry
        self.markdown_chunker = MarkdownChunker()
        self.line_chunker = LineBasedChunker()
        self.regex_chunker = RegexChunker()
        self._ast_chunkers: Dict[type, TreeSitterChunker] = {}

    @classmethod
    def get_supported_extensions(cls) -> List[str]:
        extensions = set(cls.MARKDOWN_EXTENSIONS)
        for chunker_class in LANGUAGE_CHUNKERS:
            extensions.update(chunker_class.extensions)
        return sorted(extensions)

    def is_supported(self, file_path: str) -> bool:
        """Check if the file gets structure-aware chunking.

        Every file can be chunked; unsupported ones get line windows.
        """
        suffix = Path(file_path).suffix.lower()
        return suffix in self.MARKDOWN_EXTENSIONS or chunker_for_extension(suffix) is not None

    def is_generated_path(self, file_path: str) -> bool:
        return bool(GENERATED_PATH_PATTERN.search(file_path.replace('\\', '/').lower()))

    def select(self, file_path: str, size: int) -> Chunker:
        """Pick the chunker for a file.

        Args:
            file_path: Path to the file
            size: File size in bytes

        Returns:
            The chunker to use
        """
        suffix = Path(file_path).suffix.lower()

        if suffix in self.MARKDOWN_EXTENSIONS:
            chunker = self.markdown_chunker
        elif self.is_generated_path(file_path):
            chunker = self.line_chunker
        elif size > self.REGEX_LIMIT:
            chunker = self.line_chunker
        else:
            chunker_class = chunker_for_extension(suffix)
            if chunker_class is None:
                chunker = self.line_chunker
            elif size <= self.AST_SYNC_LIMIT or suffix not in self.BRACE_EXTENSIONS:
                chunker = self._get_ast_chunker(chunker_class)
            else:
                chunker = self.regex_chunker

        logger.debug(f"Selected {chunker.id} chunker for {file_path} ({size} bytes)")
        return chunker

    def chunk_file(self, file_path: str, options: Optional[ChunkingOptions] = None) -> Iterator[Chunk]:
        """Chunk a file from disk with the selected strategy.

        Raises:
            OSError: If the file cannot be read
        """
        size = os.stat(file_path).st_size
        chunker = self.select(file_path, size)
        return chunker.chunk_stream(file_path, options)

    def chunk_directory(
        self,
        directory_path: str,
        options: Optional[ChunkingOptions] = None,
        extensions: Optional[List[str]] = None,
    ) -> Dict[str, List[Chunk]]:
        """Chunk every file under a directory.

        Args:
            directory_path: Path to directory
            options: Chunking options applied to every file
            extensions: Optional list of extensions to process (default: all supported)

        Returns:
            Mapping of file path to its chunks
        """
        results: Dict[str, List[Chunk]] = {}
        dir_path = Path(directory_path)

        if not dir_path.exists() or not dir_path.is_dir():
            logger.error(f"Directory does not exist: {directory_path}")
            return results

        valid_extensions = set(extensions) if extensions else set(self.get_supported_extensions())

        for file_path in sorted(dir_path.rglob('*')):
            if not file_path.is_file() or file_path.suffix.lower() not in valid_extensions:
                continue
            # Skip common large/build/tooling directories
            if any(part in self.DEFAULT_IGNORED_DIRS for part in file_path.relative_to(dir_path).parts):
                continue

            try:
                chunks = list(self.chunk_file(str(file_path), options))
            except (OSError, UnicodeError) as e:
                logger.warning(f"Failed to chunk {file_path}: {e}")
                continue

            results[str(file_path)] = chunks
            logger.debug(f"Chunked {len(chunks)} from {file_path}")

        logger.info(f"Total chunks from directory: {sum(len(c) for c in results.values())}")
        return results

    def estimate_memory_usage(self, file_path: str, size: int) -> int:
        """Rough peak memory in bytes for chunking a file of ``size`` bytes."""
        chunker = self.select(file_path, size)
        multiplier = self.MEMORY_MULTIPLIERS.get(chunker.id, self.MEMORY_MULTIPLIERS['line-based'])
        return size * multiplier

    def _get_ast_chunker(self, chunker_class: type) -> TreeSitterChunker:
        if chunker_class not in self._ast_chunkers:
            self._ast_chunkers[chunker_class] = chunker_class(registry=self.registry)
        return self._ast_chunkers[chunker_class]
