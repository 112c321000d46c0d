"""Tests for per-file strategy selection."""

import pytest

from chunking.base import ChunkingOptions
from chunking.line_based import LineBasedChunker
from chunking.markdown import MarkdownChunker
from chunking.multi_language_chunker import MultiLanguageChunker
from chunking.regex_chunker import RegexChunker
from chunking.tree_sitter import PythonChunker, TypeScriptChunker
from parsers.base import BoundaryKind
from tests.fixtures.sample_code import SAMPLE_MARKDOWN, SAMPLE_TS_MODULE

KB = 1024


class TestStrategySelection:
    """Test strategy selection by extension and size."""

    @pytest.fixture
    def chunker(self):
        return MultiLanguageChunker()

    def test_markdown_always_markdown(self, chunker):
        assert isinstance(chunker.select('docs/guide.md', 10 * KB), MarkdownChunker)
        assert isinstance(chunker.select('docs/guide.MDX', 900 * KB), MarkdownChunker)
        assert isinstance(chunker.select('dist/README.markdown', KB), MarkdownChunker)

    def test_generated_paths_use_lines(self, chunker):
        for path in ('dist/app.ts', 'web/node_modules/x/index.js', 'static/app.min.js', 'public/bundle.js'):
            assert isinstance(chunker.select(path, KB), LineBasedChunker), path

    def test_very_large_files_use_lines(self, chunker):
        assert isinstance(chunker.select('src/app.py', 600 * KB), LineBasedChunker)
        assert isinstance(chunker.select('src/app.ts', 501 * KB), LineBasedChunker)

    def test_small_ast_files(self, chunker):
        assert isinstance(chunker.select('src/app.ts', 50 * KB), TypeScriptChunker)
        assert isinstance(chunker.select('src/app.py', 100 * KB), PythonChunker)

    def test_medium_brace_files_use_regex(self, chunker):
        assert isinstance(chunker.select('src/app.ts', 200 * KB), RegexChunker)
        assert isinstance(chunker.select('src/Main.java', 300 * KB), RegexChunker)

    def test_medium_python_stays_ast(self, chunker):
        assert isinstance(chunker.select('src/app.py', 200 * KB), PythonChunker)

    def test_unknown_extension(self, chunker):
        assert isinstance(chunker.select('notes.txt', KB), LineBasedChunker)
        assert isinstance(chunker.select('Makefile', KB), LineBasedChunker)

    def test_ast_chunkers_cached(self, chunker):
        assert chunker.select('a.py', KB) is chunker.select('b.py', 2 * KB)

    def test_is_supported(self, chunker):
        for path in ('a.py', 'a.js', 'a.jsx', 'a.ts', 'a.tsx', 'a.go', 'a.rs', 'a.java',
                     'a.c', 'a.h', 'a.cpp', 'a.cc', 'a.c++', 'a.cs', 'a.md', 'A.PY'):
            assert chunker.is_supported(path), path
        assert not chunker.is_supported('a.txt')
        assert not chunker.is_supported('Makefile')

    def test_supported_extensions_sorted(self):
        extensions = MultiLanguageChunker.get_supported_extensions()

        assert extensions == sorted(extensions)
        assert '.md' in extensions and '.py' in extensions and '.cs' in extensions

    def test_estimate_memory_usage(self, chunker):
        assert chunker.estimate_memory_usage('src/app.ts', 50 * KB) == 200 * KB
        assert chunker.estimate_memory_usage('src/app.ts', 200 * KB) == 600 * KB
        assert chunker.estimate_memory_usage('src/app.ts', 600 * KB) == 1200 * KB
        assert chunker.estimate_memory_usage('README.md', 10 * KB) == 30 * KB


class TestChunkFile:

    def test_markdown_file(self, tmp_path):
        path = tmp_path / "README.md"
        path.write_text(SAMPLE_MARKDOWN)

        chunks = list(MultiLanguageChunker().chunk_file(str(path), ChunkingOptions(min_lines=1)))

        assert [c.name for c in chunks if c.type == BoundaryKind.MARKDOWN_HEADING] == [
            'Installation', 'Usage', 'Configuration',
        ]

    def test_unknown_extension_gets_line_windows(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("note\n" * 150)

        chunks = list(MultiLanguageChunker().chunk_file(str(path)))

        assert [(c.start_line, c.end_line) for c in chunks] == [(1, 120), (101, 150)]

    def test_typescript_file(self, tmp_path):
        path = tmp_path / "service.ts"
        path.write_text(SAMPLE_TS_MODULE)

        chunks = list(MultiLanguageChunker().chunk_file(str(path)))

        assert chunks
        for previous, current in zip(chunks, chunks[1:]):
            assert previous.end_line < current.start_line

    def test_missing_file_raises_eagerly(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            MultiLanguageChunker().chunk_file(str(tmp_path / "missing.ts"))
