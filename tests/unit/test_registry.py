"""Unit tests for parser registry fallback."""

from typing import List

import pytest

from parsers.base import CodeStructure, LanguageKeywords, LanguageParser, StatementBoundary
from parsers.generic import GENERIC_KEYWORDS, GenericParser
from parsers.registry import ParserRegistry, create_default_registry
from parsers.tree_sitter import GRAMMAR_BINDINGS, TreeSitterParser


class StubParser(LanguageParser):
    """Parser whose availability is set by the test."""

    def __init__(self, available: bool = True):
        self.available = available

    def find_statement_boundaries(self, code: str) -> List[StatementBoundary]:
        return []

    def extract_structure(self, code: str) -> CodeStructure:
        return CodeStructure()

    def get_keywords(self) -> LanguageKeywords:
        return GENERIC_KEYWORDS

    def is_available(self) -> bool:
        return self.available


class ExplodingParser(StubParser):
    def is_available(self) -> bool:
        raise RuntimeError("backend crashed")


class TestParserRegistry:

    @pytest.fixture
    def registry(self):
        return ParserRegistry()

    def test_unregistered_language_gets_fallback(self, registry):
        assert isinstance(registry.get_parser('brainfuck'), GenericParser)

    def test_available_parser_returned(self, registry):
        parser = StubParser(available=True)
        registry.register('typescript', parser)

        assert registry.get_parser('typescript') is parser
        assert registry.get_parser('ts') is parser

    def test_unavailable_parser_replaced_by_fallback(self, registry):
        registry.register('typescript', StubParser(available=False))

        assert registry.get_parser('typescript') is registry.fallback

    def test_availability_error_replaced_by_fallback(self, registry):
        registry.register('python', ExplodingParser())

        assert registry.get_parser('python') is registry.fallback

    def test_register_overwrites(self, registry):
        first = StubParser()
        second = StubParser()
        registry.register('go', first)
        registry.register('go', second)

        assert registry.get_parser('go') is second
        assert registry.languages() == ['go']

    def test_unregister(self, registry):
        registry.register('go', StubParser())
        registry.unregister('golang')

        assert not registry.has_parser('go')

    def test_default_registry_covers_grammars(self):
        registry = create_default_registry()

        for language in GRAMMAR_BINDINGS:
            assert registry.has_parser(language)
            parser = registry.get_parser(language)
            assert isinstance(parser, (TreeSitterParser, GenericParser))
            assert parser.is_available()
