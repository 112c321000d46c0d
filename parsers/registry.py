"""Fallback-aware registry mapping language names to parsers."""

import logging
from typing import Dict, List, Optional

from .base import LanguageParser
from .generic import GenericParser
from .tree_sitter import GRAMMAR_BINDINGS, TreeSitterParser, canonical_language

logger = logging.getLogger(__name__)


class ParserRegistry:
    """Selects the best available parser for a language.

    A registered parser is only handed out while it reports itself
    available; otherwise the generic fallback is returned, so callers always
    get a working parser.
    """

    def __init__(self, fallback: Optional[LanguageParser] = None):
        self._parsers: Dict[str, LanguageParser] = {}
        self.fallback = fallback or GenericParser()

    def register(self, language: str, parser: LanguageParser) -> None:
        """Register a parser, replacing any previous one for the language."""
        self._parsers[canonical_language(language)] = parser

    def unregister(self, language: str) -> None:
        self._parsers.pop(canonical_language(language), None)

    def has_parser(self, language: str) -> bool:
        return canonical_language(language) in self._parsers

    def get_parser(self, language: str) -> LanguageParser:
        """Get a usable parser for a language.

        Args:
            language: Language name or alias

        Returns:
            The registered parser if available, else the generic fallback
        """
        parser = self._parsers.get(canonical_language(language))
        if parser is None:
            return self.fallback

        try:
            available = parser.is_available()
        except Exception as e:
            logger.warning(f"Availability check failed for {language} parser: {e}")
            available = False

        if not available:
            logger.debug(f"Parser for {language} unavailable, using generic fallback")
            return self.fallback
        return parser

    def languages(self) -> List[str]:
        return sorted(self._parsers)


def create_default_registry() -> ParserRegistry:
    """Registry with a tree-sitter parser for every bundled grammar binding."""
    registry = ParserRegistry()
    for language in GRAMMAR_BINDINGS:
        registry.register(language, TreeSitterParser(language))
    return registry


default_registry = create_default_registry()
