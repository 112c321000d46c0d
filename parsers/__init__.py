"""Language parsers producing statement boundaries and code structure."""

from .base import (
    BoundaryKind,
    ClassInfo,
    CodeStructure,
    ExportInfo,
    FunctionInfo,
    ImportInfo,
    LanguageKeywords,
    LanguageParser,
    StatementBoundary,
)
from .generic import GenericParser
from .tree_sitter import GrammarState, LoadStatus, TreeSitterParser, canonical_language, load_grammar
from .registry import ParserRegistry, create_default_registry, default_registry

__all__ = [
    'BoundaryKind', 'ClassInfo', 'CodeStructure', 'ExportInfo', 'FunctionInfo', 'ImportInfo',
    'LanguageKeywords', 'LanguageParser', 'StatementBoundary',
    'GenericParser', 'GrammarState', 'LoadStatus', 'TreeSitterParser', 'canonical_language',
    'load_grammar', 'ParserRegistry', 'create_default_registry', 'default_registry',
]
