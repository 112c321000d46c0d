"""Tree-sitter backed parser with a lazily loaded grammar per language.

Grammar packages are optional at runtime. A language whose grammar cannot be
loaded reports ``is_available() == False`` and every operation returns an
empty result, which callers treat as "use the next fallback tier".
"""

import importlib
import logging
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Iterator, List, Optional, Tuple

from tree_sitter import Language, Parser

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
from .generic import GENERIC_KEYWORDS

logger = logging.getLogger(__name__)


# language -> (grammar module, factory attribute returning the language pointer)
GRAMMAR_BINDINGS: Dict[str, Tuple[str, str]] = {
    'python': ('tree_sitter_python', 'language'),
    'javascript': ('tree_sitter_javascript', 'language'),
    'jsx': ('tree_sitter_javascript', 'language'),
    'typescript': ('tree_sitter_typescript', 'language_typescript'),
    'tsx': ('tree_sitter_typescript', 'language_tsx'),
    'go': ('tree_sitter_go', 'language'),
    'rust': ('tree_sitter_rust', 'language'),
    'java': ('tree_sitter_java', 'language'),
    'c': ('tree_sitter_c', 'language'),
    'cpp': ('tree_sitter_cpp', 'language'),
    'csharp': ('tree_sitter_c_sharp', 'language'),
}

LANGUAGE_ALIASES = {
    'py': 'python',
    'js': 'javascript',
    'ts': 'typescript',
    'golang': 'go',
    'rs': 'rust',
    'c++': 'cpp',
    'cs': 'csharp',
    'c#': 'csharp',
}

# Fixed node type -> boundary kind table
NODE_KINDS: Dict[str, BoundaryKind] = {
    # functions
    'function_declaration': BoundaryKind.FUNCTION,
    'function_definition': BoundaryKind.FUNCTION,
    'function_expression': BoundaryKind.FUNCTION,
    'function_item': BoundaryKind.FUNCTION,
    'arrow_function': BoundaryKind.FUNCTION,
    'generator_function_declaration': BoundaryKind.FUNCTION,
    'func_literal': BoundaryKind.FUNCTION,
    'local_function_statement': BoundaryKind.FUNCTION,
    # methods
    'method_definition': BoundaryKind.METHOD,
    'method_declaration': BoundaryKind.METHOD,
    'constructor_declaration': BoundaryKind.METHOD,
    # classes and class-like types
    'class_declaration': BoundaryKind.CLASS,
    'class_definition': BoundaryKind.CLASS,
    'class_specifier': BoundaryKind.CLASS,
    'interface_declaration': BoundaryKind.CLASS,
    'struct_declaration': BoundaryKind.CLASS,
    'struct_specifier': BoundaryKind.CLASS,
    'struct_item': BoundaryKind.CLASS,
    'enum_declaration': BoundaryKind.CLASS,
    'enum_item': BoundaryKind.CLASS,
    'trait_item': BoundaryKind.CLASS,
    'record_declaration': BoundaryKind.CLASS,
    'type_declaration': BoundaryKind.CLASS,
    # grouping blocks
    'impl_item': BoundaryKind.BLOCK,
    'mod_item': BoundaryKind.BLOCK,
    'namespace_definition': BoundaryKind.BLOCK,
    'namespace_declaration': BoundaryKind.BLOCK,
}

IMPORT_NODE_TYPES = {
    'import_statement',
    'import_from_statement',
    'import_declaration',
    'using_directive',
    'use_declaration',
    'preproc_include',
}

EXPORT_NODE_TYPES = {'export_statement'}

IMPORT_SOURCE_FIELDS = ('source', 'module_name', 'path', 'argument', 'name')
IMPORT_KEYWORD = re.compile(r'^\s*(?:import|from|using|use|#\s*include)\s+(?:static\s+)?')

NAME_NODE_TYPES = {'identifier', 'type_identifier', 'field_identifier', 'qualified_identifier'}

LANGUAGE_KEYWORDS: Dict[str, LanguageKeywords] = {
    'typescript': LanguageKeywords(
        declarations=('function', 'class', 'interface', 'type', 'const', 'let', 'var', 'enum'),
        control=('if', 'else', 'for', 'while', 'switch', 'case', 'return', 'break', 'continue',
                 'throw', 'try', 'catch'),
        modifiers=('public', 'private', 'protected', 'static', 'async', 'export', 'import',
                   'readonly', 'abstract'),
    ),
    'python': LanguageKeywords(
        declarations=('def', 'class', 'lambda'),
        control=('if', 'elif', 'else', 'for', 'while', 'return', 'break', 'continue', 'raise',
                 'try', 'except', 'with', 'yield'),
        modifiers=('async', 'await', 'import', 'from', 'global', 'nonlocal'),
    ),
    'go': LanguageKeywords(
        declarations=('func', 'type', 'struct', 'interface', 'var', 'const'),
        control=('if', 'else', 'for', 'switch', 'case', 'return', 'break', 'continue', 'goto',
                 'defer', 'select'),
        modifiers=('import', 'package', 'go', 'chan'),
    ),
    'csharp': LanguageKeywords(
        declarations=('class', 'interface', 'struct', 'enum', 'delegate', 'void', 'var'),
        control=('if', 'else', 'for', 'foreach', 'while', 'do', 'switch', 'case', 'return',
                 'break', 'continue', 'throw', 'try', 'catch'),
        modifiers=('public', 'private', 'protected', 'internal', 'static', 'async', 'virtual',
                   'override', 'abstract', 'sealed', 'using', 'namespace'),
    ),
    'rust': LanguageKeywords(
        declarations=('fn', 'struct', 'enum', 'trait', 'impl', 'type', 'let', 'const', 'static'),
        control=('if', 'else', 'match', 'for', 'while', 'loop', 'return', 'break', 'continue'),
        modifiers=('pub', 'async', 'await', 'use', 'mod', 'crate', 'mut', 'ref'),
    ),
    'java': LanguageKeywords(
        declarations=('class', 'interface', 'enum', 'void', 'var'),
        control=('if', 'else', 'for', 'while', 'do', 'switch', 'case', 'return', 'break',
                 'continue', 'throw', 'try', 'catch'),
        modifiers=('public', 'private', 'protected', 'static', 'final', 'abstract',
                   'synchronized', 'volatile', 'import', 'package'),
    ),
}
LANGUAGE_KEYWORDS['javascript'] = LANGUAGE_KEYWORDS['typescript']
LANGUAGE_KEYWORDS['jsx'] = LANGUAGE_KEYWORDS['typescript']
LANGUAGE_KEYWORDS['tsx'] = LANGUAGE_KEYWORDS['typescript']


def canonical_language(language: str) -> str:
    """Normalize a language name or alias (``ts`` -> ``typescript``)."""
    lang = language.strip().lower()
    return LANGUAGE_ALIASES.get(lang, lang)


class LoadStatus(Enum):
    UNLOADED = 'unloaded'
    AVAILABLE = 'available'
    UNAVAILABLE = 'unavailable'


@dataclass(frozen=True)
class GrammarState:
    """Load state of one grammar: unloaded, available(handle) or unavailable(reason)."""

    status: LoadStatus
    language: Optional[Any] = None
    reason: Optional[str] = None

    @classmethod
    def unloaded(cls) -> 'GrammarState':
        return cls(LoadStatus.UNLOADED)

    @classmethod
    def available(cls, language: Any) -> 'GrammarState':
        return cls(LoadStatus.AVAILABLE, language=language)

    @classmethod
    def unavailable(cls, reason: str) -> 'GrammarState':
        return cls(LoadStatus.UNAVAILABLE, reason=reason)

    @property
    def is_available(self) -> bool:
        return self.status is LoadStatus.AVAILABLE


@lru_cache(maxsize=None)
def load_grammar(language: str) -> GrammarState:
    """Load the grammar for a language once per process.

    The result is memoized for the process lifetime and never retried. Two
    threads racing on the first load may both import the grammar; the
    cache keeps one of the (equivalent) results.
    """
    binding = GRAMMAR_BINDINGS.get(language)
    if binding is None:
        return GrammarState.unavailable(f"No tree-sitter grammar registered for {language}")

    module_name, factory_name = binding
    try:
        module = importlib.import_module(module_name)
        grammar = Language(getattr(module, factory_name)())
    except ImportError:
        logger.debug(f"{module_name} not installed")
        return GrammarState.unavailable(f"{module_name} not installed")
    except Exception as e:
        logger.debug(f"Failed to load tree-sitter grammar for {language}: {e}")
        return GrammarState.unavailable(f"Failed to load grammar {module_name}: {e}")

    return GrammarState.available(grammar)


class TreeSitterParser(LanguageParser):
    """Parser backed by a tree-sitter grammar, loaded on first use."""

    def __init__(self, language: str):
        """Initialize parser.

        Args:
            language: Language name or alias
        """
        self.language = canonical_language(language)
        self._state = GrammarState.unloaded()
        self._parser: Optional[Parser] = None

    @property
    def state(self) -> GrammarState:
        return self._state

    def is_available(self) -> bool:
        return self._ensure_loaded()

    def get_keywords(self) -> LanguageKeywords:
        return LANGUAGE_KEYWORDS.get(self.language, GENERIC_KEYWORDS)

    def find_statement_boundaries(self, code: str) -> List[StatementBoundary]:
        if not self._ensure_loaded():
            return []

        try:
            source = code.encode('utf-8', errors='replace')
            tree = self._parser.parse(source)
            boundaries = []
            for node, kind, enclosing in self._walk_boundaries(tree.root_node, source):
                if kind is BoundaryKind.FUNCTION and enclosing is BoundaryKind.CLASS:
                    kind = BoundaryKind.METHOD
                start_line, end_line = self._get_line_numbers(node)
                boundaries.append(StatementBoundary(
                    start=start_line,
                    end=end_line,
                    type=kind,
                    name=self._extract_node_name(node, source),
                ))
            return boundaries
        except Exception as e:
            logger.warning(f"Tree-sitter boundary detection failed for {self.language}: {e}")
            return []

    def extract_structure(self, code: str) -> CodeStructure:
        structure = CodeStructure()
        if not self._ensure_loaded():
            return structure

        try:
            source = code.encode('utf-8', errors='replace')
            tree = self._parser.parse(source)
            for node in self._walk(tree.root_node):
                node_type = node.type
                kind = self._boundary_kind(node)
                start_line, end_line = self._get_line_numbers(node)

                if kind in (BoundaryKind.FUNCTION, BoundaryKind.METHOD) and node_type != 'decorated_definition':
                    name = self._extract_node_name(node, source)
                    if name:
                        text = self._get_node_text(node, source)
                        structure.functions.append(FunctionInfo(
                            name=name,
                            start_line=start_line,
                            end_line=end_line,
                            signature=text.split('\n', 1)[0],
                        ))
                elif kind is BoundaryKind.CLASS and node_type != 'decorated_definition':
                    name = self._extract_node_name(node, source)
                    if name:
                        structure.classes.append(ClassInfo(name=name, start_line=start_line, end_line=end_line))
                elif node_type in IMPORT_NODE_TYPES:
                    import_source = self._extract_import_source(node, source)
                    if import_source:
                        structure.imports.append(ImportInfo(source=import_source, line=start_line))
                elif node_type in EXPORT_NODE_TYPES:
                    export = self._extract_export(node, source)
                    if export:
                        structure.exports.append(export)
            return structure
        except Exception as e:
            logger.warning(f"Tree-sitter structure extraction failed for {self.language}: {e}")
            return CodeStructure()

    def _ensure_loaded(self) -> bool:
        """Transition out of the unloaded state exactly once."""
        if self._state.status is LoadStatus.UNLOADED:
            state = load_grammar(self.language)
            if state.is_available:
                try:
                    self._parser = Parser(state.language)
                except Exception as e:
                    logger.debug(f"Failed to create tree-sitter parser for {self.language}: {e}")
                    state = GrammarState.unavailable(str(e))
            self._state = state
        return self._state.is_available

    def _walk(self, root: Any) -> Iterator[Any]:
        """Pre-order traversal without recursion (deep trees are common in minified code)."""
        stack = [root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def _walk_boundaries(self, root: Any, source: bytes) -> Iterator[Tuple[Any, BoundaryKind, Optional[BoundaryKind]]]:
        """Yield (node, kind, enclosing boundary kind) for every boundary node."""
        stack: List[Tuple[Any, Optional[BoundaryKind]]] = [(root, None)]
        while stack:
            node, enclosing = stack.pop()
            kind = self._boundary_kind(node)
            child_enclosing = enclosing
            children = node.children
            if kind is not None:
                yield node, kind, enclosing
                child_enclosing = kind
                if node.type == 'decorated_definition':
                    # The wrapper already stands for the definition it decorates
                    definition = node.child_by_field_name('definition')
                    children = [c for c in children if c != definition] + list(definition.children)
            for child in reversed(children):
                stack.append((child, child_enclosing))

    def _boundary_kind(self, node: Any) -> Optional[BoundaryKind]:
        if node.type == 'decorated_definition':
            definition = node.child_by_field_name('definition')
            if definition is not None:
                return NODE_KINDS.get(definition.type)
            return None
        return NODE_KINDS.get(node.type)

    def _get_line_numbers(self, node: Any) -> Tuple[int, int]:
        # Tree-sitter rows are 0-based
        return node.start_point[0] + 1, node.end_point[0] + 1

    def _get_node_text(self, node: Any, source: bytes) -> str:
        return source[node.start_byte:node.end_byte].decode('utf-8', errors='replace')

    def _extract_node_name(self, node: Any, source: bytes) -> Optional[str]:
        """Look up the ``name`` field, following declarators for C-family functions."""
        if node.type == 'decorated_definition':
            definition = node.child_by_field_name('definition')
            if definition is None:
                return None
            node = definition

        name_node = node.child_by_field_name('name')
        if name_node is not None:
            return self._get_node_text(name_node, source)

        declarator = node.child_by_field_name('declarator')
        while declarator is not None:
            if declarator.type in NAME_NODE_TYPES:
                return self._get_node_text(declarator, source)
            declarator = declarator.child_by_field_name('declarator')
        return None

    def _extract_import_source(self, node: Any, source: bytes) -> Optional[str]:
        for field_name in IMPORT_SOURCE_FIELDS:
            source_node = node.child_by_field_name(field_name)
            if source_node is not None:
                return self._clean_import(self._get_node_text(source_node, source))

        first_line = self._get_node_text(node, source).split('\n', 1)[0]
        return self._clean_import(IMPORT_KEYWORD.sub('', first_line)) or None

    def _clean_import(self, text: str) -> str:
        return text.strip().rstrip(';').strip().strip('\'"<>()')

    def _extract_export(self, node: Any, source: bytes) -> Optional[ExportInfo]:
        start_line = node.start_point[0] + 1
        declaration = node.child_by_field_name('declaration')
        if declaration is not None:
            name = self._extract_node_name(declaration, source)
            if name is None:
                # export const a = ..., b = ...
                for child in declaration.children:
                    if child.type == 'variable_declarator':
                        name = self._extract_node_name(child, source)
                        break
            if name:
                return ExportInfo(name=name, kind=self._infer_export_kind(declaration.type), line=start_line)
            return None

        text = self._get_node_text(node, source)
        if re.match(r'export\s+default\b', text):
            value = node.child_by_field_name('value')
            name = self._get_node_text(value, source) if value is not None else 'default'
            return ExportInfo(name=name.split('\n', 1)[0], kind='default', line=start_line)
        return None

    def _infer_export_kind(self, node_type: str) -> str:
        if 'function' in node_type:
            return 'function'
        if 'class' in node_type:
            return 'class'
        if 'type' in node_type or 'interface' in node_type:
            return 'type'
        return 'const'
