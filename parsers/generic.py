"""Generic fallback parser using regex patterns and brace counting."""

import logging
import re
from typing import List, Optional

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
    iter_lines,
)

logger = logging.getLogger(__name__)


GENERIC_KEYWORDS = LanguageKeywords(
    declarations=('function', 'class', 'interface', 'type', 'const', 'let', 'var', 'def', 'func', 'fn'),
    control=('if', 'else', 'for', 'while', 'switch', 'case', 'return', 'break', 'continue'),
    modifiers=('public', 'private', 'protected', 'static', 'async', 'export', 'import'),
)

# Matched against the stripped line
DECLARATION_START_PATTERNS = [
    re.compile(r'^(?:export\s+)?(?:async\s+)?function\s+'),
    re.compile(r'^(?:export\s+)?(?:default\s+)?class\s+'),
    re.compile(r'^(?:export\s+)?interface\s+'),
    re.compile(r'^(?:public|private|protected)\s+(?:async\s+)?(?:function|class)'),
    re.compile(r'^(?:async\s+)?def\s+'),
    re.compile(r'^func\s+'),
    re.compile(r'^(?:pub\s+)?fn\s+'),
]

NAME_PATTERN = re.compile(r'\b(?:function|class|interface|type|def|func|fn)\s+(\w+)')
FUNCTION_WORD = re.compile(r'\b(?:function|def|func|fn)\b')
CLASS_WORD = re.compile(r'\bclass\b')

FUNCTION_PATTERN = re.compile(r'(?:async\s+)?\b(?:function|def|func|fn)\s+(\w+)')
CLASS_PATTERN = re.compile(r'\b(?:class|struct|interface)\s+(\w+)')
QUOTED_FROM_PATTERN = re.compile(r'\bfrom\s+[\'"]([^\'"]+)[\'"]')
IMPORT_PATTERN = re.compile(r'(?:from|import|using)\s+[\'"]?([^\'";\s]+)')
EXPORT_PATTERN = re.compile(r'export\s+(?:default\s+)?(?:async\s+)?(?:(?:const|let|var|function|class|interface|type|enum)\s+)?(\w+)')


class GenericParser(LanguageParser):
    """Line-scanning parser that works for any brace-delimited language.

    Braces are counted without regard to string or comment literals, so a
    brace inside a string can close a boundary early or keep it open.
    """

    language = 'generic'

    def find_statement_boundaries(self, code: str) -> List[StatementBoundary]:
        boundaries: List[StatementBoundary] = []
        current: Optional[StatementBoundary] = None
        depth = 0
        last_line = 0

        for line_number, line in iter_lines(code):
            last_line = line_number
            stripped = line.strip()
            depth += line.count('{') - line.count('}')

            if current is None and self._is_declaration_start(stripped):
                current = StatementBoundary(
                    start=line_number,
                    end=line_number,
                    type=self._infer_kind(stripped),
                    name=self._extract_name(stripped),
                )

            if current is not None and depth == 0 and stripped.endswith('}'):
                current.end = line_number
                boundaries.append(current)
                current = None

        # Unclosed boundary runs to end of input
        if current is not None:
            current.end = last_line
            boundaries.append(current)

        return boundaries

    def extract_structure(self, code: str) -> CodeStructure:
        structure = CodeStructure()
        # (info, depth before the declaration line)
        open_blocks = []
        depth = 0
        last_line = 0

        for line_number, line in iter_lines(code):
            last_line = line_number
            stripped = line.strip()

            func_match = FUNCTION_PATTERN.search(stripped)
            if func_match:
                info = FunctionInfo(
                    name=func_match.group(1),
                    start_line=line_number,
                    end_line=line_number,
                    signature=stripped,
                )
                structure.functions.append(info)
                open_blocks.append((info, depth))

            class_match = CLASS_PATTERN.search(stripped)
            if class_match:
                info = ClassInfo(name=class_match.group(1), start_line=line_number, end_line=line_number)
                structure.classes.append(info)
                open_blocks.append((info, depth))

            if stripped.startswith(('import ', 'from ', 'using ')):
                import_match = QUOTED_FROM_PATTERN.search(stripped) or IMPORT_PATTERN.search(stripped)
                if import_match:
                    structure.imports.append(ImportInfo(source=import_match.group(1), line=line_number))

            if stripped.startswith('export '):
                export_match = EXPORT_PATTERN.search(stripped)
                if export_match:
                    structure.exports.append(ExportInfo(
                        name=export_match.group(1),
                        kind=self._infer_export_kind(stripped),
                        line=line_number,
                    ))

            for char in line:
                if char == '{':
                    depth += 1
                elif char == '}':
                    depth -= 1
                    still_open = []
                    for info, base_depth in open_blocks:
                        if depth == base_depth:
                            info.end_line = line_number
                        else:
                            still_open.append((info, base_depth))
                    open_blocks = still_open

        for info, _ in open_blocks:
            info.end_line = last_line

        return structure

    def get_keywords(self) -> LanguageKeywords:
        return GENERIC_KEYWORDS

    def is_available(self) -> bool:
        return True

    def _is_declaration_start(self, line: str) -> bool:
        return any(pattern.search(line) for pattern in DECLARATION_START_PATTERNS)

    def _extract_name(self, line: str) -> Optional[str]:
        match = NAME_PATTERN.search(line)
        return match.group(1) if match else None

    def _infer_kind(self, line: str) -> BoundaryKind:
        if FUNCTION_WORD.search(line):
            return BoundaryKind.FUNCTION
        if CLASS_WORD.search(line):
            return BoundaryKind.CLASS
        return BoundaryKind.STATEMENT

    def _infer_export_kind(self, line: str) -> str:
        if 'function' in line:
            return 'function'
        if 'class' in line:
            return 'class'
        if re.search(r'\b(?:const|let|var)\b', line):
            return 'const'
        if re.search(r'\b(?:type|interface)\b', line):
            return 'type'
        if 'default' in line:
            return 'default'
        return 'const'
