"""Language-agnostic parser interface for boundary detection and code structure."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple


class BoundaryKind(str, Enum):
    """Kind of a detected semantic region or produced chunk."""

    FUNCTION = 'function'
    CLASS = 'class'
    METHOD = 'method'
    BLOCK = 'block'
    STATEMENT = 'statement'
    CODE_BLOCK = 'code-block'
    MARKDOWN_HEADING = 'markdown-heading'
    LINE_BASED = 'line-based'
    # Language-specific extension (interface, type alias, const, ...).
    # The concrete label travels in chunk metadata.
    OTHER = 'other'


@dataclass
class StatementBoundary:
    """A detected region of source, 1-indexed and inclusive."""

    start: int
    end: int
    type: BoundaryKind
    name: Optional[str] = None

    @property
    def size(self) -> int:
        return self.end - self.start + 1


@dataclass
class FunctionInfo:
    name: str
    start_line: int
    end_line: int
    signature: Optional[str] = None


@dataclass
class ClassInfo:
    name: str
    start_line: int
    end_line: int


@dataclass
class ImportInfo:
    source: str
    line: int
    imported: List[str] = field(default_factory=list)


@dataclass
class ExportInfo:
    name: str
    kind: str  # function, class, const, type, default
    line: int


@dataclass
class CodeStructure:
    """Structural summary of a file, consumed by downstream summarization."""

    functions: List[FunctionInfo] = field(default_factory=list)
    classes: List[ClassInfo] = field(default_factory=list)
    imports: List[ImportInfo] = field(default_factory=list)
    exports: List[ExportInfo] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.functions or self.classes or self.imports or self.exports)

    def to_dict(self) -> Dict:
        """Convert to plain dictionaries for serialization."""
        return {
            'functions': [vars(f).copy() for f in self.functions],
            'classes': [vars(c).copy() for c in self.classes],
            'imports': [vars(i).copy() for i in self.imports],
            'exports': [vars(e).copy() for e in self.exports],
        }


@dataclass(frozen=True)
class LanguageKeywords:
    declarations: tuple
    control: tuple
    modifiers: tuple


class LanguageParser(ABC):
    """Base interface for language parsers.

    Implementations must never raise from any of these methods: garbage or
    unparseable input yields an empty result instead.
    """

    language: str = 'generic'

    @abstractmethod
    def find_statement_boundaries(self, code: str) -> List[StatementBoundary]:
        """Find semantic boundaries in code.

        Args:
            code: Source text

        Returns:
            Boundaries in no particular order; callers sort them.
        """
        pass

    @abstractmethod
    def extract_structure(self, code: str) -> CodeStructure:
        """Extract functions, classes, imports and exports."""
        pass

    @abstractmethod
    def get_keywords(self) -> LanguageKeywords:
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the parser can be used (e.g. its grammar is loaded)."""
        pass


def iter_lines(text: str) -> Iterator[Tuple[int, str]]:
    """Yield ``(line_number, line)`` pairs without splitting the whole text.

    Line numbers are 1-indexed; lines exclude the trailing newline. A
    trailing newline terminates the last line rather than starting a new one.
    """
    start = 0
    line_number = 1
    length = len(text)
    while start < length:
        end = text.find('\n', start)
        if end == -1:
            yield line_number, text[start:]
            return
        yield line_number, text[start:end]
        start = end + 1
        line_number += 1
