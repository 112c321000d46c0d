"""Chunk model, chunking options and the chunker interface."""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional, Tuple

from parsers.base import BoundaryKind


class ChunkingError(Exception):
    """Base error for the chunking package."""


class FileTooLargeError(ChunkingError, ValueError):
    """Raised when input exceeds the in-memory limit of a synchronous entry point."""

    def __init__(self, file_path: str, size: int, limit: int):
        self.file_path = file_path
        self.size = size
        self.limit = limit
        super().__init__(
            f"File too large for in-memory chunking: {file_path} "
            f"({size / 1024:.1f}KB > {limit // 1024}KB). Use chunk_stream() instead."
        )


@dataclass(frozen=True)
class Span:
    """Inclusive 1-indexed line range."""

    start_line: int
    end_line: int

    def __post_init__(self):
        if self.start_line < 1 or self.end_line < self.start_line:
            raise ValueError(f"Invalid span: {self.start_line}-{self.end_line}")

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    def overlaps(self, other: 'Span') -> bool:
        return self.start_line <= other.end_line and other.start_line <= self.end_line


@dataclass
class Chunk:
    """A bounded, line-addressed unit of source text."""

    text: str
    span: Span
    type: BoundaryKind
    name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def start_line(self) -> int:
        return self.span.start_line

    @property
    def end_line(self) -> int:
        return self.span.end_line

    def shifted(self, line_offset: int) -> 'Chunk':
        """Copy of this chunk with its span moved down by ``line_offset`` lines."""
        if not line_offset:
            return self
        return replace(
            self,
            span=Span(self.span.start_line + line_offset, self.span.end_line + line_offset),
            metadata=dict(self.metadata),
        )

    def to_dict(self) -> Dict:
        """Convert to dictionary format for serialization."""
        return {
            'text': self.text,
            'start_line': self.span.start_line,
            'end_line': self.span.end_line,
            'type': self.type.value,
            'name': self.name,
            'metadata': dict(self.metadata),
        }


@dataclass
class ChunkingOptions:
    """Per-call options. ``None`` means "use the chunker's default"."""

    max_lines: Optional[int] = None
    min_lines: Optional[int] = None
    overlap: Optional[int] = None
    preserve_context: Optional[bool] = None
    by_headings: Optional[bool] = None
    include_code_blocks: Optional[bool] = None

    def to_dict(self) -> Dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


def resolve(options: Optional[ChunkingOptions], name: str, default: Any) -> Any:
    """Read an option, falling back to ``default`` when unset."""
    if options is None:
        return default
    value = getattr(options, name)
    return default if value is None else value


def validate_window(max_lines: int, overlap: int) -> None:
    if max_lines <= 0:
        raise ValueError(f"max_lines must be positive, got {max_lines}")
    if overlap < 0 or overlap >= max_lines:
        raise ValueError(f"overlap must be in [0, max_lines), got {overlap} with max_lines={max_lines}")


class Chunker(ABC):
    """Turns one file's text into chunks, in memory or as a lazy stream."""

    id: str = 'base'
    extensions: Tuple[str, ...] = ()
    languages: Tuple[str, ...] = ()

    @abstractmethod
    def chunk(self, code: str, file_path: str, options: Optional[ChunkingOptions] = None) -> List[Chunk]:
        """Chunk source text held in memory.

        Args:
            code: Source text
            file_path: Path used for language detection and error messages
            options: Optional overrides of the chunker defaults

        Returns:
            Chunks ordered by start line
        """
        pass

    @abstractmethod
    def chunk_stream(self, file_path: str, options: Optional[ChunkingOptions] = None) -> Iterator[Chunk]:
        """Lazily chunk a file from disk.

        I/O errors propagate unchanged. The file handle is released when the
        consumer stops iterating.
        """
        pass

    def supports(self, file_path: str) -> bool:
        lowered = file_path.lower()
        return any(lowered.endswith(ext) for ext in self.extensions)
