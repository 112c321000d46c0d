"""Post-retrieval filter that drops tests, generated, deprecated and low-quality code."""

import logging
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from chunking.base import Chunk

logger = logging.getLogger(__name__)


TEST_PATH_PATTERNS = [
    re.compile(r'\.test\.(ts|js|tsx|jsx|py|go|rs|java|cs)$'),
    re.compile(r'\.spec\.(ts|js|tsx|jsx|py|go|rs|java|cs)$'),
    re.compile(r'_test\.(ts|js|tsx|jsx|py|go|rs|java|cs)$'),
    re.compile(r'/tests?/'),
    re.compile(r'/__tests__/'),
    re.compile(r'/spec/'),
    re.compile(r'/test_'),
]

# Each pattern counts once however often it matches
TEST_CONTENT_PATTERNS = [
    re.compile(r'\b(describe|it|test|expect|assert|should)\s*\('),
    re.compile(r'\b(beforeEach|afterEach|beforeAll|afterAll)\s*\('),
    re.compile(r'\bMock\b'),
    re.compile(r'\bStub\b'),
    re.compile(r'jest\.fn\('),
    re.compile(r'sinon\.'),
    re.compile(r'\bfixture\b', re.IGNORECASE),
    re.compile(r'\bself\.assert\w*\('),
    re.compile(r'\bpytest\.'),
    re.compile(r'\bmock\.patch\b'),
    re.compile(r'\b(setUp|tearDown)\s*\('),
]
MIN_TEST_CONTENT_MATCHES = 3

GENERATED_PATH_PATTERNS = [
    re.compile(r'\.generated\.'),
    re.compile(r'\.g\.(ts|js|go|rs|cs)$'),
    re.compile(r'-gen\.(ts|js|go|rs|cs)$'),
    re.compile(r'/generated/'),
    re.compile(r'/dist/'),
    re.compile(r'/build/'),
    re.compile(r'/out/'),
    re.compile(r'node_modules/'),
    re.compile(r'\.min\.(js|css)$'),
]

GENERATED_CONTENT_PATTERNS = [
    re.compile(r'@generated', re.IGNORECASE),
    re.compile(r'DO NOT EDIT', re.IGNORECASE),
    re.compile(r'AUTO-GENERATED', re.IGNORECASE),
    re.compile(r'Code generated by', re.IGNORECASE),
    re.compile(r'GENERATED CODE', re.IGNORECASE),
    re.compile(r'This file was automatically generated', re.IGNORECASE),
    re.compile(r'\*\s*AUTO GENERATED', re.IGNORECASE),
]

DEPRECATED_PATTERNS = [
    re.compile(r'@deprecated', re.IGNORECASE),
    re.compile(r'\[deprecated\]', re.IGNORECASE),
    re.compile(r'\bDEPRECATED\b'),
    re.compile(r'//.*deprecated', re.IGNORECASE),
    re.compile(r'/\*.*deprecated.*\*/', re.IGNORECASE),
    re.compile(r'warnings\.warn.*deprecat', re.IGNORECASE),
    re.compile(r'#\[deprecated'),
]

# Quality deductions count how many distinct kinds appear, not occurrences
TODO_PATTERNS = [re.compile(marker, re.IGNORECASE) for marker in ('TODO', 'FIXME', 'HACK', 'XXX')]
DEBUG_PATTERNS = [
    re.compile(r'console\.(?:log|debug|warn|error)'),
    re.compile(r'\bprint\s*\('),
    re.compile(r'\bprintln!\('),
    re.compile(r'\bfmt\.Println'),
    re.compile(r'\bSystem\.out\.println'),
]
COMMENT_PREFIXES = ('//', '/*', '*', '#')

REASONS = ('tests', 'generated', 'deprecated', 'low_quality', 'custom_patterns')


def normalize_path(path: str) -> str:
    """Forward slashes, rooted, so directory patterns match relative paths too."""
    normalized = path.replace('\\', '/')
    if not normalized.startswith('/'):
        normalized = '/' + normalized
    return normalized


def glob_to_regex(pattern: str) -> 're.Pattern':
    """Convert a path glob (``*`` and ``?`` wildcards) into an unanchored regex."""
    escaped = re.escape(pattern)
    return re.compile(escaped.replace(r'\*', '.*').replace(r'\?', '.'))


def calculate_code_quality(text: str) -> float:
    """Deterministic quality score in [0, 1] based only on ``text``."""
    lines = text.split('\n')
    non_empty = [line.strip() for line in lines if line.strip()]
    if not non_empty:
        return 0.0

    score = 1.0

    comment_lines = [line for line in non_empty if line.startswith(COMMENT_PREFIXES)]
    if len(comment_lines) / len(non_empty) > 0.5:
        score -= 0.3

    if sum(1 for p in TODO_PATTERNS if p.search(text)) > 2:
        score -= 0.2

    if sum(1 for p in DEBUG_PATTERNS if p.search(text)) > 2:
        score -= 0.2

    if len(text) < 100:
        score -= 0.3

    code_lines = [
        line for line in non_empty
        if not line.startswith(COMMENT_PREFIXES) and line not in ('{', '}')
    ]
    if len(code_lines) / len(non_empty) < 0.3:
        score -= 0.3

    return max(0.0, round(score, 10))


@dataclass
class NegativeFilterOptions:
    exclude_tests: bool = True
    exclude_generated: bool = True
    exclude_deprecated: bool = True
    exclude_low_quality: bool = False
    custom_exclude_patterns: List[str] = field(default_factory=list)
    min_code_quality: float = 0.5


@dataclass
class SearchCandidate:
    """A retrieved chunk awaiting filtering."""

    path: str
    text: str
    score: float = 0.0
    chunk: Optional[Chunk] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_chunk(cls, path: str, chunk: Chunk, score: float = 0.0) -> 'SearchCandidate':
        return cls(path=path, text=chunk.text, score=score, chunk=chunk, metadata=dict(chunk.metadata))


@dataclass
class FilterBreakdown:
    tests: int = 0
    generated: int = 0
    deprecated: int = 0
    low_quality: int = 0
    custom_patterns: int = 0

    @property
    def total(self) -> int:
        return self.tests + self.generated + self.deprecated + self.low_quality + self.custom_patterns

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class FilterResult:
    matches: List[SearchCandidate]
    filtered_count: int
    filter_breakdown: FilterBreakdown


class NegativeFilter:
    """Removes low-signal candidates using fixed heuristics.

    Gates run in a fixed order (tests, generated, deprecated, low quality,
    custom patterns) and the first matching gate is the only one credited
    for a removed candidate.
    """

    def __init__(self, options: Optional[NegativeFilterOptions] = None):
        self.options = options or NegativeFilterOptions()
        self._custom_patterns = [glob_to_regex(p) for p in self.options.custom_exclude_patterns]

    def filter(self, candidates: List[SearchCandidate]) -> FilterResult:
        """Filter candidates.

        Args:
            candidates: Retrieved candidates, in ranking order

        Returns:
            FilterResult with the kept candidates in their original order
        """
        breakdown = FilterBreakdown()
        kept = []
        for candidate in candidates:
            reason = self.classify(candidate)
            if reason is None:
                kept.append(candidate)
            else:
                setattr(breakdown, reason, getattr(breakdown, reason) + 1)

        filtered_count = len(candidates) - len(kept)
        if filtered_count:
            logger.debug(f"Negative filter removed {filtered_count} candidates: {breakdown.to_dict()}")
        return FilterResult(matches=kept, filtered_count=filtered_count, filter_breakdown=breakdown)

    def classify(self, candidate: SearchCandidate) -> Optional[str]:
        """Name of the first gate that rejects the candidate, or None to keep it."""
        opts = self.options
        if opts.exclude_tests and self.is_test(candidate):
            return 'tests'
        if opts.exclude_generated and self.is_generated(candidate):
            return 'generated'
        if opts.exclude_deprecated and self.is_deprecated(candidate):
            return 'deprecated'
        if opts.exclude_low_quality and calculate_code_quality(candidate.text) < opts.min_code_quality:
            return 'low_quality'
        if self.matches_custom_pattern(candidate):
            return 'custom_patterns'
        return None

    def is_test(self, candidate: SearchCandidate) -> bool:
        path = normalize_path(candidate.path).lower()
        if any(p.search(path) for p in TEST_PATH_PATTERNS):
            return True

        matched = sum(1 for p in TEST_CONTENT_PATTERNS if p.search(candidate.text))
        return matched >= MIN_TEST_CONTENT_MATCHES

    def is_generated(self, candidate: SearchCandidate) -> bool:
        path = normalize_path(candidate.path)
        if any(p.search(path) for p in GENERATED_PATH_PATTERNS):
            return True
        return any(p.search(candidate.text) for p in GENERATED_CONTENT_PATTERNS)

    def is_deprecated(self, candidate: SearchCandidate) -> bool:
        return any(p.search(candidate.text) for p in DEPRECATED_PATTERNS)

    def matches_custom_pattern(self, candidate: SearchCandidate) -> bool:
        if not self._custom_patterns:
            return False
        path = normalize_path(candidate.path)
        return any(p.search(path) for p in self._custom_patterns)
