"""Bounded-memory sliding window over a file's decoded text."""

import logging
from typing import Callable, Iterable, Iterator

from .base import Chunk

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 50 * 1024
DEFAULT_WINDOW_OVERLAP = 5 * 1024

WindowProcessor = Callable[[str], Iterable[Chunk]]


def sliding_window_stream(
    file_path: str,
    process_window: WindowProcessor,
    window_size: int = DEFAULT_WINDOW_SIZE,
    overlap: int = DEFAULT_WINDOW_OVERLAP,
    encoding: str = 'utf-8',
) -> Iterator[Chunk]:
    """Read a file in overlapping windows and yield the chunks found in each.

    ``process_window`` receives the window text and returns chunks whose
    spans are relative to the window (its first line is line 1). They are
    re-based to file line numbers before being yielded. At most
    ``window_size`` characters are held per window.

    Args:
        file_path: File to read
        process_window: Window text -> window-relative chunks
        window_size: Characters per window
        overlap: Characters shared by consecutive windows
        encoding: Text encoding of the file

    Yields:
        Chunks with file-relative line numbers
    """
    if window_size <= 0:
        raise ValueError(f"window_size must be positive, got {window_size}")
    if overlap < 0 or overlap >= window_size:
        raise ValueError(f"overlap must be in [0, window_size), got {overlap}")

    with open(file_path, 'r', encoding=encoding, errors='replace') as f:
        carry = ''
        # Lines that end before the current window starts
        line_offset = 0
        window_index = 0

        while True:
            fresh = f.read(window_size - len(carry))
            if not fresh:
                break

            window = carry + fresh
            for chunk in process_window(window):
                yield chunk.shifted(line_offset)

            logger.debug(f"Processed window {window_index} of {file_path} at line offset {line_offset}")
            window_index += 1

            if len(fresh) < window_size - len(carry):
                break

            advance = len(window) - overlap if overlap else len(window)
            line_offset += window.count('\n', 0, advance)
            carry = window[advance:]
