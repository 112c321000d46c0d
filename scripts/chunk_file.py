#!/usr/bin/env python3
"""Command-line tool for chunking files and directories."""

import sys
import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from chunking.base import Chunk, ChunkingOptions
from chunking.multi_language_chunker import MultiLanguageChunker
from filtering.negative_filter import NegativeFilter, NegativeFilterOptions, SearchCandidate


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Split source files into chunks for embedding and search"
    )
    parser.add_argument(
        "paths",
        nargs="+",
        help="Files or directories to chunk"
    )
    parser.add_argument("--max-lines", type=int, help="Maximum lines per chunk (default: per chunker)")
    parser.add_argument("--min-lines", type=int, help="Minimum lines per chunk (default: per chunker)")
    parser.add_argument("--overlap", type=int, help="Lines shared by consecutive line windows")
    parser.add_argument(
        "--filter",
        action="store_true",
        help="Run the negative filter over the produced chunks and print its breakdown"
    )
    parser.add_argument(
        "--low-quality",
        action="store_true",
        help="Also exclude low-quality chunks when filtering"
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="GLOB",
        help="Path glob to exclude when filtering (repeatable)"
    )
    parser.add_argument("--json", action="store_true", help="Print chunks as JSON lines")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    return parser


def display_path(path: str) -> str:
    """Path relative to the working directory when it lies below it."""
    try:
        return str(Path(path).relative_to(Path.cwd()))
    except ValueError:
        return path


def collect_chunks(chunker: MultiLanguageChunker, paths: List[Path], options: ChunkingOptions) -> Dict[str, List[Chunk]]:
    results: Dict[str, List[Chunk]] = {}
    for path in paths:
        if path.is_dir():
            for file_path, chunks in chunker.chunk_directory(str(path), options).items():
                results[display_path(file_path)] = chunks
        else:
            results[display_path(str(path))] = list(chunker.chunk_file(str(path), options))
    return results


def print_chunks(results: Dict[str, List[Chunk]], as_json: bool):
    for file_path, chunks in results.items():
        for chunk in chunks:
            if as_json:
                record = chunk.to_dict()
                record['path'] = file_path
                print(json.dumps(record))
            else:
                name = chunk.name or ''
                print(f"{file_path}:{chunk.start_line}-{chunk.end_line} {chunk.type.value} {name}".rstrip())


def main():
    args = build_parser().parse_args()

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    paths = [Path(p).resolve() for p in args.paths]
    missing = [p for p in paths if not p.exists()]
    if missing:
        for path in missing:
            logger.error(f"Path does not exist: {path}")
        sys.exit(1)

    options = ChunkingOptions(
        max_lines=args.max_lines,
        min_lines=args.min_lines,
        overlap=args.overlap,
    )

    try:
        chunker = MultiLanguageChunker()
        results = collect_chunks(chunker, paths, options)
        print_chunks(results, args.json)

        total = sum(len(chunks) for chunks in results.values())
        logger.info(f"Generated {total} chunks from {len(results)} files")

        if args.filter:
            negative_filter = NegativeFilter(NegativeFilterOptions(
                exclude_low_quality=args.low_quality,
                custom_exclude_patterns=args.exclude,
            ))
            candidates = [
                SearchCandidate.from_chunk(file_path, chunk)
                for file_path, chunks in results.items()
                for chunk in chunks
            ]
            result = negative_filter.filter(candidates)
            logger.info(f"Kept {len(result.matches)} of {len(candidates)} chunks")
            for reason, count in result.filter_breakdown.to_dict().items():
                logger.info(f"  {reason}: {count}")

    except KeyboardInterrupt:
        logger.info("\nChunking interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Chunking failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
