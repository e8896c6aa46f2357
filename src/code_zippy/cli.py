"""
code_zippy: snapshot a source folder for an LLM.

Overview
--------
Given a folder, this utility fills a staging folder (default `./_output`) with:

- `structure.txt`: the folder tree, drawn with box characters,
- `files/`: a verbatim copy of every file that is not ignored,
- `summaries.json`: line count, character count and a 5-line preview per file,
- `chunks/`: the first two 2000-character chunks of each file,
- `files.json` (opt-in): every path and content in one JSON array,

then packs the staging folder into a single zip archive.

Ignored paths come from `.code-zippy-ignore` in the source folder, or from
`.gitignore` when there is none. Each non-comment line is a plain substring:
any path containing it is skipped, along with everything beneath it.

Usage
-----
Run `python -m code_zippy --help` for full options. Common examples:
    - Full snapshot of a project:
        uv run code-zippy path/to/project

    - Only the tree:
        uv run code-zippy path/to/project --structure-only

    - Custom locations, no chunks, with files.json:
        uv run code-zippy . -o /tmp/snap -a /tmp/project.zip --no-chunks --files-json
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from code_zippy import __version__
from code_zippy.config import DEFAULT_CHUNK_SIZE, DEFAULT_IGNORE_FILE, DEFAULT_OUTPUT_DIR_NAME, MAX_PERSISTED_CHUNKS
from code_zippy.exceptions import CodeZippyError
from code_zippy.logging import logger, setup_logging
from code_zippy.settings import Settings, env_default
from code_zippy.snapshot import build_snapshot

if TYPE_CHECKING:
    from collections.abc import Sequence


def positive_int(value: str) -> int:
    """Argparse type for counts that must be at least 1."""
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def non_negative_int(value: str) -> int:
    """Argparse type for counts that may be 0."""
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be at least 0, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser.

    Returns:
        argparse.ArgumentParser: Configured parser.
    """
    p = argparse.ArgumentParser(
        prog="code-zippy",
        description="Snapshot a folder for LLM consumption (structure, files, summaries, chunks, zip).",
    )
    p.add_argument("source", type=Path, help="Folder to snapshot.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=Path(env_default("OUTPUT_DIR", DEFAULT_OUTPUT_DIR_NAME)),
        help="Staging folder, wiped on every run (default: ./_output).",
    )
    p.add_argument(
        "-a",
        "--archive",
        type=Path,
        default=None,
        help="Final archive path (default: <output-dir>/code-zippy.zip).",
    )
    p.add_argument(
        "--structure-only",
        action="store_true",
        help="Only write structure.txt; no files, no archive.",
    )
    p.add_argument(
        "--no-chunks",
        dest="chunks",
        action="store_false",
        default=True,
        help="Do not write chunk files.",
    )
    p.add_argument(
        "--no-summary",
        dest="summary",
        action="store_false",
        default=True,
        help="Do not write summaries.json.",
    )
    p.add_argument("--files-json", action="store_true", help="Also write files.json.")
    p.add_argument(
        "-i",
        "--ignore-file",
        type=str,
        default=env_default("IGNORE_FILE", DEFAULT_IGNORE_FILE),
        help=f"Ignore file name in the source folder (default: {DEFAULT_IGNORE_FILE}, fallback .gitignore).",
    )
    p.add_argument(
        "--chunk-size",
        type=positive_int,
        default=DEFAULT_CHUNK_SIZE,
        help="Characters per chunk.",
    )
    p.add_argument(
        "--max-chunks",
        type=non_negative_int,
        default=MAX_PERSISTED_CHUNKS,
        help="Chunks written per file.",
    )
    p.add_argument(
        "--filtered-connectors",
        action="store_true",
        help="Draw the closing connector on the last visible entry of each folder.",
    )
    p.add_argument("--log-file", type=str, default=env_default("LOG_FILE"), help="Log file path.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse CLI arguments into settings with absolute paths.

    Args:
        argv (Sequence[str] | None): Optional CLI args.

    Returns:
        Settings: Parsed settings.
    """
    args = build_parser().parse_args(argv)
    settings = Settings(**vars(args))
    return settings.model_copy(
        update={
            "source": settings.source.resolve(),
            "output_dir": settings.output_dir.resolve(),
            "archive": settings.archive.resolve() if settings.archive else None,
        },
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Snapshot a folder and report where the result went.

    Args:
        argv (Sequence[str] | None): Optional CLI arguments.

    Returns:
        int: Process exit code, 1 on any snapshot failure.
    """
    settings = parse_args(argv)
    if settings.log_file:
        setup_logging(settings.log_file, force=True)

    try:
        result = build_snapshot(settings)
    except (CodeZippyError, OSError) as e:
        logger.exception("snapshot_failed", source=str(settings.source), error=str(e))
        print(f"Snapshot failed: {e}", file=sys.stderr)
        return 1

    if result.archive is None:
        print(f"Wrote {result.structure_file}")
    else:
        print(f"Wrote {result.archive} ({result.archive_size} bytes) files={result.files}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
