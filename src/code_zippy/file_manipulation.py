from __future__ import annotations

import os
import stat
from typing import TYPE_CHECKING

from code_zippy.config import COMMENT_MARKER, DEFAULT_IGNORE_FILE, FALLBACK_IGNORE_FILE, FileRecord, IgnoreList
from code_zippy.exceptions import FileProcessingError
from code_zippy.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original path as a string.
    """
    try:
        return str(path.relative_to(root)).replace("\\", "/")
    except ValueError:
        return str(path)


def find_ignore_file(root: Path, ignore_file: str = DEFAULT_IGNORE_FILE) -> Path | None:
    """Locate the ignore file of a snapshot root.

    The configured name wins; `.gitignore` is the fallback.

    Args:
        root (Path): the folder being snapshotted
        ignore_file (str): the primary ignore file name

    Returns:
        Path | None: the ignore file to use, or None if neither exists
    """
    for name in (ignore_file, FALLBACK_IGNORE_FILE):
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def parse_ignore_lines(text: str) -> IgnoreList:
    """Parse ignore file content into patterns.

    Lines are stripped; blank lines and `#` comments are dropped. Anything else
    is kept verbatim, in file order.

    Args:
        text (str): the ignore file content

    Returns:
        IgnoreList: the ordered patterns
    """
    patterns: list[str] = []
    for line in text.split("\n"):
        s = line.strip()
        if not s or s.startswith(COMMENT_MARKER):
            continue
        patterns.append(s)
    return tuple(patterns)


def read_ignore_list(root: Path, ignore_file: str = DEFAULT_IGNORE_FILE) -> IgnoreList:
    """Load the ignore patterns of a snapshot root.

    Args:
        root (Path): the folder being snapshotted
        ignore_file (str): the primary ignore file name, `.gitignore` being the fallback

    Returns:
        IgnoreList: the ordered patterns, empty when no ignore file exists
    """
    path = find_ignore_file(root, ignore_file)
    if path is None:
        return ()
    return parse_ignore_lines(path.read_text(encoding="utf-8"))


def should_ignore(path: Path | str, ignore_list: Sequence[str]) -> bool:
    """Check if any ignore pattern occurs in the path.

    Matching is a plain substring test on the whole path: no globbing, no
    anchoring, so `node_modules` also hides `my_node_modules_backup`.

    Args:
        path (Path | str): the absolute path to test
        ignore_list (Sequence[str]): the ignore patterns

    Returns:
        bool: True if the path must be left out of the snapshot
    """
    text = str(path)
    return any(pattern in text for pattern in ignore_list)


def list_entries(directory: Path) -> list[str]:
    """Names in a directory, in the order the OS returns them."""
    return os.listdir(directory)


def is_directory(path: Path) -> bool:
    """Check if a path is a directory, following symlinks.

    Unlike `Path.is_dir`, errors from `stat` propagate.
    """
    return stat.S_ISDIR(path.stat().st_mode)


def walk_files(root: Path, ignore_list: Sequence[str]) -> list[Path]:
    """Collect the files under `root` that survive the ignore patterns.

    A directory matching a pattern is pruned with everything beneath it.
    Entries keep the native listing order, depth first.

    Args:
        root (Path): the directory to walk
        ignore_list (Sequence[str]): the ignore patterns

    Returns:
        list[Path]: absolute paths of the kept files, in pre-order
    """
    results: list[Path] = []

    def walk(directory: Path) -> None:
        for name in list_entries(directory):
            full_path = directory / name
            if should_ignore(full_path, ignore_list):
                continue
            if is_directory(full_path):
                walk(full_path)
            else:
                results.append(full_path)

    walk(root)
    return results


def render_structure(
    directory: Path,
    ignore_list: Sequence[str],
    prefix: str = "",
    *,
    filtered_connectors: bool = False,
) -> str:
    """Render a directory as an indented tree drawing.

    Each kept entry gives one `prefix + connector + name` line; directories are
    followed by their own rendering. By default the `└── ` connector goes to the
    entry that is last in the raw listing, so when that entry is ignored no
    visible line gets it. `filtered_connectors` picks the last kept entry instead.

    Args:
        directory (Path): the directory to render
        ignore_list (Sequence[str]): the ignore patterns
        prefix (str): the prefix of the current nesting level
        filtered_connectors (bool): compute the last entry on the filtered listing

    Returns:
        str: the tree, one newline-terminated line per entry
    """
    names = list_entries(directory)
    kept = [(idx, name) for idx, name in enumerate(names) if not should_ignore(directory / name, ignore_list)]
    last_idx = kept[-1][0] if filtered_connectors and kept else len(names) - 1

    lines: list[str] = []
    for idx, name in kept:
        full_path = directory / name
        last = idx == last_idx
        branch = "└── " if last else "├── "
        lines.append(f"{prefix}{branch}{name}\n")
        if is_directory(full_path):
            ext = "    " if last else "│   "
            lines.append(
                render_structure(
                    full_path,
                    ignore_list,
                    prefix + ext,
                    filtered_connectors=filtered_connectors,
                ),
            )
    return "".join(lines)


def read_text(path: Path) -> str:
    """Read a whole file as text, keeping line endings untouched.

    Undecodable bytes become U+FFFD, so binary files load as garbled text.

    Args:
        path (Path): the file to read

    Raises:
        FileProcessingError: if the file cannot be read

    Returns:
        str: the file content
    """
    try:
        with path.open(encoding="utf-8", errors="replace", newline="") as f:
            return f.read()
    except OSError as e:
        raise FileProcessingError(path=path, message=f"Cannot read {path}: {e}") from e


def write_text(path: Path, content: str) -> None:
    """Write text to a file, creating parent folders.

    Args:
        path (Path): the file to write
        content (str): the text to write verbatim

    Raises:
        FileProcessingError: if the file cannot be written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as f:
            f.write(content)
    except OSError as e:
        raise FileProcessingError(path=path, message=f"Cannot write {path}: {e}") from e


def load_files(files: Sequence[Path], root: Path) -> list[FileRecord]:
    """Read files into FileRecord objects.

    Args:
        files (Sequence[Path]): absolute paths, as returned by `walk_files`
        root (Path): the snapshot root to relativise paths against

    Returns:
        list[FileRecord]: one record per file, in input order
    """
    recs = [FileRecord(path=f, rel=relpath(f, root), content=read_text(f)) for f in files]
    logger.info("files_loaded", root=str(root), files=len(recs))
    return recs
