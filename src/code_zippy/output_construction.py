from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from code_zippy.config import DEFAULT_CHUNK_SIZE, PREVIEW_LINES, FileRecord, FileSummary

if TYPE_CHECKING:
    from collections.abc import Sequence


def summarize_file(rec: FileRecord) -> FileSummary:
    """Derive line count, character count and a preview from a file record.

    Lines are the segments between `\\n` characters, so an empty file counts
    one line and a trailing newline adds an empty last line.

    Args:
        rec (FileRecord): the loaded file

    Returns:
        FileSummary: the file metadata
    """
    lines = rec.content.split("\n")
    return FileSummary(
        file=rec.rel,
        lines=len(lines),
        characters=len(rec.content),
        preview="\n".join(lines[:PREVIEW_LINES]),
    )


def chunk_content(content: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """Split text into consecutive pieces of at most `chunk_size` characters.

    Joining the pieces gives back `content`; only the last one may be shorter.

    Args:
        content (str): the text to chunk
        chunk_size (int): the maximum number of characters in each chunk

    Raises:
        ValueError: if `chunk_size` is lower than 1

    Returns:
        list[str]: the chunks, empty for empty content
    """
    if chunk_size < 1:
        msg = f"chunk_size must be at least 1, got {chunk_size}"
        raise ValueError(msg)
    return [content[i : i + chunk_size] for i in range(0, len(content), chunk_size)]


def build_files_payload(recs: Sequence[FileRecord]) -> list[dict[str, str]]:
    """Entries of `files.json`: relative path and content of each file."""
    return [{"relativePath": rec.rel, "content": rec.content} for rec in recs]


def build_summaries_payload(recs: Sequence[FileRecord]) -> list[dict[str, Any]]:
    """Entries of `summaries.json`, one FileSummary per file."""
    return [summarize_file(rec).model_dump() for rec in recs]


def to_json(payload: Any) -> str:  # noqa: ANN401
    """Serialize a payload the way snapshot JSON files are written.

    Args:
        payload (Any): a JSON-serializable value

    Returns:
        str: two-space indented JSON, non-ASCII kept as is, newline terminated
    """
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
