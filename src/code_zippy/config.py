from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

TOOL_NAME = "code-zippy"

DEFAULT_IGNORE_FILE = ".code-zippy-ignore"
FALLBACK_IGNORE_FILE = ".gitignore"
COMMENT_MARKER = "#"

DEFAULT_OUTPUT_DIR_NAME = "_output"
DEFAULT_CHUNK_SIZE = 2000
MAX_PERSISTED_CHUNKS = 2
PREVIEW_LINES = 5

STRUCTURE_FILE = "structure.txt"
FILES_DIR = "files"
FILES_JSON = "files.json"
SUMMARIES_JSON = "summaries.json"
CHUNKS_DIR = "chunks"
ARCHIVE_NAME = f"{TOOL_NAME}.zip"

# Ordered patterns read from the ignore file; matched as plain substrings.
IgnoreList = tuple[str, ...]


def chunk_file_name(rel: str, index: int) -> str:
    """Name of the `index`-th (1-based) chunk file for a relative path.

    Args:
        rel (str): the file path relative to the snapshot root
        index (int): the 1-based chunk number

    Returns:
        str: the chunk file name, e.g. `src/app.py.chunk1.txt`
    """
    return f"{rel}.chunk{index}.txt"


class FileRecord(BaseModel):
    """A file of the snapshot, loaded in memory.

    Attributes:
        path: Absolute path to the file on disk.
        rel: Path relative to the snapshot root, with POSIX separators.
        content: Raw text content, decoded as UTF-8 with replacement characters.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    path: Path = Field(..., description="Absolute file path")
    rel: str = Field(..., description="File path relative to the snapshot root")
    content: str = Field(..., description="Raw text content")


class FileSummary(BaseModel):
    """Metadata derived from a FileRecord, persisted in `summaries.json`."""

    model_config = ConfigDict(frozen=True)

    file: str = Field(..., description="File path relative to the snapshot root")
    lines: int = Field(..., ge=1, description="Number of newline-separated segments")
    characters: int = Field(..., ge=0, description="Content length in characters")
    preview: str = Field(..., description=f"First {PREVIEW_LINES} lines of the file")


class SnapshotResult(BaseModel):
    """Outcome of a snapshot run."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    staging_dir: Path
    structure_file: Path
    files: int = Field(default=0, ge=0, description="Number of files copied")
    archive: Path | None = Field(default=None, description="Final archive location")
    archive_size: int = Field(default=0, ge=0, description="Archive size in bytes")
