from __future__ import annotations

import os
from pathlib import Path

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field

from code_zippy.config import DEFAULT_CHUNK_SIZE, DEFAULT_IGNORE_FILE, DEFAULT_OUTPUT_DIR_NAME, MAX_PERSISTED_CHUNKS

ENV_FILE = find_dotenv(usecwd=True)
ENV_PREFIX = "CODE_ZIPPY_"


def env_default(key: str, default: str = "") -> str:
    """Look up a `CODE_ZIPPY_*` default, process environment first, then `.env`.

    An empty value counts as unset.

    Args:
        key (str): the key without its prefix, e.g. `OUTPUT_DIR`
        default (str): value used when the key is set nowhere

    Returns:
        str: the configured value, or `default`
    """
    name = ENV_PREFIX + key
    if os.environ.get(name):
        return os.environ[name]
    values = dotenv_values(ENV_FILE) if ENV_FILE else {}
    return values.get(name) or default


class Settings(BaseModel):
    """Configuration settings for a code_zippy run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    source: Path = Field(..., description="Folder to snapshot.")
    output_dir: Path = Field(
        default_factory=lambda: Path.cwd() / DEFAULT_OUTPUT_DIR_NAME,
        description="Staging folder, cleared on every run.",
    )
    archive: Path | None = Field(
        default=None,
        description="Final archive path (default: <output_dir>/code-zippy.zip).",
    )
    structure_only: bool = Field(default=False, description="Only write structure.txt.")
    chunks: bool = Field(default=True, description="Write chunk files.")
    summary: bool = Field(default=True, description="Write summaries.json.")
    files_json: bool = Field(default=False, description="Write files.json.")
    ignore_file: str = Field(default=DEFAULT_IGNORE_FILE, description="Ignore file name.")
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1, description="Characters per chunk.")
    max_chunks: int = Field(
        default=MAX_PERSISTED_CHUNKS,
        ge=0,
        description="Chunks persisted per file.",
    )
    filtered_connectors: bool = Field(
        default=False,
        description="Draw the last connector against the filtered listing.",
    )
    log_file: str = Field(default="", description="Log file path.")
