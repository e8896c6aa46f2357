"""Write a snapshot of a source folder into a staging folder and zip it.

The staging folder is owned by a single run: it is wiped at the start, filled
step by step, then packed. Nothing is rolled back when a step fails; the next
run starts from scratch anyway.

Staging layout::

    structure.txt
    files/<rel>
    files.json                 (optional)
    summaries.json             (optional)
    chunks/<rel>.chunk{N}.txt  (optional, at most `max_chunks` per file)
    code-zippy.zip             (unless an archive path is given)
"""

from __future__ import annotations

import shutil
import zipfile
from typing import TYPE_CHECKING

from code_zippy.config import (
    ARCHIVE_NAME,
    CHUNKS_DIR,
    DEFAULT_CHUNK_SIZE,
    FILES_DIR,
    FILES_JSON,
    MAX_PERSISTED_CHUNKS,
    STRUCTURE_FILE,
    SUMMARIES_JSON,
    FileRecord,
    SnapshotResult,
    chunk_file_name,
)
from code_zippy.exceptions import ArchiveError, SourceFolderNotFoundError, StagingOverlapsSourceError
from code_zippy.file_manipulation import load_files, read_ignore_list, render_structure, walk_files, write_text
from code_zippy.logging import logger
from code_zippy.output_construction import build_files_payload, build_summaries_payload, chunk_content, to_json

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from code_zippy.settings import Settings


def prepare_staging(output_dir: Path) -> Path:
    """Remove the staging folder if present and create it empty.

    Args:
        output_dir (Path): the staging folder

    Returns:
        Path: the (now empty) staging folder
    """
    if output_dir.exists():
        shutil.rmtree(output_dir)
    output_dir.mkdir(parents=True)
    logger.info("staging_prepared", output_dir=str(output_dir))
    return output_dir


def write_structure(
    source: Path,
    output_dir: Path,
    ignore_list: Sequence[str],
    *,
    filtered_connectors: bool = False,
) -> Path:
    """Render the tree of `source` into `structure.txt`.

    Returns:
        Path: the written structure file
    """
    target = output_dir / STRUCTURE_FILE
    write_text(target, render_structure(source, ignore_list, filtered_connectors=filtered_connectors))
    logger.info("structure_written", path=str(target))
    return target


def write_file_copies(recs: Sequence[FileRecord], output_dir: Path) -> int:
    """Copy each loaded file under `files/`, keeping its relative path.

    Returns:
        int: the number of files written
    """
    files_dir = output_dir / FILES_DIR
    for rec in recs:
        write_text(files_dir / rec.rel, rec.content)
    logger.info("files_copied", files=len(recs), path=str(files_dir))
    return len(recs)


def write_files_json(recs: Sequence[FileRecord], output_dir: Path) -> Path:
    """Write every relative path and content into `files.json`."""
    target = output_dir / FILES_JSON
    write_text(target, to_json(build_files_payload(recs)))
    logger.info("files_json_written", path=str(target))
    return target


def write_summaries(recs: Sequence[FileRecord], output_dir: Path) -> Path:
    """Write one summary per file into `summaries.json`."""
    target = output_dir / SUMMARIES_JSON
    write_text(target, to_json(build_summaries_payload(recs)))
    logger.info("summaries_written", path=str(target), files=len(recs))
    return target


def write_chunks(
    recs: Sequence[FileRecord],
    output_dir: Path,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_chunks: int = MAX_PERSISTED_CHUNKS,
) -> list[Path]:
    """Write the first chunks of each file under `chunks/`.

    Only `max_chunks` chunks are kept per file; the rest of a large file is
    left out of the chunk output on purpose. Empty files give no chunk.

    Args:
        recs (Sequence[FileRecord]): the loaded files
        output_dir (Path): the staging folder
        chunk_size (int): the maximum number of characters per chunk
        max_chunks (int): the number of chunks persisted per file

    Returns:
        list[Path]: the written chunk files
    """
    chunks_dir = output_dir / CHUNKS_DIR
    written: list[Path] = []
    for rec in recs:
        for idx, chunk in enumerate(chunk_content(rec.content, chunk_size)[:max_chunks], start=1):
            target = chunks_dir / chunk_file_name(rec.rel, idx)
            write_text(target, chunk)
            written.append(target)
    logger.info("chunks_written", chunks=len(written), path=str(chunks_dir))
    return written


def create_archive(folder: Path, archive_path: Path) -> int:
    """Zip the content of `folder` (without the folder itself) into `archive_path`.

    Args:
        folder (Path): the folder to pack
        archive_path (Path): the zip file to create

    Raises:
        ArchiveError: if the archive cannot be written

    Returns:
        int: the archive size in bytes
    """
    try:
        archive_path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as z:
            for p in sorted(folder.rglob("*")):
                z.write(p, p.relative_to(folder).as_posix())
    except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        raise ArchiveError(archive=archive_path, message=f"Cannot create {archive_path}: {e}") from e
    size = archive_path.stat().st_size
    logger.info("archive_created", path=str(archive_path), size=size)
    return size


def relocate_archive(archive_path: Path, destination: Path) -> Path:
    """Move a freshly built archive to its final location.

    Raises:
        ArchiveError: if the archive cannot be moved

    Returns:
        Path: the final archive path
    """
    if archive_path == destination:
        return destination
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(archive_path, destination)
    except OSError as e:
        raise ArchiveError(archive=destination, message=f"Cannot move {archive_path} to {destination}: {e}") from e
    return destination


def pending_archive_path(output_dir: Path) -> Path:
    """Where the archive is built: next to the staging folder, never inside it."""
    return output_dir.with_name(f"{output_dir.name}.zip")


def build_snapshot(settings: Settings) -> SnapshotResult:
    """Run the whole snapshot pipeline described by `settings`.

    Paths are taken as given; callers are expected to pass absolute ones.

    Args:
        settings (Settings): the run configuration

    Raises:
        SourceFolderNotFoundError: if the source is not a directory
        StagingOverlapsSourceError: if wiping the staging folder would delete the source

    Returns:
        SnapshotResult: where things were written
    """
    source = settings.source
    output_dir = settings.output_dir
    if not source.is_dir():
        raise SourceFolderNotFoundError(folder=source)
    if output_dir == source or source.is_relative_to(output_dir):
        raise StagingOverlapsSourceError(folder=output_dir, source=source)

    prepare_staging(output_dir)
    ignore_list = read_ignore_list(source, settings.ignore_file)
    logger.info("ignore_list_loaded", source=str(source), patterns=len(ignore_list))

    structure_file = write_structure(
        source,
        output_dir,
        ignore_list,
        filtered_connectors=settings.filtered_connectors,
    )
    if settings.structure_only:
        return SnapshotResult(staging_dir=output_dir, structure_file=structure_file)

    recs = load_files(walk_files(source, ignore_list), source)
    copied = write_file_copies(recs, output_dir)
    if settings.files_json:
        write_files_json(recs, output_dir)
    if settings.summary:
        write_summaries(recs, output_dir)
    if settings.chunks:
        write_chunks(recs, output_dir, chunk_size=settings.chunk_size, max_chunks=settings.max_chunks)

    pending = pending_archive_path(output_dir)
    size = create_archive(output_dir, pending)
    archive = relocate_archive(pending, settings.archive or output_dir / ARCHIVE_NAME)
    return SnapshotResult(
        staging_dir=output_dir,
        structure_file=structure_file,
        files=copied,
        archive=archive,
        archive_size=size,
    )
