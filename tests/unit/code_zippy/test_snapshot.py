from __future__ import annotations

import zipfile
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from code_zippy import snapshot
from code_zippy.config import FileRecord
from code_zippy.exceptions import ArchiveError, SourceFolderNotFoundError, StagingOverlapsSourceError
from code_zippy.settings import Settings
from code_zippy.snapshot import (
    build_snapshot,
    create_archive,
    pending_archive_path,
    prepare_staging,
    relocate_archive,
    write_chunks,
    write_file_copies,
)

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


def _rec(rel: str, content: str) -> FileRecord:
    return FileRecord(path=Path("/repo") / rel, rel=rel, content=content)


@pytest.mark.unit
def test_prepare_staging_wipes_previous_run(tmp_path: Path) -> None:
    out = tmp_path / "_output"
    (out / "files").mkdir(parents=True)
    (out / "files" / "stale.txt").write_text("old", encoding="utf-8")

    prepare_staging(out)

    assert out.is_dir()
    assert not any(out.iterdir())


@pytest.mark.unit
def test_write_file_copies_keeps_relative_layout(tmp_path: Path) -> None:
    count = write_file_copies([_rec("src/pkg/mod.py", "x = 1\n"), _rec("a.txt", "hello")], tmp_path)

    assert count == 2  # noqa: PLR2004
    assert (tmp_path / "files" / "src" / "pkg" / "mod.py").read_text(encoding="utf-8") == "x = 1\n"
    assert (tmp_path / "files" / "a.txt").read_text(encoding="utf-8") == "hello"


@pytest.mark.unit
def test_write_chunks_caps_at_two_chunks(tmp_path: Path) -> None:
    content = "a" * 2000 + "b" * 2000 + "c" * 500

    written = write_chunks([_rec("sub/b.txt", content)], tmp_path)

    chunk_dir = tmp_path / "chunks" / "sub"
    assert written == [chunk_dir / "b.txt.chunk1.txt", chunk_dir / "b.txt.chunk2.txt"]
    assert (chunk_dir / "b.txt.chunk1.txt").read_text(encoding="utf-8") == "a" * 2000
    assert (chunk_dir / "b.txt.chunk2.txt").read_text(encoding="utf-8") == "b" * 2000
    assert not (chunk_dir / "b.txt.chunk3.txt").exists()


@pytest.mark.unit
def test_write_chunks_skips_empty_files_and_honours_limits(tmp_path: Path) -> None:
    written = write_chunks(
        [_rec("empty.txt", ""), _rec("abc.txt", "abcdefg")],
        tmp_path,
        chunk_size=3,
        max_chunks=5,
    )

    assert [p.name for p in written] == ["abc.txt.chunk1.txt", "abc.txt.chunk2.txt", "abc.txt.chunk3.txt"]
    assert (tmp_path / "chunks" / "abc.txt.chunk3.txt").read_text(encoding="utf-8") == "g"


@pytest.mark.unit
def test_create_archive_packs_folder_content(tmp_path: Path) -> None:
    folder = tmp_path / "_output"
    (folder / "files").mkdir(parents=True)
    (folder / "structure.txt").write_text("└── a.txt\n", encoding="utf-8")
    (folder / "files" / "a.txt").write_text("hello", encoding="utf-8")
    archive = pending_archive_path(folder)

    size = create_archive(folder, archive)

    assert archive == tmp_path / "_output.zip"
    assert size == archive.stat().st_size
    with zipfile.ZipFile(archive) as z:
        assert z.read("files/a.txt") == b"hello"
        assert z.read("structure.txt").decode("utf-8") == "└── a.txt\n"
        assert {i.compress_type for i in z.infolist() if not i.is_dir()} == {zipfile.ZIP_DEFLATED}


@pytest.mark.unit
def test_create_archive_wraps_os_errors(tmp_path: Path, mocker: MockerFixture) -> None:
    folder = tmp_path / "_output"
    folder.mkdir()
    mocker.patch.object(snapshot.zipfile, "ZipFile", side_effect=OSError("disk full"))

    with pytest.raises(ArchiveError) as exc_info:
        create_archive(folder, tmp_path / "out.zip")

    assert exc_info.value.archive == tmp_path / "out.zip"
    assert "disk full" in str(exc_info.value)


@pytest.mark.unit
def test_relocate_archive_moves_file(tmp_path: Path) -> None:
    pending = tmp_path / "_output.zip"
    pending.write_bytes(b"PK")
    destination = tmp_path / "_output" / "code-zippy.zip"

    final = relocate_archive(pending, destination)

    assert final == destination
    assert destination.read_bytes() == b"PK"
    assert not pending.exists()


@pytest.mark.unit
def test_build_snapshot_missing_source_leaves_output_untouched(tmp_path: Path) -> None:
    out = tmp_path / "_output"
    out.mkdir()
    (out / "keep.txt").write_text("previous", encoding="utf-8")

    with pytest.raises(SourceFolderNotFoundError) as exc_info:
        build_snapshot(Settings(source=tmp_path / "missing", output_dir=out))

    assert exc_info.value.folder == tmp_path / "missing"
    assert (out / "keep.txt").exists()


@pytest.mark.unit
def test_build_snapshot_archive_failure_keeps_staging(project: Path, tmp_path: Path, mocker: MockerFixture) -> None:
    out = tmp_path / "_output"
    mocker.patch.object(snapshot, "create_archive", side_effect=ArchiveError(archive=tmp_path / "_output.zip"))

    with pytest.raises(ArchiveError):
        build_snapshot(Settings(source=project, output_dir=out))

    assert (out / "structure.txt").exists()
    assert (out / "files" / "a.txt").exists()


@pytest.mark.unit
@pytest.mark.parametrize("nesting", ["same", "parent"])
def test_build_snapshot_refuses_output_dir_holding_the_source(tmp_path: Path, nesting: str) -> None:
    root = tmp_path / "proj"
    root.mkdir()
    (root / "precious.py").write_text("x = 1\n", encoding="utf-8")
    out = root if nesting == "same" else tmp_path

    with pytest.raises(StagingOverlapsSourceError) as exc_info:
        build_snapshot(Settings(source=root, output_dir=out))

    assert exc_info.value.folder == out
    assert exc_info.value.source == root
    assert (root / "precious.py").read_text(encoding="utf-8") == "x = 1\n"


@pytest.mark.unit
def test_build_snapshot_accepts_output_dir_inside_the_source(tmp_path: Path) -> None:
    root = tmp_path / "proj"
    root.mkdir()
    (root / "a.txt").write_text("hello", encoding="utf-8")
    out = root / "_output"

    result = build_snapshot(Settings(source=root, output_dir=out, structure_only=True))

    assert result.structure_file == out / "structure.txt"
    assert (root / "a.txt").exists()
