from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    TreeFactory = Callable[[Path, dict[str, str]], Path]


def _make_tree(root: Path, files: dict[str, str]) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8", newline="")
    return root


@pytest.fixture
def make_tree() -> TreeFactory:
    """Factory creating files (relative path -> content) under a root.

    Returns:
        TreeFactory: The factory.
    """
    return _make_tree


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Project with a small file, a folder to prune and an ignore file hiding both.

    Returns:
        Path: Project root.
    """
    return _make_tree(
        tmp_path / "project",
        {
            "a.txt": "hello",
            "sub/b.txt": "x" * 4500,
            ".code-zippy-ignore": "# folders\nsub\n\n.code-zippy-ignore\n",
        },
    )
