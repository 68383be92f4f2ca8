"""Repository factory function."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Literal

from .kv.directory import REPO_DIR_NAME
from .kv.disk import ONE_GB

if TYPE_CHECKING:
    from .repository import Repository


def repo(
    storage: Literal["memory", "disk"] = "memory",
    path: str | os.PathLike[str] | None = None,
    *,
    size_limit: int = ONE_GB,
) -> Repository:
    """Open (or initialize) a repository with sensible defaults.

    Args:
        storage: ``"memory"`` (default) keeps objects and the working
            tree in process memory; ``"disk"`` uses the directory at
            ``path`` as the working tree and stores objects in a
            diskcache database under ``<path>/.gitlite``.
        path: Required when ``storage="disk"``. The working directory.
        size_limit: Size limit for the disk backend, in bytes.

    Returns:
        A ``Repository``. A fresh store is initialized with the root
        commit on branch ``main``; an existing one is reopened as-is.
    """
    from .repository import Repository

    if storage == "memory":
        if path is not None:
            raise ValueError("path is only valid for storage='disk'")
        return Repository()

    if storage == "disk":
        if path is None:
            raise ValueError("path is required when storage='disk'")
        from .kv.directory import Directory
        from .kv.disk import Disk

        worktree = Directory(path)
        backend = Disk(os.path.join(os.fspath(path), REPO_DIR_NAME), size_limit)
        return Repository(backend, worktree)

    raise ValueError(f"Unknown storage: {storage!r}")
