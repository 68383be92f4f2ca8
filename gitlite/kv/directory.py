"""Working-directory KV store: one key per plain file."""

import os
import tempfile
import threading
from pathlib import Path
from typing import Iterable, Mapping

from .base import KVStore

REPO_DIR_NAME = ".gitlite"
_TEMP_PREFIX = ".gitlite-tmp-"


class Directory(KVStore):
    """KV store over the plain files of a single directory.

    Keys are file names (no path separators). Subdirectories, the
    ``.gitlite`` metadata directory and in-flight temp files are not
    visible. Writes land in a temp file that is renamed over the
    target, so readers never observe a partially written file.
    """

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, key: str) -> Path:
        if not key or "/" in key or os.sep in key or key in (".", ".."):
            raise ValueError(f"Invalid file name: {key!r}")
        if key == REPO_DIR_NAME or key.startswith(_TEMP_PREFIX):
            raise ValueError(f"Reserved file name: {key!r}")
        return self.root / key

    def _visible(self, entry: os.DirEntry) -> bool:
        if entry.name == REPO_DIR_NAME or entry.name.startswith(_TEMP_PREFIX):
            return False
        return entry.is_file(follow_symlinks=False)

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return path.read_bytes()
        except (FileNotFoundError, IsADirectoryError):
            return None

    def set(self, key: str, value: bytes) -> None:
        if not isinstance(value, bytes):
            raise TypeError(f"Expected bytes, got {type(value).__name__}")
        path = self._path(key)
        fd, tmp = tempfile.mkstemp(prefix=_TEMP_PREFIX, dir=self.root)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(value)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get_many(self, *args: str) -> Mapping[str, bytes]:
        return {k: v for k in args if (v := self.get(k)) is not None}

    def set_many(self, **kwargs: bytes) -> None:
        for key, value in kwargs.items():
            if not isinstance(value, bytes):
                raise TypeError(f"Expected bytes for {key}, got {type(value).__name__}")
        for key, value in kwargs.items():
            self.set(key, value)

    def items(self) -> Iterable[tuple[str, bytes]]:
        for key in self.keys():
            value = self.get(key)
            if value is not None:
                yield key, value

    def keys(self) -> Iterable[str]:
        with os.scandir(self.root) as entries:
            return sorted(entry.name for entry in entries if self._visible(entry))

    def __contains__(self, key: str) -> bool:
        try:
            return self._path(key).is_file()
        except ValueError:
            return False

    def occupied(self, key: str) -> bool:
        """True for any existing entry at ``key``, subdirectories included."""
        try:
            return os.path.lexists(self._path(key))
        except ValueError:
            return False

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def remove_many(self, *keys: str) -> None:
        for key in keys:
            self.remove(key)

    def update(
        self, sets: Mapping[str, bytes], removals: Iterable[str] = ()
    ) -> None:
        # Not transactional: each file is replaced atomically on its own.
        for key, value in sets.items():
            if not isinstance(value, bytes):
                raise TypeError(f"Expected bytes for {key}, got {type(value).__name__}")
            if self.occupied(key) and key not in self:
                raise IsADirectoryError(f"Not a plain file: {key!r}")
        for key in removals:
            if key not in sets:
                self.remove(key)
        for key, value in sets.items():
            self.set(key, value)

    def cas(self, key: str, value: bytes, expected: bytes | None) -> bool:
        if not isinstance(value, bytes):
            raise TypeError(f"Expected bytes, got {type(value).__name__}")
        with self._lock:
            if self.get(key) == expected:
                self.set(key, value)
                return True
            return False

    def clear(self) -> None:
        for key in self.keys():
            self.remove(key)
