"""Branch pointers and HEAD."""

from .errors import AlreadyExists, CurrentBranchProtected, NoSuchBranch
from .kv.base import KVStore

BRANCH_KEY = "__branch__%s"
HEAD_KEY = "__head__"
HEAD_COMMIT_KEY = "__head_commit__"
MAIN_COMMIT_KEY = "__main_commit__"

DEFAULT_BRANCH = "main"


def _text(raw: bytes) -> str:
    return raw.decode("utf-8")


class Refs:
    """Branch table, HEAD and the cached HEAD/main commit ids.

    HEAD is always symbolic: it names a branch. The cached commit ids
    mirror ``__branch__<head>`` and ``__branch__main`` and are rewritten
    in the same batch as every branch update.
    """

    def __init__(self, store: KVStore) -> None:
        self.store = store

    @property
    def initialized(self) -> bool:
        return HEAD_KEY in self.store

    # -- HEAD --

    @property
    def head_branch(self) -> str:
        """Name of the checked-out branch."""
        raw = self.store.get(HEAD_KEY)
        if raw is None:
            raise NoSuchBranch("HEAD")
        return _text(raw)

    @property
    def head_commit(self) -> str:
        """Commit id of the checked-out branch."""
        raw = self.store.get(HEAD_COMMIT_KEY)
        if raw is not None:
            return _text(raw)
        return self.branch_commit(self.head_branch)

    @property
    def main_commit(self) -> str | None:
        raw = self.store.get(MAIN_COMMIT_KEY)
        return _text(raw) if raw is not None else None

    # -- Branches --

    def has_branch(self, name: str) -> bool:
        return BRANCH_KEY % name in self.store

    def branch_commit(self, name: str) -> str:
        """Commit id a branch points at. Raises NoSuchBranch."""
        raw = self.store.get(BRANCH_KEY % name)
        if raw is None:
            raise NoSuchBranch(name)
        return _text(raw)

    def branches(self) -> list[str]:
        """List all branch names in the store."""
        return sorted(n for n in self.store.keys_with_prefix(BRANCH_KEY % "") if n)

    def create_branch(self, name: str, commit_hash: str) -> None:
        """Point a new branch at ``commit_hash`` without switching HEAD.

        Raises AlreadyExists if the branch already exists.
        """
        encoded = commit_hash.encode("utf-8")
        if not self.store.cas(BRANCH_KEY % name, encoded, expected=None):
            raise AlreadyExists(name)
        if name == DEFAULT_BRANCH:
            self.store.set(MAIN_COMMIT_KEY, encoded)

    def delete_branch(self, name: str) -> None:
        """Delete a branch pointer (never the commits it points at)."""
        if not self.has_branch(name):
            raise NoSuchBranch(name)
        if name == self.head_branch:
            raise CurrentBranchProtected(name)
        self.store.remove(BRANCH_KEY % name)
        if name == DEFAULT_BRANCH:
            self.store.remove(MAIN_COMMIT_KEY)

    def pointer_updates(
        self, branch: str, commit_hash: str, *, switch: bool = False
    ) -> dict[str, bytes]:
        """KV entries that move ``branch`` to ``commit_hash``.

        With ``switch`` HEAD is also pointed at ``branch``. The cached
        HEAD commit follows whenever ``branch`` is (or becomes) HEAD.
        """
        encoded = commit_hash.encode("utf-8")
        updates = {BRANCH_KEY % branch: encoded}
        if switch:
            updates[HEAD_KEY] = branch.encode("utf-8")
        if switch or branch == self.head_branch:
            updates[HEAD_COMMIT_KEY] = encoded
        if branch == DEFAULT_BRANCH:
            updates[MAIN_COMMIT_KEY] = encoded
        return updates

    def initial_updates(self, commit_hash: str) -> dict[str, bytes]:
        """KV entries for a fresh repository on ``main``."""
        encoded = commit_hash.encode("utf-8")
        return {
            BRANCH_KEY % DEFAULT_BRANCH: encoded,
            HEAD_KEY: DEFAULT_BRANCH.encode("utf-8"),
            HEAD_COMMIT_KEY: encoded,
            MAIN_COMMIT_KEY: encoded,
        }
