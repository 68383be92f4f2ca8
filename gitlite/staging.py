"""Staging area: pending additions and removals for the next commit."""

import logging

from .errors import NoChanges, NothingToRemove
from .kv.base import KVStore
from .objects import Commit, ObjectStore, blob_id

STAGE_ADD_KEY = "__stage_add__%s"
STAGE_REMOVE_KEY = "__stage_remove__%s"

logger = logging.getLogger(__name__)


class StagingArea:
    """Persisted overlay between the last commit and the next one.

    Two sets keyed by file name: staged additions (content about to
    become tracked) and staged removals (a tombstone holding the last
    working content). A name is never in both at once.
    """

    def __init__(
        self, store: KVStore, objects: ObjectStore, worktree: KVStore
    ) -> None:
        self.store = store
        self.objects = objects
        self.worktree = worktree

    # -- Read operations --

    def additions(self) -> dict[str, bytes]:
        """File name -> staged content."""
        names = self.store.keys_with_prefix(STAGE_ADD_KEY % "")
        return {
            name: value
            for name in sorted(names)
            if (value := self.store.get(STAGE_ADD_KEY % name)) is not None
        }

    def removals(self) -> dict[str, bytes]:
        """File name -> tombstone content."""
        names = self.store.keys_with_prefix(STAGE_REMOVE_KEY % "")
        return {
            name: value
            for name in sorted(names)
            if (value := self.store.get(STAGE_REMOVE_KEY % name)) is not None
        }

    def is_staged(self, filename: str) -> bool:
        return STAGE_ADD_KEY % filename in self.store

    @property
    def has_changes(self) -> bool:
        """Whether there are staged changes."""
        return bool(
            self.store.keys_with_prefix(STAGE_ADD_KEY % "")
            or self.store.keys_with_prefix(STAGE_REMOVE_KEY % "")
        )

    # -- Write operations --

    def stage(self, filename: str, content: bytes, head: Commit) -> bool:
        """Stage ``content`` for ``filename``.

        Content identical to HEAD's tracked version unstages the file
        instead: any pending addition is dropped, and a pending removal
        is undone by restoring its tombstone to the working directory.

        Returns True if the file is now staged for addition.
        """
        add_key = STAGE_ADD_KEY % filename
        remove_key = STAGE_REMOVE_KEY % filename

        if head.blob_for(filename) == blob_id(filename, content):
            tombstone = self.store.get(remove_key)
            if tombstone is not None:
                self.worktree.set(filename, tombstone)
            self.store.remove_many(add_key, remove_key)
            logger.debug("Unstaged %s (matches HEAD)", filename)
            return False

        # Write-through: the blob exists as soon as the file is staged.
        self.objects.put_blob(filename, content)
        self.store.update({add_key: content}, removals=[remove_key])
        logger.debug("Staged %s for addition", filename)
        return True

    def unstage_for_removal(self, filename: str, head: Commit) -> None:
        """Drop a staged addition, or stage a tracked file for removal.

        A tracked file is deleted from the working directory and its
        current content kept as the tombstone (empty if already gone).

        Raises:
            NothingToRemove: If the file is neither staged nor tracked.
        """
        add_key = STAGE_ADD_KEY % filename
        if add_key in self.store:
            self.store.remove(add_key)
            logger.debug("Dropped staged addition of %s", filename)
            return
        if not head.tracks(filename):
            raise NothingToRemove(filename)

        tombstone = self.worktree.get(filename) or b""
        self.store.set(STAGE_REMOVE_KEY % filename, tombstone)
        self.worktree.remove(filename)
        logger.debug("Staged %s for removal", filename)

    def build_tree(self, head: Commit, *, allow_empty: bool = False) -> dict[str, str]:
        """Apply the staged changes on top of HEAD's tree.

        Every addition replaces any existing entry for the same name;
        removals are applied last. Blobs are persisted as they are
        added. The staging sets are left untouched: clearing them is
        part of commit creation.

        Raises:
            NoChanges: If nothing is staged and ``allow_empty`` is False.
        """
        additions = self.additions()
        removals = self.removals()
        if not additions and not removals and not allow_empty:
            raise NoChanges()

        tree = dict(head.tree)
        for filename, content in additions.items():
            for bid in [b for b, name in tree.items() if name == filename]:
                del tree[bid]
            tree[self.objects.put_blob(filename, content)] = filename

        for filename in removals:
            for bid in [b for b, name in tree.items() if name == filename]:
                del tree[bid]
        return tree

    def clear_keys(self) -> list[str]:
        """KV keys holding staged state."""
        keys: list[str] = []
        for template in (STAGE_ADD_KEY, STAGE_REMOVE_KEY):
            keys.extend(
                template % name
                for name in self.store.keys_with_prefix(template % "")
            )
        return keys

    def clear(self) -> None:
        """Discard all staged changes."""
        self.store.remove_many(*self.clear_keys())
