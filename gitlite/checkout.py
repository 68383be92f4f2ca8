"""Materializing commits into the working directory."""

import logging

from .errors import FileNotInCommit, UntrackedFileWouldBeOverwritten
from .graph import CommitGraph
from .kv.base import KVStore
from .objects import Commit, ObjectStore
from .refs import Refs
from .staging import StagingArea

logger = logging.getLogger(__name__)


class Reconciler:
    """Writes commit snapshots into the working directory.

    Shared by file checkout, branch checkout, reset and fast-forward
    merges.
    """

    def __init__(
        self,
        objects: ObjectStore,
        graph: CommitGraph,
        refs: Refs,
        staging: StagingArea,
        worktree: KVStore,
    ) -> None:
        self.objects = objects
        self.graph = graph
        self.refs = refs
        self.staging = staging
        self.worktree = worktree

    def materialize_file(self, commit_hash: str, filename: str) -> None:
        """Overwrite the working copy of ``filename`` with its version
        in ``commit_hash``. The file is not staged.

        Raises:
            NoSuchCommit: If the id (or prefix) does not resolve.
            FileNotInCommit: If the commit does not track the file.
        """
        commit = self.objects.get_commit(self.graph.resolve(commit_hash))
        bid = commit.blob_for(filename)
        if bid is None:
            raise FileNotInCommit(filename)
        self.worktree.set(filename, self.objects.get_blob(bid))

    def overwritten_untracked(self, current: Commit, target: Commit) -> list[str]:
        """Names ``target`` would write that are occupied by something
        ``current`` does not track, or by something that is not a file."""
        tracked = current.files
        return sorted(
            name
            for name in target.files
            if self.worktree.occupied(name)
            and (name not in tracked or name not in self.worktree)
        )

    def materialize_tree(
        self,
        from_commit: str,
        to_commit: str,
        *,
        branch: str,
        switch: bool = False,
    ) -> None:
        """Move the working directory from one commit's tree to another's.

        Every file tracked by ``to_commit`` is written, files tracked only
        by ``from_commit`` are deleted, the staging area is cleared and
        ``branch`` is pointed at ``to_commit`` (HEAD too with ``switch``).

        Raises:
            UntrackedFileWouldBeOverwritten: Before any change, if a file
                tracked only by ``to_commit`` already exists untracked.
        """
        current = self.objects.get_commit(from_commit)
        target = self.objects.get_commit(to_commit)

        in_the_way = self.overwritten_untracked(current, target)
        if in_the_way:
            raise UntrackedFileWouldBeOverwritten(in_the_way)

        writes = {
            name: self.objects.get_blob(bid) for name, bid in target.files.items()
        }
        deletes = [name for name in current.files if name not in writes]
        self.worktree.update(writes, removals=deletes)

        self.refs.store.update(
            self.refs.pointer_updates(branch, to_commit, switch=switch),
            removals=self.staging.clear_keys(),
        )
        logger.info(
            "Checked out %s on %s (%d written, %d deleted)",
            to_commit[:7],
            branch,
            len(writes),
            len(deletes),
        )
