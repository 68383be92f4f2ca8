"""Repository: the single handle over objects, refs, staging and worktree."""

import logging
from dataclasses import dataclass, field
from typing import Iterator, Literal

from .checkout import Reconciler
from .errors import (
    CurrentBranchProtected,
    EmptyMessage,
    NoSuchBranch,
    NoSuchFile,
    NotFound,
)
from .graph import CommitGraph, DiffResult
from .kv.base import KVStore
from .kv.memory import Memory
from .merge import MergeEngine, MergeResult
from .objects import Commit, ObjectStore, blob_id, root_commit
from .refs import Refs
from .staging import StagingArea

logger = logging.getLogger(__name__)

Change = Literal["modified", "deleted"]


@dataclass(frozen=True)
class Status:
    """Snapshot of branches, staged changes and working-tree drift."""

    current_branch: str
    branches: tuple[str, ...]
    staged: tuple[str, ...]
    removed: tuple[str, ...]
    not_staged: dict[str, Change] = field(default_factory=dict)
    untracked: tuple[str, ...] = ()

    @property
    def clean(self) -> bool:
        return not (self.staged or self.removed or self.not_staged or self.untracked)


class Repository:
    """A version-controlled working directory.

    ``store`` holds every object, ref and the staging area;
    ``worktree`` is the working directory, one key per file. A store
    without HEAD is initialized with the shared root commit and a
    ``main`` branch.
    """

    def __init__(
        self,
        store: KVStore | None = None,
        worktree: KVStore | None = None,
    ) -> None:
        if store is None:
            store = Memory()
        if worktree is None:
            worktree = Memory()
        self.store = store
        self.worktree = worktree

        self.objects = ObjectStore(store)
        self.graph = CommitGraph(self.objects)
        self.refs = Refs(store)
        self.staging = StagingArea(store, self.objects, worktree)
        self.reconciler = Reconciler(
            self.objects, self.graph, self.refs, self.staging, worktree
        )

        if not self.refs.initialized:
            root = root_commit()
            store.update(
                {
                    **self.objects.encode_commit(root),
                    **self.refs.initial_updates(root.id),
                }
            )
            logger.info("Initialized repository at root commit %s", root.id[:7])

    def close(self) -> None:
        """Release backend handles (a no-op for in-memory stores)."""
        for backend in (self.store, self.worktree):
            close = getattr(backend, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> "Repository":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- HEAD --

    @property
    def current_branch(self) -> str:
        return self.refs.head_branch

    @property
    def head_commit(self) -> str:
        return self.refs.head_commit

    @property
    def head(self) -> Commit:
        """The checked-out commit record."""
        return self.objects.get_commit(self.refs.head_commit)

    @property
    def initial_commit(self) -> str:
        """The root commit hash."""
        return root_commit().id

    # -- Staging --

    def add(self, filename: str) -> bool:
        """Stage the working copy of ``filename``.

        Returns True if the file is now staged for addition, False if
        it matched HEAD and was unstaged instead.
        """
        content = self.worktree.get(filename)
        if content is None:
            raise NoSuchFile(filename)
        return self.staging.stage(filename, content, self.head)

    def rm(self, filename: str) -> None:
        """Unstage ``filename``, or stage it for removal if tracked."""
        self.staging.unstage_for_removal(filename, self.head)

    def commit(
        self,
        message: str,
        *,
        second_parent: str | None = None,
        allow_empty: bool = False,
    ) -> str:
        """Snapshot HEAD's tree plus the staged changes.

        The commit record, the branch move and the staging clear are
        written as one batch.

        Args:
            message: Commit message (must not be blank).
            second_parent: Other parent for merge commits.
            allow_empty: Commit even when nothing is staged.

        Returns:
            The new commit hash.

        Raises:
            EmptyMessage: If ``message`` is blank.
            NoChanges: If nothing is staged and ``allow_empty`` is False.
        """
        if not message.strip():
            raise EmptyMessage()
        head = self.head
        tree = self.staging.build_tree(head, allow_empty=allow_empty)
        new = Commit.create(
            message, parent=head.id, second_parent=second_parent, tree=tree
        )
        branch = self.refs.head_branch

        sets = {
            **self.objects.encode_commit(new),
            **self.refs.pointer_updates(branch, new.id),
        }
        self.store.update(sets, removals=self.staging.clear_keys())
        logger.info("Committed %s on %s: %s", new.id[:7], branch, message)
        return new.id

    # -- Checkout --

    def checkout_file(self, filename: str, commit_hash: str | None = None) -> None:
        """Restore ``filename`` from a commit (HEAD by default), unstaged."""
        self.reconciler.materialize_file(commit_hash or self.head_commit, filename)

    def checkout_branch(self, name: str) -> None:
        """Switch to branch ``name``, rewriting the working directory."""
        if not self.refs.has_branch(name):
            raise NoSuchBranch(name)
        if name == self.refs.head_branch:
            raise CurrentBranchProtected(
                name, "No need to checkout the current branch."
            )
        self.reconciler.materialize_tree(
            self.head_commit, self.refs.branch_commit(name), branch=name, switch=True
        )

    def reset(self, commit_hash: str) -> None:
        """Check out an arbitrary commit and move the current branch to it.

        ``commit_hash`` may be abbreviated.
        """
        target = self.graph.resolve(commit_hash)
        self.reconciler.materialize_tree(
            self.head_commit, target, branch=self.refs.head_branch
        )

    # -- Branches --

    def branch(self, name: str) -> None:
        """Create a branch at HEAD without switching to it."""
        self.refs.create_branch(name, self.head_commit)
        logger.info("Created branch %s at %s", name, self.head_commit[:7])

    def rm_branch(self, name: str) -> None:
        """Delete a branch pointer (its commits are kept)."""
        self.refs.delete_branch(name)
        logger.info("Deleted branch %s", name)

    def branches(self) -> list[str]:
        return self.refs.branches()

    def merge(self, branch: str) -> MergeResult:
        """Merge ``branch`` into the current branch."""
        return MergeEngine(self).merge(branch)

    # -- History --

    def log(self) -> Iterator[Commit]:
        """First-parent history from HEAD, newest first."""
        for cid in self.graph.history(self.head_commit):
            yield self.objects.get_commit(cid)

    def global_log(self) -> list[Commit]:
        """Every commit ever made, in id order."""
        return [self.objects.get_commit(c) for c in sorted(self.objects.commit_ids())]

    def find(self, message: str) -> list[str]:
        """Ids of all commits with exactly this message."""
        found = [c.id for c in self.global_log() if c.message == message]
        if not found:
            raise NotFound("Found no commit with that message.")
        return found

    def diff(self, commit_a: str, commit_b: str) -> DiffResult:
        """File-level changes from ``commit_a`` to ``commit_b``."""
        return self.graph.diff(
            self.graph.resolve(commit_a), self.graph.resolve(commit_b)
        )

    def status(self) -> Status:
        """Branches, staged changes, unstaged edits and untracked files."""
        head_files = self.head.files
        additions = self.staging.additions()
        removals = self.staging.removals()
        working = {name: content for name, content in self.worktree.items()}

        not_staged: dict[str, Change] = {}
        for name, bid in head_files.items():
            if name in additions or name in removals:
                continue
            if name not in working:
                not_staged[name] = "deleted"
            elif blob_id(name, working[name]) != bid:
                not_staged[name] = "modified"
        for name, content in additions.items():
            if name not in working:
                not_staged[name] = "deleted"
            elif working[name] != content:
                not_staged[name] = "modified"

        untracked = tuple(
            sorted(
                name
                for name in working
                if name not in additions
                and (name not in head_files or name in removals)
            )
        )
        return Status(
            current_branch=self.refs.head_branch,
            branches=tuple(self.refs.branches()),
            staged=tuple(additions),
            removed=tuple(removals),
            not_staged=dict(sorted(not_staged.items())),
            untracked=untracked,
        )
