"""Three-way merge of branches."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from .errors import (
    DirtyStagingArea,
    NoSuchBranch,
    SelfMerge,
    UntrackedObstruction,
)

if TYPE_CHECKING:
    from .repository import Repository

logger = logging.getLogger(__name__)

Action = Literal["keep", "take", "remove", "conflict"]
"""Per-file merge decision.

- ``keep``: leave HEAD's version (or absence) as it is.
- ``take``: write the other branch's version and stage it.
- ``remove``: stage the file for removal and delete it.
- ``conflict``: write conflict markers, leave the file unstaged.
"""

CONFLICT_START = b"<<<<<<< HEAD\n"
CONFLICT_SEPARATOR = b"=======\n"
CONFLICT_END = b">>>>>>>\n"


def classify(base: str | None, head: str | None, other: str | None) -> Action:
    """Decide what happens to one file given its blob id in the merge
    base, HEAD and the other branch (None where untracked).

    Rules are checked in order; anything not matched is a conflict.
    """
    # Modified in other only.
    if base is not None and head is not None and other is not None:
        if base == head and head != other:
            return "take"
        if base == other and head != base:
            return "keep"
    # Same result on both sides, including both deleted.
    if head == other:
        return "keep"
    # Added in HEAD only.
    if base is None and head is not None and other is None:
        return "keep"
    # Added in other only.
    if base is None and head is None and other is not None:
        return "take"
    # Deleted in other, untouched in HEAD.
    if base is not None and base == head and other is None:
        return "remove"
    # Deleted in HEAD, untouched in other.
    if base is not None and head is None and base == other:
        return "keep"
    return "conflict"


def conflict_content(head: bytes | None, other: bytes | None) -> bytes:
    """Wrap both versions in conflict markers (absent side is empty)."""
    return (
        CONFLICT_START
        + (head or b"")
        + CONFLICT_SEPARATOR
        + (other or b"")
        + CONFLICT_END
    )


@dataclass(frozen=True)
class MergeResult:
    """Result of a merge operation."""

    merged: bool
    commit: str | None
    strategy: str  # "no_op", "fast_forward", "three_way"
    base: str | None = None
    taken: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    conflicts: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return self.merged

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


class MergeEngine:
    """Merges another branch into the checked-out one.

    Works through the repository's object store, graph, staging area
    and reconciler, and creates the merge commit through the regular
    commit path.
    """

    def __init__(self, repo: Repository) -> None:
        self.repo = repo

    def check(self, other_branch: str) -> None:
        """Raise if the merge cannot start. Changes nothing."""
        repo = self.repo
        if repo.staging.has_changes:
            raise DirtyStagingArea()
        if not repo.refs.has_branch(other_branch):
            raise NoSuchBranch(other_branch)
        if other_branch == repo.refs.head_branch:
            raise SelfMerge(other_branch)
        tracked = repo.head.files
        untracked = [n for n in repo.worktree.keys() if n not in tracked]
        # Non-file entries are invisible to keys() but block writes.
        other = repo.objects.get_commit(repo.refs.branch_commit(other_branch))
        untracked += [
            n
            for n in sorted(tracked.keys() | other.files.keys())
            if n not in repo.worktree and repo.worktree.occupied(n)
        ]
        if untracked:
            raise UntrackedObstruction(untracked)

    def merge(self, other_branch: str) -> MergeResult:
        """Merge ``other_branch`` into the current branch.

        Returns:
            A MergeResult. ``strategy`` is ``"no_op"`` when the other
            branch is already contained in HEAD, ``"fast_forward"`` when
            HEAD was simply advanced, and ``"three_way"`` when a merge
            commit was created (even with conflicts).

        Raises:
            DirtyStagingArea, NoSuchBranch, SelfMerge, UntrackedObstruction.
        """
        self.check(other_branch)
        repo = self.repo
        current_branch = repo.refs.head_branch
        head_hash = repo.refs.head_commit
        other_hash = repo.refs.branch_commit(other_branch)

        # Case 1: other is already part of our history
        if repo.graph.is_ancestor(other_hash, head_hash):
            logger.info("Given branch is an ancestor of the current branch.")
            return MergeResult(merged=True, commit=head_hash, strategy="no_op")

        # Case 2: fast-forward
        if repo.graph.is_ancestor(head_hash, other_hash):
            repo.reconciler.materialize_tree(
                head_hash, other_hash, branch=current_branch
            )
            logger.info("Current branch fast-forwarded to %s", other_hash[:7])
            return MergeResult(
                merged=True, commit=other_hash, strategy="fast_forward"
            )

        # Case 3: three-way merge against the merge base
        return self._three_way_merge(
            current_branch, head_hash, other_branch, other_hash
        )

    def _three_way_merge(
        self,
        current_branch: str,
        head_hash: str,
        other_branch: str,
        other_hash: str,
    ) -> MergeResult:
        repo = self.repo
        base_hash = repo.graph.merge_base(head_hash, other_hash)
        logger.debug(
            "Merge base of %s and %s is %s",
            head_hash[:7],
            other_hash[:7],
            base_hash[:7],
        )

        base_files = repo.objects.get_commit(base_hash).files
        head = repo.objects.get_commit(head_hash)
        head_files = head.files
        other_files = repo.objects.get_commit(other_hash).files

        taken: list[str] = []
        removed: list[str] = []
        conflicts: list[str] = []

        for name in sorted(base_files.keys() | head_files.keys() | other_files.keys()):
            base_id = base_files.get(name)
            head_id = head_files.get(name)
            other_id = other_files.get(name)
            action = classify(base_id, head_id, other_id)
            logger.debug("%s: %s", name, action)

            if action == "take" and other_id is not None:
                content = repo.objects.get_blob(other_id)
                repo.worktree.set(name, content)
                repo.staging.stage(name, content, head)
                taken.append(name)
            elif action == "remove":
                repo.staging.unstage_for_removal(name, head)
                removed.append(name)
            elif action == "conflict":
                head_content = (
                    repo.objects.get_blob(head_id) if head_id is not None else None
                )
                other_content = (
                    repo.objects.get_blob(other_id) if other_id is not None else None
                )
                repo.worktree.set(name, conflict_content(head_content, other_content))
                conflicts.append(name)

        if conflicts:
            logger.warning(
                "Encountered a merge conflict in %s", ", ".join(conflicts)
            )

        merge_hash = repo.commit(
            f"Merged {other_branch} into {current_branch}.",
            second_parent=other_hash,
            allow_empty=True,
        )
        return MergeResult(
            merged=True,
            commit=merge_hash,
            strategy="three_way",
            base=base_hash,
            taken=tuple(taken),
            removed=tuple(removed),
            conflicts=tuple(conflicts),
        )
