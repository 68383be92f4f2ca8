"""Commit DAG queries: ancestry, merge base, history, diff."""

from collections import deque
from dataclasses import dataclass
from typing import Iterable

from .errors import AmbiguousOrNotFound, NotFound
from .objects import ID_LENGTH, ObjectStore


@dataclass(frozen=True)
class DiffResult:
    """File-level differences between two commits."""

    added: frozenset[str]
    removed: frozenset[str]
    modified: frozenset[str]

    def __bool__(self) -> bool:
        return bool(self.added or self.removed or self.modified)


class CommitGraph:
    """Read-only view of the commit DAG stored in an ``ObjectStore``.

    Commits are never held by reference; every edge is an id resolved
    through the store on demand.
    """

    def __init__(self, objects: ObjectStore) -> None:
        self.objects = objects

    def parent_of(self, cid: str) -> str | None:
        return self.objects.get_commit(cid).parent

    def second_parent_of(self, cid: str) -> str | None:
        return self.objects.get_commit(cid).second_parent

    def parents(self, cid: str) -> tuple[str, ...]:
        """First and (for merges) second parent of a commit."""
        return self.objects.get_commit(cid).parents

    def resolve(self, prefix: str) -> str:
        """Expand a commit id prefix to the full id.

        Full-length ids are matched exactly. Shorter prefixes must match
        exactly one stored commit.

        Raises:
            AmbiguousOrNotFound: If zero or several commits match.
        """
        if len(prefix) >= ID_LENGTH:
            if self.objects.has_commit(prefix):
                return prefix
            raise AmbiguousOrNotFound(prefix, [])
        matches = sorted(
            cid for cid in self.objects.commit_ids() if cid.startswith(prefix)
        )
        if len(matches) != 1 or not prefix:
            raise AmbiguousOrNotFound(prefix, matches)
        return matches[0]

    def _distances(self, start: str) -> dict[str, int]:
        """BFS over both parent edges: commit -> edge distance from start."""
        seen: dict[str, int] = {start: 0}
        queue: deque[str] = deque([start])
        while queue:
            current = queue.popleft()
            for p in self.parents(current):
                if p not in seen:
                    seen[p] = seen[current] + 1
                    queue.append(p)
        return seen

    def ancestors(self, cid: str) -> set[str]:
        """Every commit reachable from ``cid``, including itself."""
        return set(self._distances(cid))

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """True if ``ancestor`` is reachable from ``descendant``.

        A commit counts as its own ancestor.
        """
        if ancestor == descendant:
            return True
        seen: set[str] = {descendant}
        queue: deque[str] = deque([descendant])
        while queue:
            current = queue.popleft()
            for p in self.parents(current):
                if p == ancestor:
                    return True
                if p not in seen:
                    seen.add(p)
                    queue.append(p)
        return False

    def merge_base(self, commit_a: str, commit_b: str) -> str:
        """Find a lowest common ancestor of two commits.

        Collects the full ancestor sets of both sides, keeps the common
        ancestors that are not themselves ancestors of another common
        ancestor, and picks the one closest to both tips. Ties on
        distance are broken by id, so the result does not depend on
        argument order.

        Raises:
            NotFound: If the commits share no ancestor.
        """
        if commit_a == commit_b:
            return commit_a
        dist_a = self._distances(commit_a)
        dist_b = self._distances(commit_b)
        common = dist_a.keys() & dist_b.keys()
        if not common:
            raise NotFound(
                f"No common ancestor between {commit_a} and {commit_b}."
            )

        # Anything reachable from a common ancestor's parents is not lowest.
        shadowed: set[str] = set()
        queue: deque[str] = deque()
        for cid in common:
            for p in self.parents(cid):
                if p not in shadowed:
                    shadowed.add(p)
                    queue.append(p)
        while queue:
            current = queue.popleft()
            for p in self.parents(current):
                if p not in shadowed:
                    shadowed.add(p)
                    queue.append(p)

        lowest = common - shadowed
        return min(
            lowest,
            key=lambda c: (dist_a[c] + dist_b[c], max(dist_a[c], dist_b[c]), c),
        )

    def history(
        self,
        commit_hash: str,
        *,
        all_parents: bool = False,
    ) -> Iterable[str]:
        """Yield the commit chain from newest to oldest.

        Args:
            commit_hash: Starting commit.
            all_parents: If True, BFS over all parents (full DAG).
                If False, follow first parent only (linear).
        """
        if not all_parents:
            current: str | None = commit_hash
            while current is not None:
                yield current
                current = self.parent_of(current)
        else:
            visited: set[str] = set()
            queue: deque[str] = deque([commit_hash])
            while queue:
                current = queue.popleft()
                if current in visited:
                    continue
                visited.add(current)
                yield current
                for p in self.parents(current):
                    if p not in visited:
                        queue.append(p)

    def diff(self, commit_a: str, commit_b: str) -> DiffResult:
        """Compute file-level differences between two commits.

        Returns which files were added, removed, or modified going
        from commit_a to commit_b.
        """
        files_a = self.objects.get_commit(commit_a).files
        files_b = self.objects.get_commit(commit_b).files

        names_a = set(files_a)
        names_b = set(files_b)

        common = names_a & names_b
        modified = frozenset(n for n in common if files_a[n] != files_b[n])

        return DiffResult(
            added=frozenset(names_b - names_a),
            removed=frozenset(names_a - names_b),
            modified=modified,
        )
