"""Tests for CommitGraph ancestry and merge-base queries."""

import pytest

from gitlite import AmbiguousOrNotFound, Commit, CommitGraph, NoSuchCommit, ObjectStore, root_commit
from gitlite.kv.memory import Memory


class Dag:
    """Builds commit DAGs directly in an ObjectStore."""

    def __init__(self) -> None:
        self.objects = ObjectStore(Memory())
        self.graph = CommitGraph(self.objects)
        self.root = root_commit().id
        self.objects.put_commit(root_commit())
        self.ids: dict[str, str] = {"root": self.root}

    def add(self, name: str, parent: str, second: str | None = None) -> str:
        c = Commit.create(
            name,
            parent=self.ids[parent],
            second_parent=self.ids[second] if second else None,
            timestamp="t",
        )
        self.objects.put_commit(c)
        self.ids[name] = c.id
        return c.id

    def __getitem__(self, name: str) -> str:
        return self.ids[name]


@pytest.fixture
def linear():
    dag = Dag()
    dag.add("a", "root")
    dag.add("b", "a")
    dag.add("c", "b")
    return dag


class TestParents:
    def test_root_has_no_parents(self, linear):
        assert linear.graph.parent_of(linear.root) is None
        assert linear.graph.second_parent_of(linear.root) is None
        assert linear.graph.parents(linear.root) == ()

    def test_merge_parents(self):
        dag = Dag()
        dag.add("a", "root")
        dag.add("b", "root")
        dag.add("m", "a", second="b")
        assert dag.graph.parent_of(dag["m"]) == dag["a"]
        assert dag.graph.second_parent_of(dag["m"]) == dag["b"]


class TestIsAncestor:
    def test_self(self, linear):
        assert linear.graph.is_ancestor(linear["b"], linear["b"])

    def test_linear(self, linear):
        assert linear.graph.is_ancestor(linear["a"], linear["c"])
        assert linear.graph.is_ancestor(linear.root, linear["c"])
        assert not linear.graph.is_ancestor(linear["c"], linear["a"])

    def test_through_second_parent(self):
        dag = Dag()
        dag.add("a", "root")
        dag.add("side", "root")
        dag.add("side2", "side")
        dag.add("m", "a", second="side2")
        assert dag.graph.is_ancestor(dag["side"], dag["m"])
        assert not dag.graph.is_ancestor(dag["side"], dag["a"])

    def test_ancestors(self, linear):
        assert linear.graph.ancestors(linear["b"]) == {linear.root, linear["a"], linear["b"]}


class TestResolve:
    def test_full_id(self, linear):
        assert linear.graph.resolve(linear["b"]) == linear["b"]

    def test_unknown_full_id(self, linear):
        with pytest.raises(AmbiguousOrNotFound):
            linear.graph.resolve("0" * 40)

    def test_unique_prefix(self, linear):
        target = linear["c"]
        others = [cid for cid in linear.ids.values() if cid != target]
        n = 1
        while any(o.startswith(target[:n]) for o in others):
            n += 1
        assert linear.graph.resolve(target[:n]) == target

    def test_no_match(self, linear):
        prefix = "z"
        with pytest.raises(AmbiguousOrNotFound) as exc_info:
            linear.graph.resolve(prefix)
        assert exc_info.value.matches == []
        assert isinstance(exc_info.value, NoSuchCommit)

    def test_ambiguous(self, linear):
        with pytest.raises(AmbiguousOrNotFound) as exc_info:
            linear.graph.resolve("")
        assert len(exc_info.value.matches) == 4


class TestMergeBase:
    def test_same_commit(self, linear):
        assert linear.graph.merge_base(linear["b"], linear["b"]) == linear["b"]

    def test_ancestor_is_base(self, linear):
        assert linear.graph.merge_base(linear["a"], linear["c"]) == linear["a"]
        assert linear.graph.merge_base(linear["c"], linear["a"]) == linear["a"]

    def test_simple_fork(self):
        dag = Dag()
        dag.add("base", "root")
        dag.add("h1", "base")
        dag.add("o1", "base")
        assert dag.graph.merge_base(dag["h1"], dag["o1"]) == dag["base"]

    def test_asymmetric_depth(self):
        """One side much longer than the other still finds the fork point."""
        dag = Dag()
        dag.add("base", "root")
        prev = "base"
        for i in range(6):
            dag.add(f"h{i}", prev)
            prev = f"h{i}"
        dag.add("o1", "base")
        assert dag.graph.merge_base(dag["h5"], dag["o1"]) == dag["base"]
        assert dag.graph.merge_base(dag["o1"], dag["h5"]) == dag["base"]

    def test_after_previous_merge(self):
        """A merged-in side's tip becomes the next merge base."""
        dag = Dag()
        dag.add("base", "root")
        dag.add("h1", "base")
        dag.add("o1", "base")
        dag.add("o2", "o1")
        dag.add("m", "h1", second="o2")
        dag.add("h2", "m")
        dag.add("o3", "o2")
        assert dag.graph.merge_base(dag["h2"], dag["o3"]) == dag["o2"]
        assert dag.graph.merge_base(dag["o3"], dag["h2"]) == dag["o2"]

    def test_result_is_lowest(self):
        """Short paths to an older ancestor must not beat the lowest one."""
        dag = Dag()
        dag.add("x", "root")
        for side in ("a", "b"):
            prev = "x"
            for i in range(4):
                dag.add(f"{side}{i}", prev)
                prev = f"{side}{i}"
            dag.add(f"{side}_short", "root")
            dag.add(f"{side}_tip", f"{side}_short", second=prev)
        assert dag.graph.merge_base(dag["a_tip"], dag["b_tip"]) == dag["x"]

    def test_criss_cross_commutative(self):
        dag = Dag()
        dag.add("base", "root")
        dag.add("a1", "base")
        dag.add("b1", "base")
        dag.add("a2", "a1", second="b1")
        dag.add("b2", "b1", second="a1")
        forward = dag.graph.merge_base(dag["a2"], dag["b2"])
        backward = dag.graph.merge_base(dag["b2"], dag["a2"])
        assert forward == backward
        assert forward in {dag["a1"], dag["b1"]}

    def test_shared_root(self):
        dag = Dag()
        dag.add("a", "root")
        dag.add("b", "root")
        assert dag.graph.merge_base(dag["a"], dag["b"]) == dag.root


class TestHistory:
    def test_first_parent_chain(self, linear):
        assert list(linear.graph.history(linear["c"])) == [
            linear["c"], linear["b"], linear["a"], linear.root,
        ]

    def test_all_parents(self):
        dag = Dag()
        dag.add("a", "root")
        dag.add("b", "root")
        dag.add("m", "a", second="b")
        linear_history = list(dag.graph.history(dag["m"]))
        full = list(dag.graph.history(dag["m"], all_parents=True))
        assert linear_history == [dag["m"], dag["a"], dag.root]
        assert set(full) == {dag["m"], dag["a"], dag["b"], dag.root}
        assert len(full) == 4
