"""Tests for the Memory KV store."""

import pytest

from gitlite.kv.memory import Memory


class TestMemoryBasic:
    def test_set_get(self):
        m = Memory()
        m.set("k", b"v")
        assert m.get("k") == b"v"

    def test_get_missing(self):
        m = Memory()
        assert m.get("nope") is None

    def test_contains(self):
        m = Memory()
        m.set("k", b"v")
        assert "k" in m
        assert "nope" not in m

    def test_items(self):
        m = Memory()
        m.set("a", b"1")
        m.set("b", b"2")
        assert dict(m.items()) == {"a": b"1", "b": b"2"}

    def test_set_many_get_many(self):
        m = Memory()
        m.set_many(a=b"1", b=b"2", c=b"3")
        result = m.get_many("a", "c", "missing")
        assert result == {"a": b"1", "c": b"3"}

    def test_type_error_on_non_bytes(self):
        m = Memory()
        with pytest.raises(TypeError, match="Expected bytes"):
            m.set("k", "not bytes")  # type: ignore

    def test_keys_with_prefix(self):
        m = Memory()
        m.set_many(**{"__branch__main": b"1", "__branch__dev": b"2", "__head__": b"x"})
        assert sorted(m.keys_with_prefix("__branch__")) == ["dev", "main"]


class TestMemoryUpdate:
    def test_update_sets_and_removes(self):
        m = Memory()
        m.set_many(a=b"1", b=b"2")
        m.update({"c": b"3"}, removals=["a"])
        assert m.get("a") is None
        assert m.get("b") == b"2"
        assert m.get("c") == b"3"

    def test_update_set_wins_over_removal(self):
        m = Memory()
        m.set("k", b"old")
        m.update({"k": b"new"}, removals=["k"])
        assert m.get("k") == b"new"

    def test_update_rejects_non_bytes_before_writing(self):
        m = Memory()
        m.set("a", b"1")
        with pytest.raises(TypeError):
            m.update({"b": "text"}, removals=["a"])  # type: ignore
        assert m.get("a") == b"1"
        assert "b" not in m


class TestMemoryCAS:
    def test_cas_create(self):
        m = Memory()
        assert m.cas("k", b"val", expected=None)
        assert m.get("k") == b"val"

    def test_cas_create_fails_if_exists(self):
        m = Memory()
        m.set("k", b"existing")
        assert not m.cas("k", b"new", expected=None)
        assert m.get("k") == b"existing"
