"""Tests for the gitlite.repo() factory function."""

import os
import shutil
import tempfile

import pytest

from gitlite import Repository, repo
from gitlite.kv.directory import Directory
from gitlite.kv.disk import Disk


@pytest.fixture
def workdir():
    tmpdir = tempfile.mkdtemp()
    yield tmpdir
    shutil.rmtree(tmpdir, ignore_errors=True)


class TestRepoFactory:
    def test_default_is_memory(self):
        r = repo()
        assert isinstance(r, Repository)
        assert r.current_branch == "main"

    def test_invalid_storage(self):
        with pytest.raises(ValueError, match="Unknown storage"):
            repo(storage="redis")  # type: ignore

    def test_disk_requires_path(self):
        with pytest.raises(ValueError, match="path is required"):
            repo(storage="disk")

    def test_memory_rejects_path(self):
        with pytest.raises(ValueError, match="only valid"):
            repo(path="/tmp/x")

    def test_disk_layout(self, workdir):
        r = repo("disk", workdir)
        assert isinstance(r.store, Disk)
        assert isinstance(r.worktree, Directory)
        assert os.path.isdir(os.path.join(workdir, ".gitlite"))
        r.close()


class TestDiskRoundTrip:
    def test_commit_survives_reopen(self, workdir):
        r = repo("disk", workdir)
        with open(os.path.join(workdir, "f.txt"), "wb") as f:
            f.write(b"hello")
        r.add("f.txt")
        cid = r.commit("add f")
        r.close()

        reopened = repo("disk", workdir)
        assert reopened.head_commit == cid
        assert reopened.head.files.keys() == {"f.txt"}
        assert list(reopened.worktree.keys()) == ["f.txt"]
        reopened.close()

    def test_branch_switch_on_disk(self, workdir):
        r = repo("disk", workdir)
        r.worktree.set("f.txt", b"main")
        r.add("f.txt")
        r.commit("main f")
        r.branch("dev")
        r.checkout_branch("dev")
        r.worktree.set("g.txt", b"dev")
        r.add("g.txt")
        r.commit("dev g")
        r.checkout_branch("main")

        assert not os.path.exists(os.path.join(workdir, "g.txt"))
        result = r.merge("dev")
        assert result.strategy == "fast_forward"
        with open(os.path.join(workdir, "g.txt"), "rb") as f:
            assert f.read() == b"dev"
        r.close()


class TestRepositoryClose:
    def test_context_manager_round_trip(self, workdir):
        with repo("disk", workdir) as r:
            r.worktree.set("f.txt", b"hello")
            r.add("f.txt")
            cid = r.commit("add f")

        with repo("disk", workdir) as reopened:
            assert reopened.head_commit == cid

    def test_close_calls_backend(self, workdir, monkeypatch):
        r = repo("disk", workdir)
        closed = []
        original = r.store.close
        monkeypatch.setattr(r.store, "close", lambda: closed.append(True) or original())
        r.close()
        assert closed == [True]

    def test_memory_close_is_noop(self):
        with repo() as r:
            assert r.current_branch == "main"
        r.close()
