"""gitlite: Content-addressed version control for a working directory."""

from .errors import (
    AlreadyExists,
    AmbiguousOrNotFound,
    CurrentBranchProtected,
    DirtyStagingArea,
    EmptyMessage,
    FileNotInCommit,
    GitliteError,
    NoChanges,
    NoSuchBranch,
    NoSuchCommit,
    NoSuchFile,
    NothingToRemove,
    NotFound,
    SelfMerge,
    UntrackedFileError,
    UntrackedFileWouldBeOverwritten,
    UntrackedObstruction,
)
from .factory import repo
from .graph import CommitGraph, DiffResult
from .kv.base import KVStore
from .checkout import Reconciler
from .merge import MergeEngine, MergeResult, classify, conflict_content
from .objects import Commit, ObjectStore, blob_id, root_commit
from .refs import Refs
from .repository import Repository, Status
from .staging import StagingArea

__all__ = [
    "AlreadyExists",
    "AmbiguousOrNotFound",
    "Commit",
    "CommitGraph",
    "CurrentBranchProtected",
    "DiffResult",
    "DirtyStagingArea",
    "EmptyMessage",
    "FileNotInCommit",
    "GitliteError",
    "KVStore",
    "MergeEngine",
    "MergeResult",
    "NoChanges",
    "NoSuchBranch",
    "NoSuchCommit",
    "NoSuchFile",
    "NotFound",
    "NothingToRemove",
    "ObjectStore",
    "Reconciler",
    "Refs",
    "Repository",
    "SelfMerge",
    "StagingArea",
    "Status",
    "UntrackedFileError",
    "UntrackedFileWouldBeOverwritten",
    "UntrackedObstruction",
    "blob_id",
    "classify",
    "conflict_content",
    "repo",
    "root_commit",
]
