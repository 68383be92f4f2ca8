"""Content-addressed blob and commit objects."""

import hashlib
import json
import pickle
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from .errors import NoSuchCommit, NotFound
from .kv.base import KVStore

BLOB_KEY = "__blob__%s"
COMMIT_KEY = "__commit__%s"

ID_LENGTH = 40
INITIAL_MESSAGE = "initial commit"
EPOCH = datetime.fromtimestamp(0, timezone.utc)


def digest(*parts: str | bytes) -> str:
    """SHA-1 over the concatenation of ``parts`` as 40 hex chars.

    Strings are encoded as UTF-8, bytes are fed as-is.
    """
    h = hashlib.sha1()
    for part in parts:
        if isinstance(part, str):
            h.update(part.encode("utf-8"))
        elif isinstance(part, bytes):
            h.update(part)
        else:
            raise TypeError(f"Cannot digest {type(part).__name__}")
    return h.hexdigest()


def blob_id(filename: str, content: bytes) -> str:
    """Blob id of ``content`` stored under ``filename``."""
    return digest(filename, content)


DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def format_timestamp(when: datetime) -> str:
    """Render like ``Thu Jan 1 00:00:00 1970 +0000``.

    Day and month names are always English, whatever the locale.
    """
    day = DAY_NAMES[when.weekday()]
    month = MONTH_NAMES[when.month - 1]
    return f"{day} {month} {when.day} {when:%H:%M:%S} {when.year} {when:%z}"


def canonical_tree(tree: dict[str, str]) -> str:
    """Order-independent text form of a tree for hashing."""
    return json.dumps(sorted(tree.items()), separators=(",", ":"))


def commit_id(
    message: str,
    timestamp: str,
    parent: str | None,
    second_parent: str | None,
    tree: dict[str, str],
) -> str:
    """Compute a content-addressable commit id.

    Absent parents are skipped and an empty tree contributes nothing,
    so the root commit depends only on its message and timestamp.
    """
    parts = [message, timestamp]
    if parent is not None:
        parts.append(parent)
    if second_parent is not None:
        parts.append(second_parent)
    if tree:
        parts.append(canonical_tree(tree))
    return digest(*parts)


@dataclass(frozen=True)
class Commit:
    """An immutable commit record.

    ``tree`` maps blob id to file name; each file name appears at most
    once. Parents are stored as ids and resolved through the
    ``ObjectStore``.
    """

    message: str
    timestamp: str
    parent: str | None = None
    second_parent: str | None = None
    tree: dict[str, str] = field(default_factory=dict)
    id: str = ""

    @classmethod
    def create(
        cls,
        message: str,
        *,
        parent: str | None = None,
        second_parent: str | None = None,
        tree: dict[str, str] | None = None,
        timestamp: str | None = None,
    ) -> "Commit":
        """Build a commit, stamping it with the current local time."""
        tree = dict(tree or {})
        if timestamp is None:
            timestamp = format_timestamp(datetime.now().astimezone())
        return cls(
            message=message,
            timestamp=timestamp,
            parent=parent,
            second_parent=second_parent,
            tree=tree,
            id=commit_id(message, timestamp, parent, second_parent, tree),
        )

    @property
    def parents(self) -> tuple[str, ...]:
        return tuple(p for p in (self.parent, self.second_parent) if p is not None)

    @property
    def is_merge(self) -> bool:
        return self.second_parent is not None

    @property
    def files(self) -> dict[str, str]:
        """File name -> blob id."""
        return {name: bid for bid, name in self.tree.items()}

    def blob_for(self, filename: str) -> str | None:
        """Blob id tracked for ``filename``, or None if untracked."""
        for bid, name in self.tree.items():
            if name == filename:
                return bid
        return None

    def tracks(self, filename: str) -> bool:
        return filename in self.tree.values()

    def verify(self) -> bool:
        """Whether ``id`` matches the digest of the other fields."""
        return self.id == commit_id(
            self.message,
            self.timestamp,
            self.parent,
            self.second_parent,
            self.tree,
        )


def root_commit() -> Commit:
    """The shared root: empty tree, no parent, epoch timestamp."""
    return Commit.create(INITIAL_MESSAGE, timestamp=format_timestamp(EPOCH))


class ObjectStore:
    """Immutable blobs and commits over a KV store.

    ``put_*`` calls are idempotent: the first writer of an id wins and
    later writes of the same id are no-ops.
    """

    def __init__(self, store: KVStore) -> None:
        self.store = store

    # -- Blobs --

    def put_blob(self, filename: str, content: bytes) -> str:
        """Persist ``content`` for ``filename`` and return its blob id."""
        bid = blob_id(filename, content)
        key = BLOB_KEY % bid
        if key not in self.store:
            self.store.set(key, content)
        return bid

    def get_blob(self, bid: str) -> bytes:
        """Get blob content. Raises NotFound if absent."""
        content = self.store.get(BLOB_KEY % bid)
        if content is None:
            raise NotFound(f"No blob with id {bid}.")
        return content

    def has_blob(self, bid: str) -> bool:
        return BLOB_KEY % bid in self.store

    # -- Commits --

    @staticmethod
    def encode_commit(commit: Commit) -> dict[str, bytes]:
        """The KV entries that persist ``commit``."""
        return {COMMIT_KEY % commit.id: pickle.dumps(asdict(commit))}

    def put_commit(self, commit: Commit) -> str:
        """Persist a commit record and return its id."""
        if not self.has_commit(commit.id):
            self.store.set_many(**self.encode_commit(commit))
        return commit.id

    def get_commit(self, cid: str) -> Commit:
        """Load a commit. Raises NoSuchCommit if absent."""
        raw = self.store.get(COMMIT_KEY % cid)
        if raw is None:
            raise NoSuchCommit(cid)
        return Commit(**pickle.loads(raw))

    def has_commit(self, cid: str) -> bool:
        return COMMIT_KEY % cid in self.store

    def commit_ids(self) -> Iterable[str]:
        """Ids of every stored commit."""
        return self.store.keys_with_prefix(COMMIT_KEY % "")
