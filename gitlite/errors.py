"""gitlite error types.

Every failure is reported by raising one of these from the attempted
operation. None of them are retried: they signal a misuse or an unmet
precondition, and the repository is left as it was before the call.
"""


class GitliteError(Exception):
    """Base class for all gitlite errors."""


class NotFound(GitliteError):
    """A blob, commit, branch or file does not exist."""


class NoSuchCommit(NotFound):
    """No commit with the given id exists."""

    def __init__(self, commit_id: str, message: str | None = None) -> None:
        self.commit_id = commit_id
        super().__init__(message or "No commit with that id exists.")


class AmbiguousOrNotFound(NoSuchCommit):
    """A commit id prefix matched zero or several stored commits.

    Attributes:
        prefix: The prefix that was looked up.
        matches: The stored ids that start with it (empty or 2+).
    """

    def __init__(self, prefix: str, matches: list[str]) -> None:
        self.prefix = prefix
        self.matches = matches
        if matches:
            message = (
                f"Commit id {prefix!r} is ambiguous ({len(matches)} matches)."
            )
        else:
            message = "No commit with that id exists."
        super().__init__(prefix, message)


class NoSuchBranch(NotFound):
    """No branch with the given name exists."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("A branch with that name does not exist.")


class FileNotInCommit(NotFound):
    """The file is not tracked by the requested commit."""

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__("File does not exist in that commit.")


class NoSuchFile(NotFound):
    """The file does not exist in the working directory."""

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__("File does not exist.")


class NoChanges(GitliteError):
    """Nothing is staged for the next commit."""

    def __init__(self) -> None:
        super().__init__("No changes added to the commit.")


class NothingToRemove(GitliteError):
    """The file is neither staged nor tracked by HEAD."""

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__("No reason to remove the file.")


class EmptyMessage(GitliteError):
    """A commit was attempted with a blank message."""

    def __init__(self) -> None:
        super().__init__("Please enter a commit message.")


class UntrackedFileError(GitliteError):
    """Untracked working files would be destroyed by the operation.

    Attributes:
        filenames: The untracked files that are in the way.
    """

    def __init__(self, filenames: list[str]) -> None:
        self.filenames = sorted(filenames)
        super().__init__(
            "There is an untracked file in the way; "
            "delete it, or add and commit it first."
        )


class UntrackedFileWouldBeOverwritten(UntrackedFileError):
    """A checkout would overwrite files the current commit does not track."""


class UntrackedObstruction(UntrackedFileError):
    """A merge was attempted with untracked files in the working directory."""


class DirtyStagingArea(GitliteError):
    """A merge was attempted with pending staged changes."""

    def __init__(self) -> None:
        super().__init__("You have uncommitted changes.")


class SelfMerge(GitliteError):
    """A branch was merged into itself."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("Cannot merge a branch with itself.")


class AlreadyExists(GitliteError):
    """A branch with the given name already exists."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("A branch with that name already exists.")


class CurrentBranchProtected(GitliteError):
    """The operation is not allowed on the checked-out branch."""

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(message or "Cannot remove the current branch.")
