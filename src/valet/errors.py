"""Exception hierarchy for valet.

Every error raised on purpose by valet derives from ``ValetError`` so the
command-line layer can report it without a traceback.
"""

from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from .conflict import RepoConflict
    from .git.base import GitRepoKind


class ValetError(Exception):
    """Base class for all valet errors."""


class ValidationError(ValetError):
    """A repo name was malformed."""


class EmptyRepoNameError(ValidationError):
    def __init__(self):
        super().__init__("expected repo name to be non-empty")


class ReservedRepoNameError(ValidationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"{name!r} is reserved and cannot be used as a repo name"
        )


class TooBigError(ValidationError):
    def __init__(self, limit: int, actual: int):
        self.limit = limit
        self.actual = actual
        super().__init__(
            f"expected repo name to be at most {limit} characters; "
            f"got {actual}"
        )


class InvalidCharError(ValidationError):
    def __init__(self, character: str, index: int, at_byte: int):
        self.character = character
        self.index = index
        self.at_byte = at_byte
        super().__init__(
            'expected repo name to only contain hyphens ("-"), periods '
            f'("."), or alphanumeric characters; got {character!r} '
            f"at byte {at_byte}"
        )


class ConflictError(ValetError):
    """A new entry collides with one or more existing entries."""

    def __init__(self, conflicts: Sequence["RepoConflict"]):
        self.conflicts: List["RepoConflict"] = list(conflicts)
        lines = [c.describe() for c in self.conflicts]
        if len(lines) == 1:
            message = lines[0]
        else:
            message = "new repo conflicts with existing repos:\n" + "\n".join(
                f"  - {line}" for line in lines
            )
        super().__init__(message)


class NameConflictError(ValetError):
    """The same name was found both in the database and the overlay root."""

    def __init__(self, name: str, first: str, second: str):
        self.name = name
        super().__init__(
            f"repo name conflict: repo name {name!r} found as both:\n"
            f"1. {first}\n2. {second}"
        )


class NotFoundError(ValetError):
    """No entry matches the requested name or path."""


class WrongRepoKindError(ValetError):
    """An operation for one kind of repo was requested on the other kind."""


class PersistenceError(ValetError):
    """Reading or writing the standalone repo database failed."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        if path is not None:
            message = f"{message} ({path})"
        super().__init__(message)


class ConfigError(ValetError):
    """The user configuration file could not be loaded."""


class WorkingDirectoryError(ValetError):
    """The process working directory could not be changed or restored."""


class PartialFailure(ValetError):
    """One or more entries of a batch operation failed."""

    def __init__(self, failed: Sequence[str]):
        self.failed = list(failed)
        super().__init__(
            "one or more errors occurred for "
            + ", ".join(repr(name) for name in self.failed)
            + "; see above output for more details"
        )


class BackendError(ValetError):
    """Base class for failures talking to the version-control tool.

    Carries the attempted operation and the path it targeted. The
    underlying exception, if any, is chained as ``__cause__``.
    """

    def __init__(self, operation: str, path: Path, detail: str = ""):
        self.operation = operation
        self.path = Path(path)
        self.detail = detail
        message = f"failed to {operation} at {self.path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class SpawnFailure(BackendError):
    """The external command could not be started."""


class ToolFailure(BackendError):
    """The external command exited non-zero or was killed by a signal."""

    def __init__(
        self,
        operation: str,
        path: Path,
        returncode: int,
        stderr: str = "",
    ):
        self.returncode = returncode
        self.stderr = stderr
        if returncode < 0:
            detail = f"command was terminated by signal {-returncode}"
        else:
            detail = f"exited with exit status {returncode}"
        if stderr.strip():
            detail = f"{detail}: {stderr.strip()}"
        super().__init__(operation, path, detail)


class EncodingFailure(BackendError):
    """The external command produced output that is not valid UTF-8."""


class KindMismatchError(BackendError):
    """A repository of the wrong kind (or none at all) was found."""

    def __init__(
        self,
        path: Path,
        expected: "GitRepoKind",
        actual: Optional["GitRepoKind"],
        operation: str = "check that a Git repo exists",
    ):
        self.expected = expected
        self.actual = actual
        found = actual.value if actual is not None else "nothing"
        super().__init__(
            operation,
            path,
            f"expected {expected.value} repo, found {found}",
        )


class RepoNotFoundError(KindMismatchError):
    """Nothing that git recognizes as a repository exists at the path."""

    def __init__(
        self,
        path: Path,
        expected: "GitRepoKind",
        operation: str = "check that a Git repo exists",
    ):
        super().__init__(path, expected, None, operation)
