"""Repo name validation."""

from .errors import (
    EmptyRepoNameError,
    InvalidCharError,
    ReservedRepoNameError,
    TooBigError,
    ValidationError,
)

ALLOWED_PUNCTUATION = frozenset(".-")
RESERVED_NAMES = frozenset({".", ".."})


class RepoName(str):
    """A validated repo name.

    Names are at most ``SIZE_LIMIT`` characters drawn from ASCII letters,
    digits, ``.`` and ``-``. Overlay repos use their name as a directory
    name, so a valid name is always a single path segment.
    """

    SIZE_LIMIT = 100

    def __new__(cls, value: str) -> "RepoName":
        if isinstance(value, RepoName):
            return value
        cls.validate(value)
        return super().__new__(cls, value)

    @classmethod
    def validate(cls, name: str) -> None:
        """Raise a ``ValidationError`` subclass if ``name`` is not valid.

        Characters are checked in order, so an invalid character within
        the first ``SIZE_LIMIT`` characters is reported even when the
        name is also too long.
        """
        if not name:
            raise EmptyRepoNameError()

        for index, char in enumerate(name):
            if index >= cls.SIZE_LIMIT:
                raise TooBigError(cls.SIZE_LIMIT, len(name))
            if not _is_allowed(char):
                at_byte = len(name[:index].encode("utf-8", "surrogateescape"))
                raise InvalidCharError(char, index, at_byte)

        if name in RESERVED_NAMES:
            raise ReservedRepoNameError(name)

    @classmethod
    def is_valid(cls, name: str) -> bool:
        try:
            cls.validate(name)
        except ValidationError:
            return False
        return True

    def __repr__(self) -> str:
        return repr(str(self))


def _is_allowed(char: str) -> bool:
    return (char.isascii() and char.isalnum()) or char in ALLOWED_PUNCTUATION
