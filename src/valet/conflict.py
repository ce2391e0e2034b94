"""Detect collisions between a new repo entry and the existing ones.

Each existing entry is compared to the candidate on two fields, name and
path. Every comparison yields an :class:`Outcome` that says not just
whether the field matched but how, so that diagnostics can tell a
repeated command apart from a case-only name clash or a symlinked path.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

from .entries import RepoKind
from .names import RepoName
from .paths import absolute_path, path_exists

logger = logging.getLogger(__name__)

CASE_INSENSITIVE_MATCH = "case-insensitive match"
SAME_FILE_MATCH = "same file after canonicalization"


class MatchKind(Enum):
    EXACT = "exact match"
    NORMALIZED = "match after normalization"
    NONE = "not a match"


@dataclass(frozen=True)
class Outcome:
    """Result of one normalized equality check."""

    kind: MatchKind
    reason: Optional[str] = None

    @classmethod
    def exact(cls) -> "Outcome":
        return cls(MatchKind.EXACT)

    @classmethod
    def normalized(cls, reason: str) -> "Outcome":
        return cls(MatchKind.NORMALIZED, reason)

    @classmethod
    def no_match(cls) -> "Outcome":
        return cls(MatchKind.NONE)

    @property
    def matched(self) -> bool:
        return self.kind is not MatchKind.NONE


@dataclass(frozen=True)
class ExistingRepo:
    """What the detector needs to know about a registered repo."""

    name: RepoName
    path: Path
    kind: RepoKind
    desc: str = ""


@dataclass(frozen=True)
class RepoConflict:
    """A registered repo that collides with the candidate."""

    found: ExistingRepo
    name: Outcome
    path: Outcome

    def describe(self) -> str:
        if self.name.matched and self.path.matched:
            return (
                f"repo {self.found.name!r} is already added; did you "
                "accidentally repeat a command?"
            )
        if self.name.matched:
            detail = ""
            if self.name.kind is MatchKind.NORMALIZED:
                detail = f" ({self.name.reason})"
            return (
                f"the name {self.found.name!r}{detail} is already used by a "
                f"different repo, the {self.found.desc or self.found.kind.value}"
            )
        detail = ""
        if self.path.kind is MatchKind.NORMALIZED:
            detail = f" ({self.path.reason})"
        return (
            f"{self.found.path}{detail} is already tracked under another "
            f"name, {self.found.name!r}"
        )


def compare_names(candidate: str, existing: str) -> Outcome:
    if candidate == existing:
        return Outcome.exact()
    if candidate.casefold() == existing.casefold():
        return Outcome.normalized(CASE_INSENSITIVE_MATCH)
    return Outcome.no_match()


def compare_paths(candidate: Path, existing: Path) -> Outcome:
    """Compare two paths, collapsing aliases of the same file.

    When both paths exist, they match if they are the same file (same
    device and inode), so symlinks, hardlinks and bind mounts all count.
    When neither exists, the normalized path strings are compared. When
    only one exists they cannot be the same thing.

    Errors while checking are logged and treated as no match.
    """
    candidate = absolute_path(candidate)
    existing = absolute_path(existing)

    try:
        candidate_exists = path_exists(candidate)
        existing_exists = path_exists(existing)
        if candidate_exists and existing_exists:
            same = os.path.samefile(candidate, existing)
        elif not candidate_exists and not existing_exists:
            same = candidate == existing
        else:
            same = False
    except OSError as e:
        logger.warning(
            f"failed to compare paths for equality: {candidate}, "
            f"{existing}: {e}"
        )
        return Outcome.no_match()

    if not same:
        return Outcome.no_match()
    if candidate == existing:
        return Outcome.exact()
    return Outcome.normalized(SAME_FILE_MATCH)


def check_conflict(
    name: str, path: Path, existing: ExistingRepo
) -> Optional[RepoConflict]:
    """Compare the candidate with one existing repo.

    A standalone repo whose directory has vanished is reported as a
    warning and never matches by path. Overlay repos may not have been
    materialized on disk yet, so their path is always compared.
    """
    name_outcome = compare_names(name, existing.name)

    try:
        present = path_exists(existing.path)
    except OSError as e:
        logger.warning(f"failed to check if {existing.path} exists: {e}")
        present = False

    if existing.kind is RepoKind.OVERLAY or present:
        path_outcome = compare_paths(path, existing.path)
    else:
        logger.warning(
            f"work tree directory of existing repo {existing.name!r} "
            f"is missing: {existing.path}"
        )
        path_outcome = Outcome.no_match()

    if name_outcome.matched or path_outcome.matched:
        return RepoConflict(existing, name_outcome, path_outcome)
    return None


def find_conflicts(
    name: str, path: Path, existing: Iterable[ExistingRepo]
) -> List[RepoConflict]:
    """Every existing repo the candidate ``(name, path)`` collides with."""
    conflicts = []
    for repo in existing:
        conflict = check_conflict(name, path, repo)
        if conflict is not None:
            logger.debug(
                f"Candidate {name!r} conflicts with {repo.name!r}: "
                f"name {conflict.name.kind.value}, "
                f"path {conflict.path.kind.value}"
            )
            conflicts.append(conflict)
    return conflicts

