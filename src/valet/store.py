"""On-disk database of standalone repo entries.

The database is a YAML document with a single table::

    standalone_repos:
      dotfiles:
        path: /home/me/src/dotfiles
        app_info: null

Overlay repos never appear here; they are discovered from the overlay
repos directory instead.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from .entries import AppInfo, StandaloneEntry
from .errors import PersistenceError, ValidationError
from .names import RepoName

logger = logging.getLogger(__name__)

TABLE_KEY = "standalone_repos"
APP_INFO_FIELDS = ("qualifier", "organization", "application")


def load_standalone_repos(db_path: Path) -> Dict[RepoName, StandaloneEntry]:
    """Read standalone entries from ``db_path``.

    A missing or empty file yields no entries.

    Raises:
        PersistenceError: If the file cannot be read or is malformed.
    """
    logger.debug(f"Reading standalone repos DB at {db_path}")
    try:
        with open(db_path, "r", encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError:
        return {}
    except (OSError, UnicodeDecodeError) as e:
        raise PersistenceError(
            "failed to read standalone repos DB", db_path
        ) from e

    if not text.strip():
        return {}

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise PersistenceError(
            f"failed to deserialize standalone repos DB: {e}", db_path
        ) from e

    return parse_document(document, db_path)


def parse_document(
    document: Any, db_path: Path
) -> Dict[RepoName, StandaloneEntry]:
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise PersistenceError(
            "expected a mapping at the top of standalone repos DB", db_path
        )

    table = document.get(TABLE_KEY)
    if table is None:
        return {}
    if not isinstance(table, dict):
        raise PersistenceError(f"expected {TABLE_KEY!r} to be a table", db_path)

    repos = {}
    for raw_name, raw_entry in table.items():
        if not isinstance(raw_name, str):
            raise PersistenceError(
                f"expected repo name to be a string; got {raw_name!r}", db_path
            )
        try:
            name = RepoName(raw_name)
        except ValidationError as e:
            raise PersistenceError(
                f"invalid repo name {raw_name!r}: {e}", db_path
            ) from e
        repos[name] = _parse_entry(name, raw_entry, db_path)
    return repos


def _parse_entry(name: RepoName, raw: Any, db_path: Path) -> StandaloneEntry:
    if not isinstance(raw, dict):
        raise PersistenceError(
            f"expected entry for {name!r} to be a table", db_path
        )

    path = raw.get("path")
    if not isinstance(path, str) or not path:
        raise PersistenceError(f"entry for {name!r} has no path", db_path)
    if not Path(path).is_absolute():
        raise PersistenceError(
            f"path of {name!r} is not absolute: {path!r}", db_path
        )

    app_info = raw.get("app_info")
    if app_info is not None:
        if not isinstance(app_info, dict) or not all(
            isinstance(app_info.get(field), str) for field in APP_INFO_FIELDS
        ):
            raise PersistenceError(
                f"app_info of {name!r} must have string fields "
                + ", ".join(APP_INFO_FIELDS),
                db_path,
            )
        app_info = AppInfo(
            **{field: app_info[field] for field in APP_INFO_FIELDS}
        )

    return StandaloneEntry(path=Path(path), app_info=app_info)


def dump_document(repos: Mapping[RepoName, StandaloneEntry]) -> str:
    table = {
        str(name): {
            "path": str(entry.path),
            "app_info": entry.app_info.to_dict() if entry.app_info else None,
        }
        for name, entry in sorted(repos.items())
    }
    return yaml.safe_dump(
        {TABLE_KEY: table}, default_flow_style=False, sort_keys=False
    )


def save_standalone_repos(
    db_path: Path, repos: Mapping[RepoName, StandaloneEntry]
) -> None:
    """Atomically replace ``db_path`` with ``repos``.

    Raises:
        PersistenceError: If the file cannot be written.
    """
    text = dump_document(repos)
    db_path = Path(db_path)
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=db_path.parent, prefix=f".{db_path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_path, db_path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise
    except OSError as e:
        raise PersistenceError(
            "failed to write standalone repos DB", db_path
        ) from e
    logger.debug(f"Wrote {len(repos)} standalone repo(s) to {db_path}")
