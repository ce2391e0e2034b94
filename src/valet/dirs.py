import os
from pathlib import Path
from typing import Optional

from .errors import PersistenceError

APP_NAME = "valet"
OVERLAY_REPOS_DIR_NAME = "overlay_repos"
STANDALONE_DB_FILE_NAME = "standalone_repos.yaml"


class Directories:
    """Locates the home directory and valet's data directory.

    The data directory follows the XDG base directory layout
    (``$XDG_DATA_HOME/valet``, defaulting to ``~/.local/share/valet``)
    unless an explicit ``data_dir`` is given.
    """

    def __init__(
        self,
        home: Optional[Path] = None,
        data_dir: Optional[Path] = None,
    ):
        self._home = Path(home) if home is not None else None
        self._data_dir = Path(data_dir) if data_dir is not None else None

    def home_dir(self) -> Path:
        return self._home if self._home is not None else Path.home()

    def data_dir(self) -> Path:
        if self._data_dir is not None:
            return self._data_dir
        xdg_data_home = os.environ.get("XDG_DATA_HOME")
        if xdg_data_home and Path(xdg_data_home).is_absolute():
            return Path(xdg_data_home) / APP_NAME
        return self.home_dir() / ".local" / "share" / APP_NAME

    def overlay_root_dir(self) -> Path:
        """Directory holding one bare repository per overlay repo.

        Created on first use.
        """
        path = self.data_dir() / OVERLAY_REPOS_DIR_NAME
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(
                "failed to create overlay repos directory", path
            ) from e
        return path.resolve()

    def standalone_db_path(self) -> Path:
        """File persisting standalone repo entries; its parent is created."""
        data_dir = self.data_dir()
        try:
            data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(
                "failed to place database file path", data_dir
            ) from e
        return data_dir / STANDALONE_DB_FILE_NAME

    def __repr__(self) -> str:
        return f"Directories(home={self.home_dir()}, data={self.data_dir()})"
