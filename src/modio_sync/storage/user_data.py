"""Durable storage of the local user record."""
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from modio_sync.schemas.local_user import LocalUser, StoredUserData

logger = logging.getLogger(__name__)


class LocalUserStore:
    """
    Reads and writes the user data file.

    The file holds every local user that has signed in on this machine plus the
    index of the active one. Writes replace the whole file atomically, so a
    reader never sees a partial write.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._stored = StoredUserData()

    @property
    def path(self) -> Path:
        """Location of the user data file."""
        return self._path

    def load(self) -> LocalUser:
        """
        Load the active user from disk.

        Returns an empty user when the file is missing, empty or cannot be parsed.
        """
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            logger.info("user_data_missing", extra={"path": str(self._path)})
            self._stored = StoredUserData()
            return LocalUser()
        except OSError as e:
            logger.warning("user_data_read_failed", extra={"path": str(self._path), "error": str(e)})
            self._stored = StoredUserData()
            return LocalUser()

        if not raw.strip():
            self._stored = StoredUserData()
            return LocalUser()

        try:
            self._stored = StoredUserData.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("user_data_parse_failed", extra={"path": str(self._path), "error": str(e)})
            self._stored = StoredUserData()
            return LocalUser()

        active = self._stored.active_user
        return active.model_copy(deep=True) if active is not None else LocalUser()

    def save(self, user: LocalUser) -> bool:
        """
        Write user as the active user, replacing the file atomically.

        Returns:
            True if the file was written, False if the write failed.
        """
        stored = self._stored
        users = list(stored.users)
        index = stored.active_user_index
        if index < 0 or index >= len(users):
            index = len(users)
            users.append(user)
        else:
            users[index] = user
        stored = StoredUserData(active_user_index=index, users=users)

        data = stored.model_dump_json(indent=2)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=".user-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(data)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.warning("user_data_write_failed", extra={"path": str(self._path), "error": str(e)})
            return False

        self._stored = stored
        return True
