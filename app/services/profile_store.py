"""
Profile/Card Store

File-backed persistence for profiles, cards and the active profile pointer.
One JSON file per entity; writes replace the target atomically.
"""
import logging
from pathlib import Path
from typing import Any

from app.utils.file_operations import (
    count_files,
    delete_file,
    ensure_directory,
    read_json_file,
    write_json_file_atomic,
)


logger = logging.getLogger(__name__)

PROFILE_PREFIX = "profile-"
CARD_PREFIX = "card-"
ACTIVE_PROFILE_KEY = "activeProfile"


def profile_key(profile_id: str) -> str:
    return f"{PROFILE_PREFIX}{profile_id}"


def card_key(card_id: str) -> str:
    return f"{CARD_PREFIX}{card_id}"


class JsonFileStore:
    """
    Key/value store over a directory of JSON files.

    There is no locking between concurrent writers of the same key; the last
    rename wins.
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir)

    async def ensure_ready(self) -> None:
        """Create the data directory if it does not exist."""
        await ensure_directory(self.data_dir)

    async def read(self, key: str) -> Any | None:
        """Return the stored value for key, or None if absent or not storable."""
        if not self.is_valid_key(key):
            logger.debug("Read of unstorable key %r treated as absent", key)
            return None
        return await read_json_file(self._path(key), default=None)

    async def write(self, key: str, value: Any) -> None:
        """Store value under key, atomically replacing any previous value."""
        await write_json_file_atomic(self._path(key), value)

    async def delete(self, key: str) -> None:
        """Remove key; deleting an absent key is not an error."""
        deleted = await delete_file(self._path(key))
        if not deleted:
            logger.debug("Delete of absent key %s ignored", key)

    async def count(self, prefix: str) -> int:
        """Count stored keys starting with prefix."""
        return await count_files(self.data_dir, prefix)

    @staticmethod
    def is_valid_key(key: str) -> bool:
        """Keys map to a single file name inside data_dir."""
        return bool(key) and "/" not in key and "\\" not in key and key not in (".", "..")

    def _path(self, key: str) -> Path:
        if not self.is_valid_key(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}.json"
