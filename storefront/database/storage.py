"""Cart storage backends for the storefront cart"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import quote

logger = logging.getLogger(__name__)


class CartStorage(Protocol):
    """Durable key-value slot holding one serialized cart per key"""

    def load(self, key: str) -> Optional[str]:
        ...

    def save(self, key: str, payload: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class InMemoryCartStorage:
    """In-memory cart storage"""

    def __init__(self):
        self.slots: dict[str, str] = {}

    def load(self, key: str) -> Optional[str]:
        return self.slots.get(key)

    def save(self, key: str, payload: str) -> None:
        self.slots[key] = payload

    def delete(self, key: str) -> None:
        self.slots.pop(key, None)


class FileCartStorage:
    """
    Cart storage backed by one JSON file per key.

    Writes go to a temporary file in the same directory and are then
    moved over the old file, so a crash mid-write leaves the previous
    cart in place.
    """

    def __init__(self, directory: str):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        # Percent-encoding keeps distinct keys in distinct files
        return self.directory / f"{quote(key, safe='')}.json"

    def load(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.warning(f"Cart slot {key} is not valid UTF-8")
            return ""
        except OSError as e:
            logger.warning(f"Could not read cart slot {key}: {e}")
            return None

    def save(self, key: str, payload: str) -> None:
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".cart-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
