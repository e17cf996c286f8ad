"""
Safe key/value storage.

Every operation degrades to "no value" / no-op when the backing store is
unavailable; errors are logged, never raised.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger("gitboss_ai.storage")


class Storage:
    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def is_available(self) -> bool:
        test_key = "__storage_test__"
        try:
            self.set_item(test_key, test_key)
            ok = self.get_item(test_key) == test_key
            self.remove_item(test_key)
            return ok
        except Exception:
            return False


class MemoryStorage(Storage):
    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class FileStorage(Storage):
    """JSON object on disk; re-read on every access so separate processes agree."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Error accessing storage %s: %s", self._path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _dump(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get_item(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return None if value is None else str(value)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        try:
            self._dump(data)
        except OSError as e:
            logger.error("Error setting storage item %s: %s", key, e)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key not in data:
            return
        del data[key]
        try:
            self._dump(data)
        except OSError as e:
            logger.error("Error removing storage item %s: %s", key, e)
