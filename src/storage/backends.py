from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from calendar_engine.errors import PersistenceError, StorageQuotaExceeded

logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    """Key/value string storage, shaped like browser localStorage."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Must raise PersistenceError when the write is refused.
        """
        raise NotImplementedError


class InMemoryBackend(StorageBackend):
    def __init__(self, quota_bytes: Optional[int] = None):
        self._items: Dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            size = len(value.encode("utf-8"))
            if size > self.quota_bytes:
                raise StorageQuotaExceeded(key, size, self.quota_bytes)
        self._items[key] = value


class JsonFileBackend(StorageBackend):
    """All keys live in one JSON object on disk: {"<key>": "<string value>"}."""

    def __init__(self, path: str = "data/calendar.json"):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        try:
            if not self.path.exists():
                return {}
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                logger.warning("Storage file %s is not a JSON object, ignoring it", self.path)
                return {}
            return {k: v for k, v in data.items() if isinstance(v, str)}
        except Exception as e:
            logger.warning("Could not read storage file %s: %s", self.path, e)
            return {}

    def _write(self, items: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(items, ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            raise PersistenceError(f"could not write {self.path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        self._write(items)
