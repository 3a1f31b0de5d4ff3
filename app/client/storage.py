"""
Device-local key/value persistence backed by a JSON file
"""
import json
import logging
import os
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class KeyValueStore:
    """
    String key/value store that survives process restarts.

    With ``path=None`` values are kept in memory only. A missing, unreadable or
    corrupt file reads as an empty store.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._memory: Dict[str, str] = {}

    def _load(self) -> Dict[str, str]:
        if self.path is None:
            return dict(self._memory)
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable storage file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: Dict[str, str]) -> None:
        if self.path is None:
            self._memory = dict(data)
            return
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp_path, self.path)

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
