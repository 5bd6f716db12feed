import json
import os
import threading
from typing import Any, Dict, Optional

from utils.logger import log_warning

DEFAULT_STATE_FILE = os.path.join("data", "widget_state.json")


class StateStore:
    """Durable key-value state backed by a single JSON file.

    Values must be JSON-serializable. ``update(key, None)`` removes the key,
    matching how the widget clears the pending verifier.
    """

    def __init__(self, path: str = DEFAULT_STATE_FILE):
        self.path = path
        self._lock = threading.Lock()
        self._data: Optional[Dict[str, Any]] = None

    def _load(self) -> Dict[str, Any]:
        if self._data is not None:
            return self._data

        data: Dict[str, Any] = {}
        if os.path.exists(self.path):
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    content = f.read().strip()
                    if content:
                        data = json.loads(content)
            except (json.JSONDecodeError, IOError) as e:
                log_warning(f"State file {self.path} is unreadable, starting empty: {e}")
                data = {}

        if not isinstance(data, dict):
            data = {}

        self._data = data
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self.path)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._load().get(key, default)

    def update(self, key: str, value: Any) -> None:
        with self._lock:
            data = dict(self._load())
            if value is None:
                data.pop(key, None)
            else:
                data[key] = value
            self._save(data)
            self._data = data

    def keys(self) -> list:
        with self._lock:
            return list(self._load().keys())

    def clear(self) -> None:
        with self._lock:
            self._save({})
            self._data = {}


class MemoryStateStore(StateStore):
    """In-process store with the same interface; nothing touches disk."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        super().__init__(path="")
        self._data = dict(initial or {})

    def _load(self) -> Dict[str, Any]:
        return self._data

    def _save(self, data: Dict[str, Any]) -> None:
        # Keep a JSON copy so stored values behave like the file-backed store.
        self._data = json.loads(json.dumps(data))
