# ABOUTME: Local durable key-value stores holding serialized estimator state.
# ABOUTME: Provides an atomic JSON-file store and an in-memory store for ephemeral sessions.

from __future__ import annotations

import os
import re
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


class StateStore(ABC):
    """Minimal key-value contract used for estimator persistence."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored payload or None when the key is absent."""

    @abstractmethod
    def put(self, key: str, payload: str) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...


class MemoryStore(StateStore):
    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def put(self, key: str, payload: str) -> None:
        self._data[key] = payload

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileStore(StateStore):
    """
    Stores each key as ``<directory>/<safe-key>.json``.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace`` so a crash never leaves a half-written document.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self._lock = threading.Lock()

    def path_for(self, key: str) -> Path:
        safe = _UNSAFE_KEY_CHARS.sub("_", key).strip("._") or "state"
        return self.directory / f"{safe}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def put(self, key: str, payload: str) -> None:
        path = self.path_for(key)
        with self._lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.stem}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

    def delete(self, key: str) -> None:
        with self._lock:
            self.path_for(key).unlink(missing_ok=True)
