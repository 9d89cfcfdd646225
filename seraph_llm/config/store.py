"""
Key/value configuration stores.

The client never talks to a persistence mechanism directly; it reads and
writes through a ``ConfigStore``. Two implementations are provided:

- ``MemoryConfigStore``: process-local dict, used in tests and as default
- ``YamlConfigStore``: YAML file rewritten on every change, so values
  survive process restarts
"""

import os
import threading
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

import yaml

from seraph_llm.logging import get_logger

logger = get_logger("config")


@runtime_checkable
class ConfigStore(Protocol):
    """Minimal persistent key/value interface."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class MemoryConfigStore:
    """Dict-backed store. Setting a key to None removes it."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: dict[str, Any] = dict(values or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if value is None:
            self._values.pop(key, None)
        else:
            self._values[key] = value

    def to_dict(self) -> dict[str, Any]:
        return dict(self._values)


class YamlConfigStore(MemoryConfigStore):
    """
    Store persisted to a YAML file.

    The file is read once on construction and rewritten atomically after
    every ``set``. A missing file is treated as an empty store.

    Args:
        path: Location of the YAML file. Parent directories are created on
            first write.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()
        super().__init__(self._read())

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {self.path} must contain a mapping")
        return data

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            super().set(key, value)
            self._write()

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self._values, f, default_flow_style=False, sort_keys=True)
        os.replace(tmp_path, self.path)
        logger.debug("Config saved", path=str(self.path), keys=len(self._values))

    def reload(self) -> None:
        """Re-read the file, discarding in-memory values."""
        with self._lock:
            self._values = self._read()
