"""
Storage backends.

The state store only needs `read(key) -> str | None` and
`write(key, value)`. Values are JSON strings produced by the store; the
backends never interpret them.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from zenflow_mcp.exceptions import ZenFlowStorageError

logger = logging.getLogger(__name__)


@runtime_checkable
class StoragePort(Protocol):
    """Minimal key-value persistence."""

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, value: str) -> None: ...

    def close(self) -> None: ...


class MemoryStorage:
    """In-memory backend, mostly for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.write_count = 0

    def read(self, key: str) -> str | None:
        return self.data.get(key)

    def write(self, key: str, value: str) -> None:
        self.data[key] = value
        self.write_count += 1

    def close(self) -> None:
        pass


class JsonFileStorage:
    """
    File backend holding every key in one JSON object.

    The file is read once on construction. Each write replaces the whole
    file through a temporary file and os.replace, so a crash mid-write
    leaves the previous snapshot intact.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self._data: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ZenFlowStorageError(f"Storage file is not valid JSON: {self.path}", key="*") from e
        if not isinstance(data, dict):
            raise ZenFlowStorageError(f"Storage file must hold a JSON object: {self.path}", key="*")
        logger.info("Loaded %d keys from %s", len(data), self.path)
        return {str(k): str(v) for k, v in data.items()}

    def read(self, key: str) -> str | None:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def close(self) -> None:
        self._flush()

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".zenflow-", suffix=".json", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
