"""Key-value state stores (JSON files + fcntl.flock + atomic write, or memory)."""

import fcntl
import json
import os
import tempfile
from enum import StrEnum
from pathlib import Path
from typing import Any, Protocol


class StoreKey(StrEnum):
    """Logical keys of persisted state."""

    PROFILE = "profile"
    PROGRESS = "progress"
    SKILLS = "skills"
    COMPLETED = "completed"
    DAILY = "daily"
    BADGES = "badges"
    CERTIFICATE = "cert"
    ADMIN_HASH = "admin_hash"
    ADMIN_SALT = "admin_salt"
    STUDENTS = "students"


STUDENT_KEYS: tuple[StoreKey, ...] = (
    StoreKey.PROFILE,
    StoreKey.PROGRESS,
    StoreKey.SKILLS,
    StoreKey.COMPLETED,
    StoreKey.DAILY,
    StoreKey.BADGES,
    StoreKey.CERTIFICATE,
)


class StateStore(Protocol):
    """Narrow persistence interface used by the engine."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


class JsonFileStore:
    """One JSON file per key inside ``root``.

    Reads raise ``ValueError`` on unparsable content; callers decide how to
    recover.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / f"rh_{key}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            text = f.read()
            fcntl.flock(f, fcntl.LOCK_UN)
        return json.loads(text)

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        lock_path = self.root / (path.name + ".lock")
        with open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            with tempfile.NamedTemporaryFile(
                "w", dir=self.root, delete=False, suffix=".json", encoding="utf-8"
            ) as tmp:
                json.dump(value, tmp, ensure_ascii=False)
            os.replace(tmp.name, path)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class MemoryStore:
    """In-memory store that keeps values as JSON text, like the file store."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value, ensure_ascii=False)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def put_raw(self, key: str, raw: str) -> None:
        """Store raw text without encoding (used to simulate corrupt state)."""
        self._data[key] = raw
