"""Key-value persistence tiers behind one get/set/delete contract.

Tiers, chosen once at startup by create_store():
  MemoryStore  process-local dict, lost on restart
  FileStore    one JSON document on disk, rewritten after every mutation
  RedisStore   external Redis, values stored as JSON text

Values are plain JSON-compatible structures. Every tier returns a value
equal to the last one written by this process (read-after-write).
"""

import copy
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

import redis

from src.timetable.config import TimetableConfig
from src.timetable.errors import PersistenceError
from src.timetable.logging import get_logger

log = get_logger(__name__)


class KeyValueStore:
    """Uniform contract shared by every persistence tier."""

    backend = "abstract"

    def get(self, key: str) -> Any | None:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """Volatile process-local store.

    Stores and returns deep copies, so neither writers nor readers can mutate
    what another request observes.
    """

    backend = "memory"

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            value = self._data.get(key)
        return copy.deepcopy(value)

    def set(self, key: str, value: Any) -> None:
        value = copy.deepcopy(value)
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class FileStore(MemoryStore):
    """Disk-backed store: one JSON document holding every key.

    Loaded once at construction and rewritten synchronously after each
    mutation. A failed write is logged once and the in-memory copy keeps
    serving reads.
    """

    backend = "file"

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        self._write_failed = False
        self._data = self._load()
        log.info("file_store_loaded", path=str(self.path), keys=len(self._data))

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            log.warning("file_store_unreadable", path=str(self.path), error=str(e))
            return {}
        if not isinstance(data, dict):
            log.warning("file_store_unreadable", path=str(self.path), error="not an object")
            return {}
        return data

    def _flush(self) -> None:
        """Write the whole document atomically. Caller holds the lock."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(self._data, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            if not self._write_failed:
                log.error(
                    "file_store_write_failed",
                    path=str(self.path),
                    error=str(e),
                    fallback="memory",
                )
                self._write_failed = True
            return
        if self._write_failed:
            log.info("file_store_write_recovered", path=str(self.path))
            self._write_failed = False

    def set(self, key: str, value: Any) -> None:
        value = copy.deepcopy(value)
        with self._lock:
            self._data[key] = value
            self._flush()

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
            self._flush()


class RedisStore(KeyValueStore):
    """Redis-backed store; each key holds one JSON-encoded value."""

    backend = "redis"

    def __init__(self, client: "redis.Redis") -> None:
        self.client = client

    @classmethod
    def connect(cls, url: str, connect_timeout: float = 5.0) -> "RedisStore":
        """Open a client and verify the server answers.

        Raises:
            redis.exceptions.RedisError: If the server cannot be reached.
        """
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=connect_timeout,
        )
        client.ping()
        return cls(client)

    def get(self, key: str) -> Any | None:
        try:
            raw = self.client.get(key)
        except redis.exceptions.RedisError as e:
            log.warning("redis_read_failed", key=key, error=str(e))
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            log.warning("redis_value_corrupt", key=key, error=str(e))
            return None

    def set(self, key: str, value: Any) -> None:
        """Write one value. Runtime failures raise; only startup falls back to memory."""
        try:
            self.client.set(key, json.dumps(value, ensure_ascii=False))
        except redis.exceptions.RedisError as e:
            log.error("redis_write_failed", key=key, error=str(e))
            raise PersistenceError(f"Redis write failed for {key!r}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.exceptions.RedisError as e:
            log.error("redis_delete_failed", key=key, error=str(e))
            raise PersistenceError(f"Redis delete failed for {key!r}: {e}") from e


def create_store(config: TimetableConfig) -> KeyValueStore:
    """Pick the persistence tier for this process.

    Redis when REDIS_URL is set (falling back to memory, once, if it cannot be
    reached), else the JSON file when STORE_PATH is set, else memory.
    """
    if config.redis_url:
        try:
            store = RedisStore.connect(config.redis_url, config.redis_connect_timeout)
        except redis.exceptions.RedisError as e:
            log.error("redis_connect_failed", error=str(e), fallback="memory")
            return MemoryStore()
        log.info("store_selected", backend=store.backend)
        return store

    if config.store_path:
        store = FileStore(config.store_path)
        log.info("store_selected", backend=store.backend, path=config.store_path)
        return store

    log.warning(
        "store_selected",
        backend="memory",
        reason="REDIS_URL and STORE_PATH not set, data lost on restart",
    )
    return MemoryStore()
