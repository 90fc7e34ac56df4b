"""Async key/value storage with pluggable backends.

Values live in named collections under string keys. Handlers use the
store; the dispatcher never touches it.

Backends:
    memory -- nested dicts, gone when the process exits
    sqlite -- one table per collection, values stored as JSON

Usage::

    storage = Storage("sqlite", path="app.db")
    await storage.init()
    await storage.set("users", "42", {"name": "Ada"})
    await storage.get("users", "42")      # {"name": "Ada"}
    await storage.get_all("users")        # [{"name": "Ada"}]
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Protocol

import anyio

from wren.data._sqlite import AsyncConnection, connect
from wren.data.errors import StorageError
from wren.errors import ConfigurationError

logger = logging.getLogger("wren.data")

_COLLECTION_NAME = re.compile(r"^[A-Za-z0-9_]+$")


class StorageBackend(Protocol):
    """What a storage backend provides. All operations are async."""

    async def init(self) -> None: ...

    async def set(self, collection: str, key: str, value: Any) -> None: ...

    async def get(self, collection: str, key: str) -> Any: ...

    async def get_all(self, collection: str) -> list[Any]: ...

    async def delete(self, collection: str, key: str) -> None: ...

    async def clear(self, collection: str) -> None: ...

    async def close(self) -> None: ...


class MemoryBackend:
    """Dict-backed storage. Needs no initialization."""

    __slots__ = ("_collections",)

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Any]] = {}

    async def init(self) -> None:
        return None

    async def set(self, collection: str, key: str, value: Any) -> None:
        self._collections.setdefault(collection, {})[key] = value

    async def get(self, collection: str, key: str) -> Any:
        return self._collections.get(collection, {}).get(key)

    async def get_all(self, collection: str) -> list[Any]:
        return list(self._collections.get(collection, {}).values())

    async def delete(self, collection: str, key: str) -> None:
        self._collections.get(collection, {}).pop(key, None)

    async def clear(self, collection: str) -> None:
        self._collections[collection] = {}

    async def close(self) -> None:
        self._collections.clear()


class SQLiteBackend:
    """SQLite-backed storage.

    Each collection is a table ``(id TEXT PRIMARY KEY, value TEXT)``,
    created the first time the collection is used. Re-setting a key keeps
    its original position, so ``get_all()`` returns values in first-insert
    order, same as the memory backend.
    """

    __slots__ = ("_conn", "_lock", "_tables", "path")

    def __init__(self, path: str | Path = ":memory:") -> None:
        self.path = str(path)
        self._conn: AsyncConnection | None = None
        self._lock: anyio.Lock | None = None
        self._tables: set[str] = set()

    async def init(self) -> None:
        if self._conn is not None:
            return
        try:
            self._conn = await connect(self.path)
        except Exception as exc:
            msg = f"Cannot open SQLite database at {self.path!r}: {exc}"
            raise StorageError(msg) from exc
        self._lock = anyio.Lock()
        logger.debug("SQLite storage opened at %s", self.path)

    def _connection(self) -> tuple[AsyncConnection, anyio.Lock]:
        if self._conn is None or self._lock is None:
            raise StorageError("SQLite storage is not initialized; call init() first")
        return self._conn, self._lock

    async def _ensure_table(self, conn: AsyncConnection, collection: str) -> str:
        if not _COLLECTION_NAME.match(collection):
            msg = f"Invalid collection name {collection!r}: use letters, digits, and underscores"
            raise StorageError(msg)
        table = f'"c_{collection}"'
        if collection not in self._tables:
            await conn.execute(
                f"CREATE TABLE IF NOT EXISTS {table} (id TEXT PRIMARY KEY, value TEXT NOT NULL)"
            )
            self._tables.add(collection)
        return table

    async def set(self, collection: str, key: str, value: Any) -> None:
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as exc:
            msg = f"Value for {collection}/{key} is not JSON-serializable: {exc}"
            raise StorageError(msg) from exc
        conn, lock = self._connection()
        async with lock:
            table = await self._ensure_table(conn, collection)
            await conn.execute(
                f"INSERT INTO {table} (id, value) VALUES (?, ?) "
                "ON CONFLICT(id) DO UPDATE SET value = excluded.value",
                (key, encoded),
            )

    async def get(self, collection: str, key: str) -> Any:
        conn, lock = self._connection()
        async with lock:
            table = await self._ensure_table(conn, collection)
            row = await conn.fetchone(f"SELECT value FROM {table} WHERE id = ?", (key,))
        return json.loads(row[0]) if row is not None else None

    async def get_all(self, collection: str) -> list[Any]:
        conn, lock = self._connection()
        async with lock:
            table = await self._ensure_table(conn, collection)
            rows = await conn.fetchall(f"SELECT value FROM {table} ORDER BY rowid")
        return [json.loads(row[0]) for row in rows]

    async def delete(self, collection: str, key: str) -> None:
        conn, lock = self._connection()
        async with lock:
            table = await self._ensure_table(conn, collection)
            await conn.execute(f"DELETE FROM {table} WHERE id = ?", (key,))

    async def clear(self, collection: str) -> None:
        conn, lock = self._connection()
        async with lock:
            table = await self._ensure_table(conn, collection)
            await conn.execute(f"DELETE FROM {table}")

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None
        self._lock = None
        self._tables.clear()


_BACKENDS = ("memory", "sqlite")


class Storage:
    """Key/value store facade over a backend.

    Pass a backend name (``"memory"`` or ``"sqlite"``) or any object
    implementing ``StorageBackend``. Every operation requires ``init()``
    to have been awaited first.
    """

    __slots__ = ("_backend", "_initialized")

    def __init__(
        self,
        backend: str | StorageBackend = "memory",
        *,
        path: str | Path = ":memory:",
    ) -> None:
        if isinstance(backend, str):
            if backend == "memory":
                self._backend: StorageBackend = MemoryBackend()
            elif backend == "sqlite":
                self._backend = SQLiteBackend(path)
            else:
                expected = ", ".join(_BACKENDS)
                msg = f"Unknown storage backend {backend!r}. Expected one of: {expected}"
                raise ConfigurationError(msg)
        else:
            self._backend = backend
        self._initialized = False

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _require_init(self) -> StorageBackend:
        if not self._initialized:
            raise StorageError("Storage used before init()")
        return self._backend

    async def init(self) -> None:
        if self._initialized:
            return
        await self._backend.init()
        self._initialized = True

    async def set(self, collection: str, key: str, value: Any) -> None:
        await self._require_init().set(collection, key, value)

    async def get(self, collection: str, key: str) -> Any:
        """Return the stored value, or ``None`` when the key is missing."""
        return await self._require_init().get(collection, key)

    async def get_all(self, collection: str) -> list[Any]:
        return await self._require_init().get_all(collection)

    async def delete(self, collection: str, key: str) -> None:
        await self._require_init().delete(collection, key)

    async def clear(self, collection: str) -> None:
        await self._require_init().clear(collection)

    async def close(self) -> None:
        if not self._initialized:
            return
        await self._backend.close()
        self._initialized = False
