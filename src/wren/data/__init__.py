"""Async key/value storage for handlers.

The dispatcher never depends on storage; handlers reach it through
``app.storage``::

    @app.get("/users/:id")
    async def get_user(req, res):
        user = await app.storage.get("users", req.params["id"])
        ...
"""

from wren.data.errors import DataError, StorageError
from wren.data.storage import MemoryBackend, SQLiteBackend, Storage, StorageBackend

__all__ = [
    "DataError",
    "MemoryBackend",
    "SQLiteBackend",
    "Storage",
    "StorageBackend",
    "StorageError",
]
