"""Data layer error hierarchy."""

from wren.errors import WrenError


class DataError(WrenError):
    """Base for all wren.data errors."""


class StorageError(DataError):
    """Raised when a storage operation cannot be carried out."""
