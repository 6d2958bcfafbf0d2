"""Exceptions raised by ixtable."""


class TableError(Exception):
    """Base exception for table failures."""


class KeyCollision(TableError):
    """Raised when inserting a record whose key is already stored."""

    def __init__(self, key):
        super().__init__(f"key {key!r} is already present in the table")
        self.key = key


class SerializationError(TableError):
    """Raised when a packed table cannot be decoded."""
