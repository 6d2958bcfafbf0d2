import logging
from typing import Generic, Hashable, Iterable, Protocol, TypeVar, runtime_checkable

from ixtable.errors import KeyCollision
from ixtable.index import CategoryIndex

logger = logging.getLogger(__name__)


@runtime_checkable
class TableRecord(Protocol):
    """
    Anything a Table can store. No base class is required; a record only has to provide:
      - key(): a hashable value unique among the records in one table
      - categories(): zero or more hashable values the record can be found under

    Both methods must be pure. categories() is evaluated once, when the record is inserted.
    """

    def key(self) -> Hashable:
        ...

    def categories(self) -> Iterable[Hashable]:
        ...


R = TypeVar("R", bound=TableRecord)


class Table(Generic[R]):
    """
    In-memory table storing:
      - data: dict mapping key -> record (insertion ordered)
      - index: CategoryIndex mapping category -> keys, plus the categories each key was inserted with

    Every public method leaves data and index in agreement. Records are expected to stay
    unchanged while stored; to change what a record is indexed under, remove it and insert it again.
    """

    def __init__(self, records=None):
        self.data = {}
        self.index = CategoryIndex()
        if records is not None:
            self.extend(records)

    @classmethod
    def from_records(cls, records):
        """Build a table from a sequence of records, failing on the first key collision."""
        return cls(records)

    def insert(self, record: R) -> None:
        """
        Insert a record under record.key().
        Raises KeyCollision, without touching the table, if the key is already stored.
        """
        key = record.key()
        if key in self.data:
            logger.debug("rejected insert, key %r already stored", key)
            raise KeyCollision(key)

        # everything that can fail runs before the first write
        snapshot = frozenset(record.categories())

        self.data[key] = record
        self.index.add(key, snapshot)
        logger.debug("inserted %r under %d categories", key, len(snapshot))

    def extend(self, records: Iterable[R]) -> None:
        """
        Insert every record in order. If any insert fails, the records added by
        this call are removed again and the error is re-raised.
        """
        added = []
        try:
            for record in records:
                self.insert(record)
                added.append(record.key())
        except Exception:
            for key in reversed(added):
                self.remove(key)
            logger.debug("bulk insert rolled back %d records", len(added))
            raise
        logger.debug("bulk inserted %d records", len(added))

    def get(self, key, default=None):
        return self.data.get(key, default)

    def find(self, category) -> list:
        """Returns the records registered under a category, or an empty list."""
        return [self.data[k] for k in self.index.locate(category)]

    def find_many(self, categories) -> list:
        """
        Returns every record registered under at least one of the categories.
        Each record appears once no matter how many categories it matches.
        """
        return [self.data[k] for k in self.index.locate_many(categories)]

    def remove(self, key, default=None):
        """
        Remove and return the record stored under key, or default if there is none.
        The key is taken out of every category it was inserted under.
        """
        if key not in self.data:
            return default
        record = self.data.pop(key)
        snapshot = self.index.discard(key)
        logger.debug("removed %r from %d categories", key, len(snapshot))
        return record

    def clear(self):
        self.data.clear()
        self.index.clear()

    def contains_record(self, record) -> bool:
        return record.key() in self.data

    def has_category(self, category) -> bool:
        return category in self.index

    def categories_of(self, key) -> frozenset:
        """Categories the stored record was inserted with; empty if the key is absent."""
        return self.index.categories_of(key)

    def count(self, category) -> int:
        return self.index.count(category)

    def keys(self):
        return iter(self.data)

    def values(self):
        return iter(self.data.values())

    def items(self):
        return iter(self.data.items())

    def categories(self):
        return iter(self.index)

    def __contains__(self, key):
        return key in self.data

    def __iter__(self):
        return iter(self.data)

    def __len__(self):
        return len(self.data)

    def __repr__(self):
        return f"{type(self).__name__}(records={len(self.data)}, categories={len(self.index)})"
