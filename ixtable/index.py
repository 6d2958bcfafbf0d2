# ixtable/index.py

import logging

logger = logging.getLogger(__name__)


class CategoryIndex:
    """
    Secondary index of a table:
      - entries: dict mapping category -> set of keys registered under it
      - snapshots: dict mapping key -> frozenset of the categories it was registered with

    Only keys are stored, never records. The snapshot is what makes removal exact:
    a key is taken out of the categories it was added under, not whatever the
    record would report today.
    """

    def __init__(self):
        self.entries = {}  # category -> {key, ...}
        self.snapshots = {}  # key -> frozenset(categories)

    def add(self, key, categories):
        """
        Register `key` under each distinct category.
        Returns the frozenset snapshot that was recorded.
        """
        snapshot = frozenset(categories)
        for cat in snapshot:
            self.entries.setdefault(cat, set()).add(key)
        self.snapshots[key] = snapshot
        return snapshot

    def discard(self, key):
        """
        Remove `key` from every category it was added under.
        Categories left without keys are dropped entirely.
        Returns the snapshot, or an empty frozenset if the key was never added.
        """
        snapshot = self.snapshots.pop(key, frozenset())
        for cat in snapshot:
            keys = self.entries[cat]
            keys.discard(key)
            if not keys:
                del self.entries[cat]
                logger.debug("dropped empty category %r", cat)
        return snapshot

    def locate(self, category):
        """Returns the keys registered under a category."""
        return frozenset(self.entries.get(category, ()))

    def locate_many(self, categories):
        """Returns the union of keys registered under any of the categories."""
        result = set()
        for cat in categories:
            keys = self.entries.get(cat)
            if keys:
                result.update(keys)
        return result

    def categories_of(self, key):
        return self.snapshots.get(key, frozenset())

    def count(self, category):
        return len(self.entries.get(category, ()))

    def clear(self):
        self.entries.clear()
        self.snapshots.clear()

    def stats(self):
        return {
            "distinct_categories": len(self.entries),
            "total_entries": sum(len(keys) for keys in self.entries.values()),
        }

    def __contains__(self, category):
        return category in self.entries

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)
