"""
Record store for Diagnostics Explorer.

Holds the immutable snapshot of the last successfully fetched collection for
one resource. Each successful fetch fully replaces the prior snapshot; there
are no merge or patch semantics.
"""

import logging
from typing import Optional

from .records import RecordCollection

logger = logging.getLogger(__name__)


class RecordStore:
    """Snapshot holder for a single resource."""

    def __init__(self, resource: str, initial: Optional[RecordCollection] = None):
        self.resource = resource
        self._snapshot = initial if initial is not None else RecordCollection()
        self._version = 0
        self._loaded = initial is not None

    def replace(self, collection: RecordCollection) -> int:
        """
        Atomically swap the current snapshot.

        Args:
            collection: The newly fetched collection

        Returns:
            The new store version
        """
        self._snapshot = collection
        self._version += 1
        self._loaded = True
        logger.debug(
            f"Store '{self.resource}' replaced: {len(collection)} records "
            f"(total={collection.total}, version={self._version})"
        )
        return self._version

    def current(self) -> RecordCollection:
        """Return the current snapshot."""
        return self._snapshot

    @property
    def version(self) -> int:
        """Monotonic counter bumped on every replace."""
        return self._version

    @property
    def is_loaded(self) -> bool:
        """True once any collection has been stored."""
        return self._loaded
