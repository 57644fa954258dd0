"""
Comparison set management for Diagnostics Explorer.

Maintains a user-curated, deduplicated selection of record codes that is
independent of the active filters, plus the typeahead used to add records
to it.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from data_handling.records import Record
from query.predicate import DEFAULT_SEARCH_FIELDS, matches_text

logger = logging.getLogger(__name__)

DEFAULT_COMPARISON_LIMIT = 10
DEFAULT_TYPEAHEAD_LIMIT = 8
DISPLAY_NAME_LENGTH = 15


class ComparisonSet:
    """
    Bounded set of record codes with O(1) membership.

    Codes are kept in selection order. Adding past ``max_size`` is refused.
    """

    def __init__(self, max_size: int = DEFAULT_COMPARISON_LIMIT, typeahead_limit: int = DEFAULT_TYPEAHEAD_LIMIT):
        self.max_size = max_size
        self.typeahead_limit = typeahead_limit
        self._codes: Dict[str, None] = {}

    def __contains__(self, code: object) -> bool:
        return code in self._codes

    def __len__(self) -> int:
        return len(self._codes)

    def __iter__(self):
        return iter(tuple(self._codes))

    @property
    def is_full(self) -> bool:
        return len(self._codes) >= self.max_size

    def add(self, code: str) -> bool:
        """Add a code; returns False when the set is already at capacity."""
        if code in self._codes:
            return True
        if self.is_full:
            logger.warning(f"Comparison set full ({self.max_size}); '{code}' not added")
            return False
        self._codes[code] = None
        return True

    def remove(self, code: str) -> None:
        self._codes.pop(code, None)

    def toggle(self, code: str) -> bool:
        """
        Add the code if absent, remove it if present.

        Returns:
            True if the code is a member afterwards
        """
        if code in self._codes:
            self.remove(code)
            return False
        return self.add(code)

    def clear(self) -> None:
        self._codes.clear()

    def members(self) -> Tuple[str, ...]:
        """Selected codes in selection order."""
        return tuple(self._codes)

    def resolve(self, records: Iterable[Record]) -> List[Record]:
        """
        Records whose code is selected, in source order.

        Selected codes with no matching record (e.g. after a data refresh)
        are dropped from the result without error.
        """
        if not self._codes:
            return []
        return [record for record in records if record.code in self._codes]

    def typeahead(
        self,
        records: Iterable[Record],
        search: str,
        limit: Optional[int] = None,
        search_fields: Tuple[str, ...] = DEFAULT_SEARCH_FIELDS
    ) -> List[Record]:
        """
        Candidate records to add, matching the search text and not yet selected.

        Args:
            records: Full collection (the active filters do not apply)
            search: Comparison search text
            limit: Maximum number of candidates (defaults to typeahead_limit)
            search_fields: Record fields to match against

        Returns:
            Up to ``limit`` records in source order; empty for blank search
        """
        limit = self.typeahead_limit if limit is None else limit
        needle = (search or '').strip().lower()
        if not needle:
            return []
        candidates = []
        for record in records:
            if record.code in self._codes:
                continue
            if matches_text(record, needle, search_fields):
                candidates.append(record)
                if len(candidates) >= limit:
                    break
        return candidates


def comparison_rows(records: Iterable[Record], label_dimension: str = 'city') -> List[Dict[str, Any]]:
    """
    Chart rows for the side-by-side price comparison.

    Names longer than the display width are truncated with an ellipsis;
    unparseable prices are shown as 0.
    """
    rows = []
    for record in records:
        name = record.name
        if len(name) > DISPLAY_NAME_LENGTH:
            name = name[:DISPLAY_NAME_LENGTH] + '...'
        rows.append({
            'code': record.code,
            'name': name,
            'full_name': record.name,
            'price': record.price if record.price is not None else 0,
            label_dimension: record.value(label_dimension),
        })
    return rows
