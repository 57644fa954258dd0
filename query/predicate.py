"""
Predicate composition for the explorer.

Builds a single inclusion test over Record from a FilterState:

- the text query matches case-insensitively against the resource's
  searchable fields, and an empty query always matches;
- each dimension with a non-empty selection requires the record's value to
  be one of the selected values (OR within a dimension);
- a record passes iff the text match and every dimension constraint hold
  (AND across dimensions).
"""

from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from data_handling.records import Record
from .filter_state import FilterState

Predicate = Callable[[Record], bool]

DEFAULT_SEARCH_FIELDS = ('name', 'code')


def matches_text(record: Record, needle: str, search_fields: Sequence[str] = DEFAULT_SEARCH_FIELDS) -> bool:
    """
    Case-insensitive substring match of an already lower-cased needle.
    """
    if not needle:
        return True
    return any(needle in record.field_text(name).lower() for name in search_fields)


def compose_predicate(
    filter_state: FilterState,
    search_fields: Optional[Sequence[str]] = None
) -> Predicate:
    """
    Build the combined inclusion test for a filter state.

    Args:
        filter_state: Current query text and dimension selections
        search_fields: Record fields the text query is matched against

    Returns:
        A pure function Record -> bool
    """
    fields = tuple(search_fields or DEFAULT_SEARCH_FIELDS)
    needle = filter_state.query.strip().lower()
    constraints: List[Tuple[str, frozenset]] = [
        (dimension, filter_state.selected_values(dimension))
        for dimension in filter_state.active_dimensions
    ]

    def predicate(record: Record) -> bool:
        if not matches_text(record, needle, fields):
            return False
        for dimension, allowed in constraints:
            if record.value(dimension) not in allowed:
                return False
        return True

    return predicate


def apply_filter(
    records: Iterable[Record],
    filter_state: FilterState,
    search_fields: Optional[Sequence[str]] = None
) -> Tuple[Record, ...]:
    """Stable filter: matching records in their source order."""
    predicate = compose_predicate(filter_state, search_fields)
    return tuple(record for record in records if predicate(record))


def available_values(records: Iterable[Record], dimension: str) -> List[str]:
    """Sorted distinct non-empty values observed for a dimension."""
    return sorted({record.value(dimension) for record in records if record.value(dimension)})
