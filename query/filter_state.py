"""
Filter state for the explorer.

Pure data: the current free-text query and the selected values per
categorical dimension. Instances are immutable; every edit returns a new
FilterState so that derived views can compare states by equality.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional


@dataclass(frozen=True)
class FilterState:
    """Current user selection/filters."""
    query: str = ''
    selected: Mapping[str, FrozenSet[str]] = field(default_factory=dict)

    def __post_init__(self):
        # Empty selections impose no constraint, so drop them to keep equality exact
        normalised = {
            dimension: frozenset(values)
            for dimension, values in self.selected.items()
            if values
        }
        object.__setattr__(self, 'selected', MappingProxyType(normalised))

    def __hash__(self) -> int:
        return hash((self.query, frozenset(self.selected.items())))

    def selected_values(self, dimension: str) -> FrozenSet[str]:
        return self.selected.get(dimension, frozenset())

    @property
    def active_dimensions(self) -> List[str]:
        return sorted(self.selected)

    @property
    def has_selections(self) -> bool:
        return bool(self.selected)

    def with_query(self, query: str) -> 'FilterState':
        return FilterState(query=query, selected=self.selected)

    def toggle(self, dimension: str, value: str, single: bool = False) -> 'FilterState':
        """
        Add the value to the dimension's selection if absent, remove it if present.

        With ``single`` the dimension holds at most one value: selecting a new
        value replaces the previous one.
        """
        current = self.selected_values(dimension)
        if value in current:
            updated = current - {value}
        elif single:
            updated = frozenset({value})
        else:
            updated = current | {value}
        selected = dict(self.selected)
        selected[dimension] = updated
        return FilterState(query=self.query, selected=selected)

    def with_selection(self, dimension: str, values: Iterable[str]) -> 'FilterState':
        selected = dict(self.selected)
        selected[dimension] = frozenset(values)
        return FilterState(query=self.query, selected=selected)

    def cleared(self, dimension: Optional[str] = None) -> 'FilterState':
        """Drop the selection of one dimension, or of all dimensions."""
        if dimension is None:
            return FilterState(query=self.query)
        selected = {k: v for k, v in self.selected.items() if k != dimension}
        return FilterState(query=self.query, selected=selected)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            'query': self.query,
            'selected': {dimension: sorted(values) for dimension, values in self.selected.items()},
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'FilterState':
        """Create from dictionary for deserialization."""
        if not data:
            return cls()
        selected = data.get('selected') or {}
        return cls(
            query=str(data.get('query') or ''),
            selected={str(k): frozenset(str(v) for v in (values or [])) for k, values in selected.items()},
        )
