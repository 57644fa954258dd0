"""
ExplorerSession - state and derived views for one resource of the explorer.

The session owns the user-editable inputs (filter state, page, comparison
selection, comparison search text) and exposes every derived view as a
memoized pure function of declared inputs. A view is recomputed only when
one of its inputs changes; the RecordStore version stands in for the
snapshot itself.

Dependency graph::

    filtered              <- version, filter_state
    aggregation           <- filtered
    total_pages           <- filtered (client) | version (server)
    page_rows             <- filtered, page
    comparison_records    <- version, comparison members
    comparison_candidates <- version, comparison members, comparison search
    vocabulary(dim)       <- version, remote vocabulary
    top_values(dim)       <- version, limit

Server-side resources (filtering and pagination done by the service) hold
only the fetched page; every filter or page edit schedules a fetch through
the FetchController instead.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

from analysis.aggregation import AggregationResult, ValueCount, aggregate, top_values
from analysis.comparison import ComparisonSet
from core.config import Config
from core.exceptions import TransportError
from data_handling.fetch_controller import FetchController
from data_handling.record_store import RecordStore
from data_handling.records import Record, ResourceSchema
from query.filter_state import FilterState
from query.pagination import PaginationState, clamp_page, slice_page, total_pages
from query.predicate import apply_filter, available_values
from query.query_parameters import build_query_params

# Configure logging
logger = logging.getLogger(__name__)

CITY_PARAM = 'cityId'


@dataclass(frozen=True)
class ExplorerView:
    """Every derived view of a session at one point in time."""
    filter_state: FilterState
    page: int
    total_pages: int
    total: int
    page_rows: Tuple[Record, ...]
    aggregation: Optional[AggregationResult]
    comparison_members: Tuple[str, ...]
    comparison_records: Tuple[Record, ...]
    comparison_candidates: Tuple[Record, ...]
    is_loading: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for the presentation layer."""
        return {
            'filter_state': self.filter_state.to_dict(),
            'page': self.page,
            'total_pages': self.total_pages,
            'total': self.total,
            'page_codes': [record.code for record in self.page_rows],
            'aggregation': self.aggregation.to_dict() if self.aggregation else None,
            'comparison_members': list(self.comparison_members),
            'comparison_codes': [record.code for record in self.comparison_records],
            'candidate_codes': [record.code for record in self.comparison_candidates],
            'is_loading': self.is_loading,
            'error': self.error,
        }


class ExplorerSession:
    """
    Filter, pagination and comparison state for one resource plus its derived views.

    Intents mutate the inputs; views are pulled and cached by input key.
    """

    def __init__(
        self,
        schema: ResourceSchema,
        store: RecordStore,
        config: Optional[Config] = None,
        controller: Optional[FetchController] = None,
        group_dimension: Optional[str] = None
    ):
        if config is None:
            from config_manager import get_config
            config = get_config()

        self.schema = schema
        self.store = store
        self.config = config
        self.controller = controller
        self.page_size = config.explorer.page_size
        self.group_dimension = group_dimension or self._default_group_dimension(schema)

        self._filter_state = FilterState()
        self._page = 1
        self._seen_version = store.version
        self._comparison = ComparisonSet(
            max_size=config.explorer.comparison_limit,
            typeahead_limit=config.explorer.typeahead_limit,
        )
        self._comparison_search = ''
        self._remote_vocabularies: Dict[str, List[str]] = {}

        self.fixed_params: Dict[str, str] = dict(schema.fixed_params)
        if CITY_PARAM in self.fixed_params and not self.fixed_params[CITY_PARAM]:
            self.fixed_params[CITY_PARAM] = config.explorer.default_city_id

        self._memo: Dict[str, Tuple[Hashable, Any]] = {}
        self.recomputations: Counter = Counter()

        if controller is not None and controller.on_settled is None:
            controller.on_settled = self._on_fetch_settled

        logger.info(f"ExplorerSession initialized for '{schema.name}' "
                    f"({'server' if schema.server_side else 'client'}-side)")

    @staticmethod
    def _default_group_dimension(schema: ResourceSchema) -> str:
        if 'department' in schema.dimensions:
            return 'department'
        return next(iter(schema.dimensions), 'department')

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    @property
    def filter_state(self) -> FilterState:
        return self._filter_state

    @property
    def page(self) -> int:
        self._sync_store()
        return self._page

    @property
    def comparison_search(self) -> str:
        return self._comparison_search

    @property
    def comparison_members(self) -> Tuple[str, ...]:
        return self._comparison.members()

    @property
    def is_loading(self) -> bool:
        return self.controller is not None and self.controller.is_loading

    @property
    def error(self) -> Optional[TransportError]:
        return self.controller.error if self.controller is not None else None

    def _sync_store(self) -> None:
        """Clamp the page after the snapshot changed underneath the session."""
        version = self.store.version
        if version == self._seen_version:
            return
        self._seen_version = version
        if not self.schema.server_side:
            clamped = clamp_page(self._page, len(self.filtered), self.page_size)
            if clamped != self._page:
                logger.debug(f"Clamped page {self._page} -> {clamped} for '{self.schema.name}'")
                self._page = clamped

    def _derive(self, name: str, key: Hashable, compute: Callable[[], Any]) -> Any:
        cached = self._memo.get(name)
        if cached is not None and cached[0] == key:
            return cached[1]
        value = compute()
        self._memo[name] = (key, value)
        self.recomputations[name] += 1
        return value

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def filtered(self) -> Tuple[Record, ...]:
        """Records passing the current filters, in source order."""
        key = (self.store.version, self._filter_state)
        if self.schema.server_side:
            return self._derive('filtered', key, lambda: self.store.current().records)
        return self._derive(
            'filtered', key,
            lambda: apply_filter(self.store.current(), self._filter_state, self.schema.search_fields)
        )

    @property
    def total(self) -> int:
        """Number of matching records (server-reported for server-side resources)."""
        if self.schema.server_side:
            return self.store.current().total
        return len(self.filtered)

    @property
    def aggregation(self) -> Optional[AggregationResult]:
        explorer = self.config.explorer
        key = (self.store.version, self._filter_state, self.group_dimension)
        return self._derive(
            'aggregation', key,
            lambda: aggregate(
                self.filtered,
                dimension=self.group_dimension,
                bucket_width=explorer.histogram_bucket_width,
                group_limit=explorer.group_stats_limit,
            )
        )

    @property
    def total_pages(self) -> int:
        key = (self.store.version, self._filter_state)
        return self._derive('total_pages', key, lambda: total_pages(self.total, self.page_size))

    @property
    def page_rows(self) -> Tuple[Record, ...]:
        """Rows of the current page."""
        page = self.page
        key = (self.store.version, self._filter_state, page)
        if self.schema.server_side:
            return self._derive('page_rows', key, lambda: self.filtered)
        return self._derive('page_rows', key, lambda: slice_page(self.filtered, page, self.page_size))

    @property
    def comparison_records(self) -> Tuple[Record, ...]:
        key = (self.store.version, self._comparison.members())
        return self._derive(
            'comparison_records', key,
            lambda: tuple(self._comparison.resolve(self.store.current()))
        )

    @property
    def comparison_candidates(self) -> Tuple[Record, ...]:
        key = (self.store.version, self._comparison.members(), self._comparison_search)
        return self._derive(
            'comparison_candidates', key,
            lambda: tuple(self._comparison.typeahead(
                self.store.current(), self._comparison_search, search_fields=self.schema.search_fields
            ))
        )

    def vocabulary(self, dimension: str) -> List[str]:
        """
        Selectable values for a dimension.

        Uses the remote vocabulary when it has been loaded, otherwise the
        values observed in the current snapshot.
        """
        remote = self._remote_vocabularies.get(dimension)
        if remote is not None:
            return list(remote)
        key = (self.store.version,)
        return self._derive(
            f'vocabulary:{dimension}', key,
            lambda: available_values(self.store.current(), dimension)
        )

    def top_values(self, dimension: str, limit: Optional[int] = None) -> List[ValueCount]:
        """
        Most frequent values of a dimension over the whole snapshot.

        Filters are ignored, so the counts describe the resource rather than
        the current selection. ``limit`` defaults to the configured
        ``top_values_limit``; an explicit 0 yields an empty list.
        """
        if limit is None:
            limit = self.config.explorer.top_values_limit
        key = (self.store.version, limit)
        return self._derive(
            f'top_values:{dimension}', key,
            lambda: top_values(self.store.current().records, dimension, limit)
        )

    def snapshot(self) -> ExplorerView:
        """All derived views at once."""
        error = self.error
        return ExplorerView(
            filter_state=self._filter_state,
            page=self.page,
            total_pages=self.total_pages,
            total=self.total,
            page_rows=self.page_rows,
            aggregation=self.aggregation,
            comparison_members=self._comparison.members(),
            comparison_records=self.comparison_records,
            comparison_candidates=self.comparison_candidates,
            is_loading=self.is_loading,
            error=str(error) if error is not None else None,
        )

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    def _set_filter_state(self, filter_state: FilterState) -> None:
        """
        Commit a new filter state and go back to page 1.

        Raises:
            ValidationError: If a server-side resource cannot express the
                state as request parameters; the session is left unchanged
        """
        if filter_state == self._filter_state:
            return
        if self.schema.server_side:
            self._params_for(filter_state, page=1)
        self._filter_state = filter_state
        self._page = 1
        self._schedule_fetch()

    def set_query(self, query: str) -> None:
        self._set_filter_state(self._filter_state.with_query(query or ''))

    def toggle_filter(self, dimension: str, value: str) -> None:
        """Toggle a dimension value; server-side dimensions hold a single value."""
        self._set_filter_state(
            self._filter_state.toggle(dimension, value, single=self.schema.server_side)
        )

    def clear_filters(self, dimension: Optional[str] = None) -> None:
        self._set_filter_state(self._filter_state.cleared(dimension))

    def set_page(self, page: int) -> None:
        """Go to a page, clamped into the valid range."""
        self._sync_store()
        clamped = clamp_page(page, self.total, self.page_size)
        if clamped == self._page:
            return
        self._page = clamped
        if self.schema.server_side:
            self._schedule_fetch()

    def next_page(self) -> None:
        self.set_page(self.page + 1)

    def previous_page(self) -> None:
        self.set_page(self.page - 1)

    def set_fixed_param(self, name: str, value: str) -> None:
        """Change a fixed request parameter (e.g. the city) and refetch."""
        if self.fixed_params.get(name) == value:
            return
        self.fixed_params[name] = value
        self._page = 1
        self._schedule_fetch(force=True)

    def toggle_comparison(self, code: str) -> bool:
        return self._comparison.toggle(code)

    def clear_comparison(self) -> None:
        self._comparison.clear()

    def set_comparison_search(self, search: str) -> None:
        self._comparison_search = search or ''

    def refresh(self) -> None:
        """Refetch the resource with the current parameters."""
        self._schedule_fetch(force=True)

    # ------------------------------------------------------------------
    # Remote interaction
    # ------------------------------------------------------------------

    def query_params(self) -> Dict[str, str]:
        """Outbound parameters for the current state."""
        if not self.schema.server_side:
            return {name: value for name, value in self.fixed_params.items() if value}
        return self._params_for(self._filter_state, self._page)

    def _params_for(self, filter_state: FilterState, page: int) -> Dict[str, str]:
        return build_query_params(
            self.schema,
            filter_state,
            PaginationState(page=page, page_size=self.page_size),
            fixed_params=self.fixed_params,
        )

    def _schedule_fetch(self, force: bool = False) -> None:
        if not (self.schema.server_side or force):
            return
        if self.controller is None:
            logger.debug(f"No fetch controller for '{self.schema.name}'; fetch skipped")
            return
        self.controller.schedule(self.query_params())

    def _on_fetch_settled(self, controller: FetchController) -> None:
        if controller.error is not None or not self.schema.server_side:
            return
        self._seen_version = self.store.version
        clamped = clamp_page(self._page, self.store.current().total, self.page_size)
        if clamped != self._page:
            logger.debug(f"Server page {self._page} out of range for '{self.schema.name}', refetching {clamped}")
            self._page = clamped
            self._schedule_fetch()

    async def load_vocabularies(self) -> Dict[str, List[str]]:
        """
        Fetch the remote vocabulary of every dimension that has one.

        A failed fetch is logged and the dimension keeps falling back to the
        values observed in the snapshot.

        Returns:
            Mapping of dimension to the vocabulary now in effect
        """
        if self.controller is None:
            return {}
        data_source = self.controller.data_source
        for dimension, path in self.schema.vocabulary_paths.items():
            try:
                self._remote_vocabularies[dimension] = await data_source.fetch_vocabulary(path)
            except TransportError as e:
                logger.warning(f"Vocabulary for '{dimension}' unavailable, using observed values: {e}")
        return {dimension: self.vocabulary(dimension) for dimension in self.schema.vocabulary_paths}
