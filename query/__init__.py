"""
Query module for Diagnostics Explorer.

This module provides the filter state, predicate composition, pagination and
the serialization of filters into outbound query parameters.
"""

from .filter_state import FilterState

from .predicate import (
    compose_predicate,
    apply_filter,
    available_values,
    matches_text
)

from .pagination import (
    PaginationState,
    slice_page,
    total_pages,
    clamp_page
)

# Query parameter handling
from .query_parameters import (
    build_query_params,
    parse_query_params,
    validate_query_parameters
)

__all__ = [
    # Filter state
    'FilterState',

    # Predicates
    'compose_predicate',
    'apply_filter',
    'available_values',
    'matches_text',

    # Pagination
    'PaginationState',
    'slice_page',
    'total_pages',
    'clamp_page',

    # Query parameters
    'build_query_params',
    'parse_query_params',
    'validate_query_parameters',
]
