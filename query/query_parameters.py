"""
Query parameter handling for Diagnostics Explorer.

This module serializes the filter state and pagination of a server-side
resource into the outbound query parameters of a remote fetch, and reads
inbound parameters (deep links) back into a filter state.

Server endpoints accept zero or one value per dimension even though the
client-side filter model allows sets; a server-side selection with more
than one value cannot be expressed and is rejected here.
"""

import logging
from typing import Dict, List, Mapping, Optional, Tuple

from core.exceptions import ValidationError
from data_handling.records import ResourceSchema
from .filter_state import FilterState
from .pagination import PaginationState

QUERY_PARAM = 'q'
LIMIT_PARAM = 'limit'
OFFSET_PARAM = 'offset'


def validate_query_parameters(schema: ResourceSchema, filter_state: FilterState) -> List[str]:
    """
    Validate that a filter state can be sent to a server-side resource.

    Args:
        schema: Target resource
        filter_state: Filter state to serialize

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    for dimension in filter_state.active_dimensions:
        if dimension not in schema.dimensions:
            errors.append(f"Unknown dimension '{dimension}' for resource '{schema.name}'")
            continue
        values = filter_state.selected_values(dimension)
        if len(values) > 1:
            errors.append(
                f"Dimension '{dimension}' accepts a single value server-side, got {len(values)}"
            )
    return errors


def build_query_params(
    schema: ResourceSchema,
    filter_state: FilterState,
    pagination: Optional[PaginationState] = None,
    fixed_params: Optional[Mapping[str, str]] = None
) -> Dict[str, str]:
    """
    Serialize filter state and pagination into query parameters.

    Args:
        schema: Target resource
        filter_state: Current filters
        pagination: Page to request (limit/offset omitted when None)
        fixed_params: Overrides for the resource's fixed parameters

    Returns:
        Ordered mapping of parameter name to value

    Raises:
        ValidationError: If the filter state cannot be expressed server-side
    """
    errors = validate_query_parameters(schema, filter_state)
    if errors:
        error_msg = "; ".join(errors)
        logging.error(f"Cannot serialize filters for '{schema.name}': {error_msg}")
        raise ValidationError(error_msg, field='selected')

    params: Dict[str, str] = {}
    if pagination is not None:
        params[LIMIT_PARAM] = str(pagination.page_size)
        params[OFFSET_PARAM] = str(pagination.offset)

    query = filter_state.query.strip()
    if query:
        params[QUERY_PARAM] = query

    merged_fixed = dict(schema.fixed_params)
    merged_fixed.update(fixed_params or {})
    for name, value in merged_fixed.items():
        if value and str(value).strip():
            params[name] = str(value).strip()

    for dimension in schema.dimensions:
        values = filter_state.selected_values(dimension)
        if values:
            params[schema.param_name(dimension)] = next(iter(values))

    return params


def parse_query_params(
    schema: ResourceSchema,
    params: Mapping[str, str],
    fixed_names: Tuple[str, ...] = ()
) -> Tuple[FilterState, Dict[str, str]]:
    """
    Read inbound parameters (e.g. a deep link) into a filter state.

    Args:
        schema: Resource the parameters refer to
        params: Raw parameter mapping
        fixed_names: Names of non-filter parameters to hand back unchanged

    Returns:
        Tuple of (filter state, fixed parameter values found)
    """
    selected = {}
    for dimension in schema.dimensions:
        value = (params.get(schema.param_name(dimension)) or '').strip()
        if value:
            selected[dimension] = frozenset({value})

    fixed = {}
    for name in tuple(schema.fixed_params) + tuple(fixed_names):
        value = (params.get(name) or '').strip()
        if value:
            fixed[name] = value

    query = (params.get(QUERY_PARAM) or '').strip()
    return FilterState(query=query, selected=selected), fixed
