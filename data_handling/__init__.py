"""
Data handling module for Diagnostics Explorer.

This module provides the record model, per-resource snapshot storage and the
debounced fetch loop that keeps a snapshot in step with filter edits.
"""

from .records import (
    PLACEHOLDER,
    Record,
    RecordCollection,
    ResourceSchema,
    KpiItem,
    TESTS_SCHEMA,
    PRICING_SCHEMA,
    CENTERS_SCHEMA,
    get_resource_schema,
    parse_price,
    record_from_raw,
    collection_from_payload,
    display_value
)
from .record_store import RecordStore
from .fetch_controller import FetchController, FetchStatus

__all__ = [
    # Records
    'PLACEHOLDER',
    'Record',
    'RecordCollection',
    'ResourceSchema',
    'KpiItem',
    'TESTS_SCHEMA',
    'PRICING_SCHEMA',
    'CENTERS_SCHEMA',
    'get_resource_schema',
    'parse_price',
    'record_from_raw',
    'collection_from_payload',
    'display_value',

    # Store
    'RecordStore',

    # Fetching
    'FetchController',
    'FetchStatus',
]

# Version info
__version__ = "1.0.0"
