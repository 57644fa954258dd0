"""
Record model for Diagnostics Explorer.

Source payloads carry an open-ended bag of attributes. Records keep a fixed
core schema (code, name, numeric price, named categorical dimensions) and
move everything else into a read-only ``extras`` mapping that is only ever
used for display.
"""

import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from typing_extensions import TypedDict

from core.exceptions import ValidationError

logger = logging.getLogger(__name__)

PLACEHOLDER = '—'
UNKNOWN_GROUP = 'Unknown'


class PaginationEnvelope(TypedDict):
    """Server-side paginated payload returned by catalog endpoints."""
    total: int
    limit: int
    offset: int
    results: List[Dict[str, Any]]


@dataclass(frozen=True)
class ResourceSchema:
    """
    Describes how one remote resource maps onto the record model.

    ``dimensions`` maps a categorical dimension name to the raw payload field
    holding its value. ``param_names`` and ``vocabulary_paths`` are only used
    by server-side resources.
    """
    name: str
    path: str
    code_field: str
    name_field: str
    price_field: Optional[str] = None
    dimensions: Mapping[str, str] = field(default_factory=dict)
    search_fields: Tuple[str, ...] = ('name', 'code')
    server_side: bool = False
    param_names: Mapping[str, str] = field(default_factory=dict)
    vocabulary_paths: Mapping[str, str] = field(default_factory=dict)
    fixed_params: Mapping[str, str] = field(default_factory=dict)

    def param_name(self, dimension: str) -> str:
        """Outbound query parameter name for a dimension."""
        return self.param_names.get(dimension, dimension)


TESTS_SCHEMA = ResourceSchema(
    name='tests',
    path='/tests',
    code_field='test_code',
    name_field='test_name',
    price_field='mrp',
    dimensions={
        'department': 'department',
        'specimen': 'sampleType_name',
        'disease': 'disease_name',
    },
    server_side=True,
    param_names={
        'department': 'department',
        'specimen': 'specimenId',
        'disease': 'diseaseId',
    },
    vocabulary_paths={
        'department': '/filters/departments',
        'specimen': '/filters/specimens',
        'disease': '/filters/diseases',
    },
    fixed_params={'cityId': ''},
)

PRICING_SCHEMA = ResourceSchema(
    name='pricing',
    path='/pricing/enriched',
    code_field='test_code',
    name_field='test_name',
    price_field='mrp',
    dimensions={'department': 'department', 'city': 'city'},
)

CENTERS_SCHEMA = ResourceSchema(
    name='centers',
    path='/centers',
    code_field='center_code',
    name_field='city_name',
    dimensions={'city': 'city_name'},
)

RESOURCE_SCHEMAS: Dict[str, ResourceSchema] = {
    schema.name: schema for schema in (TESTS_SCHEMA, PRICING_SCHEMA, CENTERS_SCHEMA)
}


def get_resource_schema(name: str) -> ResourceSchema:
    """Look up a built-in resource schema by name."""
    try:
        return RESOURCE_SCHEMAS[name]
    except KeyError:
        raise ValidationError(f"Unknown resource '{name}'", field='resource', value=name)


@dataclass(frozen=True)
class Record:
    """A single immutable catalog record."""
    code: str
    name: str
    price: Optional[float] = None
    price_raw: Any = None
    attributes: Mapping[str, Optional[str]] = field(default_factory=dict)
    extras: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'attributes', MappingProxyType(dict(self.attributes)))
        object.__setattr__(self, 'extras', MappingProxyType(dict(self.extras)))

    def value(self, dimension: str) -> Optional[str]:
        """Categorical value for a dimension, or None when missing."""
        return self.attributes.get(dimension)

    def field_text(self, field_name: str) -> str:
        """Text of a core or extra field for searching."""
        if field_name == 'code':
            return self.code
        if field_name == 'name':
            return self.name
        if field_name in self.attributes:
            return self.attributes[field_name] or ''
        raw = self.extras.get(field_name)
        return '' if raw is None else str(raw)


@dataclass(frozen=True)
class RecordCollection:
    """
    Ordered records from one fetch.

    ``total`` is the server-side match count for paginated payloads and the
    record count otherwise.
    """
    records: Tuple[Record, ...] = ()
    total: Optional[int] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, 'records', tuple(self.records))
        if self.total is None:
            object.__setattr__(self, 'total', len(self.records))

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    @property
    def is_paginated(self) -> bool:
        return self.limit is not None


@dataclass(frozen=True)
class KpiItem:
    """Headline figure from the overview endpoint."""
    label: str
    value: float


def parse_price(value: Any) -> Optional[float]:
    """
    Parse a raw price into a float.

    Returns None for missing, non-numeric or non-finite values. Sign is not
    checked here; aggregation decides which prices count.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(',', '')
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def record_from_raw(raw: Mapping[str, Any], schema: ResourceSchema) -> Record:
    """Normalize one raw payload item into a Record."""
    consumed = {schema.code_field, schema.name_field}
    price_raw = None
    if schema.price_field:
        consumed.add(schema.price_field)
        price_raw = raw.get(schema.price_field)

    attributes = {}
    for dimension, raw_field in schema.dimensions.items():
        attributes[dimension] = _clean_text(raw.get(raw_field))
        consumed.add(raw_field)

    extras = {key: value for key, value in raw.items() if key not in consumed}

    return Record(
        code=_clean_text(raw.get(schema.code_field)) or '',
        name=_clean_text(raw.get(schema.name_field)) or '',
        price=parse_price(price_raw),
        price_raw=price_raw,
        attributes=attributes,
        extras=extras,
    )


def collection_from_payload(payload: Any, schema: ResourceSchema) -> RecordCollection:
    """
    Build a RecordCollection from a decoded JSON payload.

    Accepts either a plain list of items or a pagination envelope.

    Raises:
        ValidationError: If the payload has neither shape
    """
    total = limit = offset = None
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict) and isinstance(payload.get('results'), list):
        items = payload['results']
        try:
            total = int(payload.get('total', len(items)))
            limit = int(payload['limit']) if payload.get('limit') is not None else None
            offset = int(payload['offset']) if payload.get('offset') is not None else None
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Malformed pagination envelope: {e}", field='envelope')
    else:
        raise ValidationError(
            f"Unexpected payload for resource '{schema.name}'",
            field='payload',
            value=type(payload).__name__
        )

    records = []
    skipped = 0
    for item in items:
        if not isinstance(item, dict):
            skipped += 1
            continue
        records.append(record_from_raw(item, schema))

    if skipped:
        logger.warning(f"Skipped {skipped} non-object items in '{schema.name}' payload")

    return RecordCollection(records=tuple(records), total=total, limit=limit, offset=offset)


def kpis_from_payload(payload: Any) -> List[KpiItem]:
    """Build overview KPI items, dropping entries without a numeric value."""
    if not isinstance(payload, list):
        raise ValidationError("Overview payload must be a list", field='payload',
                              value=type(payload).__name__)
    items = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        value = parse_price(entry.get('value'))
        if value is None:
            continue
        items.append(KpiItem(label=str(entry.get('label', '')), value=value))
    return items


def display_value(value: Any, placeholder: str = PLACEHOLDER) -> str:
    """Render a field for table display, substituting a placeholder when empty."""
    if value is None:
        return placeholder
    text = str(value).strip()
    return text if text else placeholder
