"""
Tests for the record model, payload normalization and the record store.
"""

import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.exceptions import ValidationError
from data_handling.record_store import RecordStore
from data_handling.records import (
    CENTERS_SCHEMA,
    PLACEHOLDER,
    PRICING_SCHEMA,
    TESTS_SCHEMA,
    Record,
    RecordCollection,
    collection_from_payload,
    display_value,
    get_resource_schema,
    kpis_from_payload,
    parse_price,
    record_from_raw
)


class TestParsePrice:
    """Test raw price parsing"""

    def test_numbers_pass_through(self):
        assert parse_price(350) == 350.0
        assert parse_price(99.5) == 99.5

    def test_numeric_strings(self):
        """Strings are trimmed and thousands separators dropped"""
        assert parse_price(" 1200 ") == 1200.0
        assert parse_price("1,250.50") == 1250.5

    def test_unparseable_values(self):
        """Missing, blank, non-numeric and non-finite values give None"""
        for raw in (None, '', '   ', 'N/A', 'abc', float('nan'), 'inf', True):
            assert parse_price(raw) is None, raw

    def test_sign_is_kept(self):
        """Non-positive prices parse; aggregation filters them later"""
        assert parse_price(0) == 0.0
        assert parse_price("-20") == -20.0


class TestRecordFromRaw:
    """Test normalization of payload items"""

    def test_tests_item(self):
        """Core fields, dimensions and extras are split"""
        raw = {
            'test_code': 'CBC01',
            'test_name': 'Complete Blood Count',
            'mrp': '350',
            'department': 'Hematology',
            'sampleType_name': 'Whole Blood',
            'disease_name': None,
            'tat': '24 hrs',
        }
        record = record_from_raw(raw, TESTS_SCHEMA)

        assert record.code == 'CBC01'
        assert record.name == 'Complete Blood Count'
        assert record.price == 350.0
        assert record.price_raw == '350'
        assert record.value('department') == 'Hematology'
        assert record.value('specimen') == 'Whole Blood'
        assert record.value('disease') is None
        assert dict(record.extras) == {'tat': '24 hrs'}

    def test_centers_item_has_no_price(self):
        """Centers map city_name to both name and the city dimension"""
        record = record_from_raw({'center_code': 'C-7', 'city_name': 'Pune', 'pincode': 411001},
                                 CENTERS_SCHEMA)

        assert record.code == 'C-7'
        assert record.name == 'Pune'
        assert record.price is None
        assert record.value('city') == 'Pune'
        assert record.extras['pincode'] == 411001

    def test_blank_dimension_is_missing(self):
        """Whitespace-only dimension values are treated as missing"""
        record = record_from_raw({'test_code': 'X', 'test_name': 'X', 'department': '  '}, PRICING_SCHEMA)
        assert record.value('department') is None

    def test_record_is_immutable(self):
        """Records and their mappings are read-only"""
        record = Record(code='A', name='Alpha', attributes={'department': 'Bio'})

        with pytest.raises(AttributeError):
            record.code = 'B'
        with pytest.raises(TypeError):
            record.attributes['department'] = 'Other'

    def test_field_text_for_search(self):
        """field_text resolves core, dimension and extra fields"""
        record = Record(code='A1', name='Alpha', attributes={'city': 'Delhi'}, extras={'pincode': 110001})

        assert record.field_text('code') == 'A1'
        assert record.field_text('name') == 'Alpha'
        assert record.field_text('city') == 'Delhi'
        assert record.field_text('pincode') == '110001'
        assert record.field_text('unknown') == ''


class TestCollectionFromPayload:
    """Test collection building from list and envelope payloads"""

    def test_plain_list(self):
        payload = [
            {'test_code': 'A', 'test_name': 'Alpha', 'mrp': 100, 'department': 'Bio', 'city': 'Pune'},
            {'test_code': 'B', 'test_name': 'Beta', 'mrp': 'n/a', 'department': 'Bio', 'city': 'Goa'},
        ]
        collection = collection_from_payload(payload, PRICING_SCHEMA)

        assert [record.code for record in collection] == ['A', 'B']
        assert collection.total == 2
        assert not collection.is_paginated
        assert collection.records[1].price is None

    def test_envelope(self):
        """Envelope metadata is preserved"""
        payload = {
            'total': 120,
            'limit': 15,
            'offset': 30,
            'results': [{'test_code': 'CBC01', 'test_name': 'CBC', 'mrp': 350}],
        }
        collection = collection_from_payload(payload, TESTS_SCHEMA)

        assert len(collection) == 1
        assert collection.total == 120
        assert collection.limit == 15
        assert collection.offset == 30
        assert collection.is_paginated

    def test_empty_list_is_valid(self):
        """An empty payload is an empty collection, not an error"""
        collection = collection_from_payload([], PRICING_SCHEMA)
        assert len(collection) == 0
        assert collection.total == 0

    def test_non_object_items_are_skipped(self):
        collection = collection_from_payload([{'test_code': 'A', 'test_name': 'A'}, 'junk', 7],
                                             PRICING_SCHEMA)
        assert [record.code for record in collection] == ['A']

    @pytest.mark.parametrize("payload", [None, 'text', {'data': []}, 42])
    def test_unexpected_shape_raises(self, payload):
        with pytest.raises(ValidationError):
            collection_from_payload(payload, PRICING_SCHEMA)

    def test_malformed_envelope_raises(self):
        with pytest.raises(ValidationError):
            collection_from_payload({'total': 'lots', 'results': []}, TESTS_SCHEMA)


class TestHelpers:
    """Test schema lookup, KPI parsing and display placeholders"""

    def test_get_resource_schema(self):
        assert get_resource_schema('tests') is TESTS_SCHEMA
        with pytest.raises(ValidationError):
            get_resource_schema('patients')

    def test_tests_schema_parameters(self):
        """Server-side dimensions map onto the service's parameter names"""
        assert TESTS_SCHEMA.server_side
        assert TESTS_SCHEMA.param_name('specimen') == 'specimenId'
        assert TESTS_SCHEMA.param_name('disease') == 'diseaseId'
        assert PRICING_SCHEMA.param_name('city') == 'city'

    def test_kpis_from_payload(self):
        items = kpis_from_payload([
            {'label': 'Total Tests', 'value': 1520},
            {'label': 'Broken', 'value': 'n/a'},
            'junk',
        ])
        assert [(item.label, item.value) for item in items] == [('Total Tests', 1520.0)]

    def test_kpis_require_list(self):
        with pytest.raises(ValidationError):
            kpis_from_payload({'label': 'x'})

    def test_display_value(self):
        assert display_value(None) == PLACEHOLDER
        assert display_value('  ') == PLACEHOLDER
        assert display_value('Serum') == 'Serum'
        assert display_value(0) == '0'


class TestRecordStore:
    """Test snapshot replacement"""

    def test_initial_state(self):
        """Before the first fetch the store holds an empty, unloaded snapshot"""
        store = RecordStore('pricing')

        assert store.version == 0
        assert not store.is_loaded
        assert len(store.current()) == 0

    def test_replace_swaps_and_bumps_version(self):
        store = RecordStore('pricing')
        first = RecordCollection(records=(Record(code='A', name='Alpha'),))
        second = RecordCollection(records=())

        assert store.replace(first) == 1
        assert store.current() is first
        assert store.replace(second) == 2
        assert store.current() is second
        assert store.is_loaded
