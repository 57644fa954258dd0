"""
Tests for filter state and predicate composition.
"""

import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data_handling.records import Record
from query.filter_state import FilterState
from query.predicate import apply_filter, available_values, compose_predicate


def make_record(code, name, department=None, city=None, price=None):
    return Record(code=code, name=name, price=price,
                  attributes={'department': department, 'city': city})


CATALOG = (
    make_record('CBC01', 'Complete Blood Count', 'Hematology', 'Pune', 350),
    make_record('LFT02', 'Liver Function Test', 'Biochemistry', 'Pune', 900),
    make_record('KFT03', 'Kidney Function Test', 'Biochemistry', 'Delhi', 850),
    make_record('ESR04', 'ESR', 'Hematology', 'Delhi', 120),
    make_record('VITD5', 'Vitamin D Total', None, 'Mumbai', 1500),
)


def codes(records):
    return [record.code for record in records]


class TestFilterState:
    """Test immutable filter state helpers"""

    def test_toggle_adds_and_removes(self):
        state = FilterState().toggle('department', 'Hematology')
        assert state.selected_values('department') == frozenset({'Hematology'})

        state = state.toggle('department', 'Biochemistry')
        assert state.selected_values('department') == frozenset({'Hematology', 'Biochemistry'})

        state = state.toggle('department', 'Hematology').toggle('department', 'Biochemistry')
        assert not state.has_selections
        assert state == FilterState()

    def test_toggle_single_replaces(self):
        """Single-valued toggling keeps at most one value"""
        state = FilterState().toggle('department', 'Hematology', single=True)
        state = state.toggle('department', 'Biochemistry', single=True)

        assert state.selected_values('department') == frozenset({'Biochemistry'})

    def test_original_is_unchanged(self):
        original = FilterState(query='cbc')
        original.toggle('city', 'Pune')
        original.with_query('lft')

        assert original.query == 'cbc'
        assert not original.has_selections

    def test_equality_and_hash(self):
        """States built differently but equal compare and hash equal"""
        a = FilterState(query='x', selected={'city': {'Pune', 'Delhi'}, 'department': set()})
        b = FilterState(query='x').with_selection('city', ['Delhi', 'Pune'])

        assert a == b
        assert hash(a) == hash(b)

    def test_cleared(self):
        state = FilterState(query='q', selected={'city': {'Pune'}, 'department': {'Bio'}})

        assert state.cleared('city').active_dimensions == ['department']
        assert state.cleared() == FilterState(query='q')

    def test_dict_round_trip(self):
        state = FilterState(query='cbc', selected={'city': {'Pune', 'Delhi'}})
        data = state.to_dict()

        assert data == {'query': 'cbc', 'selected': {'city': ['Delhi', 'Pune']}}
        assert FilterState.from_dict(data) == state
        assert FilterState.from_dict(None) == FilterState()


class TestComposePredicate:
    """Test the combined inclusion test"""

    def test_empty_state_matches_everything(self):
        assert codes(apply_filter(CATALOG, FilterState())) == codes(CATALOG)

    def test_whitespace_query_matches_everything(self):
        assert codes(apply_filter(CATALOG, FilterState(query='   '))) == codes(CATALOG)

    def test_query_is_case_insensitive_on_name_and_code(self):
        assert codes(apply_filter(CATALOG, FilterState(query='function'))) == ['LFT02', 'KFT03']
        assert codes(apply_filter(CATALOG, FilterState(query='  cbc0 '))) == ['CBC01']

    def test_or_within_dimension(self):
        state = FilterState(selected={'city': {'Pune', 'Mumbai'}})
        assert codes(apply_filter(CATALOG, state)) == ['CBC01', 'LFT02', 'VITD5']

    def test_and_across_dimensions_and_text(self):
        state = FilterState(query='test', selected={'department': {'Biochemistry'}, 'city': {'Delhi'}})
        assert codes(apply_filter(CATALOG, state)) == ['KFT03']

    def test_scenario_cbc_hematology(self):
        """Searching 'cbc' within Hematology yields only CBC01"""
        state = FilterState(query='cbc', selected={'department': {'Hematology'}})
        assert codes(apply_filter(CATALOG, state)) == ['CBC01']

    def test_stale_selection_matches_nothing(self):
        """A selected value no record carries is not an error"""
        state = FilterState(selected={'department': {'Radiology'}})
        assert apply_filter(CATALOG, state) == ()

    def test_missing_dimension_value_never_matches_selection(self):
        state = FilterState(selected={'department': {'Hematology', 'Biochemistry'}})
        assert 'VITD5' not in codes(apply_filter(CATALOG, state))

    def test_filter_is_idempotent(self):
        """Filtering a filtered view again changes nothing"""
        state = FilterState(query='t', selected={'city': {'Pune', 'Delhi'}})
        once = apply_filter(CATALOG, state)

        assert apply_filter(once, state) == once

    def test_custom_search_fields(self):
        """Resources may search on other fields"""
        predicate = compose_predicate(FilterState(query='delhi'), search_fields=('city',))
        assert [record.code for record in CATALOG if predicate(record)] == ['KFT03', 'ESR04']


class TestAvailableValues:
    """Test vocabulary derivation"""

    def test_sorted_distinct_non_empty(self):
        assert available_values(CATALOG, 'department') == ['Biochemistry', 'Hematology']
        assert available_values(CATALOG, 'city') == ['Delhi', 'Mumbai', 'Pune']

    def test_empty_collection(self):
        assert available_values((), 'city') == []
