"""
Tests for the per-resource session registry.
"""

import logging
import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config_manager
from core.config import BASE_URL_ENV_VAR
from core.exceptions import TransportError, ValidationError
from core.logging_config import reset_logging_state
from data_handling.records import RecordCollection
from session_manager import get_active_resources, get_session, reset_sessions


class EmptyDataSource:
    def __init__(self, fail=False):
        self.fail = fail

    async def fetch_collection(self, schema, params, token):
        if self.fail:
            raise TransportError("Request failed", resource=schema.name)
        return RecordCollection()


@pytest.fixture(autouse=True)
def clean_registry(tmp_path, monkeypatch):
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(BASE_URL_ENV_VAR, raising=False)
    monkeypatch.setattr(config_manager, '_config_instance', None)
    reset_logging_state()
    reset_sessions()
    yield
    reset_sessions()
    reset_logging_state()
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


class TestSessionRegistry:
    """Test get_session and reset_sessions"""

    def test_one_session_per_resource(self):
        source = EmptyDataSource()
        tests_session = get_session('tests', data_source=source)

        assert get_session('tests') is tests_session
        assert get_session('pricing', data_source=source) is not tests_session
        assert get_active_resources() == ['pricing', 'tests']

    def test_session_uses_configured_limits(self):
        session = get_session('centers', data_source=EmptyDataSource())

        assert session.page_size == 15
        assert session.controller.debounce_seconds == 0.3
        assert session.group_dimension == 'city'

    def test_unknown_resource(self):
        with pytest.raises(ValidationError):
            get_session('patients', data_source=EmptyDataSource())

    def test_reset_sessions(self):
        first = get_session('pricing', data_source=EmptyDataSource())
        reset_sessions()

        assert get_active_resources() == []
        assert get_session('pricing', data_source=EmptyDataSource()) is not first

    @pytest.mark.asyncio
    async def test_errors_stay_scoped_to_a_session(self):
        """A failing resource does not affect another resource's state"""
        pricing = get_session('pricing', data_source=EmptyDataSource(fail=True))
        centers = get_session('centers', data_source=EmptyDataSource())
        pricing.controller.debounce_seconds = 0
        centers.controller.debounce_seconds = 0

        pricing.refresh()
        centers.refresh()
        await pricing.controller.wait()
        await centers.controller.wait()

        assert pricing.error is not None
        assert centers.error is None
        assert centers.store.is_loaded
        assert not pricing.store.is_loaded

    def test_first_session_applies_logging_config(self, tmp_path):
        """A [logging] level in config.toml takes effect once a session exists"""
        (tmp_path / "config.toml").write_text('[logging]\nlevel = "DEBUG"\n')

        get_session('pricing', data_source=EmptyDataSource())

        assert logging.getLogger().level == logging.DEBUG
