"""
Session registry: one ExplorerSession per resource.
Separate module to avoid circular imports between the session and its wiring.
"""

import logging
from typing import Dict, Optional

from config_manager import get_config
from core.data_source import get_data_source
from core.logging_config import configure_logging
from data_handling.fetch_controller import FetchController
from data_handling.record_store import RecordStore
from data_handling.records import get_resource_schema
from state_manager import ExplorerSession

logger = logging.getLogger(__name__)

# Global session tracking, keyed by resource name
_sessions: Dict[str, ExplorerSession] = {}


def get_session(resource: str, data_source=None) -> ExplorerSession:
    """
    Get or create the session for a resource.

    Each resource gets its own store and fetch controller, so a failed or
    slow fetch of one resource never affects another. The first session
    created also applies the [logging] section of the configuration.

    Args:
        resource: Resource name ('tests', 'pricing', 'centers')
        data_source: Data source for a new session (defaults to the global one)

    Returns:
        ExplorerSession for the resource

    Raises:
        ValidationError: If the resource is unknown
    """
    session = _sessions.get(resource)
    if session is not None:
        return session

    schema = get_resource_schema(resource)
    config = get_config()
    configure_logging(config)
    store = RecordStore(resource)
    controller = FetchController(
        schema,
        store,
        data_source or get_data_source(),
        debounce_seconds=config.explorer.debounce_seconds,
    )
    session = ExplorerSession(schema, store, config, controller)
    _sessions[resource] = session
    logger.info(f"Created session for resource '{resource}'")
    return session


def get_active_resources():
    """Names of resources with a live session."""
    return sorted(_sessions)


def reset_sessions():
    """Drop every session, cancelling pending fetches (useful for testing)"""
    for session in _sessions.values():
        if session.controller is not None and session.controller.is_loading:
            session.controller.cancel()
    _sessions.clear()
