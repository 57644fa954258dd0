"""
Remote data source for Diagnostics Explorer.

Read-only access to the analytics service over ``httpx.AsyncClient``:
record collections by resource path, filter vocabularies and the KPI
overview. Every failure of the round trip (network error, non-success
status, undecodable or mis-shaped payload) surfaces as TransportError so
that callers can tell a failed fetch apart from an empty result.
"""

import logging
from typing import Any, List, Mapping, Optional

import httpx

from .exceptions import ConfigurationError, FetchCancelledError, TransportError, ValidationError

logger = logging.getLogger(__name__)

OVERVIEW_PATH = '/overview'


class CancellationToken:
    """Abort signal shared between a fetch controller and one fetch."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class RemoteDataSource:
    """
    Fetches raw payloads from the analytics service.

    A fresh client is opened per request so that a data source can be
    shared by sessions running on different event loops (tests).
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the data source.

        Args:
            base_url: Service root, e.g. https://host/api
            timeout_seconds: Per-request timeout passed to httpx
            transport: Optional transport override (httpx.MockTransport in tests)
        """
        if not base_url or not base_url.strip():
            raise ConfigurationError("Data source base_url must not be empty", field='base_url')
        self.base_url = base_url.strip().rstrip('/')
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            transport=self._transport,
        )

    async def _get_json(
        self,
        path: str,
        resource: str,
        params: Optional[Mapping[str, str]] = None,
        token: Optional[CancellationToken] = None
    ) -> Any:
        """
        GET a path and decode its JSON body.

        Raises:
            TransportError: On network error, non-2xx status or invalid JSON
            FetchCancelledError: If the token was cancelled before or during the request
        """
        if token is not None and token.cancelled:
            raise FetchCancelledError("Fetch cancelled before request", resource=resource)

        url = f"{self.base_url}{path}"
        try:
            async with self._client() as client:
                response = await client.get(path, params=dict(params or {}))
        except httpx.HTTPError as e:
            logger.error(f"Request to {url} failed: {e}")
            raise TransportError(f"Request failed: {e}", resource=resource, url=url)

        if token is not None and token.cancelled:
            raise FetchCancelledError("Fetch cancelled during request", resource=resource)

        if not response.is_success:
            logger.error(f"Request to {url} returned HTTP {response.status_code}")
            raise TransportError(
                f"Unexpected HTTP status {response.status_code}",
                resource=resource,
                status_code=response.status_code,
                url=str(response.request.url),
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from {url}: {e}")
            raise TransportError(
                "Response body is not valid JSON",
                resource=resource,
                status_code=response.status_code,
                url=str(response.request.url),
            )

    async def fetch_collection(
        self,
        schema,
        params: Optional[Mapping[str, str]] = None,
        token: Optional[CancellationToken] = None
    ):
        """
        Fetch and normalize a resource's record collection.

        Args:
            schema: ResourceSchema of the resource
            params: Outbound query parameters
            token: Cancellation token checked around the request

        Returns:
            RecordCollection

        Raises:
            TransportError: If the fetch fails or the payload is malformed
            FetchCancelledError: If the token was cancelled
        """
        from data_handling.records import collection_from_payload

        payload = await self._get_json(schema.path, schema.name, params, token)
        try:
            collection = collection_from_payload(payload, schema)
        except ValidationError as e:
            logger.error(f"Malformed payload for '{schema.name}': {e}")
            raise TransportError(f"Malformed payload: {e.message}", resource=schema.name,
                                 url=f"{self.base_url}{schema.path}")

        logger.info(f"Fetched {len(collection)} '{schema.name}' records (total {collection.total})")
        return collection

    async def fetch_vocabulary(self, path: str) -> List[str]:
        """
        Fetch a filter vocabulary.

        Returns:
            Non-blank string values in the order the service sent them; an
            empty list when the payload is not a list
        """
        payload = await self._get_json(path, 'vocabulary')
        if not isinstance(payload, list):
            logger.warning(f"Vocabulary at {path} is not a list; ignoring")
            return []
        values = (str(item).strip() for item in payload if item is not None)
        return [value for value in values if value]

    async def fetch_overview(self):
        """
        Fetch the KPI overview list.

        Raises:
            TransportError: If the fetch fails or the payload is not a list
        """
        from data_handling.records import kpis_from_payload

        payload = await self._get_json(OVERVIEW_PATH, 'overview')
        try:
            return kpis_from_payload(payload)
        except ValidationError as e:
            raise TransportError(f"Malformed payload: {e.message}", resource='overview',
                                 url=f"{self.base_url}{OVERVIEW_PATH}")


_data_source: Optional[RemoteDataSource] = None


def get_data_source() -> RemoteDataSource:
    """
    Get the global data source built from configuration.

    Returns:
        RemoteDataSource instance

    Raises:
        ConfigurationError: If no base URL is configured
    """
    global _data_source
    if _data_source is None:
        from config_manager import get_config

        config = get_config()
        _data_source = RemoteDataSource(
            config.data_source.base_url,
            timeout_seconds=config.data_source.timeout_seconds,
        )
    return _data_source


def reset_data_source():
    """Reset the global data source (useful for testing)."""
    global _data_source
    _data_source = None
