"""
Fetch/debounce controller for Diagnostics Explorer.

Keeps one resource's RecordStore in step with filter edits. Each call to
``schedule`` restarts a short debounce delay; when it elapses a single fetch
runs with the most recent parameters. Every schedule bumps a generation
counter, and a fetch result is only applied while its generation is still
current, so a superseded fetch can never overwrite newer data even if the
transport ignores cancellation.

States per resource::

    IDLE -> SCHEDULED -> IN_FLIGHT -> SETTLED
                 ^            |
                 +-- CANCELLED <+
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Dict, Optional

from core.data_source import CancellationToken
from core.exceptions import FetchCancelledError, TransportError
from .record_store import RecordStore
from .records import ResourceSchema

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3


class FetchStatus(Enum):
    IDLE = 'idle'
    SCHEDULED = 'scheduled'
    IN_FLIGHT = 'in_flight'
    SETTLED = 'settled'
    CANCELLED = 'cancelled'


class FetchController:
    """
    Debounced, cancellable fetch loop for one resource.

    Must be used from a running event loop; ``schedule`` creates an asyncio
    task and returns immediately.
    """

    def __init__(
        self,
        schema: ResourceSchema,
        store: RecordStore,
        data_source,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        on_settled: Optional[Callable[['FetchController'], None]] = None
    ):
        """
        Initialize the controller.

        Args:
            schema: Resource being fetched
            store: Store receiving successful results
            data_source: Object providing ``fetch_collection(schema, params, token)``
            debounce_seconds: Quiet period before a scheduled fetch starts
            on_settled: Optional listener called after every settled fetch
        """
        self.schema = schema
        self.store = store
        self.data_source = data_source
        self.debounce_seconds = debounce_seconds
        self.on_settled = on_settled

        self.status = FetchStatus.IDLE
        self.error: Optional[TransportError] = None
        self.params: Dict[str, str] = {}
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._token: Optional[CancellationToken] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_loading(self) -> bool:
        return self.status in (FetchStatus.SCHEDULED, FetchStatus.IN_FLIGHT)

    def _abort_current(self) -> bool:
        """Signal the running cycle to stop; returns True if one was running."""
        aborted = False
        if self._token is not None:
            self._token.cancel()
            self._token = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
            aborted = True
        self._task = None
        return aborted

    def schedule(self, params: Optional[Dict[str, str]] = None) -> int:
        """
        (Re)start the debounce timer for a fetch with the given parameters.

        Any pending or in-flight fetch is cancelled and its result will be
        discarded.

        Args:
            params: Outbound query parameters

        Returns:
            Generation number of the scheduled fetch
        """
        if self._abort_current():
            self.status = FetchStatus.CANCELLED
            logger.debug(f"Superseded pending fetch for '{self.schema.name}'")

        self._generation += 1
        self.params = dict(params or {})
        self.status = FetchStatus.SCHEDULED
        self._token = CancellationToken()
        self._task = asyncio.create_task(self._run(self._generation, self.params, self._token))
        return self._generation

    def cancel(self) -> None:
        """Cancel any pending or in-flight fetch without scheduling a new one."""
        self._generation += 1
        if self._abort_current() or self.is_loading:
            self.status = FetchStatus.CANCELLED
            logger.debug(f"Cancelled fetch for '{self.schema.name}'")

    async def wait(self) -> None:
        """Wait until the latest fetch cycle has finished (settled or cancelled)."""
        while self._task is not None:
            task = self._task
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
            if task is self._task:
                return

    async def _run(self, generation: int, params: Dict[str, str], token: CancellationToken) -> None:
        try:
            if self.debounce_seconds > 0:
                await asyncio.sleep(self.debounce_seconds)
            if generation != self._generation:
                return

            self.status = FetchStatus.IN_FLIGHT
            logger.debug(f"Fetching '{self.schema.name}' (generation {generation}) with {params}")
            collection = await self.data_source.fetch_collection(self.schema, params, token)
        except asyncio.CancelledError:
            logger.debug(f"Fetch for '{self.schema.name}' (generation {generation}) cancelled")
            raise
        except FetchCancelledError:
            logger.debug(f"Fetch for '{self.schema.name}' (generation {generation}) aborted by token")
            if generation == self._generation:
                self.status = FetchStatus.CANCELLED
                self._task = None
                self._token = None
            return
        except TransportError as e:
            if generation != self._generation:
                logger.debug(f"Ignoring failure of superseded fetch for '{self.schema.name}': {e}")
                return
            logger.error(f"Fetch for '{self.schema.name}' failed: {e}")
            self._settle(e)
            return

        if generation != self._generation:
            logger.debug(f"Discarding late result of superseded fetch for '{self.schema.name}'")
            return

        self.store.replace(collection)
        self._settle(None)

    def _settle(self, error: Optional[TransportError]) -> None:
        # listeners may schedule the next cycle
        self.error = error
        self.status = FetchStatus.SETTLED
        self._task = None
        self._token = None
        if self.on_settled is not None:
            self.on_settled(self)
