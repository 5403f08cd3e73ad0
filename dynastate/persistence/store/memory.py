"""In-memory durable state store.

Keeps the same attribute maps the DynamoDB store would write, keyed by
actor id, so records pass through the real mapper and payload resolver on
both paths.  Contents are lost when the process exits.

Useful for tests and for embedding the adapter without AWS access.
"""

from __future__ import annotations

import copy

from loguru import logger

from dynastate.persistence.errors import StoreNotConnectedError
from dynastate.persistence.models.state import DurableState
from dynastate.persistence.payload import TypeRegistry
from dynastate.persistence.store.mapper import ACTOR_ID, AttributeMap, to_item, to_state


class InMemoryStateStore:
    """In-memory implementation of the DurableStateStore protocol."""

    def __init__(self, *, registry: TypeRegistry | None = None) -> None:
        self._registry = registry
        self._items: dict[str, AttributeMap] = {}
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise StoreNotConnectedError

    # -- Lifecycle -------------------------------------------------------------

    async def connect(self) -> None:
        self._connected = True
        logger.info("In-memory state store connected")

    async def disconnect(self) -> None:
        # Records survive a reconnect, like a remote table would.
        self._connected = False

    async def ping(self) -> None:
        self._ensure_connected()

    # -- Write -----------------------------------------------------------------

    async def write_state(self, state: DurableState) -> None:
        self._ensure_connected()
        item = to_item(state)
        self._items[item[ACTOR_ID]["S"]] = item
        logger.debug("State written: actor={} version={}", state.actor_id, state.version_number)

    # -- Read ------------------------------------------------------------------

    async def get_latest_state(self, actor_id: str) -> DurableState | None:
        self._ensure_connected()
        item = self._items.get(actor_id)
        if item is None:
            return None
        return to_state(copy.deepcopy(item), self._registry)

    # -- Utilities -------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._items)
