"""Durable state store interface.

A durable state store keeps exactly one record per actor: the latest state
snapshot.  Every write replaces the previous record wholesale; there is no
history, no version check and no delete.  The interface is async so the
embedding actor runtime can await it from its event loop, and so that
cancellation (``anyio.fail_after``, task cancellation) reaches the backend
call.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from dynastate.persistence.models.state import DurableState


@runtime_checkable
class DurableStateStore(Protocol):
    """Async protocol implemented by every state store backend."""

    async def connect(self) -> None:
        """Build the backend handle.  Raises ``ConnectionSetupError``."""
        ...

    async def disconnect(self) -> None:
        """Release the backend handle.  Never raises."""
        ...

    async def ping(self) -> None:
        """Verify the backend is reachable.  Raises ``StoreUnavailableError``."""
        ...

    async def write_state(self, state: DurableState) -> None:
        """Upsert the latest state of ``state.actor_id``.  Raises ``StateWriteError``."""
        ...

    async def get_latest_state(self, actor_id: str) -> DurableState | None:
        """Fetch the latest state, or ``None`` when the actor has none yet."""
        ...
