"""Backend selection from settings."""

from __future__ import annotations

from loguru import logger

from dynastate.persistence.payload import TypeRegistry
from dynastate.persistence.settings import DynastateSettings
from dynastate.persistence.store.base import DurableStateStore
from dynastate.persistence.store.dynamodb import DynamoDBStateStore
from dynastate.persistence.store.memory import InMemoryStateStore


def create_state_store(
    settings: DynastateSettings,
    *,
    registry: TypeRegistry | None = None,
) -> DurableStateStore:
    """Create the (unconnected) state store backend based on configuration."""
    logger.debug("Creating state store (backend={})", settings.state_store)
    if settings.state_store == "memory":
        return InMemoryStateStore(registry=registry)
    return DynamoDBStateStore(settings, registry=registry)
