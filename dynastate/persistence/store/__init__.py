"""Durable state store implementations."""

from dynastate.persistence.store.base import DurableStateStore
from dynastate.persistence.store.dynamodb import DynamoDBStateStore
from dynastate.persistence.store.factory import create_state_store
from dynastate.persistence.store.memory import InMemoryStateStore

__all__ = ["DurableStateStore", "DynamoDBStateStore", "InMemoryStateStore", "create_state_store"]
