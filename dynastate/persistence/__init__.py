"""Durable state persistence for actor runtimes, backed by DynamoDB."""

from dynastate.persistence.errors import (
    BackendError,
    ConnectionSetupError,
    DurableStateError,
    PayloadDecodeError,
    PayloadError,
    PayloadTypeMismatchError,
    RecordDecodeError,
    StateReadError,
    StateWriteError,
    StoreNotConnectedError,
    StoreUnavailableError,
    TypeResolutionError,
)
from dynastate.persistence.models.state import DurableState
from dynastate.persistence.payload import TypeRegistry, default_registry, resolve_payload, unpack_payload
from dynastate.persistence.settings import DynastateSettings, get_settings
from dynastate.persistence.store import (
    DurableStateStore,
    DynamoDBStateStore,
    InMemoryStateStore,
    create_state_store,
)

__all__ = [
    "BackendError",
    "ConnectionSetupError",
    "DurableState",
    "DurableStateError",
    "DurableStateStore",
    "DynamoDBStateStore",
    "DynastateSettings",
    "InMemoryStateStore",
    "PayloadDecodeError",
    "PayloadError",
    "PayloadTypeMismatchError",
    "RecordDecodeError",
    "StateReadError",
    "StateWriteError",
    "StoreNotConnectedError",
    "StoreUnavailableError",
    "TypeRegistry",
    "TypeResolutionError",
    "create_state_store",
    "default_registry",
    "get_settings",
    "resolve_payload",
    "unpack_payload",
]
