"""Exception hierarchy for the durable state adapter.

Every failure except "no state yet" surfaces as a ``DurableStateError``
subclass.  Absence is signalled by ``None`` from ``get_latest_state``.

Backend errors keep the original botocore exception as ``__cause__``.
"""

from __future__ import annotations


class DurableStateError(Exception):
    """Base class for all adapter errors."""


# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------


class ConnectionSetupError(DurableStateError):
    """Backend client could not be constructed (credentials, region, config)."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Unable to set up the state store connection: {reason}")


class StoreNotConnectedError(DurableStateError, RuntimeError):
    """An operation was attempted before ``connect()`` (or after ``disconnect()``)."""

    def __init__(self) -> None:
        super().__init__("State store is not connected; call connect() first")


# ---------------------------------------------------------------------------
# Backend calls
# ---------------------------------------------------------------------------


class BackendError(DurableStateError):
    """A backend call failed.  No retry has been attempted."""

    def __init__(self, operation: str, table: str, reason: str, actor_id: str | None = None) -> None:
        self.operation = operation
        self.table = table
        self.actor_id = actor_id
        target = f"table={table}" if actor_id is None else f"table={table}, actor_id={actor_id}"
        super().__init__(f"{operation} failed ({target}): {reason}")


class StateWriteError(BackendError):
    """Upserting a state record failed."""


class StateReadError(BackendError):
    """Fetching a state record failed."""


class StoreUnavailableError(BackendError):
    """The backend (or its table) is not reachable."""


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class RecordDecodeError(DurableStateError, ValueError):
    """A stored attribute is missing, mistyped or not a valid number."""

    def __init__(self, attribute: str, reason: str) -> None:
        self.attribute = attribute
        super().__init__(f"Malformed attribute '{attribute}': {reason}")


class PayloadError(DurableStateError):
    """Base class for payload resolution failures."""


class TypeResolutionError(PayloadError, LookupError):
    """No message type is registered under the stored type name."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(f"Message type '{type_name}' is not registered")


class PayloadDecodeError(PayloadError, ValueError):
    """Stored bytes do not parse as the resolved message type."""

    def __init__(self, type_name: str, reason: str) -> None:
        self.type_name = type_name
        super().__init__(f"Failed to decode payload of type '{type_name}': {reason}")


class PayloadTypeMismatchError(PayloadDecodeError):
    """The resolved message is not the expected envelope type."""

    def __init__(self, type_name: str, expected: str) -> None:
        super().__init__(type_name, f"expected an envelope of type '{expected}'")
        self.expected = expected
