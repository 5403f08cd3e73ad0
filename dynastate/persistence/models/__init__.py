"""Data models for the durable state adapter."""

from dynastate.persistence.models.state import (
    INT64_MAX,
    INT64_MIN,
    UINT64_MAX,
    DurableState,
    StateItem,
)

__all__ = [
    "INT64_MAX",
    "INT64_MIN",
    "UINT64_MAX",
    "DurableState",
    "StateItem",
]
