"""Durable state data models."""

from __future__ import annotations

from typing import Annotated, Any

from google.protobuf import any_pb2
from google.protobuf.message import Message
from pydantic import BaseModel, ConfigDict, Field, field_validator

UINT64_MAX = 2**64 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

Uint64 = Annotated[int, Field(ge=0, le=UINT64_MAX)]
Int64 = Annotated[int, Field(ge=INT64_MIN, le=INT64_MAX)]


class DurableState(BaseModel):
    """Latest state snapshot of one actor.

    ``resulting_state`` is always held as a ``google.protobuf.Any``.  Any other
    protobuf message passed in is packed into an envelope on construction.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    actor_id: str = Field(min_length=1, description="Partition key; one record per actor")
    version_number: Uint64 = 0
    resulting_state: any_pb2.Any = Field(default_factory=any_pb2.Any)
    timestamp: Int64 = 0
    shard_number: Uint64 = 0

    @field_validator("resulting_state", mode="before")
    @classmethod
    def _pack_state(cls, value: Any) -> Any:
        if isinstance(value, Message) and not isinstance(value, any_pb2.Any):
            envelope = any_pb2.Any()
            envelope.Pack(value)
            return envelope
        return value

    @property
    def manifest(self) -> str:
        """Full type name of the stored envelope."""
        return self.resulting_state.DESCRIPTOR.full_name


class StateItem(BaseModel):
    """A decoded storage row, before the payload is resolved."""

    actor_id: str
    version_number: Uint64
    state_payload: bytes
    state_manifest: str
    timestamp: Int64
    shard_number: Uint64
