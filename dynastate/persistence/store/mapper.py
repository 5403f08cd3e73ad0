"""Mapping between ``DurableState`` and DynamoDB attribute values.

Table layout (no sort key; only the latest snapshot is kept)::

    actor_id        S   partition key
    version_number  N
    state_payload   B
    state_manifest  S
    timestamp       N
    shard_number    N

Both the write path (``to_item``) and the read path (``item_key``) use the
same ``ACTOR_ID`` attribute name.

Numbers are written as ``N``.  On read, ``S``-typed numerics are accepted as
well so rows written by older adapters (which stored timestamp and shard
number as strings) still decode.
"""

from __future__ import annotations

from typing import Any

from dynastate.persistence.errors import RecordDecodeError
from dynastate.persistence.models.state import (
    INT64_MAX,
    INT64_MIN,
    UINT64_MAX,
    DurableState,
    StateItem,
)
from dynastate.persistence.payload import TypeRegistry, resolve_payload

AttributeMap = dict[str, dict[str, Any]]

ACTOR_ID = "actor_id"
VERSION_NUMBER = "version_number"
STATE_PAYLOAD = "state_payload"
STATE_MANIFEST = "state_manifest"
TIMESTAMP = "timestamp"
SHARD_NUMBER = "shard_number"

ATTRIBUTES = (ACTOR_ID, VERSION_NUMBER, STATE_PAYLOAD, STATE_MANIFEST, TIMESTAMP, SHARD_NUMBER)


# -- Write ---------------------------------------------------------------------


def item_key(actor_id: str) -> AttributeMap:
    return {ACTOR_ID: {"S": actor_id}}


def to_item(state: DurableState) -> AttributeMap:
    """Build the full attribute map for an upsert."""
    envelope = state.resulting_state
    return {
        **item_key(state.actor_id),
        VERSION_NUMBER: {"N": str(state.version_number)},
        STATE_PAYLOAD: {"B": envelope.SerializeToString()},
        STATE_MANIFEST: {"S": state.manifest},
        TIMESTAMP: {"N": str(state.timestamp)},
        SHARD_NUMBER: {"N": str(state.shard_number)},
    }


# -- Read ----------------------------------------------------------------------


def _attribute(item: AttributeMap, name: str) -> dict[str, Any]:
    value = item.get(name)
    if not isinstance(value, dict) or not value:
        raise RecordDecodeError(name, "attribute is missing")
    return value


def _string(item: AttributeMap, name: str) -> str:
    value = _attribute(item, name)
    if "S" not in value:
        raise RecordDecodeError(name, f"expected a string attribute, got {sorted(value)}")
    if not value["S"]:
        raise RecordDecodeError(name, "string attribute is empty")
    return value["S"]


def _binary(item: AttributeMap, name: str) -> bytes:
    value = _attribute(item, name)
    if "B" not in value:
        raise RecordDecodeError(name, f"expected a binary attribute, got {sorted(value)}")
    return bytes(value["B"])


def _integer(item: AttributeMap, name: str, lo: int, hi: int) -> int:
    value = _attribute(item, name)
    raw = value.get("N", value.get("S"))
    if not isinstance(raw, str):
        raise RecordDecodeError(name, f"expected a number attribute, got {sorted(value)}")
    text = raw.strip()
    digits = text.removeprefix("-")
    if not (digits.isascii() and digits.isdigit()):
        raise RecordDecodeError(name, f"{raw!r} is not an integer")
    n = int(text)
    if not lo <= n <= hi:
        raise RecordDecodeError(name, f"{n} is out of range [{lo}, {hi}]")
    return n


def from_item(item: AttributeMap) -> StateItem:
    """Decode a raw row into a ``StateItem``.  Raises ``RecordDecodeError``."""
    return StateItem(
        actor_id=_string(item, ACTOR_ID),
        version_number=_integer(item, VERSION_NUMBER, 0, UINT64_MAX),
        state_payload=_binary(item, STATE_PAYLOAD),
        state_manifest=_string(item, STATE_MANIFEST),
        timestamp=_integer(item, TIMESTAMP, INT64_MIN, INT64_MAX),
        shard_number=_integer(item, SHARD_NUMBER, 0, UINT64_MAX),
    )


def to_state(item: AttributeMap, registry: TypeRegistry | None = None) -> DurableState:
    """Decode a raw row and resolve its payload into a ``DurableState``."""
    row = from_item(item)
    envelope = resolve_payload(row.state_manifest, row.state_payload, registry)
    return DurableState(
        actor_id=row.actor_id,
        version_number=row.version_number,
        resulting_state=envelope,
        timestamp=row.timestamp,
        shard_number=row.shard_number,
    )
