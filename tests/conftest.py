"""Shared test fixtures.

Unit tests run against ``FakeDynamoDBClient``, an in-process stand-in for a
boto3 DynamoDB client that speaks the same low-level attribute format and
raises real ``botocore.exceptions.ClientError`` instances.  Like DynamoDB, it
rejects keys that do not match the table's key schema.

Test payloads use ``bank.Account``, a message type built at import time in a
private descriptor pool so it never leaks into the process-wide default pool.
"""

from __future__ import annotations

import copy
import os
import threading
from collections.abc import AsyncIterator, Iterator
from typing import Any

import pytest
from botocore.exceptions import ClientError
from google.protobuf import any_pb2, descriptor_pb2, descriptor_pool, message_factory

from dynastate.persistence.payload import TypeRegistry
from dynastate.persistence.settings import DynastateSettings, _get_settings_cached
from dynastate.persistence.store.dynamodb import DynamoDBStateStore
from dynastate.persistence.store.memory import InMemoryStateStore

# ---------------------------------------------------------------------------
# Payload types
# ---------------------------------------------------------------------------


def _build_account_class() -> type:
    fdp = descriptor_pb2.FileDescriptorProto(name="bank/account.proto", package="bank", syntax="proto3")
    msg = fdp.message_type.add(name="Account")
    msg.field.add(
        name="account_id",
        number=1,
        type=descriptor_pb2.FieldDescriptorProto.TYPE_STRING,
        label=descriptor_pb2.FieldDescriptorProto.LABEL_OPTIONAL,
    )
    msg.field.add(
        name="balance",
        number=2,
        type=descriptor_pb2.FieldDescriptorProto.TYPE_INT64,
        label=descriptor_pb2.FieldDescriptorProto.LABEL_OPTIONAL,
    )
    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(fdp.SerializeToString())
    return message_factory.GetMessageClass(pool.FindMessageTypeByName("bank.Account"))


Account = _build_account_class()


@pytest.fixture
def account_cls() -> type:
    return Account


@pytest.fixture
def registry() -> TypeRegistry:
    """Isolated registry knowing only the envelope and ``bank.Account``."""
    reg = TypeRegistry()
    reg.register(any_pb2.Any)
    reg.register(Account)
    return reg


# ---------------------------------------------------------------------------
# Fake DynamoDB client
# ---------------------------------------------------------------------------


def _client_error(code: str, message: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class _FakeWaiter:
    def wait(self, **_kwargs: Any) -> None:
        return None


class FakeDynamoDBClient:
    """Thread-safe in-memory subset of the boto3 DynamoDB client API."""

    def __init__(self, tables: tuple[str, ...] = ("states_store",), key: str = "actor_id") -> None:
        self._lock = threading.Lock()
        self._key = key
        self.tables: dict[str, dict[str, dict[str, Any]]] = {name: {} for name in tables}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fail_with: dict[str, Exception] = {}
        self.block: threading.Event | None = None

    def _enter(self, operation: str, kwargs: dict[str, Any]) -> None:
        self.calls.append((operation, kwargs))
        if self.block is not None:
            self.block.wait(timeout=5)
        if operation in self.fail_with:
            raise self.fail_with[operation]

    def _table(self, name: str, operation: str) -> dict[str, dict[str, Any]]:
        if name not in self.tables:
            raise _client_error("ResourceNotFoundException", "Requested resource not found", operation)
        return self.tables[name]

    def _key_value(self, key: dict[str, Any], operation: str) -> str:
        if set(key) != {self._key} or "S" not in key[self._key]:
            raise _client_error(
                "ValidationException", "The provided key element does not match the schema", operation
            )
        return key[self._key]["S"]

    # -- Items -----------------------------------------------------------------

    def put_item(self, *, TableName: str, Item: dict[str, Any]) -> dict[str, Any]:  # noqa: N803
        self._enter("PutItem", {"TableName": TableName, "Item": Item})
        with self._lock:
            table = self._table(TableName, "PutItem")
            key = self._key_value({self._key: Item.get(self._key, {})}, "PutItem")
            table[key] = copy.deepcopy(Item)
        return {}

    def get_item(
        self,
        *,
        TableName: str,  # noqa: N803
        Key: dict[str, Any],  # noqa: N803
        ConsistentRead: bool = False,  # noqa: N803
    ) -> dict[str, Any]:
        self._enter("GetItem", {"TableName": TableName, "Key": Key, "ConsistentRead": ConsistentRead})
        with self._lock:
            table = self._table(TableName, "GetItem")
            item = table.get(self._key_value(Key, "GetItem"))
        if item is None:
            return {}
        return {"Item": copy.deepcopy(item)}

    # -- Tables ----------------------------------------------------------------

    def describe_table(self, *, TableName: str) -> dict[str, Any]:  # noqa: N803
        self._enter("DescribeTable", {"TableName": TableName})
        self._table(TableName, "DescribeTable")
        return {"Table": {"TableName": TableName, "TableStatus": "ACTIVE"}}

    def create_table(self, *, TableName: str, **kwargs: Any) -> dict[str, Any]:  # noqa: N803
        self._enter("CreateTable", {"TableName": TableName, **kwargs})
        with self._lock:
            if TableName in self.tables:
                raise _client_error("ResourceInUseException", "Table already exists", "CreateTable")
            self.tables[TableName] = {}
        return {"TableDescription": {"TableName": TableName, "TableStatus": "CREATING"}}

    def get_waiter(self, _name: str) -> _FakeWaiter:
        return _FakeWaiter()


@pytest.fixture
def fake_client() -> FakeDynamoDBClient:
    return FakeDynamoDBClient()


# ---------------------------------------------------------------------------
# Settings and stores
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> DynastateSettings:
    return DynastateSettings(table_name="states_store", region="us-west-2")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop DYNASTATE_* env vars and the settings cache for the test."""
    for key in list(os.environ):
        if key.startswith("DYNASTATE_"):
            monkeypatch.delenv(key)
    _get_settings_cached.cache_clear()
    yield
    _get_settings_cached.cache_clear()


@pytest.fixture
async def dynamodb_store(
    settings: DynastateSettings,
    registry: TypeRegistry,
    fake_client: FakeDynamoDBClient,
) -> AsyncIterator[DynamoDBStateStore]:
    store = DynamoDBStateStore(settings, registry=registry, client=fake_client)
    await store.connect()
    yield store
    await store.disconnect()


@pytest.fixture
async def memory_store(registry: TypeRegistry) -> AsyncIterator[InMemoryStateStore]:
    store = InMemoryStateStore(registry=registry)
    await store.connect()
    yield store
    await store.disconnect()
