"""DynamoDB durable state store.

Stores one item per actor in a single table keyed by ``actor_id`` (see
``dynastate.persistence.store.mapper`` for the attribute layout).

The boto3 client is built once in ``connect()`` and shared for the store's
lifetime; boto3 clients are thread-safe.  Calls run in the anyio thread pool
with ``abandon_on_cancel=True``: cancelling the awaiting task (or hitting an
``anyio.fail_after`` deadline) returns control immediately and re-raises the
cancellation, leaving the in-flight HTTP request to finish in the background.

No retries happen here.  botocore is configured with ``total_max_attempts``
from settings (default 1) and every failure is wrapped and re-raised.
"""

from __future__ import annotations

from functools import partial
from typing import Any

import boto3
from anyio import to_thread
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from dynastate.persistence.errors import (
    ConnectionSetupError,
    StateReadError,
    StateWriteError,
    StoreNotConnectedError,
    StoreUnavailableError,
)
from dynastate.persistence.models.state import DurableState
from dynastate.persistence.payload import TypeRegistry
from dynastate.persistence.settings import DynastateSettings
from dynastate.persistence.store.mapper import ACTOR_ID, item_key, to_item, to_state

_BACKEND_ERRORS = (ClientError, BotoCoreError)


def _create_dynamodb_client(settings: DynastateSettings) -> Any:
    """Create a boto3 DynamoDB client.

    Explicit credentials from settings take precedence; otherwise boto3's
    default resolution chain is used.  Raises ``ConnectionSetupError`` when no
    credentials can be found or the client cannot be constructed.
    """
    config = Config(
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
        retries={"total_max_attempts": settings.max_attempts, "mode": "standard"},
    )

    kwargs: dict[str, Any] = {}
    if settings.access_key:
        kwargs["aws_access_key_id"] = settings.access_key
        kwargs["aws_secret_access_key"] = settings.secret_key.get_secret_value() if settings.secret_key else None

    try:
        session = boto3.Session(region_name=settings.region, **kwargs)
        if session.get_credentials() is None:
            raise ConnectionSetupError("no AWS credentials found")
        return session.client("dynamodb", endpoint_url=settings.endpoint_url, config=config)
    except (BotoCoreError, ValueError) as e:
        raise ConnectionSetupError(str(e)) from e


class DynamoDBStateStore:
    """DynamoDB implementation of the DurableStateStore protocol."""

    def __init__(
        self,
        settings: DynastateSettings | None = None,
        *,
        registry: TypeRegistry | None = None,
        client: Any | None = None,
    ) -> None:
        """Create an unconnected store.

        Args:
            settings: Adapter settings.  Defaults to ``DynastateSettings()``.
            registry: Type registry used to resolve stored payloads.
                Defaults to the process-wide registry.
            client: Pre-built DynamoDB client.  When given, ``connect()``
                adopts it instead of building one from settings.
        """
        self._settings = settings or DynastateSettings()
        self._registry = registry
        self._preset_client = client
        self._ddb: Any | None = None

    @property
    def table_name(self) -> str:
        return self._settings.table_name

    @property
    def connected(self) -> bool:
        return self._ddb is not None

    @property
    def _client(self) -> Any:
        if self._ddb is None:
            raise StoreNotConnectedError
        return self._ddb

    # -- Lifecycle -------------------------------------------------------------

    async def connect(self) -> None:
        if self._ddb is not None:
            return
        if self._preset_client is not None:
            self._ddb = self._preset_client
        else:
            self._ddb = await to_thread.run_sync(partial(_create_dynamodb_client, self._settings))
        logger.info(
            "DynamoDB state store connected (table={}, region={}, endpoint={})",
            self.table_name,
            self._settings.region,
            self._settings.endpoint_url or "default",
        )

    async def disconnect(self) -> None:
        # The client holds no server-side session; dropping it is enough.
        if self._ddb is not None:
            logger.info("DynamoDB state store disconnected (table={})", self.table_name)
        self._ddb = None

    async def ping(self) -> None:
        client = self._client
        try:
            await self._call(client.describe_table, TableName=self.table_name)
        except _BACKEND_ERRORS as e:
            raise StoreUnavailableError("DescribeTable", self.table_name, str(e)) from e

    async def ensure_table(self) -> bool:
        """Create the table if it does not exist yet.

        Returns ``True`` when the table was created, ``False`` if it already
        existed.  Waits until a newly created table is active.
        """
        client = self._client
        try:
            await self._call(client.describe_table, TableName=self.table_name)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") != "ResourceNotFoundException":
                raise StoreUnavailableError("DescribeTable", self.table_name, str(e)) from e
        except BotoCoreError as e:
            raise StoreUnavailableError("DescribeTable", self.table_name, str(e)) from e
        else:
            return False

        logger.info("Creating DynamoDB table {}", self.table_name)
        try:
            await self._call(
                client.create_table,
                TableName=self.table_name,
                AttributeDefinitions=[{"AttributeName": ACTOR_ID, "AttributeType": "S"}],
                KeySchema=[{"AttributeName": ACTOR_ID, "KeyType": "HASH"}],
                BillingMode="PAY_PER_REQUEST",
            )
            waiter = client.get_waiter("table_exists")
            await self._call(waiter.wait, TableName=self.table_name)
        except _BACKEND_ERRORS as e:
            raise StoreUnavailableError("CreateTable", self.table_name, str(e)) from e
        return True

    # -- Write -----------------------------------------------------------------

    async def write_state(self, state: DurableState) -> None:
        client = self._client
        item = to_item(state)
        try:
            await self._call(client.put_item, TableName=self.table_name, Item=item)
        except _BACKEND_ERRORS as e:
            logger.warning("PutItem failed for actor {}: {}", state.actor_id, e)
            raise StateWriteError("PutItem", self.table_name, str(e), actor_id=state.actor_id) from e
        logger.debug("State written: actor={} version={}", state.actor_id, state.version_number)

    # -- Read ------------------------------------------------------------------

    async def get_latest_state(self, actor_id: str) -> DurableState | None:
        client = self._client
        try:
            resp = await self._call(
                client.get_item,
                TableName=self.table_name,
                Key=item_key(actor_id),
                ConsistentRead=self._settings.consistent_read,
            )
        except _BACKEND_ERRORS as e:
            logger.warning("GetItem failed for actor {}: {}", actor_id, e)
            raise StateReadError("GetItem", self.table_name, str(e), actor_id=actor_id) from e

        item = resp.get("Item")
        if not item:
            logger.debug("No state for actor {}", actor_id)
            return None
        return to_state(item, self._registry)

    # -- Utilities -------------------------------------------------------------

    @staticmethod
    async def _call(fn: Any, /, **kwargs: Any) -> Any:
        return await to_thread.run_sync(partial(fn, **kwargs), abandon_on_cancel=True)
