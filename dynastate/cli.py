import asyncio
import json

import click


@click.group()
@click.option("--table", default=None, help="Table name (default: from DYNASTATE_TABLE_NAME or states_store).")
@click.option("--endpoint-url", default=None, help="DynamoDB endpoint override (DynamoDB Local, LocalStack).")
@click.pass_context
def main(ctx: click.Context, table: str | None, endpoint_url: str | None) -> None:
    """Dynastate - durable actor state in DynamoDB."""
    from dynastate.persistence.log import setup_logging
    from dynastate.persistence.settings import DynastateSettings

    overrides = {}
    if table:
        overrides["table_name"] = table
    if endpoint_url:
        overrides["endpoint_url"] = endpoint_url
    settings = DynastateSettings(**overrides)
    setup_logging(settings.log_level)
    ctx.obj = settings


def _run(settings, op):
    """Connect a DynamoDB store, run ``op(store)``, then disconnect."""
    from dynastate.persistence.store.dynamodb import DynamoDBStateStore

    async def _main():
        store = DynamoDBStateStore(settings)
        await store.connect()
        try:
            return await op(store)
        finally:
            await store.disconnect()

    return asyncio.run(_main())


def _fail(exc: Exception) -> None:
    click.echo(f"Error: {exc}", err=True)
    raise SystemExit(1)


@main.command()
@click.pass_obj
def ping(settings) -> None:
    """Check that the state table is reachable."""
    from dynastate.persistence.errors import DurableStateError

    async def op(store):
        await store.ping()

    try:
        _run(settings, op)
    except DurableStateError as e:
        _fail(e)
    click.echo(f"Table {settings.table_name} is reachable.")


@main.command("create-table")
@click.pass_obj
def create_table(settings) -> None:
    """Create the state table if it does not exist."""
    from dynastate.persistence.errors import DurableStateError

    async def op(store):
        return await store.ensure_table()

    try:
        created = _run(settings, op)
    except DurableStateError as e:
        _fail(e)
    if created:
        click.echo(f"Table {settings.table_name} created.")
    else:
        click.echo(f"Table {settings.table_name} already exists.")


@main.command()
@click.argument("actor_id")
@click.pass_obj
def get(settings, actor_id: str) -> None:
    """Print the latest state of ACTOR_ID as JSON."""
    from google.protobuf import json_format

    from dynastate.persistence.errors import DurableStateError, PayloadError
    from dynastate.persistence.payload import unpack_payload

    async def op(store):
        return await store.get_latest_state(actor_id)

    try:
        state = _run(settings, op)
    except DurableStateError as e:
        _fail(e)

    if state is None:
        click.echo(f"No state for actor {actor_id}.", err=True)
        raise SystemExit(2)

    doc = state.model_dump(exclude={"resulting_state"})
    doc["type_url"] = state.resulting_state.type_url
    try:
        doc["state"] = json_format.MessageToDict(unpack_payload(state.resulting_state))
    except PayloadError:
        # Inner type not importable in this process; show the raw envelope size.
        doc["state"] = None
        doc["state_bytes"] = len(state.resulting_state.value)
    click.echo(json.dumps(doc, indent=2))


if __name__ == "__main__":
    main()
