"""Tests for settings loading and backend selection."""

from __future__ import annotations

import pytest

from dynastate.persistence.settings import DynastateSettings, get_settings
from dynastate.persistence.store.dynamodb import DynamoDBStateStore
from dynastate.persistence.store.factory import create_state_store
from dynastate.persistence.store.memory import InMemoryStateStore


@pytest.mark.usefixtures("clean_env")
def test_defaults() -> None:
    settings = DynastateSettings(_env_file=None)
    assert settings.table_name == "states_store"
    assert settings.region == "us-west-2"
    assert settings.state_store == "dynamodb"
    assert settings.endpoint_url is None
    assert settings.max_attempts == 1
    assert settings.consistent_read is True


@pytest.mark.usefixtures("clean_env")
def test_env_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DYNASTATE_TABLE_NAME", "actors")
    monkeypatch.setenv("DYNASTATE_ENDPOINT_URL", "http://localhost:8000")
    monkeypatch.setenv("DYNASTATE_SECRET_KEY", "hunter2")
    settings = DynastateSettings(_env_file=None)
    assert settings.table_name == "actors"
    assert settings.endpoint_url == "http://localhost:8000"
    assert settings.secret_key is not None
    assert settings.secret_key.get_secret_value() == "hunter2"
    assert "hunter2" not in repr(settings)


@pytest.mark.usefixtures("clean_env")
def test_get_settings_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DYNASTATE_TABLE_NAME", "first")
    first = get_settings()
    monkeypatch.setenv("DYNASTATE_TABLE_NAME", "second")
    assert get_settings() is first
    assert first.table_name == "first"


def test_invalid_backend_rejected() -> None:
    with pytest.raises(ValueError):
        DynastateSettings(state_store="postgres")


def test_invalid_attempts_rejected() -> None:
    with pytest.raises(ValueError):
        DynastateSettings(max_attempts=0)


def test_factory_memory() -> None:
    store = create_state_store(DynastateSettings(state_store="memory"))
    assert isinstance(store, InMemoryStateStore)


def test_factory_dynamodb() -> None:
    store = create_state_store(DynastateSettings(state_store="dynamodb", table_name="actors"))
    assert isinstance(store, DynamoDBStateStore)
    assert store.table_name == "actors"
    assert store.connected is False
