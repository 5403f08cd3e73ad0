"""Payload resolution -- turn a stored (type name, bytes) pair back into a message.

Stored state is always a ``google.protobuf.Any`` envelope.  The record keeps
the envelope's full type name (the "manifest") next to its serialized bytes,
so the reader can pick a decoder without a schema per payload type.

Resolution goes through a ``TypeRegistry``:

1. Explicit registrations (``register`` / ``register_factory``) win.
2. Otherwise, when the registry is backed by a protobuf ``DescriptorPool``,
   the pool is consulted.  The default pool contains every generated
   ``*_pb2`` module imported so far, so importing payload modules at startup
   is enough to make them resolvable.

Failures are typed: an unknown name raises ``TypeResolutionError``, bytes
that do not parse raise ``PayloadDecodeError``, and a resolved message that is
not an ``Any`` raises ``PayloadTypeMismatchError``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from google.protobuf import any_pb2, descriptor_pool, message_factory
from google.protobuf.message import DecodeError, Message
from loguru import logger

from dynastate.persistence.errors import (
    PayloadDecodeError,
    PayloadTypeMismatchError,
    TypeResolutionError,
)

MessageFactory = Callable[[], Message]

_M = TypeVar("_M", bound=type[Message])

ENVELOPE_TYPE_NAME = any_pb2.Any.DESCRIPTOR.full_name


class TypeRegistry:
    """Mapping from fully qualified message name to a message factory.

    Registrations are expected to happen at process start.  Lookups never
    mutate the registry, so a populated registry is safe to share across
    concurrent readers.
    """

    def __init__(self, *, pool: descriptor_pool.DescriptorPool | None = None) -> None:
        self._factories: dict[str, MessageFactory] = {}
        self._pool = pool

    # -- Registration ----------------------------------------------------------

    def register(self, message_cls: _M) -> _M:
        """Register a generated message class under its descriptor's full name.

        Returns the class unchanged so it can be used as a decorator.
        """
        self.register_factory(message_cls.DESCRIPTOR.full_name, message_cls)
        return message_cls

    def register_factory(self, type_name: str, factory: MessageFactory) -> None:
        if not type_name:
            msg = "type_name must not be empty"
            raise ValueError(msg)
        existing = self._factories.get(type_name)
        if existing is not None and existing is not factory:
            logger.warning("TypeRegistry: replacing factory for {}", type_name)
        self._factories[type_name] = factory

    # -- Query -----------------------------------------------------------------

    def lookup(self, type_name: str) -> MessageFactory:
        """Return the factory for *type_name*.  Raises ``TypeResolutionError``."""
        factory = self._factories.get(type_name)
        if factory is not None:
            return factory
        if self._pool is not None:
            try:
                descriptor = self._pool.FindMessageTypeByName(type_name)
            except KeyError:
                pass
            else:
                return message_factory.GetMessageClass(descriptor)
        raise TypeResolutionError(type_name)

    def __contains__(self, type_name: object) -> bool:
        if not isinstance(type_name, str):
            return False
        try:
            self.lookup(type_name)
        except TypeResolutionError:
            return False
        return True

    def names(self) -> list[str]:
        """Explicitly registered names (pool-backed types are not listed)."""
        return sorted(self._factories)


default_registry = TypeRegistry(pool=descriptor_pool.Default())
default_registry.register(any_pb2.Any)


def _decode(type_name: str, data: bytes, registry: TypeRegistry) -> Message:
    factory = registry.lookup(type_name)
    pm = factory()
    try:
        pm.ParseFromString(data)
    except DecodeError as e:
        raise PayloadDecodeError(type_name, str(e) or "malformed bytes") from e
    return pm


def resolve_payload(type_name: str, data: bytes, registry: TypeRegistry | None = None) -> any_pb2.Any:
    """Decode *data* as the message registered under *type_name*.

    The decoded message must be a ``google.protobuf.Any`` envelope.
    """
    registry = registry or default_registry
    pm = _decode(type_name, data, registry)
    if isinstance(pm, any_pb2.Any):
        return pm
    raise PayloadTypeMismatchError(type_name, ENVELOPE_TYPE_NAME)


def unpack_payload(envelope: any_pb2.Any, registry: TypeRegistry | None = None) -> Message:
    """Unwrap the inner message of an ``Any`` envelope.

    The inner type is taken from the envelope's ``type_url`` and resolved
    through the same registry as the envelope itself.
    """
    registry = registry or default_registry
    type_name = envelope.TypeName()
    if not type_name:
        raise TypeResolutionError(envelope.type_url)
    return _decode(type_name, envelope.value, registry)
