"""Client-side API for talking to the runtime through intents and fulfillments.

A concrete client implements :meth:`Chariott.fulfill`, which sends one intent
to a namespace and returns the fulfillment. The typed operations (invoke,
subscribe, discover, inspect, write and read) are built on top of it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Type, TypeVar, Union

from chariott_apps.inspection import Entry
from chariott_apps.value import Value

logger = logging.getLogger(__name__)


class ChariottError(Exception):
    """An intent could not be fulfilled or its fulfillment could not be used."""


@dataclass(frozen=True)
class Event:
    """An event received on a streaming channel."""

    id: str
    data: Value
    seq: int


@dataclass(frozen=True)
class Service:
    """A service endpoint returned by discovery."""

    url: str
    schema_kind: str
    schema_reference: str
    metadata: Mapping[str, str] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class InvokeIntent:
    command: str
    args: tuple[Value, ...]


@dataclass(frozen=True)
class SubscribeIntent:
    channel_id: str
    sources: tuple[str, ...]


@dataclass(frozen=True)
class DiscoverIntent:
    pass


@dataclass(frozen=True)
class InspectIntent:
    query: str


@dataclass(frozen=True)
class WriteIntent:
    key: str
    value: Value


@dataclass(frozen=True)
class ReadIntent:
    key: str


Intent = Union[
    InvokeIntent, SubscribeIntent, DiscoverIntent, InspectIntent, WriteIntent, ReadIntent
]


@dataclass(frozen=True)
class InvokeFulfillment:
    return_value: Optional[Value] = None


@dataclass(frozen=True)
class SubscribeFulfillment:
    pass


@dataclass(frozen=True)
class DiscoverFulfillment:
    services: tuple[Service, ...] = ()


@dataclass(frozen=True)
class InspectEntry:
    """An inspection entry as received; an item value of ``None`` is unparsable."""

    path: str
    items: Mapping[str, Optional[Value]] = field(default_factory=dict)


@dataclass(frozen=True)
class InspectFulfillment:
    entries: tuple[InspectEntry, ...] = ()


@dataclass(frozen=True)
class WriteFulfillment:
    pass


@dataclass(frozen=True)
class ReadFulfillment:
    value: Optional[Value] = None


Fulfillment = Union[
    InvokeFulfillment,
    SubscribeFulfillment,
    DiscoverFulfillment,
    InspectFulfillment,
    WriteFulfillment,
    ReadFulfillment,
]

F = TypeVar("F")


def _expect(fulfillment: Optional[Fulfillment], kind: Type[F]) -> F:
    if fulfillment is None:
        raise ChariottError("Did not receive fulfillment")
    if not isinstance(fulfillment, kind):
        raise ChariottError("Unexpected fulfillment")
    return fulfillment


class Chariott(ABC):
    """Typed operations on the runtime, built on a single ``fulfill`` call."""

    @abstractmethod
    async def fulfill(self, namespace: str, intent: Intent) -> Optional[Fulfillment]:
        """Send ``intent`` to ``namespace`` and return the fulfillment, if any."""

    async def invoke(self, namespace: str, command: str, args: Iterable[Value]) -> Value:
        """Invoke ``command`` with ``args`` and return its result."""
        logger.debug("Invoking command %r.", command)
        intent = InvokeIntent(command=str(command), args=tuple(args))
        result = _expect(await self.fulfill(str(namespace), intent), InvokeFulfillment)
        if result.return_value is None:
            raise ChariottError("Return value could not be parsed.")
        return result.return_value

    async def subscribe(
        self, namespace: str, channel_id: str, event_ids: Iterable[str]
    ) -> None:
        """Subscribe the channel ``channel_id`` to the given event sources."""
        logger.debug("Subscribing to events on channel %r.", channel_id)
        intent = SubscribeIntent(
            channel_id=str(channel_id), sources=tuple(str(e) for e in event_ids)
        )
        _expect(await self.fulfill(str(namespace), intent), SubscribeFulfillment)

    async def discover(self, namespace: str) -> list[Service]:
        """Return the services that the namespace offers."""
        logger.debug("Discovering services for namespace %r.", namespace)
        result = _expect(
            await self.fulfill(str(namespace), DiscoverIntent()), DiscoverFulfillment
        )
        return list(result.services)

    async def inspect(self, namespace: str, query: str) -> list[Entry]:
        """Return the entries of ``namespace`` that match ``query``."""
        logger.debug("Inspecting namespace %r with query %r.", namespace, query)
        result = _expect(
            await self.fulfill(str(namespace), InspectIntent(query=str(query))),
            InspectFulfillment,
        )
        entries = []
        for raw in result.entries:
            if any(value is None for value in raw.items.values()):
                raise ChariottError("Could not parse value.")
            entries.append(Entry(raw.path, dict(raw.items)))
        return entries

    async def write(self, namespace: str, key: str, value: Value) -> None:
        """Write ``value`` under ``key``."""
        logger.debug("Writing key %r with value %r.", key, value)
        _expect(
            await self.fulfill(str(namespace), WriteIntent(key=str(key), value=value)),
            WriteFulfillment,
        )

    async def read(self, namespace: str, key: str) -> Optional[Value]:
        """Read the value under ``key``; ``None`` when there is none."""
        logger.debug("Reading key %r on namespace %r.", key, namespace)
        result = _expect(
            await self.fulfill(str(namespace), ReadIntent(key=str(key))), ReadFulfillment
        )
        return result.value