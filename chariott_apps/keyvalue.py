"""In-memory key-value store that can notify an observer on every update.

The store is not thread safe; callers are responsible for synchronisation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class Observer(ABC, Generic[K, V]):
    """Receives a notification each time a value is set in a store."""

    @abstractmethod
    def on_set(self, key: K, value: V) -> None:
        """Called with the key and value before the value is stored."""


class InMemoryKeyValueStore(Generic[K, V]):
    """A dictionary-backed store with an optional observer."""

    def __init__(self, observer: Optional[Observer[K, V]] = None) -> None:
        self._store: dict[K, V] = {}
        self._observer = observer

    def get(self, key: K) -> Optional[V]:
        """Return the value stored under ``key``, or ``None`` if there is none."""
        return self._store.get(key)

    def set(self, key: K, value: V) -> None:
        """Store ``value`` under ``key``, notifying the observer first, if any.

        The observer is notified on every call, even when the value is unchanged.
        """
        if self._observer is not None:
            self._observer.on_set(key, value)
        self._store[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)