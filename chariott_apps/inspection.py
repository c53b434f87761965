"""Entries that describe the members a provider exposes for inspection."""

from __future__ import annotations

from typing import Iterable, Iterator, Mapping, Optional, Tuple, Union

from chariott_apps.value import Value

ItemValue = Union[Value, str, bool, int, float]
_INT32_MIN, _INT32_MAX = -(2**31), 2**31 - 1


def _to_value(value: ItemValue) -> Value:
    """Convert a plain Python value into a :class:`Value`."""
    if isinstance(value, Value):
        return value
    if isinstance(value, bool):
        return Value.boolean(value)
    if isinstance(value, int):
        if _INT32_MIN <= value <= _INT32_MAX:
            return Value.int32(value)
        return Value.int64(value)
    if isinstance(value, float):
        return Value.float64(value)
    if isinstance(value, str):
        return Value.string(value)
    raise TypeError(f"cannot convert {type(value).__name__} to a Value")


class Entry:
    """A path together with named values describing the member at that path."""

    __slots__ = ("_path", "_items")

    def __init__(
        self,
        path: str,
        items: Union[Mapping[str, ItemValue], Iterable[Tuple[str, ItemValue]]],
    ) -> None:
        pairs = items.items() if isinstance(items, Mapping) else items
        self._path = str(path)
        self._items: dict[str, Value] = {str(key): _to_value(value) for key, value in pairs}

    def get(self, key: str) -> Optional[Value]:
        """Return the value stored under ``key``, or ``None``."""
        return self._items.get(key)

    def path(self) -> str:
        """Return the path this entry describes."""
        return self._path

    @property
    def items(self) -> Mapping[str, Value]:
        """A read-only view of the entry's values."""
        return dict(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return self._path == other._path and self._items == other._items

    def __repr__(self) -> str:
        return f"Entry({self._path!r}, {self._items!r})"