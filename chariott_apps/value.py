"""Typed values exchanged with the runtime."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Any, ClassVar

_INT32_RANGE = range(-(2**31), 2**31)
_INT64_RANGE = range(-(2**63), 2**63)


class ValueKind(enum.Enum):
    """The kinds of value a :class:`Value` can hold."""

    NULL = "null"
    BOOL = "bool"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    ANY = "any"
    BLOB = "blob"


class InvalidType(TypeError):
    """A value was not of the requested kind."""

    def __init__(self, message: str = "Invalid type.") -> None:
        super().__init__(message)


class InvalidValueType(InvalidType):
    """A value was not of the requested kind; the value is kept on the error."""

    def __init__(self, value: "Value") -> None:
        super().__init__()
        self.value = value


def _check_int(value: int, valid: range, kind: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{kind} value must be an int")
    if value not in valid:
        raise ValueError(f"{value} does not fit in {kind}")
    return value


@dataclass(frozen=True)
class Value:
    """A tagged value; ``data`` holds a Python value matching ``kind``.

    ``ANY`` values hold ``(type_url, bytes)`` and ``BLOB`` values hold
    ``(media_type, bytes)``.
    """

    kind: ValueKind
    data: Any = None

    TRUE: ClassVar["Value"]
    FALSE: ClassVar["Value"]
    NULL: ClassVar["Value"]

    @classmethod
    def new_any(cls, type_url: str, value: bytes) -> "Value":
        return cls(ValueKind.ANY, (type_url, bytes(value)))

    @classmethod
    def new_blob(cls, media_type: str, data: bytes) -> "Value":
        return cls(ValueKind.BLOB, (media_type, bytes(data)))

    @classmethod
    def string(cls, value: str) -> "Value":
        if not isinstance(value, str):
            raise TypeError("string value must be a str")
        return cls(ValueKind.STRING, value)

    @classmethod
    def int32(cls, value: int) -> "Value":
        return cls(ValueKind.INT32, _check_int(value, _INT32_RANGE, "int32"))

    @classmethod
    def int64(cls, value: int) -> "Value":
        return cls(ValueKind.INT64, _check_int(value, _INT64_RANGE, "int64"))

    @classmethod
    def float32(cls, value: float) -> "Value":
        narrowed = struct.unpack("<f", struct.pack("<f", float(value)))[0]
        return cls(ValueKind.FLOAT32, narrowed)

    @classmethod
    def float64(cls, value: float) -> "Value":
        return cls(ValueKind.FLOAT64, float(value))

    @classmethod
    def boolean(cls, value: bool) -> "Value":
        return cls(ValueKind.BOOL, bool(value))

    def to_i32(self) -> int:
        if self.kind is ValueKind.INT32:
            return self.data
        raise InvalidType()

    def to_i64(self) -> int:
        if self.kind is ValueKind.INT64:
            return self.data
        raise InvalidType()

    def to_bool(self) -> bool:
        if self.kind is ValueKind.BOOL:
            return self.data
        raise InvalidType()

    def as_str(self) -> str:
        if self.kind is ValueKind.STRING:
            return self.data
        raise InvalidType()

    def into_string(self) -> str:
        if self.kind is ValueKind.STRING:
            return self.data
        raise InvalidValueType(self)

    def into_any(self) -> tuple[str, bytes]:
        if self.kind is ValueKind.ANY:
            return self.data
        raise InvalidValueType(self)

    def into_blob(self) -> tuple[str, bytes]:
        if self.kind is ValueKind.BLOB:
            return self.data
        raise InvalidValueType(self)


Value.TRUE = Value(ValueKind.BOOL, True)
Value.FALSE = Value(ValueKind.BOOL, False)
Value.NULL = Value(ValueKind.NULL, None)