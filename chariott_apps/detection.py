"""Object detection results and parsing of detection service responses."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Union


@dataclass(frozen=True)
class DetectionObject:
    """A detected object category with the confidence of the detection."""

    object: str
    confidence: float


@dataclass(frozen=True)
class DetectedObject:
    """An object as reported by the detection service, with an optional parent."""

    object: str
    confidence: float
    parent: Optional["DetectedObject"] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DetectedObject":
        """Build an object from its decoded JSON form."""
        if not isinstance(data, Mapping):
            raise ValueError("object must be a JSON object")
        try:
            name = data["object"]
            confidence = data["confidence"]
        except KeyError as error:
            raise ValueError(f"missing field {error.args[0]!r}") from None
        if not isinstance(name, str):
            raise ValueError("field 'object' must be a string")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise ValueError("field 'confidence' must be a number")
        raw_parent = data.get("parent")
        parent = None if raw_parent is None else cls.from_dict(raw_parent)
        return cls(name, float(confidence), parent)

    def ascendants_and_self(self) -> Iterator["DetectedObject"]:
        """Yield this object, then its parent, grandparent and so on."""
        current: Optional[DetectedObject] = self
        while current is not None:
            yield current
            current = current.parent


def parse_detection_response(
    data: Union[str, bytes, Mapping[str, Any]],
) -> list[DetectionObject]:
    """Flatten a detection response into objects and all their ancestors.

    ``data`` may be the JSON text or its decoded form.
    """
    if isinstance(data, (str, bytes, bytearray)):
        try:
            data = json.loads(data)
        except ValueError as error:
            raise ValueError(f"Deserialization failed: {error}") from error
    if not isinstance(data, Mapping) or "objects" not in data:
        raise ValueError("Deserialization failed: missing field 'objects'")
    objects = data["objects"]
    if not isinstance(objects, list):
        raise ValueError("Deserialization failed: 'objects' must be a list")
    detected = [DetectedObject.from_dict(item) for item in objects]
    return [
        DetectionObject(obj.object, obj.confidence)
        for top in detected
        for obj in top.ascendants_and_self()
    ]