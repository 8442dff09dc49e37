"""The kinds of value a query evaluation can produce."""

from __future__ import annotations

import json
from enum import IntEnum


class ValueType(IntEnum):
    NONE = 0
    SCALAR = 1
    VECTOR = 2
    MATRIX = 3
    STRING = 4

    def __str__(self) -> str:
        return _NAMES[self]

    def to_json(self) -> str:
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, text: str | bytes) -> ValueType:
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode("utf-8")
        name = json.loads(text)
        if not isinstance(name, str):
            raise ValueError("value type must be a JSON string")
        try:
            return _BY_NAME[name]
        except KeyError:
            raise ValueError(
                f"unknown value type {json.dumps(name, ensure_ascii=False)}"
            ) from None


_NAMES = {
    ValueType.NONE: "<ValNone>",
    ValueType.SCALAR: "scalar",
    ValueType.VECTOR: "vector",
    ValueType.MATRIX: "matrix",
    ValueType.STRING: "string",
}
_BY_NAME = {name: member for member, name in _NAMES.items()}