"""
Declared model input schema.

A schema is an ordered list of fields, one per positional model input.
It is stored as JSON inside the model archive, for example::

    [
        {"name": "image", "type": "image", "width": 224, "height": 224},
        {"name": "mask", "type": "multi_array", "shape": [1, 16], "dtype": "float16"},
        {"name": "scale", "type": "double"}
    ]
"""

from dataclasses import dataclass
from typing import List, Tuple, Union

import orjson

from ..core.errors import SchemaError

ARRAY_DTYPES = ("float16", "float32", "float64", "int32", "int64")


@dataclass(frozen=True)
class ImageField:
    name: str
    width: int
    height: int
    channels: int = 3


@dataclass(frozen=True)
class MultiArrayField:
    name: str
    shape: Tuple[int, ...]
    dtype: str = "float32"


@dataclass(frozen=True)
class DoubleField:
    name: str


@dataclass(frozen=True)
class Int64Field:
    name: str


@dataclass(frozen=True)
class StringField:
    name: str


@dataclass(frozen=True)
class UnsupportedField:
    """A field whose declared type cannot be synthesized."""

    name: str
    kind: str


InputField = Union[
    ImageField, MultiArrayField, DoubleField, Int64Field, StringField, UnsupportedField
]


def _positive_int(entry: dict, key: str, default=None) -> int:
    value = entry.get(key, default)
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise SchemaError(
            f"Field {entry.get('name')!r}: {key} must be a positive integer, got {value!r}"
        )
    return value


def _parse_field(entry: dict) -> InputField:
    if not isinstance(entry, dict):
        raise SchemaError(f"Schema entries must be objects, got {entry!r}")

    name = entry.get("name")
    kind = entry.get("type")
    if not isinstance(name, str) or not name:
        raise SchemaError(f"Schema entry is missing a name: {entry!r}")
    if not isinstance(kind, str):
        raise SchemaError(f"Field {name!r} is missing a type")

    if kind == "image":
        return ImageField(
            name=name,
            width=_positive_int(entry, "width"),
            height=_positive_int(entry, "height"),
            channels=_positive_int(entry, "channels", default=3),
        )
    if kind == "multi_array":
        shape = entry.get("shape")
        if not isinstance(shape, list) or not all(
            isinstance(dim, int) and dim > 0 for dim in shape
        ):
            raise SchemaError(f"Field {name!r}: shape must be a list of positive integers")
        dtype = entry.get("dtype", "float32")
        if dtype not in ARRAY_DTYPES:
            raise SchemaError(f"Field {name!r}: unsupported dtype {dtype!r}")
        return MultiArrayField(name=name, shape=tuple(shape), dtype=dtype)
    if kind == "double":
        return DoubleField(name=name)
    if kind == "int64":
        return Int64Field(name=name)
    if kind == "string":
        return StringField(name=name)

    return UnsupportedField(name=name, kind=kind)


def parse_input_schema(raw: Union[str, bytes]) -> List[InputField]:
    """Decode a JSON schema document.

    Args:
        raw: JSON text; empty input means the model declares no inputs

    Returns:
        Fields in declaration order
    """
    if not raw:
        return []

    try:
        document = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise SchemaError(f"Input schema is not valid JSON: {e}") from e

    if not isinstance(document, list):
        raise SchemaError("Input schema must be a JSON list of fields")

    return [_parse_field(entry) for entry in document]
