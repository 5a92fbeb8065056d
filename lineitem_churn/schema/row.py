#!filepath: lineitem_churn/schema/row.py
from __future__ import annotations

from typing import Any, Iterator

import pyarrow as pa

RowKey = tuple  # key-column values, in key projection order

_UINT32_MAX = 2**32 - 1


def coerce_value(field: pa.Field, value: Any) -> Any:
    """
    Bring a python value to the column's logical type.
    None is allowed only for nullable columns.
    """
    if value is None:
        if not field.nullable:
            raise ValueError(f"column {field.name!r} is not nullable")
        return None

    t = field.type
    if pa.types.is_unsigned_integer(t):
        v = int(value)
        if not 0 <= v <= _UINT32_MAX:
            raise ValueError(f"column {field.name!r}: {v} out of uint32 range")
        return v
    if pa.types.is_integer(t):
        return int(value)
    if pa.types.is_floating(t):
        return float(value)
    if pa.types.is_string(t):
        return str(value)
    raise TypeError(f"column {field.name!r}: unsupported type {t}")


class PartialRow:
    """
    A row under construction for a given schema.

    Columns can be set in any order; unset columns read as None.
    Reused by the importer for every line (reset() between lines).
    """

    def __init__(self, schema: pa.Schema):
        self.schema = schema
        self._values: dict[str, Any] = {}

    def set(self, name: str, value: Any) -> None:
        idx = self.schema.get_field_index(name)
        if idx < 0:
            raise KeyError(f"column {name!r} not in schema")
        self._values[name] = coerce_value(self.schema.field(idx), value)

    def get(self, name: str) -> Any:
        return self._values.get(name)

    def is_set(self, name: str) -> bool:
        return name in self._values

    def reset(self) -> None:
        self._values.clear()

    def key(self, key_columns: tuple[str, ...]) -> RowKey:
        missing = [c for c in key_columns if c not in self._values]
        if missing:
            raise ValueError(f"key columns not set: {missing}")
        return tuple(self._values[c] for c in key_columns)

    def to_dict(self) -> dict[str, Any]:
        """Snapshot in schema order; safe to hand off."""
        return {name: self._values.get(name) for name in self.schema.names}

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"PartialRow({self._values!r})"


class RowBuilder:
    """
    Builds a row key by appending values in key projection order:

        rb = RowBuilder(create_key_projection())
        rb.add(order_key)
        rb.add(line_number)
        key = rb.row()
    """

    def __init__(self, key_projection: pa.Schema):
        self.schema = key_projection
        self._values: list[Any] = []

    def add(self, value: Any) -> "RowBuilder":
        pos = len(self._values)
        if pos >= len(self.schema):
            raise IndexError("row key already complete")
        self._values.append(coerce_value(self.schema.field(pos), value))
        return self

    def row(self) -> RowKey:
        if len(self._values) != len(self.schema):
            raise ValueError(
                f"row key incomplete: {len(self._values)}/{len(self.schema)} columns"
            )
        return tuple(self._values)
