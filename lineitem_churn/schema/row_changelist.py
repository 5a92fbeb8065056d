#!filepath: lineitem_churn/schema/row_changelist.py
"""
Row change lists: the opaque mutation payload sent with mutate_line().

Wire form is a small versioned JSON document:
    {"v": 1, "updates": [[column_index, value], ...]}
Column indexes refer to the full lineitem schema. Key columns cannot be
updated.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import pyarrow as pa

from lineitem_churn.schema.row import coerce_value

FORMAT_VERSION = 1


def _num_key_columns(schema: pa.Schema) -> int:
    meta = schema.metadata or {}
    return int(meta.get(b"num_key_columns", b"0"))


@dataclass(frozen=True)
class ColumnUpdate:
    index: int
    name: str
    value: Any


class RowChangeListEncoder:
    """
    encoder = RowChangeListEncoder(schema)
    encoder.add_column_update(4, new_quantity)
    payload = encoder.encode()
    """

    def __init__(self, schema: pa.Schema):
        self.schema = schema
        self._updates: list[tuple[int, Any]] = []

    def add_column_update(self, col_idx: int, value: Any) -> "RowChangeListEncoder":
        if not 0 <= col_idx < len(self.schema):
            raise IndexError(f"column index {col_idx} out of range")
        if col_idx < _num_key_columns(self.schema):
            raise ValueError(
                f"cannot update key column {self.schema.field(col_idx).name!r}"
            )
        self._updates.append((col_idx, coerce_value(self.schema.field(col_idx), value)))
        return self

    def encode(self) -> bytes:
        if not self._updates:
            raise ValueError("empty change list")
        doc = {"v": FORMAT_VERSION, "updates": [list(u) for u in self._updates]}
        return json.dumps(doc, separators=(",", ":")).encode("utf-8")


class RowChangeList:
    """Decoding side, used by the tablet when applying a mutation."""

    @staticmethod
    def decode(schema: pa.Schema, payload: bytes) -> list[ColumnUpdate]:
        try:
            doc = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValueError(f"corrupt change list: {e}") from e

        if not isinstance(doc, dict) or doc.get("v") != FORMAT_VERSION:
            raise ValueError("unsupported change list version")

        updates = []
        for item in doc.get("updates", []):
            if not isinstance(item, list) or len(item) != 2:
                raise ValueError(f"bad update entry: {item!r}")
            idx, value = item
            if not isinstance(idx, int) or not 0 <= idx < len(schema):
                raise ValueError(f"bad column index: {idx!r}")
            if idx < _num_key_columns(schema):
                raise ValueError("key columns are immutable")
            field = schema.field(idx)
            updates.append(ColumnUpdate(idx, field.name, coerce_value(field, value)))

        if not updates:
            raise ValueError("empty change list")
        return updates
