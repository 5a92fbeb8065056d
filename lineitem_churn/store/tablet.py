#!filepath: lineitem_churn/store/tablet.py
from __future__ import annotations

import bisect
import threading
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

import pyarrow as pa

from lineitem_churn.schema.predicate import ColumnRangePredicate
from lineitem_churn.schema.row import RowKey, coerce_value
from lineitem_churn.schema.row_changelist import RowChangeList
from lineitem_churn.schema.tpch_schemas import KEY_COLUMNS, create_lineitem_schema

# per-row error messages
ALREADY_PRESENT = "already present"
NOT_FOUND = "not found"


@dataclass
class ApplyResult:
    applied: int = 0
    errors: list[dict] = field(default_factory=list)


@dataclass
class ScanPage:
    rows: list[dict]
    has_more: bool
    last_key: RowKey | None


class TabletStore:
    """
    Ordered in-memory tablet.

    - rows kept sorted by primary key (l_orderkey, l_linenumber)
    - scans return rows in key order: for a single order the last row
      is the one with the highest line number
    - one lock per tablet; this is the store's concurrency control
    """

    def __init__(self, tablet_id: str, schema: pa.Schema | None = None):
        self.tablet_id = tablet_id
        self.schema = schema or create_lineitem_schema()
        self.key_columns: tuple[str, ...] = KEY_COLUMNS
        self._keys: list[RowKey] = []
        self._rows: dict[RowKey, dict[str, Any]] = {}
        self._lock = threading.Lock()

    # --------------------------------------------------
    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)

    def _normalize(self, row: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(row, dict):
            raise TypeError(f"row must be an object, got {type(row).__name__}")
        unknown = set(row) - set(self.schema.names)
        if unknown:
            raise ValueError(f"unknown columns: {sorted(unknown)}")
        return {
            f.name: coerce_value(f, row.get(f.name)) for f in self.schema
        }

    def _normalize_key(self, key: Sequence[Any]) -> RowKey:
        if len(key) != len(self.key_columns):
            raise ValueError(f"key must have {len(self.key_columns)} columns, got {len(key)}")
        return tuple(
            coerce_value(self.schema.field(name), v)
            for name, v in zip(self.key_columns, key)
        )

    # --------------------------------------------------
    def insert(self, rows: Iterable[dict[str, Any]]) -> ApplyResult:
        result = ApplyResult()
        with self._lock:
            for i, raw in enumerate(rows):
                try:
                    row = self._normalize(raw)
                except (ValueError, TypeError) as e:
                    result.errors.append({"index": i, "error": str(e)})
                    continue
                key = tuple(row[c] for c in self.key_columns)
                if key in self._rows:
                    result.errors.append(
                        {"index": i, "key": list(key), "error": ALREADY_PRESENT}
                    )
                    continue
                bisect.insort(self._keys, key)
                self._rows[key] = row
                result.applied += 1
        return result

    def mutate(self, ops: Iterable[tuple[Sequence[Any], bytes]]) -> ApplyResult:
        result = ApplyResult()
        with self._lock:
            for i, (raw_key, payload) in enumerate(ops):
                try:
                    key = self._normalize_key(raw_key)
                    updates = RowChangeList.decode(self.schema, payload)
                except (ValueError, TypeError) as e:
                    result.errors.append({"index": i, "error": str(e)})
                    continue
                row = self._rows.get(key)
                if row is None:
                    result.errors.append(
                        {"index": i, "key": list(key), "error": NOT_FOUND}
                    )
                    continue
                for u in updates:
                    row[u.name] = u.value
                result.applied += 1
        return result

    def scan(
        self,
        projection: Sequence[str] | None,
        predicate: ColumnRangePredicate | None = None,
        after: Sequence[Any] | None = None,
        limit: int | None = None,
    ) -> ScanPage:
        projection = list(projection or self.schema.names)
        unknown = set(projection) - set(self.schema.names)
        if unknown:
            raise ValueError(f"unknown projection columns: {sorted(unknown)}")
        if predicate is not None and predicate.column not in self.schema.names:
            raise ValueError(f"unknown predicate column: {predicate.column!r}")

        with self._lock:
            start = 0
            if after is not None:
                start = bisect.bisect_right(self._keys, self._normalize_key(after))
            elif predicate is not None and predicate.column == self.key_columns[0] \
                    and predicate.lower is not None:
                # leading key column: seek instead of a full pass
                start = bisect.bisect_left(self._keys, (predicate.lower,))

            rows: list[dict] = []
            last_key = None
            has_more = False
            for pos in range(start, len(self._keys)):
                key = self._keys[pos]
                row = self._rows[key]
                if predicate is not None:
                    value = row[predicate.column]
                    if predicate.column == self.key_columns[0] \
                            and predicate.upper is not None and value > predicate.upper:
                        break
                    if not predicate.matches(value):
                        continue
                if limit is not None and len(rows) >= limit:
                    has_more = True
                    break
                rows.append({c: row[c] for c in projection})
                last_key = key

        return ScanPage(rows=rows, has_more=has_more, last_key=last_key)
