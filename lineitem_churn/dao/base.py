#!filepath: lineitem_churn/dao/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Sequence

import pyarrow as pa

from lineitem_churn.schema.predicate import ColumnRangePredicate
from lineitem_churn.schema.row import PartialRow, RowKey
from lineitem_churn.utils.errors import StoreError
from lineitem_churn.utils.logger import logs

# (rows, has_more, last_key)
PageFetch = Callable[[Sequence[Any] | None], tuple[list[dict], bool, Sequence[Any] | None]]


class Scanner:
    """
    Range scan handle.

        scanner = dao.open_scanner(schema, pred)
        rows = []
        while scanner.has_more():
            rows.extend(scanner.get_next())

    Pages are pulled lazily; rows come back in the store's order.
    """

    def __init__(self, fetch: PageFetch):
        self._fetch = fetch
        self._after: Sequence[Any] | None = None
        self._has_more = True
        self.pages = 0

    def has_more(self) -> bool:
        return self._has_more

    def get_next(self) -> list[dict]:
        if not self._has_more:
            return []
        rows, has_more, last_key = self._fetch(self._after)
        self.pages += 1
        self._after = last_key
        # a page with no key to resume from cannot be followed
        self._has_more = bool(has_more) and last_key is not None
        return rows


class LineItemDAO(ABC):
    """
    Remote-store client for the lineitem tablet.

    Contract (shared by all backends):
      - write_line / mutate_line buffer; a buffer reaching max_batch_size
        is flushed immediately
      - finish_writing() flushes both buffers
      - open_scanner() reads flushed data only
      - any failure surfaces as StoreError; nothing above the DAO retries

    Subclasses implement the three transport hooks.
    """

    def __init__(self, tablet_id: str, max_batch_size: int = 1000, scan_batch_size: int = 1000):
        if max_batch_size <= 0:
            raise ValueError("max_batch_size must be > 0")
        self.tablet_id = tablet_id
        self.max_batch_size = max_batch_size
        self.scan_batch_size = scan_batch_size
        self._pending_writes: list[dict] = []
        self._pending_mutations: list[tuple[RowKey, bytes]] = []
        self.rows_written = 0
        self.rows_mutated = 0

    # --------------------------------------------------
    # lifecycle
    # --------------------------------------------------
    def init(self) -> None:
        """Connect / verify the tablet. Default: nothing to do."""

    def close(self) -> None:
        """Release the connection. Buffered operations are NOT flushed."""

    # --------------------------------------------------
    # writes
    # --------------------------------------------------
    def write_line(self, row: PartialRow) -> None:
        self._pending_writes.append(row.to_dict())
        if len(self._pending_writes) >= self.max_batch_size:
            self._flush_writes()

    def mutate_line(self, key: RowKey, changes: bytes) -> None:
        self._pending_mutations.append((tuple(key), changes))
        if len(self._pending_mutations) >= self.max_batch_size:
            self._flush_mutations()

    def finish_writing(self) -> None:
        self._flush_writes()
        self._flush_mutations()
        logs.info(
            f"[{self.__class__.__name__}] finished writing "
            f"written={self.rows_written} mutated={self.rows_mutated}"
        )

    def _flush_writes(self) -> None:
        if not self._pending_writes:
            return
        batch, self._pending_writes = self._pending_writes, []
        applied, errors = self._apply_writes(batch)
        self.rows_written += applied
        self._check(errors, "write", len(batch))

    def _flush_mutations(self) -> None:
        if not self._pending_mutations:
            return
        batch, self._pending_mutations = self._pending_mutations, []
        applied, errors = self._apply_mutations(batch)
        self.rows_mutated += applied
        self._check(errors, "mutate", len(batch))

    def _check(self, errors: list, op: str, size: int) -> None:
        if errors:
            raise StoreError(
                f"{op} on tablet {self.tablet_id}: {len(errors)}/{size} rows failed, "
                f"first: {errors[0]}",
                errors=errors,
            )
        logs.debug(f"[{self.__class__.__name__}] flushed {size} {op}s")

    # --------------------------------------------------
    # reads
    # --------------------------------------------------
    def open_scanner(self, schema: pa.Schema, predicate: ColumnRangePredicate) -> Scanner:
        projection = list(schema.names)

        def fetch(after):
            return self._fetch_page(projection, predicate, after)

        return Scanner(fetch)

    # --------------------------------------------------
    # transport hooks
    # --------------------------------------------------
    @abstractmethod
    def _apply_writes(self, rows: list[dict]) -> tuple[int, list]:
        """Returns (applied, per-row errors)."""

    @abstractmethod
    def _apply_mutations(self, ops: list[tuple[RowKey, bytes]]) -> tuple[int, list]:
        """Returns (applied, per-row errors)."""

    @abstractmethod
    def _fetch_page(
        self,
        projection: list[str],
        predicate: ColumnRangePredicate,
        after: Sequence[Any] | None,
    ) -> tuple[list[dict], bool, Sequence[Any] | None]:
        ...
