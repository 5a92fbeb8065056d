#!filepath: lineitem_churn/dao/memory_dao.py
from __future__ import annotations

from typing import Any, Sequence

from lineitem_churn.dao.base import LineItemDAO
from lineitem_churn.schema.predicate import ColumnRangePredicate
from lineitem_churn.schema.row import RowKey
from lineitem_churn.store.tablet import TabletStore


class InMemoryLineItemDAO(LineItemDAO):
    """
    Same contract as the HTTP client, against an in-process TabletStore.
    Several DAOs (one per worker) can share one tablet.
    """

    def __init__(self, tablet: TabletStore, max_batch_size: int = 1000, scan_batch_size: int = 1000):
        super().__init__(tablet.tablet_id, max_batch_size, scan_batch_size)
        self.tablet = tablet

    def _apply_writes(self, rows: list[dict]) -> tuple[int, list]:
        result = self.tablet.insert(rows)
        return result.applied, result.errors

    def _apply_mutations(self, ops: list[tuple[RowKey, bytes]]) -> tuple[int, list]:
        result = self.tablet.mutate(ops)
        return result.applied, result.errors

    def _fetch_page(
        self,
        projection: list[str],
        predicate: ColumnRangePredicate,
        after: Sequence[Any] | None,
    ):
        page = self.tablet.scan(projection, predicate, after=after, limit=self.scan_batch_size)
        return page.rows, page.has_more, page.last_key
