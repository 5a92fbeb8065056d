#!filepath: lineitem_churn/workload/update_worker.py
from __future__ import annotations

import random
import time
from typing import Literal

from lineitem_churn.dao.base import LineItemDAO
from lineitem_churn.observability.metrics import EMPTY_SCANS, UPDATED, WorkloadMetrics
from lineitem_churn.schema.predicate import ColumnRangePredicate
from lineitem_churn.schema.row import RowBuilder
from lineitem_churn.schema.row_changelist import RowChangeListEncoder
from lineitem_churn.schema.tpch_schemas import (
    LINE_NUMBER,
    ORDER_KEY,
    QUANTITY,
    column_index,
    create_demo_query_schema,
    create_key_projection,
    create_lineitem_schema,
)
from lineitem_churn.utils.logger import logs
from lineitem_churn.workload.window import WindowState

RowSelection = Literal["last", "max_linenumber"]


def select_row(rows: list[dict], policy: RowSelection = "last") -> dict:
    """
    Pick the line item to update among all lines of one order.

    - "last": the final row the scan returned. The tablet returns rows in
      key order, so this is the highest line number. Depends on the
      store's scan order.
    - "max_linenumber": max by l_linenumber, whatever the scan order.
    """
    if not rows:
        raise ValueError("no rows to select from")
    if policy == "last":
        return rows[-1]
    if policy == "max_linenumber":
        return max(rows, key=lambda r: r[LINE_NUMBER])
    raise ValueError(f"unknown row selection policy: {policy!r}")


class UpdateWorker:
    """
    Read-modify-write loop on l_quantity
    ---------------------------------------------------
    1. sample an order number from the window
    2. scan that order (l_orderkey == key), drain the scanner
    3. no rows -> resample, no error
    4. pick a line, quantity + 1
    5. mutate that one row
    ---------------------------------------------------
    Store errors propagate: run() ends with the exception.
    """

    def __init__(
        self,
        window: WindowState,
        dao: LineItemDAO,
        *,
        rng: random.Random | None = None,
        row_selection: RowSelection = "last",
        empty_scan_backoff_secs: float = 0.0,
        metrics: WorkloadMetrics | None = None,
    ):
        self.window = window
        self.dao = dao
        self.rng = rng or random.Random()
        self.row_selection = row_selection
        self.empty_scan_backoff_secs = empty_scan_backoff_secs
        self.metrics = metrics or WorkloadMetrics(enabled=False)

        self.full_schema = create_lineitem_schema()
        self.query_schema = create_demo_query_schema()
        self.key_projection = create_key_projection(self.full_schema)
        self.quantity_idx = column_index(self.full_schema, QUANTITY)

    # --------------------------------------------------
    def run(self) -> None:
        while True:
            self.run_once()

    def run_once(self) -> bool:
        """
        One iteration. True if a mutation was issued, False on an empty scan.
        """
        # 1. next order to update
        current_order = self.window.sample(self.rng)
        logs.debug(f"[UpdateWorker] current order: {current_order}")

        # 2. fetch the order, including the column we update
        rows = self.fetch_order(current_order)
        if not rows:
            self.metrics.incr(EMPTY_SCANS)
            if self.empty_scan_backoff_secs > 0:
                time.sleep(self.empty_scan_backoff_secs)
            return False

        # 3. bump the chosen line
        row = select_row(rows, self.row_selection)
        order_key = row[ORDER_KEY]
        line_number = row[LINE_NUMBER]
        quantity = row[QUANTITY]
        new_quantity = quantity + 1

        # 4. write it back
        logs.debug(
            f"[UpdateWorker] updating {order_key} {line_number} {quantity} {new_quantity}"
        )
        key = RowBuilder(self.key_projection).add(order_key).add(line_number).row()
        changes = (
            RowChangeListEncoder(self.full_schema)
            .add_column_update(self.quantity_idx, new_quantity)
            .encode()
        )
        before = self.dao.rows_mutated
        self.dao.mutate_line(key, changes)
        # counts rows the store applied; buffered mutations land on a later flush
        self.metrics.incr(UPDATED, self.dao.rows_mutated - before)
        return True

    def fetch_order(self, order_key: int) -> list[dict]:
        scanner = self.dao.open_scanner(
            self.query_schema, ColumnRangePredicate.equals(ORDER_KEY, order_key)
        )
        rows: list[dict] = []
        while scanner.has_more():
            rows.extend(scanner.get_next())
        return rows
