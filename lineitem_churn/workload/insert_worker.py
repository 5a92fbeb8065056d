#!filepath: lineitem_churn/workload/insert_worker.py
from __future__ import annotations

from typing import Protocol

from lineitem_churn.dao.base import LineItemDAO
from lineitem_churn.importer.lineitem_tsv_importer import END_OF_INPUT
from lineitem_churn.observability.metrics import INSERTED, WorkloadMetrics
from lineitem_churn.schema.row import PartialRow
from lineitem_churn.schema.tpch_schemas import create_lineitem_schema
from lineitem_churn.utils.logger import logs
from lineitem_churn.workload.window import WindowState


class LineSource(Protocol):
    def get_next_line(self, row: PartialRow) -> int:
        """Fill row, return its order key; 0 = no more data."""
        ...


class InsertWorker:
    """
    Inserts every line the importer yields and drags the window along.

    - write_line() once per record
    - window.advance(order_key) after each write
    - finish_writing() once, after the importer reports 0
    """

    def __init__(
        self,
        window: WindowState,
        dao: LineItemDAO,
        importer: LineSource,
        *,
        metrics: WorkloadMetrics | None = None,
    ):
        self.window = window
        self.dao = dao
        self.importer = importer
        self.metrics = metrics or WorkloadMetrics(enabled=False)

    def run(self) -> int:
        """Returns the number of lines inserted."""
        row = PartialRow(create_lineitem_schema())
        inserted = 0

        written = self.dao.rows_written

        order_number = self.importer.get_next_line(row)
        while order_number != END_OF_INPUT:
            self.dao.write_line(row)
            # move the window forward
            self.window.advance(order_number)
            inserted += 1
            written = self._count_written(written)
            order_number = self.importer.get_next_line(row)

        self.dao.finish_writing()
        self._count_written(written)
        logs.info(
            f"[InsertWorker] input exhausted: inserted={inserted} "
            f"window frozen at {self.window.cursor}"
        )
        return inserted

    def _count_written(self, before: int) -> int:
        """Counts rows flushed since `before`; returns the new total."""
        now = self.dao.rows_written
        self.metrics.incr(INSERTED, now - before)
        return now
