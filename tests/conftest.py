# tests/conftest.py
from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from loguru import logger

from lineitem_churn.dao.base import LineItemDAO, Scanner
from lineitem_churn.dao.memory_dao import InMemoryLineItemDAO
from lineitem_churn.schema.row import PartialRow
from lineitem_churn.schema.tpch_schemas import create_lineitem_schema
from lineitem_churn.store.tablet import TabletStore


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)  # or sys.stderr
    yield


# ============================================================
# dbgen lineitem lines
# ============================================================
def tbl_line(orderkey: int, linenumber: int, quantity: int = 17) -> str:
    """
    One dbgen lineitem.tbl line, file column order, trailing '|'.
    """
    return (
        f"{orderkey}|155190|7706|{linenumber}|{quantity}|21168.23|0.04|0.02|N|O|"
        f"1996-03-13|1996-02-12|1996-03-22|DELIVER IN PERSON|TRUCK|"
        f"egular courts above the|"
    )


def lineitem_dict(orderkey: int, linenumber: int, quantity: int = 17) -> dict[str, Any]:
    return {
        "l_orderkey": orderkey,
        "l_linenumber": linenumber,
        "l_suppkey": 7706,
        "l_partkey": 155190,
        "l_quantity": quantity,
        "l_extendedprice": 21168.23,
        "l_discount": 0.04,
        "l_tax": 0.02,
        "l_returnflag": "N",
        "l_linestatus": "O",
        "l_shipdate": "1996-03-13",
        "l_commitdate": "1996-02-12",
        "l_receiptdate": "1996-03-22",
        "l_shipinstruct": "DELIVER IN PERSON",
        "l_shipmode": "TRUCK",
        "l_comment": "egular courts above the",
    }


def lineitem_row(orderkey: int, linenumber: int, quantity: int = 17) -> PartialRow:
    row = PartialRow(create_lineitem_schema())
    for k, v in lineitem_dict(orderkey, linenumber, quantity).items():
        row.set(k, v)
    return row


@pytest.fixture
def write_tbl(tmp_path: Path):
    """
    Factory: write (orderkey, linenumber[, quantity]) tuples as a .tbl file.
    """

    def _write(items, name: str = "lineitem.tbl") -> Path:
        path = tmp_path / name
        lines = [tbl_line(*item) for item in items]
        path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
        return path

    return _write


# ============================================================
# store fixtures
# ============================================================
@pytest.fixture
def tablet() -> TabletStore:
    return TabletStore("tpch1")


@pytest.fixture
def loaded_tablet(tablet: TabletStore) -> TabletStore:
    """
    orders 1..3 with 1, 2 and 3 lines; quantity = 10 * linenumber
    """
    rows = [
        lineitem_dict(order, line, 10 * line)
        for order in (1, 2, 3)
        for line in range(1, order + 1)
    ]
    result = tablet.insert(rows)
    assert not result.errors
    return tablet


@pytest.fixture
def memory_dao(loaded_tablet: TabletStore) -> InMemoryLineItemDAO:
    return InMemoryLineItemDAO(loaded_tablet, max_batch_size=1, scan_batch_size=2)


# ============================================================
# recording fakes
# ============================================================
class RecordingDAO(LineItemDAO):
    """
    Scripted scan results by order key; records every call in order.
    """

    def __init__(self, scans: dict[int, list[list[dict]]] | None = None):
        super().__init__("tpch1", max_batch_size=1_000_000)
        self.scans = scans or {}
        self.calls: list[tuple] = []
        self.written: list[dict] = []
        self.mutations: list[tuple] = []
        self.predicates: list = []

    def init(self) -> None:
        self.calls.append(("init",))

    def close(self) -> None:
        self.calls.append(("close",))

    def write_line(self, row: PartialRow) -> None:
        self.calls.append(("write_line", row.get("l_orderkey")))
        self.written.append(row.to_dict())

    def mutate_line(self, key, changes: bytes) -> None:
        self.calls.append(("mutate_line", tuple(key)))
        self.mutations.append((tuple(key), changes))

    def finish_writing(self) -> None:
        self.calls.append(("finish_writing",))

    def open_scanner(self, schema, predicate) -> Scanner:
        self.calls.append(("open_scanner", predicate.lower))
        self.predicates.append(predicate)
        pages = list(self.scans.get(predicate.lower, []))

        def fetch(after):
            page = pages.pop(0) if pages else []
            return page, bool(pages), ("k", len(pages))

        return Scanner(fetch)

    # unused transport hooks
    def _apply_writes(self, rows):
        raise AssertionError("not used")

    def _apply_mutations(self, ops):
        raise AssertionError("not used")

    def _fetch_page(self, projection, predicate, after):
        raise AssertionError("not used")

    def count(self, name: str) -> int:
        return sum(1 for c in self.calls if c[0] == name)


class ListImporter:
    """
    get_next_line() over in-memory rows; 0 at the end.
    """

    def __init__(self, items):
        self.items = list(items)
        self.pos = 0
        self.exhausted_calls = 0
        self.closed = False

    def get_next_line(self, row: PartialRow) -> int:
        row.reset()
        if self.pos >= len(self.items):
            self.exhausted_calls += 1
            return 0
        orderkey, linenumber = self.items[self.pos]
        self.pos += 1
        for k, v in lineitem_dict(orderkey, linenumber).items():
            row.set(k, v)
        return orderkey

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def recording_dao():
    return RecordingDAO


@pytest.fixture
def list_importer():
    return ListImporter


@pytest.fixture
def make_lineitem():
    """dict form: make_lineitem(orderkey, linenumber, quantity=17)"""
    return lineitem_dict


@pytest.fixture
def make_row():
    """PartialRow form: make_row(orderkey, linenumber, quantity=17)"""
    return lineitem_row
