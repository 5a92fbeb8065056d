#!filepath: tests/store/test_tablet.py
import pytest

from lineitem_churn.schema.predicate import ColumnRangePredicate
from lineitem_churn.schema.row_changelist import RowChangeListEncoder
from lineitem_churn.schema.tpch_schemas import create_lineitem_schema
from lineitem_churn.store.registry import TabletRegistry


def quantity_change(value: int) -> bytes:
    return RowChangeListEncoder(create_lineitem_schema()).add_column_update(4, value).encode()


def test_insert_keeps_key_order(tablet, make_lineitem):
    result = tablet.insert([make_lineitem(2, 1), make_lineitem(1, 2), make_lineitem(1, 1)])

    assert result.applied == 3 and result.errors == []
    page = tablet.scan(["l_orderkey", "l_linenumber"])
    assert [(r["l_orderkey"], r["l_linenumber"]) for r in page.rows] == [(1, 1), (1, 2), (2, 1)]
    assert page.has_more is False
    assert page.last_key == (2, 1)


def test_duplicate_key_is_a_row_error(tablet, make_lineitem):
    tablet.insert([make_lineitem(1, 1)])

    result = tablet.insert([make_lineitem(1, 1), make_lineitem(1, 2)])

    assert result.applied == 1
    assert result.errors == [{"index": 0, "key": [1, 1], "error": "already present"}]
    assert len(tablet) == 2


def test_bad_rows_are_row_errors(tablet, make_lineitem):
    bad = make_lineitem(1, 1)
    bad["l_bogus"] = 1
    result = tablet.insert([bad, "not a row", {"l_orderkey": 3}])

    assert result.applied == 0
    assert [e["index"] for e in result.errors] == [0, 1, 2]


def test_mutate_applies_change_list(loaded_tablet):
    result = loaded_tablet.mutate([((2, 2), quantity_change(21))])

    assert result.applied == 1
    page = loaded_tablet.scan(["l_quantity"], ColumnRangePredicate.equals("l_orderkey", 2))
    assert [r["l_quantity"] for r in page.rows] == [10, 21]


def test_mutate_missing_row(loaded_tablet):
    result = loaded_tablet.mutate([((9, 1), quantity_change(1)), ((1, 1), b"garbage")])

    assert result.applied == 0
    assert result.errors[0] == {"index": 0, "key": [9, 1], "error": "not found"}
    assert result.errors[1]["index"] == 1


def test_scan_exact_order_returns_all_lines_by_line_number(loaded_tablet):
    page = loaded_tablet.scan(
        ["l_orderkey", "l_linenumber", "l_quantity"],
        ColumnRangePredicate.equals("l_orderkey", 3),
    )
    assert page.rows == [
        {"l_orderkey": 3, "l_linenumber": 1, "l_quantity": 10},
        {"l_orderkey": 3, "l_linenumber": 2, "l_quantity": 20},
        {"l_orderkey": 3, "l_linenumber": 3, "l_quantity": 30},
    ]


def test_scan_unknown_order_is_empty(loaded_tablet):
    page = loaded_tablet.scan(None, ColumnRangePredicate.equals("l_orderkey", 77))
    assert page.rows == [] and page.has_more is False and page.last_key is None


def test_scan_pages_resume_after_last_key(loaded_tablet):
    pred = ColumnRangePredicate("l_orderkey", 2, 3)
    seen = []
    after = None
    pages = 0
    while True:
        page = loaded_tablet.scan(["l_orderkey", "l_linenumber"], pred, after=after, limit=2)
        pages += 1
        seen += [(r["l_orderkey"], r["l_linenumber"]) for r in page.rows]
        if not page.has_more:
            break
        after = page.last_key

    assert seen == [(2, 1), (2, 2), (3, 1), (3, 2), (3, 3)]
    assert pages == 3


def test_scan_non_key_predicate(loaded_tablet):
    page = loaded_tablet.scan(["l_orderkey"], ColumnRangePredicate("l_quantity", 30, None))
    assert page.rows == [{"l_orderkey": 3}]


@pytest.mark.parametrize(
    "projection, predicate",
    [
        (["nope"], None),
        (None, ColumnRangePredicate.equals("nope", 1)),
    ],
)
def test_scan_rejects_unknown_columns(tablet, projection, predicate):
    with pytest.raises(ValueError):
        tablet.scan(projection, predicate)


def test_registry_creates_once():
    reg = TabletRegistry()
    t = reg.get_or_create("a")

    assert reg.get_or_create("a") is t
    assert reg.get("a") is t
    assert reg.list() == ["a"]
    with pytest.raises(KeyError):
        reg.get("b")

    reg.clear()
    assert reg.list() == []
