#!filepath: lineitem_churn/schema/tpch_schemas.py
"""
TPC-H lineitem layouts.

Stored column order differs from the dbgen file order: the key columns
(l_orderkey, l_linenumber) come first, l_quantity sits at index 4.
"""
from __future__ import annotations

import pyarrow as pa

ORDER_KEY = "l_orderkey"
LINE_NUMBER = "l_linenumber"
QUANTITY = "l_quantity"

KEY_COLUMNS = (ORDER_KEY, LINE_NUMBER)

# column order inside a dbgen lineitem.tbl line
TBL_FILE_COLUMNS = (
    "l_orderkey",
    "l_partkey",
    "l_suppkey",
    "l_linenumber",
    "l_quantity",
    "l_extendedprice",
    "l_discount",
    "l_tax",
    "l_returnflag",
    "l_linestatus",
    "l_shipdate",
    "l_commitdate",
    "l_receiptdate",
    "l_shipinstruct",
    "l_shipmode",
    "l_comment",
)


def create_lineitem_schema() -> pa.Schema:
    """Full stored layout, key columns first."""
    return pa.schema(
        [
            pa.field("l_orderkey", pa.uint32(), nullable=False),
            pa.field("l_linenumber", pa.uint32(), nullable=False),
            pa.field("l_suppkey", pa.uint32()),
            pa.field("l_partkey", pa.uint32()),
            pa.field("l_quantity", pa.uint32()),
            pa.field("l_extendedprice", pa.float64()),
            pa.field("l_discount", pa.float64()),
            pa.field("l_tax", pa.float64()),
            pa.field("l_returnflag", pa.string()),
            pa.field("l_linestatus", pa.string()),
            pa.field("l_shipdate", pa.string()),
            pa.field("l_commitdate", pa.string()),
            pa.field("l_receiptdate", pa.string()),
            pa.field("l_shipinstruct", pa.string()),
            pa.field("l_shipmode", pa.string()),
            pa.field("l_comment", pa.string()),
        ],
        metadata={"num_key_columns": str(len(KEY_COLUMNS))},
    )


def create_key_projection(schema: pa.Schema | None = None) -> pa.Schema:
    schema = schema or create_lineitem_schema()
    return pa.schema([schema.field(name) for name in KEY_COLUMNS])


def create_demo_query_schema() -> pa.Schema:
    """What the updater reads back: key + the column it bumps."""
    schema = create_lineitem_schema()
    return pa.schema([schema.field(n) for n in (ORDER_KEY, LINE_NUMBER, QUANTITY)])


def column_index(schema: pa.Schema, name: str) -> int:
    idx = schema.get_field_index(name)
    if idx < 0:
        raise KeyError(f"column {name!r} not in schema")
    return idx
