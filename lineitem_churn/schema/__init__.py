from .predicate import ColumnRangePredicate
from .row import PartialRow, RowBuilder, RowKey
from .row_changelist import RowChangeList, RowChangeListEncoder
from .tpch_schemas import (
    KEY_COLUMNS,
    LINE_NUMBER,
    ORDER_KEY,
    QUANTITY,
    column_index,
    create_demo_query_schema,
    create_key_projection,
    create_lineitem_schema,
)

__all__ = [
    "ColumnRangePredicate",
    "PartialRow",
    "RowBuilder",
    "RowKey",
    "RowChangeList",
    "RowChangeListEncoder",
    "KEY_COLUMNS",
    "LINE_NUMBER",
    "ORDER_KEY",
    "QUANTITY",
    "column_index",
    "create_demo_query_schema",
    "create_key_projection",
    "create_lineitem_schema",
]
