#!filepath: lineitem_churn/importer/lineitem_tsv_importer.py
from __future__ import annotations

from collections import deque
from pathlib import Path
from typing import Iterator

import pyarrow.csv as csv

from lineitem_churn.schema.row import PartialRow
from lineitem_churn.schema.tpch_schemas import (
    ORDER_KEY,
    TBL_FILE_COLUMNS,
    create_lineitem_schema,
)
from lineitem_churn.utils.logger import logs

"""
Bulk source for the inserter.
Streams a dbgen lineitem.tbl ('|' separated, usually with a trailing '|')
and hands out one line at a time.
"""

END_OF_INPUT = 0
_TRAILING = "__trailing"


class LineItemTsvImporter:
    """
    LineItemTsvImporter

    Contract:
      - get_next_line(row) fills `row` and returns its l_orderkey
      - returns 0 once the file is exhausted (row is left reset)
      - reads through pyarrow's streaming CSV reader, block by block
    """

    def __init__(self, path: str | Path, block_size: int = 1 << 22):
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(self.path)

        self.schema = create_lineitem_schema()
        self._block_size = block_size
        self._reader: csv.CSVStreamingReader | None = None
        self._pending: deque[dict] = deque()
        self._exhausted = False
        self.lines_read = 0

    # --------------------------------------------------
    def get_next_line(self, row: PartialRow) -> int:
        row.reset()
        record = self._next_record()
        if record is None:
            return END_OF_INPUT

        for name in TBL_FILE_COLUMNS:
            row.set(name, record[name])
        self.lines_read += 1
        return row.get(ORDER_KEY)

    def __iter__(self) -> Iterator[PartialRow]:
        """
        Yields a fresh PartialRow per line.
        """
        while True:
            row = PartialRow(self.schema)
            if self.get_next_line(row) == END_OF_INPUT:
                return
            yield row

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
        self._reader = None
        self._pending.clear()
        self._exhausted = True

    def __enter__(self) -> "LineItemTsvImporter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --------------------------------------------------
    def _next_record(self) -> dict | None:
        while not self._pending:
            if self._exhausted:
                return None
            if self._reader is None:
                self._reader = self._open_reader()
                if self._reader is None:
                    self._exhausted = True
                    return None
            try:
                batch = self._reader.read_next_batch()
            except StopIteration:
                logs.info(f"[Importer] {self.path.name} exhausted after {self.lines_read} lines")
                self.close()
                return None
            self._pending.extend(batch.to_pylist())
        return self._pending.popleft()

    def _has_trailing_delimiter(self) -> bool | None:
        """
        Decided on the first non-empty line; the parser skips empty ones.
        None: nothing to read.
        """
        with self.path.open("rb") as f:
            for line in f:
                line = line.rstrip(b"\r\n")
                if line:
                    return line.endswith(b"|")
        return None

    def _open_reader(self) -> csv.CSVStreamingReader | None:
        trailing = self._has_trailing_delimiter()
        if trailing is None:
            logs.warning(f"[Importer] {self.path} is empty")
            return None

        column_names = list(TBL_FILE_COLUMNS)
        if trailing:
            column_names.append(_TRAILING)

        read_opts = csv.ReadOptions(
            column_names=column_names,
            block_size=self._block_size,
            use_threads=False,
        )
        parse_opts = csv.ParseOptions(delimiter="|", quote_char=False, ignore_empty_lines=True)
        convert_opts = csv.ConvertOptions(
            column_types={
                name: self.schema.field(name).type for name in TBL_FILE_COLUMNS
            },
            include_columns=list(TBL_FILE_COLUMNS),
            strings_can_be_null=False,
        )

        logs.info(f"[Importer] open {self.path}")
        return csv.open_csv(
            str(self.path),
            read_options=read_opts,
            parse_options=parse_opts,
            convert_options=convert_opts,
        )

