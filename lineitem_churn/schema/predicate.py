#!filepath: lineitem_churn/schema/predicate.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ColumnRangePredicate:
    """
    Inclusive range on one column: lower <= value <= upper.
    Either bound may be None (unbounded).
    """

    column: str
    lower: Any = None
    upper: Any = None

    @classmethod
    def equals(cls, column: str, value: Any) -> "ColumnRangePredicate":
        return cls(column, value, value)

    def matches(self, value: Any) -> bool:
        if value is None:
            return False
        if self.lower is not None and value < self.lower:
            return False
        if self.upper is not None and value > self.upper:
            return False
        return True

    def to_dict(self) -> dict:
        return {"column": self.column, "lower": self.lower, "upper": self.upper}

    @classmethod
    def from_dict(cls, d: dict) -> "ColumnRangePredicate":
        return cls(d["column"], d.get("lower"), d.get("upper"))
