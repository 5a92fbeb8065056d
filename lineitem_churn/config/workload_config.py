#!filepath: lineitem_churn/config/workload_config.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class WorkloadConfig(BaseModel):
    """
    WorkloadConfig (frozen)

    Semantics:
      - what the generator does: window geometry and thread counts
      - read once at startup, passed into the coordinator and workers
      - inserter_threads > 1 is rejected by the coordinator, not here
    """

    model_config = ConfigDict(frozen=True)

    # '|' separated dbgen lineitem file the inserter reads
    data_path: str = "/data/3/dbgen/truncated_lineitem.tbl"

    # size of the trailing window, in order numbers
    window: int = Field(3_000_000, gt=0)

    # order number from which we start inserting
    starting_point: int = 6_000_000

    updater_threads: int = Field(1, ge=0)
    inserter_threads: int = Field(0, ge=0)

    # "last": trust the scan order (highest line comes last)
    # "max_linenumber": pick max(l_linenumber) locally
    row_selection: Literal["last", "max_linenumber"] = "last"

    # 0.0 keeps the tight resample loop on empty scans
    empty_scan_backoff_secs: float = Field(0.0, ge=0.0)

    # throughput log period, 0 disables the reporter
    report_interval_secs: float = Field(10.0, ge=0.0)

    # seeds the per-worker RNGs; None = nondeterministic
    seed: Optional[int] = None
