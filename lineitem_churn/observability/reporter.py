#!filepath: lineitem_churn/observability/reporter.py
from __future__ import annotations

import threading

from lineitem_churn.observability.metrics import (
    EMPTY_SCANS,
    INSERTED,
    UPDATED,
    WorkloadMetrics,
)
from lineitem_churn.utils.logger import logs


class ThroughputReporter:
    """
    Logs per-interval deltas of the workload counters:

        [Throughput] inserts/s=980.0 updates/s=412.5 empty/s=3.1 | total ...
    """

    def __init__(self, metrics: WorkloadMetrics, interval_secs: float = 10.0):
        self.metrics = metrics
        self.interval = interval_secs
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._last: dict[str, int] = {}

    def start(self) -> None:
        if self.interval <= 0:
            logs.info("[Throughput] reporter disabled")
            return
        self._thread = threading.Thread(target=self._loop, name="reporter", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval + 1)

    def report(self) -> dict[str, float]:
        """One interval: log and return the per-second rates."""
        cur = self.metrics.snapshot()
        rates = {
            name: (cur.get(name, 0) - self._last.get(name, 0)) / self.interval
            for name in (INSERTED, UPDATED, EMPTY_SCANS)
        }
        self._last = cur
        logs.info(
            f"[Throughput] inserts/s={rates[INSERTED]:.1f} "
            f"updates/s={rates[UPDATED]:.1f} empty/s={rates[EMPTY_SCANS]:.1f} | "
            f"total inserted={cur.get(INSERTED, 0)} updated={cur.get(UPDATED, 0)}"
        )
        return rates

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            self.report()
