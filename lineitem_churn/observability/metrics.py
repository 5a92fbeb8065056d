#!filepath: lineitem_churn/observability/metrics.py
import threading
from dataclasses import dataclass, field
from typing import Dict

INSERTED = "inserted"
UPDATED = "updated"
EMPTY_SCANS = "empty_scans"


@dataclass
class WorkloadMetrics:
    """
    Counters shared by all workers. Inserts and updates count rows the
    store acknowledged, not rows handed to the client buffer.
    Touched once per operation, never on the sampling path.
    """

    enabled: bool = True
    counters: Dict[str, int] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def incr(self, name: str, n: int = 1) -> None:
        if not self.enabled or n == 0:
            return
        with self._lock:
            self.counters[name] = self.counters.get(name, 0) + n

    def get(self, name: str) -> int:
        with self._lock:
            return self.counters.get(name, 0)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self.counters)
