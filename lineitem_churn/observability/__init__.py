from .metrics import EMPTY_SCANS, INSERTED, UPDATED, WorkloadMetrics
from .reporter import ThroughputReporter

__all__ = ["EMPTY_SCANS", "INSERTED", "UPDATED", "ThroughputReporter", "WorkloadMetrics"]
