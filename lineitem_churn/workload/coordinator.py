#!filepath: lineitem_churn/workload/coordinator.py
from __future__ import annotations

import random
import threading
from typing import Callable

from lineitem_churn.config.workload_config import WorkloadConfig
from lineitem_churn.dao.factory import DaoFactory
from lineitem_churn.importer.lineitem_tsv_importer import LineItemTsvImporter
from lineitem_churn.observability.metrics import WorkloadMetrics
from lineitem_churn.observability.reporter import ThroughputReporter
from lineitem_churn.utils.errors import ConfigurationError, WorkerFailure
from lineitem_churn.utils.logger import logs
from lineitem_churn.workload.insert_worker import InsertWorker, LineSource
from lineitem_churn.workload.update_worker import UpdateWorker
from lineitem_churn.workload.window import WindowState

ImporterFactory = Callable[[str], LineSource]

MAX_INSERTER_THREADS = 1


class Coordinator:
    """
    Coordinator = scheduler for the workload threads

    Rules:
    - at most one inserter; checked before anything is created
    - one WindowState, shared by reference by every worker
    - each worker builds its own DAO inside its own thread
    - a worker that raises is logged and recorded; no restart.
      wait()/run_forever() hand the failure back to the caller,
      which ends the process.
    - no shutdown protocol: threads are daemons, the process just exits
    """

    def __init__(
        self,
        cfg: WorkloadConfig,
        dao_factory: DaoFactory,
        importer_factory: ImporterFactory = LineItemTsvImporter,
        metrics: WorkloadMetrics | None = None,
        poll_interval_secs: float = 60.0,
    ):
        self.cfg = cfg
        self.dao_factory = dao_factory
        self.importer_factory = importer_factory
        self.metrics = metrics or WorkloadMetrics()
        self.poll_interval = poll_interval_secs

        self.window: WindowState | None = None
        self.threads: list[threading.Thread] = []
        self.failures: list[WorkerFailure] = []
        self._failed = threading.Event()
        self._lock = threading.Lock()
        self._reporter = ThroughputReporter(self.metrics, cfg.report_interval_secs)

    # --------------------------------------------------
    @staticmethod
    def validate(cfg: WorkloadConfig) -> None:
        if cfg.inserter_threads > MAX_INSERTER_THREADS:
            raise ConfigurationError(
                f"Can only insert with {MAX_INSERTER_THREADS} thread, "
                f"got inserter_threads={cfg.inserter_threads}"
            )

    def start(self) -> WindowState:
        self.validate(self.cfg)

        cfg = self.cfg
        importer = None
        if cfg.inserter_threads:
            try:
                importer = self.importer_factory(cfg.data_path)
            except FileNotFoundError as e:
                raise ConfigurationError(f"data file not found: {cfg.data_path}") from e

        self.window = WindowState(cfg.window, cfg.starting_point)
        logs.info(
            f"[Coordinator] start window={cfg.window} starting_point={cfg.starting_point} "
            f"updaters={cfg.updater_threads} inserters={cfg.inserter_threads}"
        )

        if importer is not None:
            self._spawn("inserter", self._insert_main, importer)

        for i in range(cfg.updater_threads):
            self._spawn(f"updater-{i}", self._update_main, i)

        self._reporter.start()
        return self.window

    def wait(self, timeout: float | None = None) -> WorkerFailure | None:
        """First worker failure, or None if nothing failed within timeout."""
        self._failed.wait(timeout)
        with self._lock:
            return self.failures[0] if self.failures else None

    def run_forever(self) -> WorkerFailure:
        self.start()
        while True:
            failure = self.wait(self.poll_interval)
            if failure is not None:
                self._reporter.stop()
                return failure

    # --------------------------------------------------
    def _spawn(self, name: str, target: Callable, *args) -> None:
        t = threading.Thread(
            target=self._supervise, args=(name, target, *args), name=name, daemon=True
        )
        self.threads.append(t)
        t.start()

    def _supervise(self, name: str, target: Callable, *args) -> None:
        try:
            target(*args)
        except Exception as e:
            logs.exception(f"[Coordinator] worker {name} died: {e!r}")
            with self._lock:
                self.failures.append(WorkerFailure(name, e))
            self._failed.set()
        else:
            logs.info(f"[Coordinator] worker {name} finished")

    def _insert_main(self, importer: LineSource) -> None:
        dao = self.dao_factory()
        try:
            dao.init()
            InsertWorker(self.window, dao, importer, metrics=self.metrics).run()
        finally:
            dao.close()
            close = getattr(importer, "close", None)
            if close is not None:
                close()

    def _update_main(self, idx: int) -> None:
        seed = None if self.cfg.seed is None else self.cfg.seed + idx
        dao = self.dao_factory()
        try:
            dao.init()
            UpdateWorker(
                self.window,
                dao,
                rng=random.Random(seed),
                row_selection=self.cfg.row_selection,
                empty_scan_backoff_secs=self.cfg.empty_scan_backoff_secs,
                metrics=self.metrics,
            ).run()
        finally:
            dao.close()
