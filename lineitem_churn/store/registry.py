# lineitem_churn/store/registry.py
from __future__ import annotations

import threading

from lineitem_churn.store.tablet import TabletStore
from lineitem_churn.utils.logger import logs


class TabletRegistry:
    """
    tablet_id -> TabletStore for one server process.
    Tablets are created on first use.
    """

    def __init__(self):
        self._tablets: dict[str, TabletStore] = {}
        self._lock = threading.Lock()

    def get_or_create(self, tablet_id: str) -> TabletStore:
        with self._lock:
            tablet = self._tablets.get(tablet_id)
            if tablet is None:
                tablet = TabletStore(tablet_id)
                self._tablets[tablet_id] = tablet
                logs.info(f"[TabletRegistry] created tablet {tablet_id}")
            return tablet

    def get(self, tablet_id: str) -> TabletStore:
        """Raises KeyError for unknown tablets."""
        with self._lock:
            return self._tablets[tablet_id]

    def list(self) -> list[str]:
        with self._lock:
            return sorted(self._tablets)

    def clear(self) -> None:
        with self._lock:
            self._tablets.clear()
