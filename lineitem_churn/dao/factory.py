#!filepath: lineitem_churn/dao/factory.py
from __future__ import annotations

from typing import Callable

from lineitem_churn.config.store_config import StoreBackend, StoreConfig
from lineitem_churn.dao.base import LineItemDAO
from lineitem_churn.store.tablet import TabletStore

DaoFactory = Callable[[], LineItemDAO]


def build_dao_factory(cfg: StoreConfig) -> DaoFactory:
    """
    One call = one fresh DAO; every worker gets its own connection.
    The memory backend shares a single tablet across all of them.
    """
    if cfg.backend == StoreBackend.MEMORY:
        from lineitem_churn.dao.memory_dao import InMemoryLineItemDAO

        tablet = TabletStore(cfg.tablet_id)
        return lambda: InMemoryLineItemDAO(
            tablet, cfg.max_batch_size, cfg.scan_batch_size
        )

    from lineitem_churn.dao.rpc_dao import HttpLineItemDAO

    return lambda: HttpLineItemDAO(cfg)
