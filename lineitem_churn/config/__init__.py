from .app_config import AppConfig
from .log_config import LogConfig
from .store_config import StoreBackend, StoreConfig
from .workload_config import WorkloadConfig

__all__ = ["AppConfig", "LogConfig", "StoreBackend", "StoreConfig", "WorkloadConfig"]
