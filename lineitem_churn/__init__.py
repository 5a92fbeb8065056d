#!filepath: lineitem_churn/__init__.py

from .utils.logger import Logging, logs
from .utils.retry import Retry, RetryPolicy
from .config.app_config import AppConfig

__version__ = "0.1.0"

__all__ = [
    "logs", "Logging",
    "Retry", "RetryPolicy",
    "AppConfig",
    "__version__",
]
