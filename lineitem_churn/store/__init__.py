from .registry import TabletRegistry
from .tablet import ApplyResult, ScanPage, TabletStore

__all__ = ["ApplyResult", "ScanPage", "TabletRegistry", "TabletStore"]
