#!filepath: lineitem_churn/config/store_config.py
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PORT = 8050


class StoreBackend(str, Enum):
    HTTP = "http"
    MEMORY = "memory"


class StoreConfig(BaseModel):
    """
    Where the workload goes and how the client batches / retries.
    """

    model_config = ConfigDict(frozen=True)

    backend: StoreBackend = StoreBackend.HTTP

    # host[:port] or full URL of the tablet server
    master_address: str = "localhost"
    tablet_id: str = "tpch1"

    # max inserts/updates buffered before a flush
    max_batch_size: int = Field(1000, gt=0)
    scan_batch_size: int = Field(1000, gt=0)

    timeout_secs: float = Field(10.0, gt=0)
    max_attempts: int = Field(3, ge=1)
    retry_delay_secs: float = Field(0.5, ge=0)

    def base_url(self) -> str:
        address = self.master_address.rstrip("/")
        if "://" not in address:
            address = f"http://{address}"
        # port only missing when nothing follows the host
        host = address.split("://", 1)[1]
        if ":" not in host:
            address = f"{address}:{DEFAULT_PORT}"
        return address
