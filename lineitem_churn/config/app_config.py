#!filepath: lineitem_churn/config/app_config.py
import os
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from .log_config import LogConfig
from .store_config import StoreConfig
from .workload_config import WorkloadConfig

# env var -> (section, field)
ENV_OVERRIDES = {
    "CHURN_MASTER_ADDRESS": ("store", "master_address"),
    "CHURN_TABLET_ID": ("store", "tablet_id"),
    "CHURN_DATA_PATH": ("workload", "data_path"),
}


def project_root() -> str:
    """
    lineitem_churn/config/app_config.py -> lineitem_churn/config -> lineitem_churn -> root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


def default_config_path() -> str:
    return os.path.join(os.path.dirname(__file__), "base.yml")


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    log: LogConfig = LogConfig()
    workload: WorkloadConfig = WorkloadConfig()
    store: StoreConfig = StoreConfig()

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        Load YAML config + .env
        - default: the packaged lineitem_churn/config/base.yml
        - does not depend on the working directory
        - CHURN_* environment variables win over the file
        """
        # 1) .env at the project root, if any
        load_dotenv(os.path.join(project_root(), ".env"))

        # 2) config file
        if path is None:
            path = default_config_path()

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 3) YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # 4) environment
        for var, (section, field) in ENV_OVERRIDES.items():
            value = os.getenv(var)
            if value:
                raw.setdefault(section, {})[field] = value

        return cls(**raw)

    def with_overrides(self, **sections: dict[str, Any]) -> "AppConfig":
        """
        Copy with per-section overrides, None values ignored:
            cfg.with_overrides(workload={"window": 100}, store={"tablet_id": None})
        """
        updates = {}
        for section, values in sections.items():
            values = {k: v for k, v in values.items() if v is not None}
            if not values:
                continue
            current: BaseModel = getattr(self, section)
            # re-validate so overrides get the same checks as the file
            updates[section] = type(current)(**{**current.model_dump(), **values})
        return self.model_copy(update=updates)
