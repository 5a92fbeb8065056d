#!filepath: lineitem_churn/utils/logger.py
from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from lineitem_churn.config.log_config import LogConfig

_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {thread.name} | {message}"


class Logging:
    """
    Process-wide logging facade over loguru
    ---------------------------------------
    - stderr sink for the operator
    - date-rotated file sink with retention
    - sinks come from LogConfig, installed by setup()
    ---------------------------------------
    """

    def setup(self, cfg: "LogConfig") -> None:
        """
        Install sinks. Re-running replaces the previous ones.
        """
        logger.remove()

        logger.add(sys.stderr, level=cfg.level, format=_FORMAT, enqueue=True)

        if cfg.dir:
            os.makedirs(cfg.dir, exist_ok=True)
            logger.add(
                sink=f"{cfg.dir}/{{time:YYYY-MM-DD}}.log",
                rotation=cfg.rotation,
                retention=cfg.retention,
                level=cfg.level,
                format=_FORMAT,
                enqueue=True,  # many worker threads
                backtrace=True,
                diagnose=False,
            )

        logger.info("-----------Logger initialized-----------")

    # ---------- basic interface ----------
    def debug(self, msg: str, *args, **kwargs):
        logger.opt(depth=1).debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        logger.opt(depth=1).info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        logger.opt(depth=1).warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        logger.opt(depth=1).error(msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        logger.opt(depth=1).exception(msg, *args, **kwargs)


# module-wide logs; sinks come from setup()
logs = Logging()
