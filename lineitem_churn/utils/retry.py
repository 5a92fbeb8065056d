#!filepath: lineitem_churn/utils/retry.py
from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Tuple, Type

from lineitem_churn.utils.logger import logs


@dataclass(frozen=True)
class RetryPolicy:
    """
    Attempt budget and exponential backoff between attempts:
        wait(n) = delay * backoff ** (n - 1), +-20% with jitter
    """

    max_attempts: int = 3
    delay: float = 0.5
    backoff: float = 2.0
    jitter: bool = True

    def wait_after(self, attempt: int) -> float:
        wait = self.delay * (self.backoff ** (attempt - 1))
        if self.jitter:
            wait *= random.uniform(0.8, 1.2)
        return wait


class Retry:
    """
    One retried call against a transport.

        retry = Retry(policy, (requests.ConnectionError,), label="POST /write")
        resp = retry(session.request, "POST", url, json=body)
        if retry.resent:
            ...  # an earlier attempt may have reached the server

    Only `exceptions` are retried; anything else propagates at once.
    The last failure is re-raised when the budget is spent.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        exceptions: Tuple[Type[BaseException], ...],
        label: str = "",
    ):
        if policy.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.policy = policy
        self.exceptions = exceptions
        self.label = label
        self.attempts = 0

    @property
    def resent(self) -> bool:
        return self.attempts > 1

    def __call__(self, func: Callable[..., Any], *args, **kwargs) -> Any:
        label = self.label or getattr(func, "__name__", repr(func))
        max_attempts = self.policy.max_attempts
        while True:
            self.attempts += 1
            try:
                return func(*args, **kwargs)
            except self.exceptions as e:
                if self.attempts >= max_attempts:
                    logs.error(f"[Retry] {label} gave up after {self.attempts} attempts: {e}")
                    raise
                wait = self.policy.wait_after(self.attempts)
                logs.warning(
                    f"[Retry] {label} attempt {self.attempts}/{max_attempts} failed: {e}. "
                    f"retrying in {wait:.2f}s"
                )
                time.sleep(wait)
