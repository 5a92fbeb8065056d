# lineitem_churn/utils/errors.py
from __future__ import annotations

from dataclasses import dataclass


class UserInputError(RuntimeError):
    """
    Raised for invalid user-provided input (config, flags, paths).
    Should NOT print traceback.
    """


class ConfigurationError(UserInputError):
    """
    The configuration cannot be run, e.g. more than one inserter thread.
    Raised before any worker starts.
    """


class StoreError(RuntimeError):
    """
    A remote-store call failed: transport error that outlived retries,
    HTTP error status, or per-row errors reported by the tablet.
    Fatal to the calling worker.
    """

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message)
        self.errors = errors or []


class MalformedRequest(ValueError):
    """Tablet server: request body does not match the wire contract."""


@dataclass
class WorkerFailure:
    """A worker thread that terminated with an exception."""

    worker: str
    error: BaseException

    def __str__(self) -> str:
        return f"{self.worker} failed: {self.error!r}"
