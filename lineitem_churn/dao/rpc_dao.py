#!filepath: lineitem_churn/dao/rpc_dao.py
from __future__ import annotations

import base64
from typing import Any, Sequence

import requests

from lineitem_churn.config.store_config import StoreConfig
from lineitem_churn.dao.base import LineItemDAO
from lineitem_churn.schema.predicate import ColumnRangePredicate
from lineitem_churn.schema.row import RowKey
from lineitem_churn.store.tablet import ALREADY_PRESENT
from lineitem_churn.utils.errors import StoreError
from lineitem_churn.utils.logger import logs
from lineitem_churn.utils.retry import Retry, RetryPolicy

_TRANSIENT = (requests.ConnectionError, requests.Timeout)


class HttpLineItemDAO(LineItemDAO):
    """
    Tablet server client over HTTP/JSON
    ---------------------------------------------------
    ✓ one requests.Session per DAO (one per worker thread)
    ✓ transport errors retried with exponential backoff
    ✓ HTTP errors and per-row errors -> StoreError
    ---------------------------------------------------
    A resent write batch may find rows an earlier attempt already
    stored; those count as applied. Resent mutations may be applied
    twice; no exactly-once here.
    """

    def __init__(self, cfg: StoreConfig, session: requests.Session | None = None):
        super().__init__(cfg.tablet_id, cfg.max_batch_size, cfg.scan_batch_size)
        self.cfg = cfg
        self.base_url = cfg.base_url()
        self.session = session or requests.Session()
        self.retry_policy = RetryPolicy(
            max_attempts=cfg.max_attempts, delay=cfg.retry_delay_secs
        )
        # attempts used by the last request
        self.last_attempts = 0

    # --------------------------------------------------
    def init(self) -> None:
        body = self._request("GET", "/healthz")
        if body.get("status") != "ok":
            raise StoreError(f"tablet server at {self.base_url} is not healthy: {body}")
        logs.info(f"[HttpLineItemDAO] connected {self.base_url} tablet={self.tablet_id}")

    def close(self) -> None:
        self.session.close()

    # --------------------------------------------------
    def _apply_writes(self, rows: list[dict]) -> tuple[int, list]:
        body = self._request("POST", f"/tablets/{self.tablet_id}/write", {"rows": rows})
        applied, errors = body.get("applied", 0), body.get("errors", [])

        if self.last_attempts > 1 and errors:
            replayed = [e for e in errors if e.get("error") == ALREADY_PRESENT]
            if replayed:
                logs.warning(
                    f"[HttpLineItemDAO] write resent: {len(replayed)} rows "
                    f"were stored by an earlier attempt"
                )
                applied += len(replayed)
                errors = [e for e in errors if e.get("error") != ALREADY_PRESENT]
        return applied, errors

    def _apply_mutations(self, ops: list[tuple[RowKey, bytes]]) -> tuple[int, list]:
        payload = {
            "ops": [
                {"key": list(key), "changes": base64.b64encode(changes).decode("ascii")}
                for key, changes in ops
            ]
        }
        body = self._request("POST", f"/tablets/{self.tablet_id}/mutate", payload)
        return body.get("applied", 0), body.get("errors", [])

    def _fetch_page(
        self,
        projection: list[str],
        predicate: ColumnRangePredicate,
        after: Sequence[Any] | None,
    ):
        payload = {
            "projection": projection,
            "predicate": predicate.to_dict() if predicate is not None else None,
            "after": list(after) if after is not None else None,
            "limit": self.scan_batch_size,
        }
        body = self._request("POST", f"/tablets/{self.tablet_id}/scan", payload)
        return body.get("rows", []), body.get("has_more", False), body.get("last_key")

    # --------------------------------------------------
    def _request(self, method: str, path: str, payload: dict | None = None) -> dict:
        url = f"{self.base_url}{path}"
        retry = Retry(self.retry_policy, _TRANSIENT, label=f"{method} {path}")
        try:
            resp = retry(
                self.session.request,
                method,
                url,
                json=payload,
                timeout=self.cfg.timeout_secs,
            )
        except requests.RequestException as e:
            raise StoreError(f"{method} {url}: {e}") from e
        finally:
            self.last_attempts = retry.attempts

        if resp.status_code >= 400:
            try:
                detail = resp.json().get("error", resp.text)
            except ValueError:
                detail = resp.text
            raise StoreError(f"{method} {url}: HTTP {resp.status_code}: {detail}")

        try:
            return resp.json()
        except ValueError as e:
            raise StoreError(f"{method} {url}: invalid JSON response") from e
