# lineitem_churn/store/server.py
from __future__ import annotations

import base64
import binascii

from flask import Flask, jsonify, request

from lineitem_churn.schema.predicate import ColumnRangePredicate
from lineitem_churn.store.decorators import handle_tablet_errors
from lineitem_churn.store.registry import TabletRegistry
from lineitem_churn.utils.errors import MalformedRequest
from lineitem_churn.utils.logger import logs

"""
Development tablet server.
In-memory, single process; speaks the JSON protocol HttpLineItemDAO uses.
"""

app = Flask(__name__)

REGISTRY = TabletRegistry()


def _body() -> dict:
    payload = request.get_json(force=True, silent=True)
    if not isinstance(payload, dict):
        raise MalformedRequest("request body must be a JSON object")
    return payload


def _list_field(payload: dict, name: str) -> list:
    value = payload.get(name)
    if not isinstance(value, list):
        raise MalformedRequest(f"'{name}' must be a list")
    return value


def _decode_ops(ops: list) -> list[tuple[list, bytes]]:
    decoded = []
    for op in ops:
        if not isinstance(op, dict) or not isinstance(op.get("key"), list):
            raise MalformedRequest(f"bad mutate op: {op!r}")
        try:
            changes = base64.b64decode(op.get("changes", ""), validate=True)
        except (binascii.Error, TypeError) as e:
            raise MalformedRequest(f"changes must be base64: {e}") from e
        decoded.append((op["key"], changes))
    return decoded


@app.post("/tablets/<tablet_id>/write")
@handle_tablet_errors
def write_rows(tablet_id: str):
    rows = _list_field(_body(), "rows")
    tablet = REGISTRY.get_or_create(tablet_id)

    result = tablet.insert(rows)
    if result.errors:
        logs.warning(f"[Server] {tablet_id} write: {len(result.errors)} row errors")
    return jsonify({"applied": result.applied, "errors": result.errors})


@app.post("/tablets/<tablet_id>/mutate")
@handle_tablet_errors
def mutate_rows(tablet_id: str):
    ops = _decode_ops(_list_field(_body(), "ops"))
    tablet = REGISTRY.get_or_create(tablet_id)

    result = tablet.mutate(ops)
    if result.errors:
        logs.warning(f"[Server] {tablet_id} mutate: {len(result.errors)} row errors")
    return jsonify({"applied": result.applied, "errors": result.errors})


@app.post("/tablets/<tablet_id>/scan")
@handle_tablet_errors
def scan_rows(tablet_id: str):
    payload = _body()

    predicate = None
    if payload.get("predicate") is not None:
        raw = payload["predicate"]
        if not isinstance(raw, dict) or "column" not in raw:
            raise MalformedRequest("predicate needs a 'column'")
        predicate = ColumnRangePredicate.from_dict(raw)

    limit = payload.get("limit")
    if limit is not None and (not isinstance(limit, int) or limit <= 0):
        raise MalformedRequest("limit must be a positive integer")

    tablet = REGISTRY.get_or_create(tablet_id)
    page = tablet.scan(
        projection=payload.get("projection"),
        predicate=predicate,
        after=payload.get("after"),
        limit=limit,
    )
    return jsonify({
        "rows": page.rows,
        "has_more": page.has_more,
        "last_key": list(page.last_key) if page.last_key is not None else None,
    })


@app.get("/tablets/<tablet_id>/stats")
@handle_tablet_errors
def tablet_stats(tablet_id: str):
    tablet = REGISTRY.get(tablet_id)
    return jsonify({"tablet_id": tablet_id, "num_rows": len(tablet)})


@app.get("/tablets")
def list_tablets():
    tablets = REGISTRY.list()
    return jsonify({"count": len(tablets), "tablets": tablets})


@app.get("/healthz")
def health():
    return jsonify({"status": "ok"})


def serve(host: str = "0.0.0.0", port: int = 8050) -> None:
    logs.info(f"[Server] listening on {host}:{port}")
    app.run(host=host, port=port, threaded=True)


if __name__ == "__main__":
    serve()
