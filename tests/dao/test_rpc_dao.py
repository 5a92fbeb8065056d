#!filepath: tests/dao/test_rpc_dao.py
from __future__ import annotations

from urllib.parse import urlsplit

import pytest
import requests

from lineitem_churn.config.store_config import StoreConfig
from lineitem_churn.dao.rpc_dao import HttpLineItemDAO
from lineitem_churn.schema.predicate import ColumnRangePredicate
from lineitem_churn.schema.row_changelist import RowChangeListEncoder
from lineitem_churn.schema.tpch_schemas import create_demo_query_schema, create_lineitem_schema
from lineitem_churn.store.server import REGISTRY, app
from lineitem_churn.utils.errors import StoreError


class FakeResponse:
    def __init__(self, status_code: int, body, text: str = ""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class FlaskSession:
    """
    requests.Session stand-in that routes to the Flask test client.
    """

    def __init__(self, client):
        self.client = client
        self.requests: list[tuple[str, str]] = []
        self.closed = False

    def request(self, method, url, json=None, timeout=None):
        path = urlsplit(url).path
        self.requests.append((method, path))
        resp = self.client.open(path, method=method, json=json)
        return FakeResponse(resp.status_code, resp.get_json(silent=True), resp.get_data(as_text=True))

    def close(self):
        self.closed = True


class ScriptedSession:
    """Returns / raises the scripted outcomes in order."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def request(self, method, url, json=None, timeout=None):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self):
        pass


@pytest.fixture
def session():
    REGISTRY.clear()
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield FlaskSession(client)


def store_cfg(**kw) -> StoreConfig:
    base = dict(master_address="tablet-host", max_batch_size=2, scan_batch_size=2, retry_delay_secs=0)
    base.update(kw)
    return StoreConfig(**base)


# ------------------------------------------------------------
# against the development server
# ------------------------------------------------------------
def test_init_checks_health(session):
    dao = HttpLineItemDAO(store_cfg(), session=session)
    dao.init()
    assert session.requests == [("GET", "/healthz")]


def test_write_mutate_scan_round_trip(session, make_row):
    dao = HttpLineItemDAO(store_cfg(), session=session)
    for line in (1, 2, 3):
        dao.write_line(make_row(8, line, 10 * line))
    dao.finish_writing()
    assert dao.rows_written == 3
    assert len(REGISTRY.get("tpch1")) == 3

    change = RowChangeListEncoder(create_lineitem_schema()).add_column_update(4, 31).encode()
    dao.mutate_line((8, 3), change)
    dao.finish_writing()

    scanner = dao.open_scanner(create_demo_query_schema(), ColumnRangePredicate.equals("l_orderkey", 8))
    rows = []
    while scanner.has_more():
        rows.extend(scanner.get_next())

    assert [(r["l_linenumber"], r["l_quantity"]) for r in rows] == [(1, 10), (2, 20), (3, 31)]
    assert scanner.pages == 2


def test_row_errors_become_store_errors(session, make_row):
    dao = HttpLineItemDAO(store_cfg(max_batch_size=1), session=session)
    dao.write_line(make_row(1, 1))

    with pytest.raises(StoreError) as ei:
        dao.write_line(make_row(1, 1))
    assert ei.value.errors[0]["error"] == "already present"


def test_http_error_status_is_store_error(session):
    dao = HttpLineItemDAO(store_cfg(), session=session)
    scanner = dao.open_scanner(create_demo_query_schema(), ColumnRangePredicate.equals("l_bogus", 1))

    with pytest.raises(StoreError, match="HTTP 400"):
        scanner.get_next()


def test_close_closes_session(session):
    dao = HttpLineItemDAO(store_cfg(), session=session)
    dao.close()
    assert session.closed


# ------------------------------------------------------------
# transport failures
# ------------------------------------------------------------
class LostReplySession(FlaskSession):
    """
    Delivers the first write to the server, then loses the reply.
    """

    def __init__(self, client, error=None):
        super().__init__(client)
        self.error = error or requests.ReadTimeout("read timed out")
        self.dropped = False

    def request(self, method, url, json=None, timeout=None):
        resp = super().request(method, url, json=json, timeout=timeout)
        if url.endswith("/write") and not self.dropped:
            self.dropped = True
            raise self.error
        return resp


def test_resent_write_counts_rows_stored_by_lost_attempt(session, make_row):
    lossy = LostReplySession(session.client)
    dao = HttpLineItemDAO(store_cfg(max_batch_size=1), session=lossy)

    dao.write_line(make_row(1, 1))

    assert dao.rows_written == 1
    assert dao.last_attempts == 2
    assert lossy.requests == [("POST", "/tablets/tpch1/write")] * 2
    assert len(REGISTRY.get("tpch1")) == 1


def test_resent_write_still_reports_other_row_errors(session, make_row):
    bad = make_row(2, 1)
    bad.reset()
    bad.set("l_orderkey", 2)  # no line number: rejected by the tablet
    lossy = LostReplySession(session.client, requests.ConnectionError("reset by peer"))
    dao = HttpLineItemDAO(store_cfg(max_batch_size=2), session=lossy)

    dao.write_line(make_row(1, 1))
    with pytest.raises(StoreError) as ei:
        dao.write_line(bad)

    assert [e["index"] for e in ei.value.errors] == [1]
    assert dao.rows_written == 1


def test_transient_errors_are_retried():
    session = ScriptedSession([
        requests.ConnectionError("refused"),
        FakeResponse(200, {"status": "ok"}),
    ])
    HttpLineItemDAO(store_cfg(max_attempts=3), session=session).init()
    assert session.calls == 2


def test_retries_exhausted_is_store_error():
    session = ScriptedSession([requests.Timeout("slow")] * 2)
    dao = HttpLineItemDAO(store_cfg(max_attempts=2), session=session)

    with pytest.raises(StoreError):
        dao.init()
    assert session.calls == 2


def test_unhealthy_server():
    session = ScriptedSession([FakeResponse(200, {"status": "degraded"})])
    with pytest.raises(StoreError):
        HttpLineItemDAO(store_cfg(), session=session).init()


def test_non_json_response():
    session = ScriptedSession([FakeResponse(200, None, "<html>")])
    with pytest.raises(StoreError, match="invalid JSON"):
        HttpLineItemDAO(store_cfg(), session=session).init()


@pytest.mark.parametrize(
    "address, expected",
    [
        ("localhost", "http://localhost:8050"),
        ("tablet-host:7051", "http://tablet-host:7051"),
        ("https://store.example/", "https://store.example:8050"),
        ("http://10.0.0.5:9000", "http://10.0.0.5:9000"),
    ],
)
def test_base_url(address, expected):
    assert StoreConfig(master_address=address).base_url() == expected
