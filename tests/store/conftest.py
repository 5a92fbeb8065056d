from __future__ import annotations

import pytest

from lineitem_churn.store.server import REGISTRY, app


@pytest.fixture
def client():
    """
    Flask test client (no real server).
    """
    # every test starts with no tablets
    REGISTRY.clear()
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client
