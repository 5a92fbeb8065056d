from __future__ import annotations

from functools import wraps
from typing import Any, Callable

from flask import jsonify

from lineitem_churn.utils.errors import MalformedRequest


def handle_tablet_errors(func: Callable[..., Any]):
    """
    Decorator: map request/tablet errors to HTTP.

    - KeyError         -> 404 {error, tablet_id}
    - MalformedRequest -> 400 {error}
    - ValueError       -> 400 {error} (bad predicate, projection, key)
    - TypeError        -> 400 {error} (wrong JSON type, e.g. "after": 5)
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyError:
            # convention: tablet_id is always a path parameter
            return jsonify({
                "error": "tablet not found",
                "tablet_id": kwargs.get("tablet_id"),
            }), 404
        except (MalformedRequest, ValueError, TypeError) as e:
            return jsonify({"error": str(e)}), 400

    return wrapper
