"""JSON HTTP responses."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime
from typing import Any, Optional

from werkzeug.wrappers import Response

log = logging.getLogger(__name__)


def _default(obj: Any) -> Any:
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(obj, uuid.UUID):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def json_response(code: int, payload: Any) -> Response:
    """Serialise payload as JSON; a payload that cannot be serialised gives an empty 500."""
    try:
        body = json.dumps(payload, default=_default, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        log.error("Error marshalling JSON: %s", exc)
        return Response(status=500, content_type="application/json")
    return Response(body, status=code, content_type="application/json")


def error_response(code: int, msg: str, err: Optional[BaseException]) -> Response:
    """Log the error and answer with {"error": msg}."""
    if err is not None:
        log.error("%s", err)
    if code > 499:
        log.error("Responding with 5XX error: %s", msg)
    return json_response(code, {"error": msg})