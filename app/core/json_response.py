"""
Default JSON response class.

Datetimes are written as ISO 8601 with a 'Z' suffix so clients parse them
as UTC; output is compact and keeps non-ASCII characters (full names).
"""

import json
from datetime import UTC, datetime
from typing import Any

from fastapi.responses import JSONResponse


def _encode_default(obj: Any) -> Any:
    if isinstance(obj, datetime):
        if obj.tzinfo is not None:
            obj = obj.astimezone(UTC)
        return obj.strftime("%Y-%m-%dT%H:%M:%SZ")
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class UTCJSONResponse(JSONResponse):
    """JSON response used for envelopes and error bodies."""

    def render(self, content: Any) -> bytes:
        return json.dumps(
            content,
            default=_encode_default,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        ).encode("utf-8")
