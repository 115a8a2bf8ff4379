"""Request Context

The four parameter sources a validator reads from, gathered once per request.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

from starlette.requests import Request

from core.errors import invalid_json, raise_error

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


@dataclass(slots=True)
class RequestContext:
    """Query, body, path and header parameters of one request."""
    query: Mapping[str, Any] = field(default_factory=dict)
    body: Any = field(default_factory=dict)
    path: Mapping[str, Any] = field(default_factory=dict)
    header: Mapping[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    async def from_request(cls, request: Request) -> RequestContext:
        """Build from a Starlette request. Header names arrive lower-cased."""
        return cls(
            query=dict(request.query_params),
            body=await _read_body(request),
            path=dict(request.path_params),
            header=dict(request.headers),
        )


async def _read_body(request: Request) -> Any:
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    raw = await request.body()
    if not raw:
        return {}
    if "json" not in content_type:
        return {}
    try:
        return json.loads(raw)
    except ValueError as e:
        raise_error(invalid_json(str(e), origin="ingress").unwrap_err())
