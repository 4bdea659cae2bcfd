"""X API response wrapper.

X API v2 wraps payloads in an envelope: ``data`` carries the result,
``errors`` carries partial failures, ``includes``/``meta`` carry
expansions. :class:`XResponse` keeps the pieces xauth uses and the raw
body for everything else.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, Field


class XResponse(BaseModel):
    """A successful X API response.

    Example::

        response = client.get_me()
        print(response.data["username"])
    """

    status_code: int
    data: Any = None
    errors: list[dict[str, Any]] = Field(default_factory=list)
    raw: Any = Field(default=None, repr=False)

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> XResponse:
        """Build an :class:`XResponse` from a 2xx :class:`httpx.Response`."""
        body = extract_response_data(response)
        if isinstance(body, dict):
            return cls(
                status_code=response.status_code,
                data=body.get("data"),
                errors=body.get("errors") or [],
                raw=body,
            )
        return cls(status_code=response.status_code, data=body, raw=body)


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Attempts to parse the body as JSON first. If that fails, returns the
    raw text. Returns ``None`` for responses with no content.
    """
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
