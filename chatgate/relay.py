# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Response relay: shapes upstream results and gateway errors into caller responses.

The shape of a successful chat response is one deployment-wide policy:

- ``completion``: the upstream completion object, unmodified
- ``message``: only ``choices[0].message``
- ``envelope``: that message wrapped as ``{"response": message}``

Every error body is ``{"error": message}``. CORS headers are added by the edge
middleware, not here.
"""

from __future__ import annotations

from typing import Any, Literal

import structlog
from fastapi.responses import JSONResponse

from chatgate.core.exceptions import GatewayError, UpstreamError, UpstreamTimeoutError
from chatgate.upstream import UpstreamResult

logger = structlog.get_logger(__name__)

ResponseShape = Literal["completion", "message", "envelope"]

NO_RESPONSE_MESSAGE = {"role": "assistant", "content": "No response."}


def extract_message(payload: Any) -> dict[str, Any]:
    """Return the first choice's message, or a placeholder when there is none."""
    if isinstance(payload, dict):
        choices = payload.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")
            if isinstance(message, dict):
                return message
    return dict(NO_RESPONSE_MESSAGE)


def shape_payload(payload: Any, shape: ResponseShape) -> Any:
    if shape == "message":
        return extract_message(payload)
    if shape == "envelope":
        return {"response": extract_message(payload)}
    return payload


def upstream_failure(result: UpstreamResult, timeout_s: float | None = None) -> UpstreamError:
    """Convert a failed upstream result into the matching exception."""
    if result.timed_out and timeout_s is not None:
        return UpstreamTimeoutError(timeout_s)
    return UpstreamError(result.error or "Upstream request failed", status_code=result.status_code)


def error_response(exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def relay(
    result: UpstreamResult, shape: ResponseShape = "completion", timeout_s: float | None = None
) -> JSONResponse:
    """Build the caller response for one upstream result."""
    if not result.ok:
        exc = upstream_failure(result, timeout_s)
        logger.info("gateway_error", error_code=exc.error_code, status=exc.status_code)
        return error_response(exc)

    return JSONResponse(
        status_code=result.status_code or 200,
        content=shape_payload(result.payload, shape),
    )
