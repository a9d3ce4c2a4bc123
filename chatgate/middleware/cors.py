# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Fixed CORS header set for the gateway edge.

Browsers talk to the gateway directly, so every response carries the same
header set and preflight requests are answered before any routing happens.
"""

from fastapi import Request
from fastapi.responses import Response

from ..settings import CorsSettings


class CorsHeaders:
    """CORS headers middleware support."""

    @staticmethod
    def get_cors_headers(cors: CorsSettings) -> dict[str, str]:
        """Get CORS headers to add to responses."""
        return {
            "Access-Control-Allow-Origin": cors.allow_origin,
            "Access-Control-Allow-Methods": cors.allow_methods,
            "Access-Control-Allow-Headers": cors.allow_headers,
        }


def is_preflight(request: Request) -> bool:
    return request.method == "OPTIONS"


def preflight_response(cors: CorsSettings) -> Response:
    """Answer a preflight with the header set and no body."""
    return Response(status_code=cors.preflight_status, headers=CorsHeaders.get_cors_headers(cors))


def apply_cors_headers(response: Response, cors: CorsSettings) -> Response:
    for header, value in CorsHeaders.get_cors_headers(cors).items():
        response.headers[header] = value
    return response
