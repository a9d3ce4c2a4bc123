# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.

from fastapi.responses import JSONResponse

from chatgate.middleware.cors import CorsHeaders, apply_cors_headers, preflight_response
from chatgate.settings import CorsSettings


def test_header_set_from_settings():
    cors = CorsSettings(CORS_ALLOW_ORIGIN="https://chat.example.com")

    headers = CorsHeaders.get_cors_headers(cors)

    assert headers == {
        "Access-Control-Allow-Origin": "https://chat.example.com",
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
    }


def test_preflight_is_empty():
    response = preflight_response(CorsSettings())

    assert response.status_code == 204
    assert response.body == b""
    assert response.headers["access-control-allow-origin"] == "*"


def test_apply_keeps_status_and_body():
    response = apply_cors_headers(JSONResponse(status_code=429, content={"error": "x"}), CorsSettings())

    assert response.status_code == 429
    assert response.body == b'{"error":"x"}'
    assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
