# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.

import json

import pytest

from chatgate.core.exceptions import (
    ConfigurationError,
    MissingPromptError,
    UnknownModelError,
    UpstreamError,
    UpstreamTimeoutError,
)
from chatgate.relay import (
    NO_RESPONSE_MESSAGE,
    error_response,
    extract_message,
    relay,
    shape_payload,
    upstream_failure,
)
from chatgate.upstream import UpstreamResult
from tests.conftest import COMPLETION


def _body(response):
    return json.loads(response.body)


class TestResponseShapes:
    def test_completion_shape_is_unmodified(self):
        assert shape_payload(COMPLETION, "completion") == COMPLETION

    def test_message_shape(self):
        assert shape_payload(COMPLETION, "message") == {"role": "assistant", "content": "Hi!"}

    def test_envelope_shape(self):
        assert shape_payload(COMPLETION, "envelope") == {
            "response": {"role": "assistant", "content": "Hi!"}
        }

    @pytest.mark.parametrize("payload", [{}, {"choices": []}, {"choices": [{}]}, [], None])
    def test_missing_message_placeholder(self, payload):
        assert extract_message(payload) == NO_RESPONSE_MESSAGE


class TestRelay:
    def test_success_keeps_upstream_status(self):
        response = relay(UpstreamResult(payload=COMPLETION, status_code=200))
        assert response.status_code == 200
        assert _body(response) == COMPLETION

    def test_success_without_status_defaults_to_200(self):
        response = relay(UpstreamResult(payload=COMPLETION), shape="message")
        assert response.status_code == 200
        assert _body(response) == {"role": "assistant", "content": "Hi!"}

    def test_upstream_failure_keeps_status_and_message(self):
        response = relay(UpstreamResult(status_code=429, error="Rate limit reached"))
        assert response.status_code == 429
        assert _body(response) == {"error": "Rate limit reached"}

    def test_failure_without_status_is_500(self):
        response = relay(UpstreamResult(error="Upstream request failed: connection refused"))
        assert response.status_code == 500
        assert _body(response) == {"error": "Upstream request failed: connection refused"}

    def test_timeout_is_504(self):
        result = UpstreamResult(status_code=504, error="timed out", timed_out=True)
        response = relay(result, timeout_s=30)
        assert response.status_code == 504
        assert _body(response) == {"error": "Upstream request timed out after 30s"}

    def test_upstream_failure_exception_types(self):
        assert isinstance(upstream_failure(UpstreamResult(error="x", timed_out=True), 1.5), UpstreamTimeoutError)
        exc = upstream_failure(UpstreamResult(status_code=401, error="bad key"))
        assert type(exc) is UpstreamError
        assert exc.status_code == 401
        assert exc.upstream_status == 401


class TestErrorResponses:
    @pytest.mark.parametrize(
        "exc,status",
        [
            (MissingPromptError(), 400),
            (UnknownModelError("nope"), 404),
            (ConfigurationError("Server secret HF_TOKEN is missing."), 500),
        ],
    )
    def test_status_and_shape(self, exc, status):
        response = error_response(exc)
        assert response.status_code == status
        assert _body(response) == {"error": exc.message}
