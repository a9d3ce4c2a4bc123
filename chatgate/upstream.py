# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Upstream forwarder for the single chat-completion endpoint.

Failures are passed through, not recovered: there is no retry and no backoff.
A non-success upstream status is reported with the upstream's own status code
and error text so callers can tell rate limiting, auth failures and server
errors apart.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx
import structlog

from chatgate import __version__
from chatgate.core.exceptions import ConfigurationError
from chatgate.models import CanonicalRequest
from chatgate.telemetry.metrics import UPSTREAM_LATENCY_MS, UPSTREAM_REQUESTS_TOTAL

logger = structlog.get_logger(__name__)

USER_AGENT = f"chatgate/{__version__}"


@dataclass
class UpstreamResult:
    """Outcome of one upstream call.

    - payload: parsed upstream JSON on success
    - status_code: upstream HTTP status, None when no response was received
    - error: upstream error text on failure
    - latency_ms: wall time of the call
    - timed_out: the call was abandoned at the configured timeout
    """

    payload: Optional[Any] = None
    status_code: Optional[int] = None
    error: Optional[str] = None
    latency_ms: int = 0
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


def extract_error_message(response: httpx.Response) -> str:
    """Pull the most specific error text out of an upstream error response."""
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if data.get("message"):
            return str(data["message"])
        if data.get("detail"):
            return str(data["detail"])

    text = response.text.strip()
    return text or f"HTTP {response.status_code} error"


class UpstreamClient:
    def __init__(
        self,
        url: str,
        timeout_s: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout_s = timeout_s
        self._client = httpx.AsyncClient(timeout=timeout_s, transport=transport)

    def _create_headers(self, api_key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }

    async def forward(self, request: CanonicalRequest, api_key: str | None) -> UpstreamResult:
        """Send one canonical request upstream.

        Raises:
            ConfigurationError: when no credential is configured; no call is made.
        """
        if not api_key:
            raise ConfigurationError(
                "Server secret HF_TOKEN is missing.", config_key="HF_TOKEN"
            )

        model = request.model
        start = time.perf_counter()
        try:
            resp = await self._client.post(
                self.url, json=request.to_upstream_payload(), headers=self._create_headers(api_key)
            )
        except httpx.TimeoutException:
            latency_ms = self._observe(start, model, "timeout")
            logger.warning("upstream_call_failed", model=model, reason="timeout", latency_ms=latency_ms)
            return UpstreamResult(
                status_code=504,
                error=f"Upstream request timed out after {self.timeout_s:g}s",
                latency_ms=latency_ms,
                timed_out=True,
            )
        except httpx.RequestError as e:
            latency_ms = self._observe(start, model, "network_error")
            logger.warning(
                "upstream_call_failed", model=model, reason="network_error", error=str(e)
            )
            return UpstreamResult(
                error=f"Upstream request failed: {e}" if str(e) else "Upstream request failed",
                latency_ms=latency_ms,
            )

        if resp.is_error:
            message = extract_error_message(resp)
            latency_ms = self._observe(start, model, "upstream_error")
            logger.warning(
                "upstream_call_failed",
                model=model,
                reason="http_status",
                status=resp.status_code,
                latency_ms=latency_ms,
            )
            return UpstreamResult(status_code=resp.status_code, error=message, latency_ms=latency_ms)

        try:
            data = resp.json()
        except ValueError:
            latency_ms = self._observe(start, model, "invalid_payload")
            logger.warning("upstream_call_failed", model=model, reason="invalid_payload")
            return UpstreamResult(
                status_code=502,
                error="Upstream returned a non-JSON response",
                latency_ms=latency_ms,
            )

        latency_ms = self._observe(start, model, "success")
        logger.info(
            "upstream_call_completed", model=model, status=resp.status_code, latency_ms=latency_ms
        )
        return UpstreamResult(payload=data, status_code=resp.status_code, latency_ms=latency_ms)

    @staticmethod
    def _observe(start: float, model: str, outcome: str) -> int:
        latency_ms = int((time.perf_counter() - start) * 1000)
        UPSTREAM_REQUESTS_TOTAL.labels(model=model, outcome=outcome).inc()
        UPSTREAM_LATENCY_MS.labels(model=model).observe(latency_ms)
        return latency_ms

    async def aclose(self) -> None:
        """Close the HTTP client to prevent connection leaks."""
        await self._client.aclose()
