# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
chatgate main application.

Wires the edge middleware, the request normalizer, the model registry, the
upstream forwarder and the response relay into one FastAPI app. Every response,
including errors and preflights, is JSON (or empty) and carries the CORS
header set.
"""

import os
import time
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .core.exceptions import GatewayError
from .middleware.cors import apply_cors_headers, is_preflight, preflight_response
from .models import HealthResponse, ModelInfo, ModelListResponse, UploadResponse
from .normalizer import RequestNormalizer
from .registry import ModelRegistry, get_model_registry
from .relay import error_response, relay
from .settings import settings
from .telemetry.logging import configure_logging
from .telemetry.metrics import GATEWAY_REQUESTS_TOTAL, render_latest
from .upstream import UpstreamClient
from .uploads import encode_upload

logger = structlog.get_logger(__name__)

# Chat routes accept every method so that unsupported ones get a JSON error
# from the normalizer instead of a bare 405.
CHAT_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "TRACE", "CONNECT"]


def build_upstream_client() -> UpstreamClient:
    return UpstreamClient(
        url=settings.upstream.chat_completions_url,
        timeout_s=settings.upstream.timeout_ms / 1000,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    app.state.upstream = build_upstream_client()
    registry = get_model_registry()

    if not settings.upstream.api_key:
        # Not fatal for the process: each chat request reports it.
        logger.error(
            "upstream_unconfigured",
            help="Set HF_TOKEN (or UPSTREAM_API_KEY) to the upstream API credential",
        )
    logger.info(
        "gateway_started",
        upstream=settings.upstream.chat_completions_url,
        aliases=len(registry),
        default_model=registry.default_model,
        response_shape=settings.gateway.response_shape,
    )

    yield

    try:
        await app.state.upstream.aclose()
    except Exception as e:
        logger.warning("upstream_close_failed", error=str(e))


configure_logging(settings.observability.log_level, settings.observability.log_json)

app = FastAPI(
    title="chatgate - Chat Inference Gateway",
    description="Normalizes chat requests and forwards them to one upstream chat-completion API",
    version=__version__,
    lifespan=lifespan,
)


# Custom exception handlers
@app.exception_handler(GatewayError)
async def gateway_exception_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Handle gateway errors raised anywhere in the request pipeline."""
    logger.info(
        "gateway_error",
        path=request.url.path,
        method=request.method,
        error_code=exc.error_code,
        status=exc.status_code,
    )
    return error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors."""
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {exc}"})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions, including unmatched routes and methods."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.middleware("http")
async def request_observability_middleware(request: Request, call_next):
    method = request.method
    start_ts = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("unhandled_error", path=request.url.path, method=method)
        response = JSONResponse(status_code=500, content={"error": "Internal server error"})
    route = request.scope.get("route")
    # Unmatched paths share one label to bound metric cardinality.
    route_path = route.path if route is not None else "unmatched"
    GATEWAY_REQUESTS_TOTAL.labels(route_path, method, str(response.status_code)).inc()
    logger.debug(
        "request_completed",
        route=route_path,
        method=method,
        status=response.status_code,
        elapsed_ms=round((time.perf_counter() - start_ts) * 1000, 1),
    )
    return response


@app.middleware("http")
async def cors_edge_middleware(request: Request, call_next):
    """Answer preflights immediately and add CORS headers to every response."""
    if is_preflight(request):
        return preflight_response(settings.cors)
    response = await call_next(request)
    return apply_cors_headers(response, settings.cors)


def get_upstream_client(request: Request) -> UpstreamClient:
    return request.app.state.upstream


def get_normalizer(registry: ModelRegistry = Depends(get_model_registry)) -> RequestNormalizer:
    return RequestNormalizer(
        registry=registry,
        max_tokens_default=settings.gateway.max_tokens_default,
        temperature_default=settings.gateway.temperature_default,
    )


async def handle_chat(
    request: Request,
    normalizer: RequestNormalizer,
    upstream: UpstreamClient,
    path_model: str | None = None,
) -> JSONResponse:
    """Normalize, forward and relay one chat call."""
    raw_body = await request.body() if request.method == "POST" else None
    source, canonical = normalizer.normalize_with_source(
        request.method, request.query_params, raw_body, path_model
    )
    logger.info(
        "request_normalized",
        model=canonical.model,
        messages=len(canonical.messages),
        source=source.kind,
    )

    result = await upstream.forward(canonical, settings.upstream.api_key)
    return relay(result, settings.gateway.response_shape, upstream.timeout_s)


@app.api_route("/api/{alias}/v1/chat/completions", methods=CHAT_METHODS)
async def alias_chat_completions(
    alias: str,
    request: Request,
    normalizer: RequestNormalizer = Depends(get_normalizer),
    upstream: UpstreamClient = Depends(get_upstream_client),
):
    """Chat completion with the model alias in the path."""
    return await handle_chat(request, normalizer, upstream, path_model=alias)


@app.api_route("/api/chat", methods=CHAT_METHODS)
@app.api_route("/v1/chat/completions", methods=CHAT_METHODS)
async def chat_completions(
    request: Request,
    normalizer: RequestNormalizer = Depends(get_normalizer),
    upstream: UpstreamClient = Depends(get_upstream_client),
):
    """Chat completion with the model in the body, the query string or the default."""
    return await handle_chat(request, normalizer, upstream)


@app.get("/api/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="OK", message="chatgate API is running")


@app.get("/api/models", response_model=ModelListResponse)
async def list_models(registry: ModelRegistry = Depends(get_model_registry)) -> ModelListResponse:
    """List the model aliases this gateway resolves."""
    return ModelListResponse(
        models=[
            ModelInfo(id=model_id, alias=alias, default=model_id == registry.default_model)
            for alias, model_id in registry
        ]
    )


@app.post("/api/upload", response_model=UploadResponse, response_model_by_alias=True)
async def upload_image(image: UploadFile | None = File(None)) -> UploadResponse:
    """Return an uploaded image as a base64 data URL."""
    return await encode_upload(image, settings.gateway.max_upload_mb)


@app.get("/metrics", include_in_schema=False)
async def prometheus_metrics() -> Response:
    if not settings.observability.enable_metrics:
        raise HTTPException(status_code=404, detail="Not Found")
    body, content_type = render_latest()
    return Response(content=body, media_type=content_type)


def cli():
    """CLI entry point for chatgate."""
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(description="chatgate inference gateway")
    parser.add_argument("--host", default=settings.server.host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=settings.server.port, help="Port to bind to")
    parser.add_argument(
        "--reload", action="store_true", default=settings.server.debug, help="Enable auto-reload"
    )
    parser.add_argument(
        "--log-level",
        default=settings.observability.log_level,
        choices=["critical", "error", "warning", "info", "debug"],
        help="Log level",
    )

    args = parser.parse_args()

    # The reloader re-imports the app in a child process; pass the level via env.
    os.environ["LOG_LEVEL"] = args.log_level

    uvicorn.run(
        "chatgate.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    cli()
