# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Custom exceptions for chatgate.

Every error the gateway reports to a caller is a GatewayError carrying the HTTP
status it maps to. The caller-facing body is always ``{"error": message}``.
"""

from typing import Any


class GatewayError(Exception):
    """Base exception for all chatgate errors."""

    status_code: int = 500
    error_code: str = "gateway_error"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        """Initialize gateway base exception."""
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to the caller-facing error body."""
        return {"error": self.message}


class ValidationError(GatewayError):
    """Exception for inbound request validation errors."""

    status_code = 400
    error_code = "validation_error"


class MethodNotSupportedError(ValidationError):
    """Exception for HTTP methods the chat routes do not handle."""

    error_code = "method_not_supported"

    def __init__(self, method: str, **kwargs: Any) -> None:
        self.method = method
        super().__init__(
            f"Method {method} is not supported. Only GET and POST methods are supported.",
            details={"method": method},
            **kwargs,
        )


class MalformedBodyError(ValidationError):
    """Exception for POST bodies that are not a JSON object."""

    error_code = "malformed_body"

    def __init__(self, message: str = "Invalid JSON body in POST request.", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class MissingPromptError(ValidationError):
    """Exception for requests that carry no user content."""

    error_code = "missing_prompt"

    def __init__(
        self,
        message: str = (
            "No prompt found. For GET use ?prompt=... and for POST use body "
            "{'prompt': '...'} or {'messages': [...]}"
        ),
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)


class InvalidMessagesError(ValidationError):
    """Exception for a messages sequence with malformed entries."""

    error_code = "invalid_messages"

    def __init__(self, message: str, index: int | None = None, **kwargs: Any) -> None:
        self.index = index
        super().__init__(message, details={"index": index}, **kwargs)


class UnknownModelError(GatewayError):
    """Exception for model names that are neither an alias nor a known model id."""

    status_code = 404
    error_code = "model_not_found"

    def __init__(self, model: str, **kwargs: Any) -> None:
        self.model = model
        super().__init__(f"Model '{model}' not found.", details={"model": model}, **kwargs)


class ConfigurationError(GatewayError):
    """Exception for deployment configuration errors such as a missing credential."""

    status_code = 500
    error_code = "configuration_error"

    def __init__(self, message: str, config_key: str | None = None, **kwargs: Any) -> None:
        """Initialize configuration error with key context."""
        self.config_key = config_key
        super().__init__(message, details={"config_key": config_key}, **kwargs)


class UpstreamError(GatewayError):
    """Exception for upstream failures; keeps the upstream status when one exists."""

    error_code = "upstream_error"

    def __init__(self, message: str, status_code: int | None = None, **kwargs: Any) -> None:
        self.upstream_status = status_code
        super().__init__(message, status_code=status_code or 500, **kwargs)


class UpstreamTimeoutError(UpstreamError):
    """Exception for upstream calls that exceed the configured timeout."""

    error_code = "upstream_timeout"

    def __init__(self, timeout_s: float, **kwargs: Any) -> None:
        self.timeout_s = timeout_s
        super().__init__(
            f"Upstream request timed out after {timeout_s:g}s", status_code=504, **kwargs
        )


class UploadError(GatewayError):
    """Exception for rejected image uploads."""

    status_code = 400
    error_code = "upload_error"
