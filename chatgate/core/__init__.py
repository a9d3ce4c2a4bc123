# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Core types shared across chatgate.
"""

from .exceptions import (
    ConfigurationError,
    GatewayError,
    InvalidMessagesError,
    MalformedBodyError,
    MethodNotSupportedError,
    MissingPromptError,
    UnknownModelError,
    UploadError,
    UpstreamError,
    UpstreamTimeoutError,
    ValidationError,
)

__all__ = [
    "GatewayError",
    "ValidationError",
    "MethodNotSupportedError",
    "MalformedBodyError",
    "MissingPromptError",
    "InvalidMessagesError",
    "UnknownModelError",
    "ConfigurationError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "UploadError",
]
