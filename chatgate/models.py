# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Pydantic models for request/response schemas and data validation.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """Individual chat message in a conversation.

    Unknown keys (``name``, ``tool_call_id`` and similar) are kept so that a
    client-supplied history reaches the upstream unchanged.
    """

    model_config = ConfigDict(extra="allow")

    role: Literal["system", "user", "assistant"] = Field(
        ..., description="The role of the message author"
    )
    content: str = Field(..., description="The content of the message")


class CanonicalRequest(BaseModel):
    """The single request shape sent upstream, whatever convention the caller used."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model: str = Field(..., min_length=1, description="Resolved upstream model id")
    messages: list[ChatMessage] = Field(..., min_length=1, description="Conversation, oldest first")
    max_tokens: int = Field(..., gt=0, description="Maximum tokens to generate")
    temperature: float | None = Field(None, description="Sampling temperature; omitted when unset")

    def to_upstream_payload(self) -> dict[str, Any]:
        """Serialize into the upstream chat-completion body. Streaming is always off."""
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [message.model_dump() for message in self.messages],
            "max_tokens": self.max_tokens,
            "stream": False,
        }
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        return payload


class ErrorResponse(BaseModel):
    """Error response schema."""

    error: str = Field(..., description="Human readable error message")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Health status")
    message: str = Field(..., description="Status message")


class ModelInfo(BaseModel):
    """One entry of the model registry as listed to callers."""

    id: str = Field(..., description="Upstream model id")
    alias: str = Field(..., description="Short alias accepted by the gateway")
    default: bool = Field(False, description="Whether this is the default model")


class ModelListResponse(BaseModel):
    """Model listing response."""

    models: list[ModelInfo]


class UploadResponse(BaseModel):
    """Image upload response carrying the image as a data URL."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Image uploaded successfully"
    image_url: str = Field(..., alias="imageUrl")
    file_name: str = Field(..., alias="fileName")
    size: int
    mime_type: str = Field(..., alias="mimeType")
