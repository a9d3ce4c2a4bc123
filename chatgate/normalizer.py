# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Request normalization.

Clients reach the gateway in three shapes: a GET with the prompt in the query
string, a POST with ``{"prompt": ...}`` and a POST with an OpenAI-style
``{"messages": [...]}``. Each shape is a tagged content source; the sources
are tried in a fixed priority order (body messages, body prompt, query
parameters) and the winner is turned into one CanonicalRequest.

Messages supplied by the caller are validated entry by entry; a malformed
entry is rejected with InvalidMessagesError rather than forwarded.
"""

from __future__ import annotations

import json
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from pydantic import ValidationError as PydanticValidationError

from chatgate.core.exceptions import (
    InvalidMessagesError,
    MalformedBodyError,
    MethodNotSupportedError,
    MissingPromptError,
)
from chatgate.models import CanonicalRequest, ChatMessage
from chatgate.registry import ModelRegistry

SUPPORTED_METHODS = ("GET", "POST")

# Query parameters that may carry the prompt, in priority order.
QUERY_PROMPT_PARAMS = ("prompt", "q", "message")


@dataclass(frozen=True)
class ByQueryPrompt:
    content: str
    param: str

    kind = "query_prompt"

    def to_messages(self) -> list[ChatMessage]:
        return [ChatMessage(role="user", content=self.content)]


@dataclass(frozen=True)
class ByBodyPrompt:
    content: str

    kind = "body_prompt"

    def to_messages(self) -> list[ChatMessage]:
        return [ChatMessage(role="user", content=self.content)]


@dataclass(frozen=True)
class ByBodyMessages:
    messages: tuple[ChatMessage, ...]

    kind = "body_messages"

    def to_messages(self) -> list[ChatMessage]:
        return list(self.messages)


ContentSource = Union[ByQueryPrompt, ByBodyPrompt, ByBodyMessages]


def parse_body(raw_body: bytes | str | None) -> dict[str, Any]:
    """Parse a POST body into a JSON object. An empty body counts as ``{}``."""
    if raw_body is None:
        return {}
    if isinstance(raw_body, bytes):
        try:
            raw_body = raw_body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedBodyError() from e
    if not raw_body.strip():
        return {}
    try:
        body = json.loads(raw_body)
    except json.JSONDecodeError as e:
        raise MalformedBodyError() from e
    if not isinstance(body, dict):
        raise MalformedBodyError("JSON body must be an object.")
    return body


def _validate_messages(raw_messages: list[Any]) -> tuple[ChatMessage, ...]:
    messages = []
    for index, entry in enumerate(raw_messages):
        if not isinstance(entry, dict):
            raise InvalidMessagesError(
                f"messages[{index}] must be an object with 'role' and 'content'", index=index
            )
        try:
            messages.append(ChatMessage.model_validate(entry))
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"])
            raise InvalidMessagesError(
                f"messages[{index}].{field}: {first['msg']}", index=index
            ) from e
    return tuple(messages)


def _from_body_messages(body: Mapping[str, Any], query: Mapping[str, str]) -> ContentSource | None:
    raw_messages = body.get("messages")
    if isinstance(raw_messages, list) and raw_messages:
        return ByBodyMessages(messages=_validate_messages(raw_messages))
    return None


def _from_body_prompt(body: Mapping[str, Any], query: Mapping[str, str]) -> ContentSource | None:
    prompt = body.get("prompt")
    if prompt is None:
        return None
    if not isinstance(prompt, str):
        raise MalformedBodyError("'prompt' must be a string.")
    if prompt:
        return ByBodyPrompt(content=prompt)
    return None


def _query_value(query: Mapping[str, str], name: str) -> str | None:
    """First value of a query parameter; a repeated key keeps its first occurrence."""
    getlist = getattr(query, "getlist", None)
    if getlist is not None:
        values = getlist(name)
        return values[0] if values else None
    return query.get(name)


def _from_query(body: Mapping[str, Any], query: Mapping[str, str]) -> ContentSource | None:
    for param in QUERY_PROMPT_PARAMS:
        value = _query_value(query, param)
        if value:
            return ByQueryPrompt(content=value, param=param)
    return None


# Highest priority first: GET calls carry no body, so query parameters come last.
SOURCE_PRIORITY: tuple[Callable[[Mapping[str, Any], Mapping[str, str]], ContentSource | None], ...] = (
    _from_body_messages,
    _from_body_prompt,
    _from_query,
)


def select_source(body: Mapping[str, Any], query: Mapping[str, str]) -> ContentSource:
    """Return the highest-priority content source present, or raise MissingPromptError."""
    for extract in SOURCE_PRIORITY:
        source = extract(body, query)
        if source is not None:
            return source
    raise MissingPromptError()


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None


def _finite_float(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None and value != "":
            return value
    return None


class RequestNormalizer:
    """Turns an inbound call into a CanonicalRequest.

    Holds only read-only configuration; ``normalize`` is a pure function of its
    arguments and may be called concurrently.
    """

    def __init__(
        self,
        registry: ModelRegistry,
        max_tokens_default: int,
        temperature_default: float | None = None,
    ) -> None:
        self.registry = registry
        self.max_tokens_default = max_tokens_default
        self.temperature_default = temperature_default

    def normalize(
        self,
        method: str,
        query_params: Mapping[str, str] | None = None,
        raw_body: bytes | str | None = None,
        path_model: str | None = None,
    ) -> CanonicalRequest:
        _, request = self.normalize_with_source(method, query_params, raw_body, path_model)
        return request

    def normalize_with_source(
        self,
        method: str,
        query_params: Mapping[str, str] | None = None,
        raw_body: bytes | str | None = None,
        path_model: str | None = None,
    ) -> tuple[ContentSource, CanonicalRequest]:
        """Like normalize, but also return the content source that won."""
        method = method.upper()
        query = query_params or {}
        if method == "GET":
            body: dict[str, Any] = {}
        elif method == "POST":
            body = parse_body(raw_body)
        else:
            raise MethodNotSupportedError(method)

        source = select_source(body, query)
        model = self.registry.require(self._model_candidate(body, query, path_model))

        max_tokens = _positive_int(
            _first_present(
                body.get("max_tokens"), body.get("maxTokens"), _query_value(query, "max_tokens")
            )
        )
        temperature = _finite_float(
            _first_present(body.get("temperature"), _query_value(query, "temperature"))
        )

        request = CanonicalRequest(
            model=model,
            messages=source.to_messages(),
            max_tokens=max_tokens or self.max_tokens_default,
            temperature=temperature if temperature is not None else self.temperature_default,
        )
        return source, request

    @staticmethod
    def _model_candidate(
        body: Mapping[str, Any], query: Mapping[str, str], path_model: str | None
    ) -> str | None:
        # Path alias, then body field, then query parameter.
        body_model = body.get("model")
        if body_model is not None and not isinstance(body_model, str):
            raise MalformedBodyError("'model' must be a string.")
        return _first_present(path_model, body_model, _query_value(query, "model"))
