# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Model registry: short alias to upstream model id.

The registry is built once from settings when this module is imported and is
never mutated afterwards, so concurrent requests read it without locking.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType

import structlog

from chatgate.core.exceptions import ConfigurationError, UnknownModelError
from chatgate.settings import settings

logger = structlog.get_logger(__name__)


class ModelRegistry:
    """Immutable alias table with a default-model policy."""

    def __init__(self, aliases: Mapping[str, str], default_model: str) -> None:
        for alias, model_id in aliases.items():
            if not alias or not model_id:
                raise ConfigurationError(
                    f"Model alias {alias!r} must map to a non-empty model id",
                    config_key="MODEL_ALIASES",
                )
        self._aliases: Mapping[str, str] = MappingProxyType(dict(aliases))
        self._model_ids = frozenset(self._aliases.values())

        # The default may be given as an alias or as a full upstream id.
        default_model = (default_model or "").strip()
        if not default_model:
            raise ConfigurationError("Default model must not be empty", config_key="DEFAULT_MODEL")
        self._default = self._aliases.get(default_model, default_model)

    @property
    def default_model(self) -> str:
        return self._default

    @property
    def aliases(self) -> Mapping[str, str]:
        return self._aliases

    def resolve(self, candidate: str | None) -> str | None:
        """Resolve a caller-supplied model name.

        Returns the mapped id for an exact alias match, the candidate itself when it
        is already a known upstream id, the default model when the candidate is
        empty or absent, and None when nothing matches.
        """
        if candidate is None or not candidate.strip():
            return self._default
        if candidate in self._aliases:
            return self._aliases[candidate]
        if candidate in self._model_ids or candidate == self._default:
            return candidate
        return None

    def require(self, candidate: str | None) -> str:
        """Resolve or raise UnknownModelError."""
        model_id = self.resolve(candidate)
        if model_id is None:
            raise UnknownModelError(candidate or "")
        return model_id

    def __contains__(self, candidate: object) -> bool:
        return isinstance(candidate, str) and bool(candidate) and self.resolve(candidate) is not None

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._aliases.items())

    def __len__(self) -> int:
        return len(self._aliases)


def build_registry() -> ModelRegistry:
    registry = ModelRegistry(
        aliases=settings.gateway.model_aliases,
        default_model=settings.gateway.default_model,
    )
    logger.debug(
        "model_registry_built",
        aliases=sorted(registry.aliases),
        default_model=registry.default_model,
    )
    return registry


MODEL_REGISTRY = build_registry()


def get_model_registry() -> ModelRegistry:
    """
    Get the process-wide model registry.

    This function provides a central access point for the registry that can be
    overridden as a FastAPI dependency in tests.
    """
    return MODEL_REGISTRY
