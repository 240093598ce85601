"""Static model catalog exposed to callers and used for adapter selection."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ProviderFamily(str, Enum):
    """Upstream wire-format families, one adapter each."""

    COMPLETIONS = "completions"
    THINKING = "thinking"
    ROUTER = "router"


@dataclass(frozen=True)
class ModelDescriptor:
    """A model callers may select."""

    id: str
    name: str
    provider: str
    description: str
    max_tokens: int
    family: ProviderFamily
    supports_reasoning: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Public projection returned by the models endpoint."""
        return {
            "id": self.id,
            "name": self.name,
            "provider": self.provider,
            "description": self.description,
            "maxTokens": self.max_tokens,
        }


AVAILABLE_MODELS: tuple[ModelDescriptor, ...] = (
    ModelDescriptor(
        id="deepseek-r1",
        name="DeepSeek R1",
        provider="DeepSeek",
        description="Advanced reasoning model with step-by-step thinking",
        max_tokens=8192,
        family=ProviderFamily.COMPLETIONS,
        supports_reasoning=True,
    ),
    ModelDescriptor(
        id="gemini-2.5-pro",
        name="Gemini 2.5 Pro",
        provider="Google",
        description="Latest Gemini model with enhanced capabilities",
        max_tokens=8192,
        family=ProviderFamily.THINKING,
        supports_reasoning=True,
    ),
    ModelDescriptor(
        id="ai21/jamba-1.6-large",
        name="Jamba 1.6 Large",
        provider="OpenRouter",
        description="Large language model by AI21 Labs",
        max_tokens=8192,
        family=ProviderFamily.ROUTER,
    ),
    ModelDescriptor(
        id="cohere/command-r-plus",
        name="Command R+",
        provider="OpenRouter",
        description="Cohere's advanced command model",
        max_tokens=8192,
        family=ProviderFamily.ROUTER,
    ),
)

DEFAULT_MODEL_ID = "deepseek-r1"


def get_model_by_id(model_id: str) -> ModelDescriptor | None:
    return next((model for model in AVAILABLE_MODELS if model.id == model_id), None)


def get_default_model(default_id: str = DEFAULT_MODEL_ID) -> ModelDescriptor:
    return get_model_by_id(default_id) or AVAILABLE_MODELS[0]


def resolve_model(model_id: str | None, default_id: str = DEFAULT_MODEL_ID) -> ModelDescriptor:
    """Look up a model, falling back to the default for unknown or missing ids."""
    if model_id:
        model = get_model_by_id(model_id)
        if model is not None:
            return model
    return get_default_model(default_id)


def reasoning_model_ids(family: ProviderFamily) -> frozenset[str]:
    """Ids of catalog models in ``family`` that emit reasoning."""
    return frozenset(
        model.id for model in AVAILABLE_MODELS if model.family is family and model.supports_reasoning
    )
