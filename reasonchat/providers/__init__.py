"""Provider adapters translating upstream streams into reasoning/content deltas."""

from reasonchat.providers.base import (
    ContextMessage,
    DeltaKind,
    ProviderAdapter,
    StreamDelta,
    StreamResult,
    validate_context,
)
from reasonchat.providers.catalog import (
    AVAILABLE_MODELS,
    ModelDescriptor,
    ProviderFamily,
    get_default_model,
    get_model_by_id,
    resolve_model,
)
from reasonchat.providers.completions import CompletionsAdapter
from reasonchat.providers.registry import ProviderRegistry
from reasonchat.providers.router import RouterAdapter
from reasonchat.providers.thinking import ThinkingAdapter

__all__ = [
    "AVAILABLE_MODELS",
    "CompletionsAdapter",
    "ContextMessage",
    "DeltaKind",
    "ModelDescriptor",
    "ProviderAdapter",
    "ProviderFamily",
    "ProviderRegistry",
    "RouterAdapter",
    "StreamDelta",
    "StreamResult",
    "ThinkingAdapter",
    "get_default_model",
    "get_model_by_id",
    "resolve_model",
    "validate_context",
]
