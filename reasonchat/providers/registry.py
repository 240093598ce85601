"""Provider registry: one adapter per upstream family."""

from __future__ import annotations

from typing import Any

import httpx

from reasonchat.config import Settings
from reasonchat.core import NotFoundError, get_logger
from reasonchat.providers.base import ProviderAdapter
from reasonchat.providers.catalog import DEFAULT_MODEL_ID, ModelDescriptor, ProviderFamily
from reasonchat.providers.completions import CompletionsAdapter
from reasonchat.providers.router import RouterAdapter
from reasonchat.providers.thinking import ThinkingAdapter

logger = get_logger(__name__)


class ProviderRegistry:
    """Instantiate and manage the provider adapters."""

    def __init__(
        self,
        settings: Settings,
        transport_overrides: dict[ProviderFamily, httpx.AsyncBaseTransport] | None = None,
    ):
        self.settings = settings
        self.adapters: dict[ProviderFamily, ProviderAdapter] = {}
        self._transport_overrides = transport_overrides or {}
        self._initialize()

    def _transport(self, family: ProviderFamily) -> httpx.AsyncBaseTransport | None:
        return self._transport_overrides.get(family)

    def _initialize(self) -> None:
        settings = self.settings
        timeout = settings.provider_timeout_seconds

        self.adapters[ProviderFamily.COMPLETIONS] = CompletionsAdapter(
            base_url=settings.completions_base_url,
            api_key=settings.completions_api_key or None,
            system_prompt=settings.system_prompt,
            timeout=timeout,
            model_map={DEFAULT_MODEL_ID: settings.completions_model},
            transport=self._transport(ProviderFamily.COMPLETIONS),
        )
        self.adapters[ProviderFamily.THINKING] = ThinkingAdapter(
            base_url=settings.gemini_base_url,
            api_key=settings.gemini_api_key or None,
            system_prompt=settings.system_prompt,
            timeout=timeout,
            transport=self._transport(ProviderFamily.THINKING),
        )
        self.adapters[ProviderFamily.ROUTER] = RouterAdapter(
            base_url=settings.openrouter_base_url,
            api_key=settings.openrouter_api_key or None,
            system_prompt=settings.system_prompt,
            timeout=timeout,
            referer=settings.openrouter_referer,
            title=settings.openrouter_title,
            transport=self._transport(ProviderFamily.ROUTER),
        )

        missing = [family.value for family, configured in self.configured().items() if not configured]
        if missing:
            logger.warning("Provider API keys not configured", data={"families": missing})
        logger.info(
            "Provider registry initialized",
            data={"families": [family.value for family in self.adapters]},
        )

    def configured(self) -> dict[ProviderFamily, bool]:
        """Which families have credentials set."""
        return {
            ProviderFamily.COMPLETIONS: bool(self.settings.completions_api_key),
            ProviderFamily.THINKING: bool(self.settings.gemini_api_key),
            ProviderFamily.ROUTER: bool(self.settings.openrouter_api_key),
        }

    def get(self, family: ProviderFamily) -> ProviderAdapter:
        """Resolve an adapter by family or raise NotFoundError."""
        adapter = self.adapters.get(family)
        if adapter is None:
            raise NotFoundError(f"Provider family '{family.value}' not available")
        return adapter

    def for_model(self, model: ModelDescriptor) -> ProviderAdapter:
        return self.get(model.family)

    def describe(self) -> dict[str, Any]:
        return {family.value: ok for family, ok in self.configured().items()}

    async def aclose(self) -> None:
        """Close all adapter clients."""
        for family, adapter in self.adapters.items():
            try:
                await adapter.aclose()
            except Exception:  # pragma: no cover - defensive
                logger.warning("Error closing provider client", data={"family": family.value})
