"""
Per-token model pricing.

Prices come from the provider's public model list and are kept in memory
for the configured TTL. A failed refresh serves whatever was cached before,
even if stale or empty.
"""

from __future__ import annotations

import time
from typing import Optional

import httpx
from pydantic import BaseModel

from prompt_tester.core.config import get_settings
from prompt_tester.core.logger import setup_logger

logger = setup_logger(__name__)


class ModelPricing(BaseModel):
    """Price per token in USD."""

    prompt_price: float = 0.0
    completion_price: float = 0.0


def _parse_price(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def calculate_cost(
    prompt_tokens: int,
    completion_tokens: int,
    pricing: Optional[ModelPricing],
) -> float:
    if pricing is None:
        return 0.0
    return prompt_tokens * pricing.prompt_price + completion_tokens * pricing.completion_price


def _litellm_pricing(model_id: str) -> Optional[ModelPricing]:
    """Look the model up in litellm's bundled price map."""
    try:
        import litellm

        cost_map = litellm.model_cost
        entry = cost_map.get(f"openrouter/{model_id}") or cost_map.get(model_id)
    except Exception:
        logger.debug(f"No bundled pricing for model: {model_id}")
        return None
    if not entry:
        return None
    return ModelPricing(
        prompt_price=entry.get("input_cost_per_token", 0) or 0,
        completion_price=entry.get("output_cost_per_token", 0) or 0,
    )


class PricingCache:
    """Process-wide TTL cache of model prices."""

    def __init__(
        self,
        api_base: Optional[str] = None,
        ttl_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock=time.monotonic,
    ):
        settings = get_settings()
        self._api_base = (api_base or settings.OPENROUTER_API_BASE).rstrip("/")
        self._ttl = settings.PRICING_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._timeout = settings.PRICING_FETCH_TIMEOUT
        self._transport = transport
        self._clock = clock
        self._prices: dict[str, ModelPricing] = {}
        self._fetched_at: Optional[float] = None

    def _is_fresh(self) -> bool:
        return (
            bool(self._prices)
            and self._fetched_at is not None
            and self._clock() - self._fetched_at < self._ttl
        )

    async def get_all(self) -> dict[str, ModelPricing]:
        """Return the price table, refreshing it when stale."""
        if self._is_fresh():
            return self._prices

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(f"{self._api_base}/models")
            if resp.status_code >= 400:
                logger.warning(f"Failed to fetch model pricing: {resp.status_code}")
                return self._prices
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Error fetching model pricing: {e}")
            return self._prices

        prices: dict[str, ModelPricing] = {}
        for model in data.get("data") or []:
            pricing = model.get("pricing")
            if model.get("id") and pricing:
                prices[model["id"]] = ModelPricing(
                    prompt_price=_parse_price(pricing.get("prompt")),
                    completion_price=_parse_price(pricing.get("completion")),
                )

        self._prices = prices
        self._fetched_at = self._clock()
        logger.info(f"Cached pricing for {len(prices)} models")
        return self._prices

    async def get(self, model_id: str) -> Optional[ModelPricing]:
        prices = await self.get_all()
        return prices.get(model_id) or _litellm_pricing(model_id)

    async def calculate_model_cost(
        self,
        model_id: str,
        prompt_tokens: int,
        completion_tokens: int,
    ) -> float:
        pricing = await self.get(model_id)
        return calculate_cost(prompt_tokens, completion_tokens, pricing)
