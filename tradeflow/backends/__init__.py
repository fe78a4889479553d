"""Marketplace backend factory and initialization."""

from __future__ import annotations

from typing import Optional

from ..config import TradeflowConfig, load_config
from .base import EligibilityResponse, MarketplaceBackend
from .http import HttpBackend
from .inmemory import InMemoryBackend


def get_backend(
    kind: Optional[str] = None, config: Optional[TradeflowConfig] = None
) -> MarketplaceBackend:
    """Factory function to get the configured marketplace backend."""

    config = config or load_config()
    kind = (kind or config.backend.kind).lower()

    if kind == "inmemory":
        return InMemoryBackend(pricing_policy=config.pricing)
    elif kind == "http":
        if not config.backend.base_url:
            raise ValueError("HTTP backend requires backend.base_url")
        return HttpBackend(
            base_url=config.backend.base_url,
            api_key=config.backend.api_key,
            asset_bucket=config.backend.asset_bucket,
            timeout=config.backend.timeout,
        )
    else:
        raise ValueError(f"Unsupported marketplace backend: {kind}")


__all__ = [
    "EligibilityResponse",
    "MarketplaceBackend",
    "HttpBackend",
    "InMemoryBackend",
    "get_backend",
]
