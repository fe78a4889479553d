from __future__ import annotations

import os
from decimal import Decimal
from typing import Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field

from .constants import DEFAULT_ASSET_BUCKET, DEFAULT_SNAPSHOT_NAMESPACE


class RedisConfig(BaseModel):
    """Configuration for the Redis snapshot store."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None


class SnapshotConfig(BaseModel):
    """Where resumability snapshots are kept."""

    backend: Literal["inmemory", "sqlite", "redis"] = "inmemory"
    sqlite_path: str = "tradeflow-snapshots.db"
    namespace: str = DEFAULT_SNAPSHOT_NAMESPACE
    redis: RedisConfig = Field(default_factory=RedisConfig)


class BackendConfig(BaseModel):
    """Marketplace backend used for eligibility, storage and persistence."""

    kind: Literal["inmemory", "http"] = "inmemory"
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    asset_bucket: str = DEFAULT_ASSET_BUCKET
    timeout: float = 10.0


class PricingPolicy(BaseModel):
    """Externally supplied pricing policy for priced workflows."""

    prices: Dict[str, Decimal] = Field(default_factory=dict)
    is_free_by_default: bool = False
    free_options: Optional[List[str]] = None


class TradeflowConfig(BaseModel):
    """Top-level configuration model."""

    snapshots: SnapshotConfig = Field(default_factory=SnapshotConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    pricing: PricingPolicy = Field(default_factory=PricingPolicy)


def load_config(path: Optional[str] = None) -> TradeflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to TRADEFLOW_CONFIG env
            variable or 'tradeflow.yaml' in the current directory.
    """

    config_path = path or os.getenv("TRADEFLOW_CONFIG", "tradeflow.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = TradeflowConfig(**data)
    else:
        config = TradeflowConfig()

    env_snapshot_backend = os.getenv("TRADEFLOW_SNAPSHOT_BACKEND")
    if env_snapshot_backend:
        config.snapshots.backend = env_snapshot_backend
    env_url = os.getenv("TRADEFLOW_BACKEND_URL")
    if env_url:
        config.backend.kind = "http"
        config.backend.base_url = env_url
    env_key = os.getenv("TRADEFLOW_API_KEY")
    if env_key:
        config.backend.api_key = env_key
    return config
