from __future__ import annotations

import os
from typing import Optional

import yaml
from pydantic import BaseModel


class RedisConfig(BaseModel):
    """Configuration for the Redis execution repository."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    key_prefix: str = "seoflow"


class EngineConfig(BaseModel):
    """Workflow engine behaviour settings."""

    cache_enabled: bool = True
    strict_validation: bool = False
    save_retries: int = 2
    tool_timeout: Optional[float] = None


class SeoflowConfig(BaseModel):
    """Top-level configuration model."""

    engine: EngineConfig = EngineConfig()
    redis: RedisConfig = RedisConfig()
    database_url: Optional[str] = None


def load_config(path: Optional[str] = None) -> SeoflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to SEOFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("SEOFLOW_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = SeoflowConfig(**data)
    else:
        config = SeoflowConfig()

    env_db_url = os.getenv("SEOFLOW_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    return config
