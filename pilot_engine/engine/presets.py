"""Named engine configurations and a deep-merge helper for overriding them."""

from typing import Any, Dict, Optional, Union

from pilot_engine.models.config import (
    CachingConfig,
    EngineConfig,
    Environment,
    FeatureFlags,
    LogLevel,
    RateLimitConfig,
)

DEFAULT_CONFIG = EngineConfig()

DEVELOPMENT_CONFIG = EngineConfig(
    environment=Environment.DEVELOPMENT,
    log_level=LogLevel.DEBUG,
    caching=CachingConfig(enabled=False, ttl=300, max_size=100),
    rate_limiting=RateLimitConfig(enabled=False, requests_per_minute=1000, requests_per_hour=10_000),
)

PRODUCTION_CONFIG = EngineConfig(
    environment=Environment.PRODUCTION,
    log_level=LogLevel.INFO,
    json_logs=True,
    caching=CachingConfig(enabled=True, ttl=3600, max_size=10_000),
    rate_limiting=RateLimitConfig(enabled=True, requests_per_minute=100, requests_per_hour=1000),
    features=FeatureFlags(
        learning_enabled=True,
        fallback_enabled=True,
        streaming_enabled=True,
        multi_provider_enabled=True,
    ),
)

# Minimal logging, no caching or throttling, learning off.
TEST_CONFIG = EngineConfig(
    environment=Environment.DEVELOPMENT,
    log_level=LogLevel.ERROR,
    caching=CachingConfig(enabled=False, ttl=0, max_size=0),
    rate_limiting=RateLimitConfig(enabled=False, requests_per_minute=0, requests_per_hour=0),
    features=FeatureFlags(learning_enabled=False, fallback_enabled=True),
    default_timeout_seconds=5.0,
    max_workers=4,
)

PRESETS: Dict[str, EngineConfig] = {
    "default": DEFAULT_CONFIG,
    "development": DEVELOPMENT_CONFIG,
    "production": PRODUCTION_CONFIG,
    "test": TEST_CONFIG,
}


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_config(
    base: Union[EngineConfig, Dict[str, Any], None] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> EngineConfig:
    """
    Overlay a plain dict onto a config, nested sections included.

    merge_config(PRODUCTION_CONFIG, {"caching": {"ttl": 60}}) keeps every
    other production caching setting. The result is validated again.
    """
    if base is None:
        base = DEFAULT_CONFIG
    base_data = base.model_dump() if isinstance(base, EngineConfig) else dict(base)
    return EngineConfig.model_validate(_deep_merge(base_data, overrides or {}))


def get_preset(name: str) -> EngineConfig:
    try:
        return PRESETS[name]
    except KeyError:
        raise ValueError(f"unknown preset '{name}', expected one of {sorted(PRESETS)}") from None
