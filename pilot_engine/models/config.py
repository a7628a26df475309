"""Engine configuration."""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, Field


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


# Maximum cache age per analysis type, in seconds. Caps the configured TTL.
DEFAULT_CACHE_MAX_AGES: Dict[str, float] = {
    "proposal": 5 * 60,       # Proposals can still be edited
    "sentiment": 30 * 60,
    "market": 2 * 60,         # Highly volatile
    "transaction": 10 * 60,
    "risk": 15 * 60,
    "default": 10 * 60,
}


class CachingConfig(BaseModel):
    enabled: bool = True
    ttl: float = Field(default=1800, ge=0)          # Seconds; 0 disables caching
    max_size: int = Field(default=1000, ge=0)
    max_age_by_type: Dict[str, float] = dict(DEFAULT_CACHE_MAX_AGES)


class RateLimitConfig(BaseModel):
    enabled: bool = True
    requests_per_minute: int = Field(default=60, ge=0)
    requests_per_hour: int = Field(default=1000, ge=0)


class FeatureFlags(BaseModel):
    learning_enabled: bool = True
    fallback_enabled: bool = True
    # Accepted and reported in status; no bundled analyzer streams or fans out yet
    streaming_enabled: bool = False
    multi_provider_enabled: bool = False


class SecurityPolicy(BaseModel):
    """Plugin review rules, enforced when the engine runs in production."""

    allow_network_access: bool = False
    require_signature: bool = False
    trusted_sources: List[str] = []
    trusted_plugins: List[str] = ["nlp-analyzer", "proposal-analyzer"]


class PerformanceThresholds(BaseModel):
    """Limits that trigger non-fatal performance warnings."""

    slow_analysis_ms: float = 10_000
    slow_type_average_ms: float = 5_000
    min_success_rate: float = 80.0          # Percent
    min_sample_size: int = 10
    history_size: int = Field(default=1000, ge=1)
    type_history_size: int = Field(default=100, ge=1)


class EngineConfig(BaseModel):
    """Configuration for a DecisionEngine instance."""

    environment: Environment = Environment.DEVELOPMENT
    log_level: LogLevel = LogLevel.INFO
    json_logs: bool = False
    caching: CachingConfig = CachingConfig()
    rate_limiting: RateLimitConfig = RateLimitConfig()
    features: FeatureFlags = FeatureFlags()
    performance: PerformanceThresholds = PerformanceThresholds()
    security: SecurityPolicy = SecurityPolicy()
    default_timeout_seconds: float = Field(default=30.0, gt=0)
    max_workers: int = Field(default=16, ge=1)
    learning_capacity: int = Field(default=10_000, ge=1)
    load_core_plugins: bool = True
