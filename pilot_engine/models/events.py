"""Engine events delivered to registered listeners."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel


class EventType(str, Enum):
    ANALYSIS_STARTED = "analysis_started"
    ANALYSIS_COMPLETED = "analysis_completed"
    ANALYSIS_FAILED = "analysis_failed"
    PLUGIN_LOADED = "plugin_loaded"
    PLUGIN_ERROR = "plugin_error"
    CACHE_HIT = "cache_hit"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    LEARNING_UPDATED = "learning_updated"
    RULE_TRIGGERED = "rule_triggered"


class EngineEvent(BaseModel):
    type: EventType
    timestamp: datetime
    data: Dict[str, Any] = {}
    source: str = "decision_engine"
