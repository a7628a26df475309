"""Pilot Engine data models."""

from pilot_engine.models.config import (
    CachingConfig,
    EngineConfig,
    Environment,
    FeatureFlags,
    LogLevel,
    PerformanceThresholds,
    RateLimitConfig,
)
from pilot_engine.models.decision import (
    Alternative,
    Decision,
    DecisionAction,
    ExecutionPlan,
    RiskAssessment,
    RiskLevel,
)
from pilot_engine.models.events import EngineEvent, EventType
from pilot_engine.models.learning import (
    Correctness,
    ExecutionOutcome,
    Helpfulness,
    LearningRecord,
    UserFeedback,
)
from pilot_engine.models.request import (
    AnalysisContext,
    AnalysisOptions,
    AnalysisRequest,
    AnalysisResult,
    FallbackStrategy,
    Priority,
    UserHistoryEntry,
)
from pilot_engine.models.rules import ConditionType, Rule, RuleAction, RuleCondition

__all__ = [
    "Alternative",
    "AnalysisContext",
    "AnalysisOptions",
    "AnalysisRequest",
    "AnalysisResult",
    "CachingConfig",
    "ConditionType",
    "Correctness",
    "Decision",
    "DecisionAction",
    "EngineConfig",
    "EngineEvent",
    "Environment",
    "EventType",
    "ExecutionOutcome",
    "ExecutionPlan",
    "FallbackStrategy",
    "FeatureFlags",
    "Helpfulness",
    "LearningRecord",
    "LogLevel",
    "PerformanceThresholds",
    "Priority",
    "RateLimitConfig",
    "RiskAssessment",
    "RiskLevel",
    "Rule",
    "RuleAction",
    "RuleCondition",
    "UserFeedback",
    "UserHistoryEntry",
]
