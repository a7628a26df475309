"""Decision: the standardized recommendation every analyzer produces."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class DecisionAction(str, Enum):
    EXECUTE = "EXECUTE"
    WAIT = "WAIT"
    SKIP = "SKIP"
    DELEGATE = "DELEGATE"     # Hand the decision to a human or another system
    ALERT = "ALERT"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskAssessment(BaseModel):
    level: RiskLevel = RiskLevel.LOW
    factors: List[str] = []
    mitigations: List[str] = []


class Alternative(BaseModel):
    """A runner-up action the analyzer considered."""
    action: str
    reasoning: str
    confidence: float = 0.0


class ExecutionPlan(BaseModel):
    steps: List[str]
    estimated_time: str
    requirements: List[str] = []


class Decision(BaseModel):
    """
    Explainable recommendation intended to drive unattended downstream actions.

    Confidence is a 0-100 score. Values outside the range are clamped rather
    than rejected so that heuristic analyzers never fail on arithmetic drift.
    """

    action: DecisionAction
    confidence: float = Field(default=0.0)
    reasoning: List[str] = []
    metadata: Dict[str, Any] = {}
    risk_assessment: RiskAssessment = RiskAssessment()
    alternatives: Optional[List[Alternative]] = None
    execution_plan: Optional[ExecutionPlan] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        return max(0.0, min(100.0, float(value)))
