"""Learning Model: recorded decisions, their outcomes and user feedback."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from pilot_engine.models.decision import Decision


class Correctness(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    PARTIALLY_CORRECT = "partially_correct"


class Helpfulness(str, Enum):
    HELPFUL = "helpful"
    NOT_HELPFUL = "not_helpful"
    VERY_HELPFUL = "very_helpful"


class ExecutionOutcome(BaseModel):
    """What actually happened after the decision was acted on."""

    model_config = ConfigDict(frozen=True)

    success: bool
    actual_result: Optional[Any] = None
    errors: List[str] = []
    timestamp: datetime


class UserFeedback(BaseModel):
    model_config = ConfigDict(frozen=True)

    rating: int = Field(ge=1, le=5)
    correctness: Correctness
    helpfulness: Helpfulness
    comments: Optional[str] = None
    improvements: List[str] = []


class LearningRecord(BaseModel):
    """A (decision, outcome, feedback) tuple. Immutable once appended."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    session_id: str
    request_id: str
    decision: Decision
    actual_outcome: ExecutionOutcome
    user_feedback: Optional[UserFeedback] = None
    timestamp: datetime
    context: Dict[str, Any] = {}

    @property
    def is_plain_success(self) -> bool:
        """True for successful outcomes that carry no user feedback."""
        return self.actual_outcome.success and self.user_feedback is None
