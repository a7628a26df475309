"""Analysis request and result contracts."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pilot_engine.models.decision import Decision


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class FallbackStrategy(str, Enum):
    BASIC = "basic"     # Built-in low-confidence heuristic
    CACHE = "cache"     # Serve any live cached result for the request
    SKIP = "skip"       # Surface the last error


class UserHistoryEntry(BaseModel):
    timestamp: float
    action: str
    outcome: str                            # "success" | "failure" | "pending"
    metadata: Dict[str, Any] = {}


class AnalysisContext(BaseModel):
    """Environmental hints for an analysis. Unknown keys are preserved."""

    model_config = ConfigDict(extra="allow")

    blockchain: Optional[str] = None
    protocol: Optional[str] = None
    timeframe: Optional[str] = None
    user_history: List[UserHistoryEntry] = []
    market_conditions: Optional[Dict[str, Any]] = None
    custom_parameters: Dict[str, Any] = {}


class AnalysisOptions(BaseModel):
    priority: Priority = Priority.MEDIUM
    timeout: Optional[float] = Field(default=None, gt=0)    # Seconds
    fallback_strategy: Optional[FallbackStrategy] = None
    providers: Optional[List[str]] = None
    caching: Optional[bool] = None                          # None = engine default
    streaming: bool = False                                 # Accepted; results are never streamed


class AnalysisRequest(BaseModel):
    """Built once per `analyze` call and discarded after the response."""

    id: str
    type: str
    input: Dict[str, Any]
    context: AnalysisContext = AnalysisContext()
    options: AnalysisOptions = AnalysisOptions()
    timestamp: datetime

    @property
    def text(self) -> Optional[str]:
        """Primary free text of the request, if any."""
        value = self.input.get("text") or self.input.get("proposal_text")
        return value if isinstance(value, str) else None


class AnalysisResult(BaseModel):
    """
    Outcome of one analysis.

    Exactly one of `decision` (on success) or `error` (on failure) is set.
    """

    success: bool
    decision: Optional[Decision] = None
    error: Optional[str] = None
    processing_time: float = Field(default=0.0, ge=0)      # Milliseconds
    provider: str = "unknown"
    metadata: Dict[str, Any] = {}

    @model_validator(mode="after")
    def _check_outcome(self) -> "AnalysisResult":
        if self.success and (self.decision is None or self.error is not None):
            raise ValueError("successful result requires a decision and no error")
        if not self.success and (self.decision is not None or not self.error):
            raise ValueError("failed result requires an error and no decision")
        return self

    @classmethod
    def failure(
        cls,
        error: str,
        provider: str = "engine",
        processing_time: float = 0.0,
        **metadata: Any,
    ) -> "AnalysisResult":
        return cls(
            success=False,
            error=error,
            provider=provider,
            processing_time=max(0.0, processing_time),
            metadata=metadata,
        )
