"""Built-in last resort used by the "basic" fallback strategy."""

import time

from pilot_engine.models.decision import Decision, DecisionAction, RiskAssessment, RiskLevel
from pilot_engine.models.request import AnalysisRequest, AnalysisResult

FALLBACK_PROVIDER = "fallback"
FALLBACK_CONFIDENCE = 20


def basic_fallback_analysis(request: AnalysisRequest, reason: str = "") -> AnalysisResult:
    """
    Low-confidence DELEGATE decision for a request no analyzer could serve.

    Never raises and never consults a plugin, so it is always available.
    """
    started = time.perf_counter()
    reasoning = ["Primary analysis unavailable, using basic fallback"]
    if reason:
        reasoning.append(f"Cause: {reason}")
    reasoning.append("Recommend human review before acting")

    decision = Decision(
        action=DecisionAction.DELEGATE,
        confidence=FALLBACK_CONFIDENCE,
        reasoning=reasoning,
        metadata={"fallback": True, "analysis_type": request.type},
        risk_assessment=RiskAssessment(
            level=RiskLevel.MEDIUM,
            factors=["Decision produced without a specialised analyzer"],
            mitigations=["Review manually", "Retry once an analyzer is available"],
        ),
    )
    return AnalysisResult(
        success=True,
        decision=decision,
        processing_time=(time.perf_counter() - started) * 1000,
        provider=FALLBACK_PROVIDER,
        metadata={"fallback_reason": reason} if reason else {},
    )
