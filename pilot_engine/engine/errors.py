"""
Engine error taxonomy.

Errors are raised inside the engine and converted into failed
AnalysisResults at the public boundary. Only plugin registration raises
past the boundary.
"""

from typing import Any, Dict, List, Optional

from pilot_engine.models.decision import RiskLevel


class ErrorCode:
    INVALID_INPUT = "INVALID_INPUT"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    UNSUPPORTED_ANALYSIS_TYPE = "UNSUPPORTED_ANALYSIS_TYPE"
    ANALYSIS_TIMEOUT = "ANALYSIS_TIMEOUT"
    PLUGIN_EXECUTION_FAILED = "PLUGIN_EXECUTION_FAILED"
    PLUGIN_VALIDATION_FAILED = "PLUGIN_VALIDATION_FAILED"
    CACHE_ERROR = "CACHE_ERROR"
    INVALID_CONFIG = "INVALID_CONFIG"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class EngineError(Exception):
    """Base class for every error the engine produces."""

    code = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        component: str = "engine",
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.component = component
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "component": self.component,
            "details": self.details,
            "suggestions": self.suggestions,
        }


class ValidationError(EngineError):
    """Malformed request."""
    code = ErrorCode.INVALID_INPUT

    def __init__(self, reason: str, component: str = "engine"):
        super().__init__(
            "invalid request",
            component,
            details={"reason": reason},
            suggestions=["Check input format", "Verify required fields"],
        )


class RateLimitError(EngineError):
    code = ErrorCode.RATE_LIMIT_EXCEEDED

    def __init__(self, status: Optional[dict] = None):
        super().__init__(
            "rate limit exceeded",
            "rate_limiter",
            details=status or {},
            suggestions=["Wait before retrying", "Reduce request frequency"],
        )


class NoAnalyzerError(EngineError):
    code = ErrorCode.UNSUPPORTED_ANALYSIS_TYPE

    def __init__(self, analysis_type: str, blockchain: Optional[str] = None):
        super().__init__(
            f"no analyzer available for type '{analysis_type}'",
            "plugin_registry",
            details={"analysis_type": analysis_type, "blockchain": blockchain},
            suggestions=["Load a plugin supporting this type", "Use a fallback strategy"],
        )


class AnalysisTimeoutError(EngineError):
    code = ErrorCode.ANALYSIS_TIMEOUT

    def __init__(self, plugin_name: str, timeout: float):
        super().__init__(
            "analysis timeout",
            plugin_name,
            details={"timeout_seconds": timeout},
        )


class PluginError(EngineError):
    """A plugin raised, or returned a failed result."""
    code = ErrorCode.PLUGIN_EXECUTION_FAILED

    def __init__(self, plugin_name: str, message: str, details: Optional[dict] = None):
        super().__init__(message, plugin_name, details=details)
        self.plugin_name = plugin_name


class PluginLoadError(PluginError):
    code = ErrorCode.PLUGIN_VALIDATION_FAILED

    def __init__(self, plugin_name: str, problems: List[str]):
        super().__init__(
            plugin_name,
            f"plugin '{plugin_name}' rejected: {'; '.join(problems)}",
            details={"problems": problems},
        )
        self.problems = problems


class CacheError(EngineError):
    """Non-fatal; logged and never changes a returned result."""
    code = ErrorCode.CACHE_ERROR


class EngineStateError(EngineError):
    code = ErrorCode.INVALID_CONFIG


_RETRYABLE = {ErrorCode.ANALYSIS_TIMEOUT, ErrorCode.CACHE_ERROR, ErrorCode.RATE_LIMIT_EXCEEDED}


def is_retryable(error: EngineError) -> bool:
    """Whether the same request may succeed if simply retried later."""
    return error.code in _RETRYABLE


def severity_of(error: EngineError) -> RiskLevel:
    if error.code in (ErrorCode.PLUGIN_VALIDATION_FAILED, ErrorCode.INTERNAL_ERROR):
        return RiskLevel.HIGH
    if error.code in (ErrorCode.PLUGIN_EXECUTION_FAILED, ErrorCode.ANALYSIS_TIMEOUT):
        return RiskLevel.MEDIUM
    return RiskLevel.LOW
