"""Tests for the engine error taxonomy."""

from pilot_engine.engine.errors import (
    AnalysisTimeoutError,
    CacheError,
    ErrorCode,
    NoAnalyzerError,
    PluginError,
    PluginLoadError,
    RateLimitError,
    ValidationError,
    is_retryable,
    severity_of,
)
from pilot_engine.models.decision import RiskLevel


class TestErrors:
    def test_surface_messages(self):
        assert ValidationError("type missing").message == "invalid request"
        assert RateLimitError().message == "rate limit exceeded"
        assert AnalysisTimeoutError("slow", 0.5).message == "analysis timeout"
        assert NoAnalyzerError("market").message == "no analyzer available for type 'market'"

    def test_to_dict(self):
        data = ValidationError("type must be a non-empty string").to_dict()
        assert data["code"] == ErrorCode.INVALID_INPUT
        assert data["message"] == "invalid request"
        assert data["details"] == {"reason": "type must be a non-empty string"}
        assert data["suggestions"]

    def test_plugin_load_error_lists_problems(self):
        error = PluginLoadError("x", ["name must be a non-empty string", "analyze must be callable"])
        assert error.problems == ["name must be a non-empty string", "analyze must be callable"]
        assert error.plugin_name == "x"
        assert "analyze must be callable" in error.message
        assert isinstance(error, PluginError)

    def test_retryable(self):
        assert is_retryable(AnalysisTimeoutError("slow", 1))
        assert is_retryable(RateLimitError())
        assert is_retryable(CacheError("cache down"))
        assert not is_retryable(ValidationError("bad"))
        assert not is_retryable(PluginError("p", "boom"))

    def test_severity(self):
        assert severity_of(PluginLoadError("x", ["bad"])) == RiskLevel.HIGH
        assert severity_of(AnalysisTimeoutError("slow", 1)) == RiskLevel.MEDIUM
        assert severity_of(RateLimitError()) == RiskLevel.LOW
