"""Tests for engine factories and configuration presets."""

import pytest

from pilot_engine.engine.factory import (
    create_basic_engine,
    create_engine,
    create_lightweight_engine,
    create_production_engine,
    create_test_engine,
)
from pilot_engine.engine.presets import (
    DEFAULT_CONFIG,
    PRODUCTION_CONFIG,
    TEST_CONFIG,
    get_preset,
    merge_config,
)
from pilot_engine.models.config import Environment, LogLevel
from pilot_engine.plugins.sentiment import SentimentAnalyzer


class _EchoPlugin:
    name = "echo"
    version = "0.1.0"
    supported_types = ["echo"]

    def analyze(self, request):
        raise NotImplementedError


class TestMergeConfig:
    def test_nested_override_keeps_siblings(self):
        config = merge_config(PRODUCTION_CONFIG, {"caching": {"ttl": 60}})
        assert config.caching.ttl == 60
        assert config.caching.max_size == 10_000
        assert config.environment == Environment.PRODUCTION

    def test_base_is_not_mutated(self):
        merge_config(DEFAULT_CONFIG, {"rate_limiting": {"requests_per_minute": 1}})
        assert DEFAULT_CONFIG.rate_limiting.requests_per_minute == 60

    def test_invalid_override_rejected(self):
        with pytest.raises(ValueError):
            merge_config(DEFAULT_CONFIG, {"max_workers": 0})

    def test_dict_base(self):
        config = merge_config({"log_level": "warn"}, {"json_logs": True})
        assert config.log_level == LogLevel.WARN
        assert config.json_logs is True

    def test_get_preset(self):
        assert get_preset("test") is TEST_CONFIG
        with pytest.raises(ValueError):
            get_preset("staging-eu")


class TestFactories:
    def setup_method(self):
        self.engines = []

    def teardown_method(self):
        for engine in self.engines:
            engine.shutdown()

    def _track(self, engine):
        self.engines.append(engine)
        return engine

    def test_create_engine_defaults(self):
        engine = self._track(create_engine())
        assert engine.initialized
        assert engine.get_loaded_plugins() == ["nlp-analyzer", "proposal-analyzer"]

    def test_create_engine_with_dict_and_plugins(self):
        engine = self._track(create_engine({"caching": {"enabled": False}}, plugins=[_EchoPlugin()]))
        assert engine.config.caching.enabled is False
        assert engine.get_loaded_plugins()[-1] == "echo"

    def test_basic_engine(self):
        engine = self._track(create_basic_engine({"max_workers": 2}))
        assert engine.config.max_workers == 2

    def test_lightweight_engine(self):
        engine = self._track(create_lightweight_engine())
        assert engine.get_loaded_plugins() == ["nlp-analyzer"]
        assert isinstance(engine.get_plugin("nlp-analyzer"), SentimentAnalyzer)
        assert engine.cache.max_size == 100

    def test_production_engine(self):
        engine = self._track(create_production_engine(configure_logging=False))
        assert engine.config.environment == Environment.PRODUCTION
        assert engine.config.rate_limiting.requests_per_minute == 100

    def test_test_engine(self):
        engine = self._track(create_test_engine())
        assert engine.config.caching.enabled is False
        assert engine.record_learning({}) is False

        result = engine.analyze("sentiment", {"text": "great"})
        assert result.success
        assert "from_cache" not in engine.analyze("sentiment", {"text": "great"}).metadata

    def test_test_engine_overrides(self):
        engine = self._track(create_test_engine({"features": {"learning_enabled": True}}))
        assert engine.config.features.learning_enabled is True
        assert engine.config.max_workers == 4
