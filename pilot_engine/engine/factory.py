"""Convenience constructors returning initialized engines."""

from typing import Any, Dict, Iterable, Optional, Union

from pilot_engine.engine.orchestrator import DecisionEngine
from pilot_engine.engine.presets import DEFAULT_CONFIG, PRODUCTION_CONFIG, TEST_CONFIG, merge_config
from pilot_engine.models.config import EngineConfig
from pilot_engine.plugins.sentiment import SentimentAnalyzer

ConfigLike = Union[EngineConfig, Dict[str, Any], None]


def create_engine(
    config: ConfigLike = None,
    plugins: Optional[Iterable[Any]] = None,
    **engine_kwargs: Any,
) -> DecisionEngine:
    """
    Build and initialize an engine.

    A dict config is merged onto the defaults. Extra plugins are registered
    under their own name after the bundled analyzers.
    """
    if not isinstance(config, EngineConfig):
        config = merge_config(DEFAULT_CONFIG, config)
    engine = DecisionEngine(config, **engine_kwargs).initialize()
    for plugin in plugins or ():
        engine.load_plugin(plugin.name, plugin)
    return engine


def create_basic_engine(overrides: Optional[Dict[str, Any]] = None, **engine_kwargs: Any) -> DecisionEngine:
    return create_engine(merge_config(DEFAULT_CONFIG, overrides), **engine_kwargs)


def create_lightweight_engine(**engine_kwargs: Any) -> DecisionEngine:
    """Sentiment analysis only, with a small cache and worker pool."""
    config = merge_config(
        DEFAULT_CONFIG,
        {"load_core_plugins": False, "caching": {"max_size": 100}, "max_workers": 4},
    )
    return create_engine(config, plugins=[SentimentAnalyzer()], **engine_kwargs)


def create_production_engine(overrides: Optional[Dict[str, Any]] = None, **engine_kwargs: Any) -> DecisionEngine:
    engine_kwargs.setdefault("configure_logging", True)
    return create_engine(merge_config(PRODUCTION_CONFIG, overrides), **engine_kwargs)


def create_test_engine(overrides: Optional[Dict[str, Any]] = None, **engine_kwargs: Any) -> DecisionEngine:
    """Isolated engine with caching, rate limiting and learning switched off."""
    return create_engine(merge_config(TEST_CONFIG, overrides), **engine_kwargs)
