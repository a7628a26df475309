"""
Decision Engine: routes analysis requests to pluggable analyzers.

Behavioral Contract:
- analyze() and analyze_with_rules() always resolve; failures come back as
  AnalysisResult(success=False, error=...)
- Requests run concurrently; shared components are locked only for the
  instant of their own update, never while a plugin call is in flight
- Plugin calls run on the engine's thread pool and are abandoned (not
  killed) when they exceed their deadline; the deadline starts when the call
  starts running, and a pool clogged by abandoned calls is replaced
- Callers receive their own copies of results; cached entries never change
- Every component is owned by the engine instance, so engines never share state
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple, Union
from uuid import uuid4

from pydantic import ValidationError as SchemaError

from pilot_engine.cache.store import ResultCache, make_cache_key
from pilot_engine.engine.errors import (
    AnalysisTimeoutError,
    CacheError,
    EngineError,
    EngineStateError,
    NoAnalyzerError,
    PluginError,
    PluginLoadError,
    RateLimitError,
    ValidationError,
    is_retryable,
    severity_of,
)
from pilot_engine.engine.events import EventBus, EventHandler
from pilot_engine.learning.store import LearningStore
from pilot_engine.models.config import EngineConfig, Environment
from pilot_engine.models.decision import DecisionAction
from pilot_engine.models.events import EventType
from pilot_engine.models.learning import LearningRecord
from pilot_engine.models.request import (
    AnalysisContext,
    AnalysisOptions,
    AnalysisRequest,
    AnalysisResult,
    FallbackStrategy,
)
from pilot_engine.models.rules import Rule
from pilot_engine.monitoring.performance import PerformanceMonitor
from pilot_engine.plugins.contract import check_plugin_structure, plugin_accepts, plugin_info
from pilot_engine.plugins.fallback import basic_fallback_analysis
from pilot_engine.plugins.proposal import ProposalAnalyzer
from pilot_engine.plugins.security import ManifestLike, PluginSecurityValidator
from pilot_engine.plugins.sentiment import SentimentAnalyzer
from pilot_engine.ratelimit.limiter import RateLimiter
from pilot_engine.rules.evaluator import evaluate_rules
from pilot_engine.utils.logging import get_logger, setup_logging

log = get_logger(__name__)

RULE_ENGINE_PROVIDER = "rule-engine"

# How often a caller waiting for its queued call re-checks that the call is still pending
QUEUE_POLL_SECONDS = 0.05

ContextLike = Union[AnalysisContext, Dict[str, Any], None]
OptionsLike = Union[AnalysisOptions, Dict[str, Any], None]


def core_plugins() -> List[Any]:
    """Fresh instances of the bundled analyzers, in registration order."""
    return [SentimentAnalyzer(), ProposalAnalyzer()]


class DecisionEngine:
    """
    Orchestrates validation, admission, caching, routing and fallback for
    every analysis, and owns the learning store and event listeners.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        cache: Optional[ResultCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
        performance_monitor: Optional[PerformanceMonitor] = None,
        learning_store: Optional[LearningStore] = None,
        clock: Callable[[], float] = time.time,
        configure_logging: bool = False,
    ):
        self.config = config or EngineConfig()
        if configure_logging:
            setup_logging(level=self.config.log_level.value, json_logs=self.config.json_logs)

        self.cache = cache or ResultCache(
            max_size=self.config.caching.max_size,
            default_ttl=self.config.caching.ttl,
            clock=clock,
        )
        self.rate_limiter = rate_limiter or RateLimiter(self.config.rate_limiting, clock=clock)
        self.performance = performance_monitor or PerformanceMonitor(self.config.performance)
        self.learning = learning_store or LearningStore(self.config.learning_capacity)
        self.events = EventBus()
        self.security = PluginSecurityValidator(self.config.security)

        # Dict order is registration order, which is also candidate order.
        self._plugins: Dict[str, Any] = {}
        self._registry_lock = threading.Lock()
        self._pool_lock = threading.Lock()
        self._executor = self._new_executor()
        # Timed-out calls still running on the current pool
        self._abandoned: Set[Future] = set()
        self._initialized = False
        self._shut_down = False

    # ==================== LIFECYCLE ====================

    def initialize(self) -> "DecisionEngine":
        """Register the bundled analyzers (when configured) and accept calls."""
        if self._shut_down:
            raise EngineStateError("engine is shut down")
        if self._initialized:
            return self

        if self.config.load_core_plugins:
            for plugin in core_plugins():
                if plugin.name not in self._plugins:
                    self.load_plugin(plugin.name, plugin)

        self._initialized = True
        log.info(
            "engine_initialized",
            environment=self.config.environment.value,
            plugins=self.get_loaded_plugins(),
        )
        return self

    @property
    def initialized(self) -> bool:
        return self._initialized and not self._shut_down

    def shutdown(self) -> None:
        """Stop the worker pool, drop listeners and reject further calls. Idempotent."""
        if self._shut_down:
            return
        with self._pool_lock:
            self._shut_down = True
            executor = self._executor
        executor.shutdown(wait=False, cancel_futures=True)
        self.events.clear()
        log.info("engine_shutdown")

    def __enter__(self) -> "DecisionEngine":
        return self.initialize()

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()

    # ==================== ANALYSIS ====================

    def analyze(
        self,
        analysis_type: str,
        input_data: Dict[str, Any],
        context: ContextLike = None,
        options: OptionsLike = None,
    ) -> AnalysisResult:
        """
        Analyze one request. Never raises.

        Steps: validate, admit, serve from cache, select candidates, invoke
        them in registration order under a deadline, then fall back.
        """
        started = time.perf_counter()
        try:
            return self._analyze(analysis_type, input_data, context, options, started)
        except EngineError as exc:
            return _error_result(exc, _elapsed_ms(started))
        except Exception:
            log.exception("analysis_internal_error", analysis_type=analysis_type)
            return AnalysisResult.failure("internal error", processing_time=_elapsed_ms(started))

    def _analyze(
        self,
        analysis_type: Any,
        input_data: Any,
        context: ContextLike,
        options: OptionsLike,
        started: float,
    ) -> AnalysisResult:
        self._check_ready()

        # 1. Validate
        try:
            ctx, opts = _validate_request(analysis_type, input_data, context, options)
        except ValidationError as exc:
            log.info("analysis_rejected", reason=exc.details.get("reason"))
            return _error_result(exc)

        # 2. Admit
        if not self.rate_limiter.is_allowed():
            status = self.rate_limiter.get_status()
            self.events.emit(EventType.RATE_LIMIT_EXCEEDED, {"analysis_type": analysis_type, **status})
            log.warning("rate_limit_exceeded", analysis_type=analysis_type)
            return _error_result(RateLimitError(status), _elapsed_ms(started))

        request = AnalysisRequest(
            id=f"req_{uuid4().hex[:12]}",
            type=analysis_type,
            input=input_data,
            context=ctx,
            options=opts,
            timestamp=datetime.now(timezone.utc),
        )

        # 3. Serve from cache
        cache_key = make_cache_key(
            analysis_type,
            input_data,
            ctx.model_dump(mode="json"),
            opts.model_dump(mode="json"),
        )
        use_cache = self._caching_active() and opts.caching is not False
        if use_cache:
            cached = self._cache_lookup(cache_key)
            if cached is not None:
                self.events.emit(
                    EventType.CACHE_HIT,
                    {"request_id": request.id, "analysis_type": analysis_type, "cache_key": cache_key},
                )
                log.debug("cache_hit", request_id=request.id, cache_key=cache_key)
                return _annotate(cached, request.id, from_cache=True)

        self.events.emit(
            EventType.ANALYSIS_STARTED,
            {"request_id": request.id, "analysis_type": analysis_type},
        )

        # 4. Select candidates and 5. invoke them in order
        candidates = self._select_candidates(request)
        result, last_error = self._run_candidates(candidates, request)

        if result is None:
            if not candidates:
                last_error = NoAnalyzerError(analysis_type, ctx.blockchain)
            result = self._apply_fallback(request, cache_key, last_error)

        # 6. Record the outcome
        elapsed = _elapsed_ms(started)
        self.performance.record_analysis(analysis_type, elapsed, result.success)

        if not result.success:
            self.events.emit(
                EventType.ANALYSIS_FAILED,
                {
                    "request_id": request.id,
                    "analysis_type": analysis_type,
                    "error": result.error,
                    "processing_time": elapsed,
                },
            )
            log.info("analysis_failed", request_id=request.id, error=result.error)
            return result.model_copy(
                update={"processing_time": elapsed, "metadata": {**result.metadata, "request_id": request.id}}
            )

        result = result.model_copy(update={"processing_time": max(elapsed, result.processing_time)})
        if use_cache and result.provider != "fallback" and not result.metadata.get("from_cache"):
            self._store(cache_key, analysis_type, result)

        self.events.emit(
            EventType.ANALYSIS_COMPLETED,
            {
                "request_id": request.id,
                "analysis_type": analysis_type,
                "provider": result.provider,
                "action": result.decision.action.value,
                "confidence": result.decision.confidence,
                "processing_time": elapsed,
            },
        )
        log.info(
            "analysis_completed",
            request_id=request.id,
            provider=result.provider,
            action=result.decision.action.value,
            processing_time_ms=round(elapsed, 2),
        )
        return _annotate(result, request.id)

    def _select_candidates(self, request: AnalysisRequest) -> List[Tuple[str, Any]]:
        with self._registry_lock:
            registered = list(self._plugins.items())

        providers = request.options.providers
        candidates = []
        for name, plugin in registered:
            if providers and name not in providers:
                continue
            try:
                accepted = plugin_accepts(plugin, request)
            except Exception:
                log.exception("plugin_validate_error", plugin=name)
                accepted = False
            if accepted:
                candidates.append((name, plugin))
        return candidates

    def _run_candidates(
        self,
        candidates: List[Tuple[str, Any]],
        request: AnalysisRequest,
    ) -> Tuple[Optional[AnalysisResult], Optional[EngineError]]:
        timeout = request.options.timeout or self.config.default_timeout_seconds
        last_error: Optional[EngineError] = None
        for name, plugin in candidates:
            try:
                return self._invoke(name, plugin, request, timeout), None
            except EngineError as exc:
                last_error = exc
                log.warning(
                    "analyzer_failed",
                    plugin=name,
                    request_id=request.id,
                    error=exc.message,
                    code=exc.code,
                )
        return None, last_error

    def _invoke(self, name: str, plugin: Any, request: AnalysisRequest, timeout: float) -> AnalysisResult:
        """
        Run one plugin under a deadline. Raises an EngineError unless it succeeds.

        The deadline starts when the call starts running, so time spent queued
        behind other calls is not charged to this plugin.
        """
        started = threading.Event()

        def call() -> Any:
            started.set()
            return plugin.analyze(request)

        future = self._submit(call)
        while not started.wait(QUEUE_POLL_SECONDS):
            if future.cancelled():
                # Still queued when its pool was replaced
                future = self._submit(call)

        try:
            raw = future.result(timeout=timeout)
        except FutureTimeoutError:
            self._abandon(name, future)
            raise AnalysisTimeoutError(name, timeout)
        except Exception as exc:
            raise PluginError(name, str(exc) or type(exc).__name__, {"exception": type(exc).__name__})

        try:
            result = raw if isinstance(raw, AnalysisResult) else AnalysisResult.model_validate(raw)
        except SchemaError as exc:
            raise PluginError(name, "plugin returned an invalid result", {"errors": exc.errors()})

        if not result.success:
            raise PluginError(name, result.error or "analysis failed")
        return result

    # ==================== WORKER POOL ====================

    def _new_executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="pilot-analyzer",
        )

    def _submit(self, fn: Callable[[], Any]) -> Future:
        with self._pool_lock:
            if self._shut_down:
                raise EngineStateError("engine is shut down")
            return self._executor.submit(fn)

    def _abandon(self, name: str, future: Future) -> None:
        """
        Give up on a timed-out call.

        Python threads cannot be killed, so the call keeps its worker until it
        returns. Once half the pool is held by such calls, new work moves to a
        fresh pool and the old one is left to drain.
        """
        if future.cancel():
            return
        retired = None
        with self._pool_lock:
            self._abandoned.add(future)
            hung = len(self._abandoned)
            if not self._shut_down and hung * 2 >= self.config.max_workers:
                retired, self._executor = self._executor, self._new_executor()
                self._abandoned = set()
        future.add_done_callback(self._forget_abandoned)

        if retired is not None:
            log.warning("analyzer_pool_replaced", plugin=name, hung_calls=hung)
            # Queued calls are cancelled here and resubmitted by their waiting callers
            retired.shutdown(wait=False, cancel_futures=True)

    def _forget_abandoned(self, future: Future) -> None:
        with self._pool_lock:
            self._abandoned.discard(future)

    # ==================== FALLBACK AND CACHE ====================

    def _apply_fallback(
        self,
        request: AnalysisRequest,
        cache_key: str,
        last_error: Optional[EngineError],
    ) -> AnalysisResult:
        error = last_error or PluginError("engine", "analysis failed")
        strategy = request.options.fallback_strategy
        if not self.config.features.fallback_enabled:
            strategy = None

        if strategy == FallbackStrategy.BASIC:
            log.info("fallback_applied", strategy="basic", request_id=request.id, cause=error.message)
            return basic_fallback_analysis(request, reason=error.message)

        if strategy == FallbackStrategy.CACHE:
            cached = self._cache_lookup(cache_key, peek=True)
            if cached is not None:
                log.info("fallback_applied", strategy="cache", request_id=request.id)
                return cached.model_copy(update={"metadata": {**cached.metadata, "from_cache": True}}, deep=True)

        return _error_result(error)

    def _caching_active(self) -> bool:
        """A zero TTL or capacity disables caching outright."""
        caching = self.config.caching
        return caching.enabled and caching.ttl > 0 and caching.max_size > 0

    def _cache_lookup(self, cache_key: str, peek: bool = False) -> Optional[AnalysisResult]:
        try:
            return self.cache.peek(cache_key) if peek else self.cache.get(cache_key)
        except Exception as exc:
            # Cache failures degrade to a miss and never change the returned result
            error = CacheError(f"cache lookup failed: {exc}", "cache", details={"cache_key": cache_key})
            log.warning("cache_error", **error.to_dict())
            return None

    def _store(self, cache_key: str, analysis_type: str, result: AnalysisResult) -> None:
        ttl = self._cache_ttl(analysis_type)
        if ttl <= 0:
            return
        try:
            # Stored privately so later changes to the caller's copy cannot leak in
            self.cache.set(cache_key, result.model_copy(deep=True), ttl=ttl)
        except Exception as exc:
            error = CacheError(f"cache store failed: {exc}", "cache", details={"cache_key": cache_key})
            log.warning("cache_error", **error.to_dict())

    def _cache_ttl(self, analysis_type: str) -> float:
        max_ages = self.config.caching.max_age_by_type
        max_age = max_ages.get(analysis_type, max_ages.get("default", self.config.caching.ttl))
        return min(self.config.caching.ttl, max_age)

    # ==================== RULE-BASED ANALYSIS ====================

    def analyze_with_rules(
        self,
        input_data: Dict[str, Any],
        rules: Iterable[Union[Rule, Dict[str, Any]]],
        context: ContextLike = None,
    ) -> AnalysisResult:
        """Evaluate user-authored rules against the input text. Bypasses plugins. Never raises."""
        started = time.perf_counter()
        try:
            self._check_ready()
        except EngineStateError as exc:
            return AnalysisResult.failure(exc.message)

        try:
            if not isinstance(input_data, dict):
                raise ValidationError("input must be an object")
            parsed_rules = [r if isinstance(r, Rule) else Rule.model_validate(r) for r in rules]
            _coerce(AnalysisContext, context)
        except (ValidationError, SchemaError, TypeError):
            return AnalysisResult.failure("invalid request", processing_time=0.0)

        request_id = f"rules_{uuid4().hex[:12]}"
        text = input_data.get("text") or input_data.get("proposal_text")
        decision = evaluate_rules(text if isinstance(text, str) else None, parsed_rules)

        if decision.action == DecisionAction.EXECUTE:
            self.events.emit(
                EventType.RULE_TRIGGERED,
                {
                    "request_id": request_id,
                    "rule_id": decision.metadata["triggered_rule_id"],
                    "vote": decision.metadata.get("vote"),
                    "confidence": decision.confidence,
                },
            )
            log.info("rule_triggered", rule_id=decision.metadata["triggered_rule_id"])

        return AnalysisResult(
            success=True,
            decision=decision,
            processing_time=_elapsed_ms(started),
            provider=RULE_ENGINE_PROVIDER,
            metadata={"request_id": request_id, "rules_count": len(parsed_rules)},
        )

    # ==================== PLUGIN REGISTRY ====================

    def load_plugin(self, name: str, plugin: Any, manifest: ManifestLike = None) -> None:
        """
        Register an analyzer under `name`.

        Raises PluginLoadError (after emitting plugin_error) when the name is
        taken or the plugin is malformed; the registry is left untouched.
        In production the plugin must also pass the security review; the
        manifest defaults to the plugin's own `manifest` attribute.
        """
        if self._shut_down:
            raise EngineStateError("engine is shut down")

        problems = check_plugin_structure(plugin)
        if not isinstance(name, str) or not name.strip():
            problems.insert(0, "registration name must be a non-empty string")
        if not problems and self.config.environment == Environment.PRODUCTION:
            problems = self._security_review(plugin, manifest or getattr(plugin, "manifest", None))

        with self._registry_lock:
            if not problems and name in self._plugins:
                problems.append(f"a plugin named '{name}' is already registered")
            if not problems:
                self._plugins[name] = plugin

        if problems:
            self.events.emit(EventType.PLUGIN_ERROR, {"name": name, "problems": problems})
            log.warning("plugin_rejected", name=name, problems=problems)
            raise PluginLoadError(str(name), problems)

        self.events.emit(EventType.PLUGIN_LOADED, {"name": name, "version": plugin.version})
        log.info("plugin_loaded", name=name, version=plugin.version)

    def _security_review(self, plugin: Any, manifest: ManifestLike) -> List[str]:
        report = self.security.validate(plugin, manifest)
        if report.warnings:
            log.warning(
                "plugin_security_warnings",
                plugin=report.plugin_name,
                warnings=[w.model_dump(mode="json") for w in report.warnings],
            )
        if not report.is_valid:
            log.error(
                "plugin_security_failed",
                plugin=report.plugin_name,
                violations=[v.model_dump(mode="json") for v in report.violations],
            )
        return report.blocking_messages()

    def unload_plugin(self, name: str) -> bool:
        with self._registry_lock:
            removed = self._plugins.pop(name, None) is not None
        if removed:
            log.info("plugin_unloaded", name=name)
        return removed

    def get_loaded_plugins(self) -> List[str]:
        with self._registry_lock:
            return list(self._plugins)

    def get_plugin(self, name: str) -> Optional[Any]:
        with self._registry_lock:
            return self._plugins.get(name)

    def get_plugin_info(self) -> List[Dict[str, Any]]:
        with self._registry_lock:
            registered = list(self._plugins.items())
        return [{**plugin_info(plugin), "name": name} for name, plugin in registered]

    # ==================== LEARNING ====================

    def record_learning(self, record: Union[LearningRecord, Dict[str, Any]]) -> bool:
        """Append an outcome record. Returns False when learning is disabled or the engine is shut down."""
        if self._shut_down or not self.config.features.learning_enabled:
            return False

        if not isinstance(record, LearningRecord):
            record = LearningRecord.model_validate(record)
        self.learning.record(record)

        self.events.emit(
            EventType.LEARNING_UPDATED,
            {"user_id": record.user_id, "request_id": record.request_id, "total_records": len(self.learning)},
        )
        log.debug("learning_recorded", user_id=record.user_id, request_id=record.request_id)
        return True

    def get_user_learning_data(self, user_id: str) -> List[LearningRecord]:
        return self.learning.get_user_records(user_id)

    def get_system_learning_insights(self) -> dict:
        return self.learning.get_insights()

    # ==================== EVENTS ====================

    def add_event_listener(self, event_type: Union[EventType, str], handler: EventHandler) -> None:
        self.events.subscribe(EventType(event_type), handler)

    def remove_event_listener(self, event_type: Union[EventType, str], handler: EventHandler) -> bool:
        return self.events.unsubscribe(EventType(event_type), handler)

    # ==================== STATUS ====================

    def get_status(self) -> dict:
        """Point-in-time snapshot of the engine and its components."""
        return {
            "initialized": self.initialized,
            "environment": self.config.environment.value,
            "plugins_loaded": len(self.get_loaded_plugins()),
            "plugins": self.get_loaded_plugins(),
            "cache_size": self.cache.stats(),
            "rate_limit_status": self.rate_limiter.get_status(),
            "learning_data_points": len(self.learning),
            "features": self.config.features.model_dump(),
            "performance": self.performance.get_metrics(),
        }

    def get_performance_metrics(self) -> dict:
        return self.performance.get_metrics()

    def clear_cache(self) -> None:
        self.cache.clear()
        log.info("cache_cleared")

    def _check_ready(self) -> None:
        if self._shut_down:
            raise EngineStateError("engine is shut down")
        if not self._initialized:
            raise EngineStateError("engine not initialized")


# ==================== HELPERS ====================


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def _coerce(model: Any, value: Any) -> Any:
    if value is None:
        return model()
    if isinstance(value, model):
        return value
    if isinstance(value, dict):
        return model.model_validate(value)
    raise TypeError(f"expected {model.__name__} or dict, got {type(value).__name__}")


def _validate_request(
    analysis_type: Any,
    input_data: Any,
    context: ContextLike,
    options: OptionsLike,
) -> Tuple[AnalysisContext, AnalysisOptions]:
    if not isinstance(analysis_type, str) or not analysis_type.strip():
        raise ValidationError("type must be a non-empty string")
    if not isinstance(input_data, dict):
        raise ValidationError("input must be an object")
    try:
        return _coerce(AnalysisContext, context), _coerce(AnalysisOptions, options)
    except (SchemaError, TypeError) as exc:
        raise ValidationError(str(exc))


def _annotate(result: AnalysisResult, request_id: str, from_cache: bool = False) -> AnalysisResult:
    metadata = {**result.metadata, "request_id": request_id}
    if from_cache:
        metadata["from_cache"] = True
    return result.model_copy(update={"metadata": metadata}, deep=True)


def _error_result(error: EngineError, processing_time: float = 0.0) -> AnalysisResult:
    return AnalysisResult.failure(
        error.message,
        provider=error.component,
        processing_time=processing_time,
        code=error.code,
        retryable=is_retryable(error),
        severity=severity_of(error).value,
    )
