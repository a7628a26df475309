"""
Pilot Engine API: FastAPI endpoints over a DecisionEngine.

Exposes the engine's programmatic surface via REST for:
- Plugin-routed and rule-based analysis
- Plugin registry inspection
- Learning records and insights
- Status and performance metrics

Analysis endpoints always answer 200 with an AnalysisResult body; the
failure channel is its `success`/`error` pair.
"""

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from pilot_engine.engine.factory import create_engine
from pilot_engine.engine.orchestrator import DecisionEngine
from pilot_engine.models.learning import LearningRecord


# --- Request/Response Models ---

class AnalyzeRequest(BaseModel):
    # Loosely typed on purpose: the engine validates and answers with a failed result.
    type: Optional[Any] = None
    input: Optional[Any] = None
    context: Optional[Dict[str, Any]] = None
    options: Optional[Dict[str, Any]] = None


class RulesAnalyzeRequest(BaseModel):
    input: Optional[Any] = None
    rules: List[Dict[str, Any]] = []
    context: Optional[Dict[str, Any]] = None


class LearningRecordResponse(BaseModel):
    recorded: bool
    learning_data_points: int


# --- Application Factory ---

def create_app(engine: Optional[DecisionEngine] = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Pilot Engine API",
        description="Decision orchestration over pluggable analyzers",
        version="0.1.0",
    )

    engine = engine or create_engine()
    app.state.engine = engine

    # === ANALYSIS ===

    @app.post("/analyze")
    def analyze(req: AnalyzeRequest):
        """Route a typed request to the registered analyzers."""
        result = engine.analyze(req.type, req.input, req.context, req.options)
        return result.model_dump(mode="json")

    @app.post("/analyze/rules")
    def analyze_with_rules(req: RulesAnalyzeRequest):
        """Evaluate user-authored rules against the request text."""
        result = engine.analyze_with_rules(req.input, req.rules, req.context)
        return result.model_dump(mode="json")

    # === PLUGINS ===

    @app.get("/plugins")
    def list_plugins():
        return engine.get_plugin_info()

    @app.delete("/plugins/{name}")
    def unload_plugin(name: str):
        if not engine.unload_plugin(name):
            raise HTTPException(404, "Plugin not found")
        return {"name": name, "removed": True}

    # === LEARNING ===

    @app.post("/learning", response_model=LearningRecordResponse)
    def record_learning(record: Dict[str, Any]):
        """Append a decision outcome (and optional feedback)."""
        try:
            parsed = LearningRecord.model_validate(record)
        except SchemaError as exc:
            raise HTTPException(422, f"Invalid learning record: {exc.error_count()} error(s)")
        recorded = engine.record_learning(parsed)
        return LearningRecordResponse(
            recorded=recorded,
            learning_data_points=len(engine.learning),
        )

    @app.get("/learning/users/{user_id}")
    def get_user_learning_data(user_id: str):
        return [r.model_dump(mode="json") for r in engine.get_user_learning_data(user_id)]

    @app.get("/learning/insights")
    def get_learning_insights():
        return engine.get_system_learning_insights()

    # === STATUS ===

    @app.get("/status")
    def get_status():
        return engine.get_status()

    @app.get("/metrics")
    def get_metrics():
        return {
            "metrics": engine.get_performance_metrics(),
            "report": engine.performance.get_performance_report(),
        }

    @app.delete("/cache")
    def clear_cache():
        engine.clear_cache()
        return {"cleared": True}

    return app
