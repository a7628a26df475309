"""
Analyzer plugin contract.

Any object exposing these attributes can be registered with the engine;
no base class is required. `analyze` must not raise for a well-formed
request: when it cannot analyze, it returns a failed AnalysisResult.
Timeouts are enforced by the engine, not by plugins.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from pilot_engine.models.request import AnalysisRequest, AnalysisResult


@runtime_checkable
class AnalyzerPlugin(Protocol):
    """Pluggable analysis strategy behind the engine."""

    name: str
    version: str
    supported_types: List[str]

    def analyze(self, request: AnalysisRequest) -> AnalysisResult: ...


def check_plugin_structure(plugin: Any) -> List[str]:
    """Return the problems that prevent registration; empty means valid."""
    problems = []

    name = getattr(plugin, "name", None)
    if not isinstance(name, str) or not name.strip():
        problems.append("name must be a non-empty string")

    version = getattr(plugin, "version", None)
    if not isinstance(version, str) or not version.strip():
        problems.append("version must be a non-empty string")

    types = getattr(plugin, "supported_types", None)
    if not isinstance(types, (list, tuple, set, frozenset)) or not types:
        problems.append("supported_types must be a non-empty collection")

    chains = getattr(plugin, "supported_blockchains", None)
    if chains is not None and not isinstance(chains, (list, tuple, set, frozenset)):
        problems.append("supported_blockchains must be a collection when declared")

    if not callable(getattr(plugin, "analyze", None)):
        problems.append("analyze must be callable")

    validate = getattr(plugin, "validate", None)
    if validate is not None and not callable(validate):
        problems.append("validate must be callable when declared")

    return problems


def plugin_accepts(plugin: Any, request: AnalysisRequest) -> bool:
    """
    Whether a plugin is a candidate for a request.

    Matches the analysis type, the blockchain (only when both the plugin
    declares chains and the request names one) and the plugin's own
    validate() hook if it has one.
    """
    if request.type not in plugin.supported_types:
        return False

    chains = getattr(plugin, "supported_blockchains", None)
    blockchain = request.context.blockchain
    if chains and blockchain and blockchain not in chains:
        return False

    validate = getattr(plugin, "validate", None)
    if validate is not None:
        return bool(validate(request))
    return True


def plugin_info(plugin: Any) -> Dict[str, Optional[Any]]:
    """Serializable description of a registered plugin."""
    chains = getattr(plugin, "supported_blockchains", None)
    return {
        "name": plugin.name,
        "version": plugin.version,
        "supported_types": sorted(plugin.supported_types),
        "supported_blockchains": sorted(chains) if chains else None,
        "metadata": getattr(plugin, "metadata", None),
    }
