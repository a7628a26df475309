"""
Plugin security review applied before third-party analyzers are registered.

The engine only consults the validator in production. Findings are split
into blocking violations (the plugin is rejected), non-blocking violations
and warnings (both logged, registration proceeds).
"""

import inspect
import re
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError as SchemaError

from pilot_engine.models.config import SecurityPolicy
from pilot_engine.models.decision import RiskLevel
from pilot_engine.models.security import PluginManifest, SecurityReport
from pilot_engine.plugins.contract import check_plugin_structure

NAME_RE = re.compile(r"^[a-z0-9-]+$")
SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+(-[a-zA-Z0-9-]+)?$")
CHECKSUM_RE = re.compile(r"^[a-f0-9]{64}$")
SIGNATURE_RE = re.compile(r"^[a-f0-9]{128}$")

DANGEROUS_PERMISSIONS = {
    "FILE_SYSTEM_WRITE",
    "NETWORK_UNRESTRICTED",
    "EXECUTE_COMMANDS",
    "DYNAMIC_IMPORTS",
    "EVAL_CODE",
}

DANGEROUS_CODE_PATTERNS = [
    re.compile(r"\beval\s*\("),
    re.compile(r"\bexec\s*\("),
    re.compile(r"__import__\s*\("),
    re.compile(r"\bimportlib\b"),
    re.compile(r"\bsubprocess\b"),
    re.compile(r"\bos\.system\s*\("),
    re.compile(r"\bos\.(remove|unlink|rmdir|kill)\s*\("),
    re.compile(r"\bshutil\.rmtree\b"),
    re.compile(r"\bpickle\.loads?\s*\("),
    re.compile(r"\bsys\.exit\s*\("),
]

ManifestLike = Union[PluginManifest, Dict[str, Any], None]


class PluginSecurityValidator:
    """Reviews a plugin (and its optional manifest) against a SecurityPolicy."""

    def __init__(self, policy: Optional[SecurityPolicy] = None):
        self.policy = policy or SecurityPolicy()
        self._trusted = set(self.policy.trusted_plugins)

    def add_trusted_plugin(self, name: str) -> None:
        self._trusted.add(name)

    def remove_trusted_plugin(self, name: str) -> None:
        self._trusted.discard(name)

    def is_trusted(self, name: str) -> bool:
        return name in self._trusted

    def validate(self, plugin: Any, manifest: ManifestLike = None) -> SecurityReport:
        report = SecurityReport(plugin_name=str(getattr(plugin, "name", "")))

        for problem in check_plugin_structure(plugin):
            report.add_violation(RiskLevel.CRITICAL, "INVALID_STRUCTURE", problem, blocking=True)
        if not report.is_valid:
            return report

        self._check_metadata(plugin, report)

        parsed = self._parse_manifest(manifest, report)
        if parsed is not None:
            self._check_manifest(parsed, report)
            self._check_permissions(parsed, report)
            self._check_signature(parsed, report)

        self._check_source(plugin, report)
        self._check_trust(plugin, manifest is not None, report)
        return report

    # --- Individual checks ---

    def _check_metadata(self, plugin: Any, report: SecurityReport) -> None:
        if not NAME_RE.match(plugin.name):
            report.add_violation(
                RiskLevel.MEDIUM,
                "INVALID_NAME_FORMAT",
                "Plugin name should only contain lowercase letters, numbers, and hyphens",
            )
        if not SEMVER_RE.match(plugin.version):
            report.add_violation(
                RiskLevel.MEDIUM,
                "INVALID_VERSION_FORMAT",
                "Plugin version should follow semantic versioning (x.y.z)",
            )

        metadata = getattr(plugin, "metadata", None)
        if not isinstance(metadata, dict) or not metadata:
            report.add_warning(RiskLevel.LOW, "MISSING_METADATA", "Plugin metadata is missing")
            return
        if not metadata.get("author"):
            report.add_warning(RiskLevel.LOW, "MISSING_AUTHOR", "Plugin author information is missing")
        if not metadata.get("description"):
            report.add_warning(RiskLevel.LOW, "MISSING_DESCRIPTION", "Plugin description is missing")

    @staticmethod
    def _parse_manifest(manifest: ManifestLike, report: SecurityReport) -> Optional[PluginManifest]:
        if manifest is None or isinstance(manifest, PluginManifest):
            return manifest
        try:
            return PluginManifest.model_validate(manifest)
        except SchemaError as exc:
            for error in exc.errors():
                field = ".".join(str(part) for part in error["loc"])
                report.add_violation(
                    RiskLevel.HIGH,
                    "INVALID_MANIFEST",
                    f"Invalid manifest field '{field}': {error['msg']}",
                    blocking=True,
                )
            return None

    @staticmethod
    def _check_manifest(manifest: PluginManifest, report: SecurityReport) -> None:
        if manifest.checksum and not CHECKSUM_RE.match(manifest.checksum):
            report.add_violation(
                RiskLevel.HIGH,
                "INVALID_CHECKSUM",
                "Invalid checksum format (should be SHA-256 hex)",
            )

    def _check_permissions(self, manifest: PluginManifest, report: SecurityReport) -> None:
        for permission in manifest.permissions:
            if permission not in DANGEROUS_PERMISSIONS:
                continue
            if "NETWORK" in permission and not self.policy.allow_network_access:
                report.add_violation(
                    RiskLevel.CRITICAL,
                    "FORBIDDEN_PERMISSION",
                    f"Dangerous permission not allowed by policy: {permission}",
                    blocking=True,
                )
            else:
                report.add_warning(
                    RiskLevel.HIGH,
                    "DANGEROUS_PERMISSION",
                    f"Plugin requests dangerous permission: {permission}",
                )

    def _check_signature(self, manifest: PluginManifest, report: SecurityReport) -> None:
        if not self.policy.require_signature:
            return
        if not manifest.signature:
            report.add_violation(
                RiskLevel.CRITICAL,
                "MISSING_SIGNATURE",
                "Plugin signature is required by security policy",
                blocking=True,
            )
            return
        if not SIGNATURE_RE.match(manifest.signature):
            report.add_violation(RiskLevel.CRITICAL, "INVALID_SIGNATURE", "Invalid signature format", blocking=True)

        trusted_sources = self.policy.trusted_sources
        if manifest.source and trusted_sources and not any(manifest.source.startswith(s) for s in trusted_sources):
            report.add_violation(
                RiskLevel.HIGH,
                "UNTRUSTED_SOURCE",
                "Plugin source is not from a trusted source",
            )

    @staticmethod
    def _check_source(plugin: Any, report: SecurityReport) -> None:
        try:
            source = inspect.getsource(type(plugin))
        except (OSError, TypeError):
            report.add_warning(RiskLevel.LOW, "SOURCE_UNAVAILABLE", "Plugin source could not be inspected")
            return
        for pattern in DANGEROUS_CODE_PATTERNS:
            if pattern.search(source):
                report.add_violation(
                    RiskLevel.HIGH,
                    "DANGEROUS_CODE_PATTERN",
                    f"Potentially dangerous code pattern detected: {pattern.pattern}",
                )

    def _check_trust(self, plugin: Any, has_manifest: bool, report: SecurityReport) -> None:
        if self.is_trusted(plugin.name):
            return
        report.add_warning(RiskLevel.MEDIUM, "UNTRUSTED_PLUGIN", "Plugin is not in the trusted plugins list")
        if not has_manifest:
            report.add_violation(
                RiskLevel.HIGH,
                "MISSING_MANIFEST",
                "Untrusted plugins must provide a manifest",
                blocking=True,
            )
