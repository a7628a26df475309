"""Plugin security review contracts."""

from typing import List, Optional

from pydantic import BaseModel

from pilot_engine.models.decision import RiskLevel


class PluginManifest(BaseModel):
    """Declared identity and permissions of a third-party analyzer."""

    name: str
    version: str
    author: str
    permissions: List[str] = []
    dependencies: List[str] = []
    signature: Optional[str] = None
    source: Optional[str] = None
    checksum: Optional[str] = None     # SHA-256 hex


class SecurityFinding(BaseModel):
    severity: RiskLevel
    code: str
    message: str
    blocking: bool = False             # Blocking findings reject the plugin


class SecurityReport(BaseModel):
    """Result of reviewing one plugin. Invalid as soon as any finding blocks."""

    plugin_name: str
    violations: List[SecurityFinding] = []
    warnings: List[SecurityFinding] = []

    @property
    def is_valid(self) -> bool:
        return not any(f.blocking for f in self.violations)

    def add_violation(self, severity: RiskLevel, code: str, message: str, blocking: bool = False) -> None:
        self.violations.append(SecurityFinding(severity=severity, code=code, message=message, blocking=blocking))

    def add_warning(self, severity: RiskLevel, code: str, message: str) -> None:
        self.warnings.append(SecurityFinding(severity=severity, code=code, message=message))

    def blocking_messages(self) -> List[str]:
        return [f.message for f in self.violations if f.blocking]
