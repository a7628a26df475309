"""Tests for the plugin security review."""

from pilot_engine.models.config import SecurityPolicy
from pilot_engine.models.decision import RiskLevel
from pilot_engine.models.security import PluginManifest
from pilot_engine.plugins.proposal import ProposalAnalyzer
from pilot_engine.plugins.security import PluginSecurityValidator
from pilot_engine.plugins.sentiment import SentimentAnalyzer


class _ThirdPartyPlugin:
    name = "market-watch"
    version = "2.1.0"
    supported_types = ["market"]
    metadata = {"author": "Acme", "description": "Price movement heuristics"}

    def analyze(self, request):
        raise NotImplementedError


class _SloppyPlugin:
    name = "Sloppy_Plugin"
    version = "v1"
    supported_types = ["market"]

    def analyze(self, request):
        raise NotImplementedError


class _EvalPlugin:
    name = "expr-eval"
    version = "0.1.0"
    supported_types = ["custom"]
    metadata = {"author": "Acme", "description": "Evaluates expressions"}

    def analyze(self, request):
        return eval(request.input["expression"])


class _NoAnalyze:
    name = "broken"
    version = "1.0.0"
    supported_types = ["custom"]


def _make_manifest(**overrides) -> dict:
    manifest = {
        "name": "market-watch",
        "version": "2.1.0",
        "author": "Acme",
        "permissions": [],
    }
    manifest.update(overrides)
    return manifest


def _codes(findings):
    return [f.code for f in findings]


class TestTrust:
    def setup_method(self):
        self.validator = PluginSecurityValidator()

    def test_core_analyzers_pass_cleanly(self):
        for plugin in (SentimentAnalyzer(), ProposalAnalyzer()):
            report = self.validator.validate(plugin)
            assert report.is_valid
            assert report.violations == []
            assert report.warnings == []

    def test_untrusted_plugin_needs_manifest(self):
        report = self.validator.validate(_ThirdPartyPlugin())
        assert not report.is_valid
        assert "MISSING_MANIFEST" in _codes(report.violations)
        assert "UNTRUSTED_PLUGIN" in _codes(report.warnings)
        assert report.blocking_messages() == ["Untrusted plugins must provide a manifest"]

    def test_untrusted_plugin_with_manifest_passes(self):
        report = self.validator.validate(_ThirdPartyPlugin(), _make_manifest())
        assert report.is_valid
        assert _codes(report.warnings) == ["UNTRUSTED_PLUGIN"]

    def test_manifest_model_accepted(self):
        manifest = PluginManifest(name="market-watch", version="2.1.0", author="Acme")
        assert self.validator.validate(_ThirdPartyPlugin(), manifest).is_valid

    def test_trusting_a_plugin(self):
        self.validator.add_trusted_plugin("market-watch")
        assert self.validator.validate(_ThirdPartyPlugin()).is_valid
        self.validator.remove_trusted_plugin("market-watch")
        assert not self.validator.validate(_ThirdPartyPlugin()).is_valid


class TestFindings:
    def setup_method(self):
        self.validator = PluginSecurityValidator()

    def test_malformed_plugin_is_blocked(self):
        report = self.validator.validate(_NoAnalyze(), _make_manifest())
        assert not report.is_valid
        assert report.violations[0].code == "INVALID_STRUCTURE"
        assert report.violations[0].severity == RiskLevel.CRITICAL

    def test_naming_problems_do_not_block(self):
        report = self.validator.validate(_SloppyPlugin(), _make_manifest())
        assert report.is_valid
        assert _codes(report.violations) == ["INVALID_NAME_FORMAT", "INVALID_VERSION_FORMAT"]
        assert "MISSING_METADATA" in _codes(report.warnings)

    def test_incomplete_manifest_blocks(self):
        manifest = _make_manifest()
        del manifest["author"]
        report = self.validator.validate(_ThirdPartyPlugin(), manifest)
        assert not report.is_valid
        assert "INVALID_MANIFEST" in _codes(report.violations)

    def test_bad_checksum_is_reported(self):
        report = self.validator.validate(_ThirdPartyPlugin(), _make_manifest(checksum="not-a-hash"))
        assert report.is_valid
        assert "INVALID_CHECKSUM" in _codes(report.violations)

    def test_network_permission_forbidden_by_default(self):
        report = self.validator.validate(
            _ThirdPartyPlugin(), _make_manifest(permissions=["NETWORK_UNRESTRICTED"])
        )
        assert not report.is_valid
        assert "FORBIDDEN_PERMISSION" in _codes(report.violations)

    def test_network_permission_allowed_by_policy(self):
        validator = PluginSecurityValidator(SecurityPolicy(allow_network_access=True))
        report = validator.validate(_ThirdPartyPlugin(), _make_manifest(permissions=["NETWORK_UNRESTRICTED"]))
        assert report.is_valid
        assert "DANGEROUS_PERMISSION" in _codes(report.warnings)

    def test_other_dangerous_permissions_warn(self):
        report = self.validator.validate(
            _ThirdPartyPlugin(), _make_manifest(permissions=["FILE_SYSTEM_WRITE", "READ_PRICES"])
        )
        assert report.is_valid
        assert _codes(report.warnings).count("DANGEROUS_PERMISSION") == 1

    def test_dangerous_code_is_reported(self):
        report = self.validator.validate(_EvalPlugin(), _make_manifest(name="expr-eval"))
        assert "DANGEROUS_CODE_PATTERN" in _codes(report.violations)
        assert report.is_valid


class TestSignatures:
    def setup_method(self):
        policy = SecurityPolicy(require_signature=True, trusted_sources=["https://plugins.example.org/"])
        self.validator = PluginSecurityValidator(policy)

    def test_missing_signature_blocks(self):
        report = self.validator.validate(_ThirdPartyPlugin(), _make_manifest())
        assert not report.is_valid
        assert "MISSING_SIGNATURE" in _codes(report.violations)

    def test_malformed_signature_blocks(self):
        report = self.validator.validate(_ThirdPartyPlugin(), _make_manifest(signature="abc"))
        assert "INVALID_SIGNATURE" in _codes(report.violations)
        assert not report.is_valid

    def test_untrusted_source_is_reported(self):
        manifest = _make_manifest(signature="a" * 128, source="https://elsewhere.example.com/pkg")
        report = self.validator.validate(_ThirdPartyPlugin(), manifest)
        assert report.is_valid
        assert "UNTRUSTED_SOURCE" in _codes(report.violations)

    def test_trusted_source_is_clean(self):
        manifest = _make_manifest(signature="a" * 128, source="https://plugins.example.org/market-watch")
        report = self.validator.validate(_ThirdPartyPlugin(), manifest)
        assert report.violations == []
