"""Unit tests for settings loading and validation.

Tests defaults, TOML loading, environment overrides and rejection of
unknown or invalid values.
"""

from pathlib import Path

from pydantic import ValidationError
import pytest

from orgdiff.config import GatewayConfig, LoggingConfig, PrefetchConfig, Settings, load_settings
from orgdiff.exceptions import ConfigError, ErrorKind

pytestmark = pytest.mark.unit


@pytest.fixture
def write_toml(tmp_path: Path):
    """Write a TOML file and return its path."""

    def _write(text: str) -> Path:
        path = tmp_path / "orgdiff.toml"
        path.write_text(text)
        return path

    return _write


class TestDefaults:
    """Test default settings."""

    def test_Should_UseDocumentedDefaults_When_NothingConfigured(self):
        """Should match the documented limits without any file."""
        settings = load_settings()

        assert settings.gateway.executable == "sf"
        assert settings.gateway.timeout_s == 300.0
        assert settings.gateway.max_output_bytes == 100 * 1024 * 1024
        assert settings.gateway.exclude_namespaced is True
        assert settings.prefetch.batch_size == 2
        assert settings.prefetch.batch_delay_s == 0.5
        assert settings.prefetch.max_categories == 50
        assert settings.reconcile.count_warning_threshold == 0.10
        assert settings.logging.level == "INFO"

    def test_Should_NotShareFingerprintKeys_When_BuildingTwoConfigs(self):
        first = GatewayConfig()
        first.fingerprint_keys.append("custom")

        assert "custom" not in GatewayConfig().fingerprint_keys


class TestTomlLoading:
    """Test load_settings with a TOML file."""

    def test_Should_LoadSections_When_ValidTOMLProvided(self, write_toml):
        path = write_toml(
            """
[gateway]
executable = "/opt/sf/bin/sf"
timeout_s = 60
tmp_root = "~/orgdiff-tmp"

[prefetch]
batch_size = 4
batch_delay_s = 0
"""
        )

        settings = load_settings(path)

        assert settings.gateway.executable == "/opt/sf/bin/sf"
        assert settings.gateway.timeout_s == 60.0
        assert settings.gateway.tmp_root == Path("~/orgdiff-tmp").expanduser()
        assert settings.prefetch.batch_size == 4
        assert settings.prefetch.batch_delay_s == 0.0

    def test_Should_RaiseFileNotFound_When_PathMissing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.toml")

    def test_Should_RaiseConfigError_When_TOMLMalformed(self, write_toml):
        path = write_toml("[gateway\nexecutable = ")

        with pytest.raises(ConfigError) as exc_info:
            load_settings(path)

        assert exc_info.value.kind is ErrorKind.CONFIG

    def test_Should_RaiseConfigError_When_UnknownKeyPresent(self, write_toml):
        """Should reject keys outside the schema."""
        path = write_toml("[gateway]\nexecutabel = \"sf\"\n")

        with pytest.raises(ConfigError):
            load_settings(path)

    def test_Should_RaiseConfigError_When_UnknownSectionPresent(self, write_toml):
        path = write_toml("[server]\nport = 8080\n")

        with pytest.raises(ConfigError):
            load_settings(path)

    @pytest.mark.parametrize(
        "text",
        [
            "[gateway]\ntimeout_s = 0\n",
            "[prefetch]\nbatch_size = 0\n",
            "[reconcile]\ncount_warning_threshold = 1.5\n",
            "[logging]\nlevel = \"LOUD\"\n",
        ],
    )
    def test_Should_RaiseConfigError_When_ValueOutOfRange(self, write_toml, text):
        with pytest.raises(ConfigError):
            load_settings(write_toml(text))


class TestEnvironmentOverrides:
    """Test ORGDIFF_ environment variables."""

    def test_Should_OverrideTOML_When_EnvSet(self, write_toml, monkeypatch):
        """Environment wins over the file, untouched keys keep file values."""
        path = write_toml("[gateway]\nexecutable = \"/opt/sf/bin/sf\"\ntimeout_s = 60\n")
        monkeypatch.setenv("ORGDIFF_GATEWAY__TIMEOUT_S", "120")

        settings = load_settings(path)

        assert settings.gateway.timeout_s == 120.0
        assert settings.gateway.executable == "/opt/sf/bin/sf"

    def test_Should_ApplyEnv_When_NoFileGiven(self, monkeypatch):
        monkeypatch.setenv("ORGDIFF_LOGGING__LEVEL", "debug")

        settings = load_settings()

        assert settings.logging.level == "DEBUG"


class TestModels:
    """Test individual configuration models."""

    def test_Should_UppercaseLevel_When_Valid(self):
        assert LoggingConfig(level="warning").level == "WARNING"

    def test_Should_RejectLevel_When_Unknown(self):
        with pytest.raises(ValidationError):
            LoggingConfig(level="verbose")

    def test_Should_AllowUnboundedPrefetch_When_MaxIsNone(self):
        assert PrefetchConfig(max_categories=None).max_categories is None

    def test_Should_RejectExtraFields_When_BuildingDirectly(self):
        with pytest.raises(ValidationError):
            Settings(gateway={"executable": "sf", "bogus": 1})
