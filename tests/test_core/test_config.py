"""
Tests for layer_publisher.core.config
=======================================

These tests verify that the configuration system works correctly:
    - Default values reproduce the production publish setup
    - Environment variables override defaults (flat and nested)
    - YAML files are parsed, and malformed ones are rejected
    - Validation catches invalid values
    - Derived paths and names (layer name, bundle path) are right

All tests are unit tests; nothing touches AWS or the toolchain.
"""

from pathlib import Path

import pytest
import yaml

from layer_publisher.core.config import (
    BuildConfig,
    LayerConfig,
    PublisherConfig,
    load_config,
)
from layer_publisher.core.enums import Architecture, Backend
from layer_publisher.core.exceptions import ConfigurationError


# =============================================================================
# Test: Default Configuration
# =============================================================================
class TestDefaultConfig:
    """Tests for default configuration values."""

    def test_default_config_creates_successfully(self) -> None:
        """PublisherConfig() should work with no arguments."""
        config = PublisherConfig()
        assert config.environment == "dev"
        assert config.log_level == "INFO"
        assert config.backend == Backend.AWS

    def test_default_architectures_in_run_order(self) -> None:
        """Both architectures are published, arm64 first."""
        config = PublisherConfig()
        assert config.architectures == [Architecture.ARM64, Architecture.X86_64]

    def test_default_is_sequential_without_retries(self) -> None:
        """One region at a time and no orchestrator retries by default."""
        config = PublisherConfig()
        assert config.max_concurrency == 1
        assert config.max_publish_retries == 0
        assert config.call_timeout_seconds is None

    def test_default_layer_settings(self) -> None:
        """Layer naming and public permission defaults."""
        layer = PublisherConfig().layer
        assert layer.name_prefix == "optimeist-extension"
        assert layer.description == "Optimeist Extension"
        assert layer.account_id == "354918379484"
        assert layer.statement_id == "public"
        assert layer.permission_action == "lambda:GetLayerVersion"
        assert layer.permission_principal == "*"

    def test_default_output_paths(self) -> None:
        """Report and catalog land where deployment code expects them."""
        catalog = PublisherConfig().catalog
        assert catalog.report_path == Path("arns.txt")
        assert catalog.catalog_path == Path("src/layers.json")
        assert catalog.merge_previous is False


# =============================================================================
# Test: Derived Values
# =============================================================================
class TestDerivedValues:
    """Tests for names and paths computed from configuration."""

    def test_layer_name_per_architecture(self) -> None:
        """Layer names carry the architecture suffix."""
        layer = LayerConfig()
        assert layer.layer_name(Architecture.ARM64) == "optimeist-extension-arm64"
        assert layer.layer_name(Architecture.X86_64) == "optimeist-extension-x86_64"

    def test_build_output_and_bundle_paths(self, tmp_path) -> None:
        """The fixed toolchain output is renamed to an arch-qualified path."""
        build = BuildConfig(workspace=tmp_path)
        base = tmp_path / "target" / "lambda" / "extensions"
        assert build.output_path() == base / "optimeist-extension.zip"
        assert build.bundle_path(Architecture.ARM64) == base / "optimeist-extension-arm64.zip"
        assert build.bundle_path(Architecture.X86_64) == base / "optimeist-extension-x86_64.zip"


# =============================================================================
# Test: Validation
# =============================================================================
class TestConfigValidation:
    """Tests for rejected configuration values."""

    def test_architectures_are_reordered_and_deduplicated(self) -> None:
        """Architectures follow declaration order with repeats removed."""
        config = PublisherConfig(architectures=["x86_64", "arm64", "x86_64"])
        assert config.architectures == [Architecture.ARM64, Architecture.X86_64]

    def test_unknown_architecture_rejected(self) -> None:
        """An unsupported architecture fails validation."""
        with pytest.raises(ValueError):
            PublisherConfig(architectures=["riscv64"])

    def test_zero_concurrency_rejected(self) -> None:
        """max_concurrency must be at least 1."""
        with pytest.raises(ValueError):
            PublisherConfig(max_concurrency=0)

    def test_account_id_must_be_twelve_digits(self) -> None:
        """Account ids are twelve digits."""
        with pytest.raises(ValueError):
            LayerConfig(account_id="1234")

    def test_build_command_requires_target_placeholder(self) -> None:
        """The build command must contain a {target} placeholder."""
        with pytest.raises(ValueError, match="target"):
            BuildConfig(command=["cargo", "lambda", "build"])

    def test_build_command_must_not_be_empty(self) -> None:
        """An empty build command is rejected."""
        with pytest.raises(ValueError):
            BuildConfig(command=[])


# =============================================================================
# Test: Environment Variables
# =============================================================================
class TestEnvironmentOverrides:
    """Tests for LAYER_PUBLISHER_* environment variables."""

    def test_flat_env_var(self, monkeypatch) -> None:
        """Top-level settings read LAYER_PUBLISHER_* variables."""
        monkeypatch.setenv("LAYER_PUBLISHER_MAX_CONCURRENCY", "4")
        assert PublisherConfig().max_concurrency == 4

    def test_backend_env_var(self, monkeypatch) -> None:
        """The backend can be switched from the environment."""
        monkeypatch.setenv("LAYER_PUBLISHER_BACKEND", "mock")
        assert PublisherConfig().backend == Backend.MOCK

    def test_nested_env_var(self, monkeypatch) -> None:
        """Double underscore reaches into nested sections."""
        monkeypatch.setenv("LAYER_PUBLISHER_CATALOG__MERGE_PREVIOUS", "true")
        monkeypatch.setenv("LAYER_PUBLISHER_LAYER__NAME_PREFIX", "acme-ext")
        config = PublisherConfig()
        assert config.catalog.merge_previous is True
        assert config.layer.name_prefix == "acme-ext"


# =============================================================================
# Test: YAML Loading
# =============================================================================
class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_from_yaml(self, tmp_path) -> None:
        """YAML values populate nested sections."""
        path = tmp_path / "layer-publisher.yaml"
        path.write_text(yaml.safe_dump({
            "backend": "mock",
            "max_concurrency": 3,
            "layer": {"name_prefix": "acme-ext", "account_id": "111122223333"},
            "catalog": {"catalog_path": "out/layers.json"},
        }))

        config = load_config(str(path))

        assert config.backend == Backend.MOCK
        assert config.max_concurrency == 3
        assert config.layer.name_prefix == "acme-ext"
        assert config.layer.account_id == "111122223333"
        assert config.catalog.catalog_path == Path("out/layers.json")

    def test_overrides_win_over_yaml(self, tmp_path) -> None:
        """Keyword overrides take precedence over the file."""
        path = tmp_path / "layer-publisher.yaml"
        path.write_text(yaml.safe_dump({"max_concurrency": 3}))

        config = load_config(str(path), max_concurrency=5, log_level=None)

        assert config.max_concurrency == 5
        assert config.log_level == "INFO"

    def test_missing_explicit_file_raises(self, tmp_path) -> None:
        """An explicit path that does not exist raises."""
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_no_file_uses_defaults(self, tmp_path, monkeypatch) -> None:
        """Without an explicit path and no file in the cwd, defaults apply."""
        monkeypatch.chdir(tmp_path)
        config = load_config()
        assert config.backend == Backend.AWS

    def test_default_file_is_auto_detected(self, tmp_path, monkeypatch) -> None:
        """layer-publisher.yaml in the working directory is picked up."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / "layer-publisher.yaml").write_text("backend: mock\n")
        assert load_config().backend == Backend.MOCK

    def test_malformed_yaml_raises_configuration_error(self, tmp_path) -> None:
        """Unparseable YAML raises CONFIG_PARSE_ERROR."""
        path = tmp_path / "bad.yaml"
        path.write_text("backend: [mock\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(str(path))
        assert exc_info.value.error_code == "CONFIG_PARSE_ERROR"

    def test_non_mapping_yaml_raises_configuration_error(self, tmp_path) -> None:
        """A YAML document that is not a mapping raises CONFIG_PARSE_ERROR."""
        path = tmp_path / "list.yaml"
        path.write_text("- arm64\n- x86_64\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(str(path))
        assert exc_info.value.error_code == "CONFIG_PARSE_ERROR"

    def test_invalid_values_raise_configuration_error(self, tmp_path) -> None:
        """Validation errors are reported as CONFIG_INVALID."""
        path = tmp_path / "invalid.yaml"
        path.write_text("max_concurrency: 0\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(str(path))
        assert exc_info.value.error_code == "CONFIG_INVALID"
        assert exc_info.value.details["errors"]
