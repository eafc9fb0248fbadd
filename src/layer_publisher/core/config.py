"""
layer_publisher.core.config - Configuration Management
========================================================

Configuration for layer-publisher. Values are resolved with the following
priority (highest first):

    1. Explicit constructor arguments
    2. Environment variables (prefixed with LAYER_PUBLISHER_)
    3. YAML configuration file (layer-publisher.yaml)
    4. Default values defined in the models below

Architecture Context:
    PublisherConfig is created once by the entry point and handed down:

        PublisherConfig
            ├── AwsConfig      → boto3 clients (region directory, repositories)
            ├── LayerConfig    → RegionPublisher, CatalogResolver fallback
            ├── BuildConfig    → ArtifactBuilder
            ├── CatalogConfig  → CatalogWriter
            └── (run settings) → PublishOrchestrator, logging

Usage:
    # Load from environment variables:
    config = PublisherConfig()

    # Load from YAML file:
    config = load_config("layer-publisher.yaml")

    # Explicit overrides:
    config = PublisherConfig(backend="mock", max_concurrency=4)

Environment Variables:
    LAYER_PUBLISHER_LOG_LEVEL=DEBUG
    LAYER_PUBLISHER_BACKEND=mock
    LAYER_PUBLISHER_MAX_CONCURRENCY=2
    LAYER_PUBLISHER_AWS__PROFILE_NAME=publisher
    LAYER_PUBLISHER_CATALOG__MERGE_PREVIOUS=true
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from layer_publisher.core.enums import Architecture, Backend
from layer_publisher.core.exceptions import ConfigurationError


DEFAULT_CONFIG_FILE = "layer-publisher.yaml"


# =============================================================================
# AWS Configuration
# =============================================================================
class AwsConfig(BaseModel):
    """Settings for the boto3 clients.

    Attributes:
        profile_name: Named credentials profile. None uses the default chain.
        discovery_region: Region the EC2 DescribeRegions call is sent to.
        connect_timeout: Socket connect timeout in seconds.
        read_timeout: Socket read timeout in seconds. Uploads of large
            bundles need a generous value.
        max_attempts: botocore transport-level attempts (standard mode).
    """

    profile_name: Optional[str] = Field(
        default=None,
        description="AWS credentials profile (None = default credential chain)",
    )
    discovery_region: str = Field(
        default="us-east-1",
        description="Region used for the DescribeRegions call",
    )
    connect_timeout: float = Field(default=10.0, gt=0)
    read_timeout: float = Field(default=120.0, gt=0)
    max_attempts: int = Field(default=3, ge=1, le=10)


# =============================================================================
# Layer Configuration
# =============================================================================
# Naming and permission settings shared by the publisher and by the
# resolver's ARN-synthesis fallback. The layer name for an architecture is
# "<name_prefix>-<architecture suffix>".
# =============================================================================
class LayerConfig(BaseModel):
    """Layer naming and public-access settings."""

    name_prefix: str = Field(
        default="optimeist-extension",
        min_length=1,
        description="Layer name prefix; the architecture suffix is appended",
    )
    description: str = Field(
        default="Optimeist Extension",
        description="Description attached to every published layer version",
    )
    account_id: str = Field(
        default="354918379484",
        pattern=r"^\d{12}$",
        description="Account that owns the published layers",
    )
    partition: str = Field(default="aws", description="ARN partition")
    statement_id: str = Field(
        default="public",
        description="Fixed statement id; re-granting overwrites, never duplicates",
    )
    permission_action: str = Field(default="lambda:GetLayerVersion")
    permission_principal: str = Field(default="*")

    def layer_name(self, architecture: Architecture) -> str:
        """Full layer name for an architecture."""
        return f"{self.name_prefix}-{architecture.layer_suffix}"


# =============================================================================
# Build Configuration
# =============================================================================
# The command is a template: "{package}" and "{target}" are substituted per
# architecture. The toolchain always writes <output_dir>/<package>.zip; the
# builder then renames it to <output_dir>/<package>-<suffix>.zip.
# =============================================================================
class BuildConfig(BaseModel):
    """Toolchain invocation settings."""

    command: list[str] = Field(
        default=[
            "cargo", "lambda", "build",
            "--release", "--extension",
            "--package", "{package}",
            "-o", "zip",
            "--target", "{target}",
        ],
        description="Build command template ({package} and {target} are substituted)",
    )
    package: str = Field(
        default="optimeist-extension",
        min_length=1,
        description="Cargo package to build",
    )
    workspace: Path = Field(
        default=Path("."),
        description="Working directory the toolchain runs in",
    )
    output_dir: Path = Field(
        default=Path("target/lambda/extensions"),
        description="Directory (relative to workspace) the toolchain writes the zip to",
    )
    timeout_seconds: Optional[float] = Field(
        default=1800.0,
        gt=0,
        description="Maximum toolchain run time (None = unbounded)",
    )

    @field_validator("command")
    @classmethod
    def _command_has_target(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("build command must not be empty")
        if not any("{target}" in token for token in value):
            raise ValueError("build command must contain a '{target}' placeholder")
        return value

    def output_path(self) -> Path:
        """Fixed path the toolchain writes the bundle to."""
        return self.workspace / self.output_dir / f"{self.package}.zip"

    def bundle_path(self, architecture: Architecture) -> Path:
        """Architecture-qualified path a finished bundle is moved to."""
        return self.workspace / self.output_dir / f"{self.package}-{architecture.layer_suffix}.zip"


# =============================================================================
# Catalog Configuration
# =============================================================================
class CatalogConfig(BaseModel):
    """Where the report and the catalog are written, and how.

    Attributes:
        report_path: Markdown table, one row per published layer version.
        catalog_path: JSON region → architecture → ARN map.
        merge_previous: Layer the new results over the existing catalog
            instead of replacing it. Regions that failed this run then keep
            their previously published reference.
    """

    report_path: Path = Field(default=Path("arns.txt"))
    catalog_path: Path = Field(default=Path("src/layers.json"))
    merge_previous: bool = Field(default=False)


# =============================================================================
# Main Configuration
# =============================================================================
# Environment Variable Mapping:
#   LAYER_PUBLISHER_LOG_LEVEL         → config.log_level
#   LAYER_PUBLISHER_MAX_CONCURRENCY   → config.max_concurrency
#   LAYER_PUBLISHER_BUILD__PACKAGE    → config.build.package
#   LAYER_PUBLISHER_LAYER__NAME_PREFIX→ config.layer.name_prefix
# =============================================================================
class PublisherConfig(BaseSettings):
    """Top-level configuration for a publish run.

    Attributes:
        environment: Deployment environment label, attached to log lines.
        log_level: Logging level name.
        log_format: "console" for humans, "json" for log aggregation.
        backend: "aws" talks to AWS; "mock" uses in-memory fakes (dry run).
        architectures: Architectures to build and publish, in run order.
        max_concurrency: Regions published at once per architecture.
            1 keeps publishing strictly sequential to stay under the
            Lambda API rate limits.
        max_publish_retries: Orchestrator-level retries for retryable
            create-version failures. 0 disables retries.
        retry_initial_delay: Base backoff delay in seconds.
        call_timeout_seconds: Timeout around each remote call (None = none).

    Example:
        >>> config = PublisherConfig(backend="mock", log_level="DEBUG")
    """

    # -------------------------------------------------------------------------
    # General Settings
    # -------------------------------------------------------------------------
    environment: Literal["dev", "staging", "prod"] = Field(default="dev")
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_format: Literal["console", "json"] = Field(default="console")
    backend: Backend = Field(default=Backend.AWS)

    # -------------------------------------------------------------------------
    # Run Settings
    # -------------------------------------------------------------------------
    architectures: list[Architecture] = Field(
        default_factory=lambda: [Architecture.ARM64, Architecture.X86_64],
        min_length=1,
    )
    max_concurrency: int = Field(default=1, ge=1, le=32)
    max_publish_retries: int = Field(default=0, ge=0, le=10)
    retry_initial_delay: float = Field(default=1.0, gt=0, le=30.0)
    call_timeout_seconds: Optional[float] = Field(default=None, gt=0)

    # -------------------------------------------------------------------------
    # Nested Configurations
    # -------------------------------------------------------------------------
    aws: AwsConfig = Field(default_factory=AwsConfig)
    layer: LayerConfig = Field(default_factory=LayerConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)

    model_config = {
        "env_prefix": "LAYER_PUBLISHER_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }

    @field_validator("architectures")
    @classmethod
    def _unique_architectures(cls, value: list[Architecture]) -> list[Architecture]:
        # Run order follows the enum declaration order (arm64 first).
        ordered = [arch for arch in Architecture if arch in value]
        return ordered


# =============================================================================
# Configuration Loader
# =============================================================================
def load_config(path: Optional[str] = None, **overrides: Any) -> PublisherConfig:
    """Load configuration from a YAML file and/or environment variables.

    Args:
        path: Path to a YAML file. If None, ``layer-publisher.yaml`` in the
            current directory is used when present; otherwise only defaults
            and environment variables apply.
        **overrides: Values that win over the YAML file.

    Returns:
        A validated PublisherConfig.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigurationError: If the YAML is malformed or values are invalid.
    """
    if path is None:
        default_path = Path(DEFAULT_CONFIG_FILE)
        if default_path.exists():
            path = str(default_path)

    yaml_data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            with open(config_path) as f:
                raw_data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                message=f"Configuration file is not valid YAML: {path}",
                error_code="CONFIG_PARSE_ERROR",
                details={"path": str(path), "error": str(exc)},
            ) from exc

        if raw_data is not None and not isinstance(raw_data, dict):
            raise ConfigurationError(
                message=f"Configuration file must contain a mapping: {path}",
                error_code="CONFIG_PARSE_ERROR",
                details={"path": str(path)},
            )
        yaml_data = raw_data or {}

    yaml_data.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return PublisherConfig(**yaml_data)
    except ValidationError as exc:
        raise ConfigurationError(
            message="Invalid layer-publisher configuration",
            error_code="CONFIG_INVALID",
            details={"errors": exc.errors(include_url=False)},
        ) from exc
