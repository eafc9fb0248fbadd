"""
layer_publisher.core - Foundation Layer
=========================================

Plain data structures and configuration every other layer depends on:

    - config:          PublisherConfig and its nested sections
    - enums:           Architecture, PublishStage, Backend
    - models:          ArtifactBundle, PublishResult, PublishRunReport, ...
    - exceptions:      Structured exception hierarchy
    - logging_config:  structlog setup

Dependency Rule:
    core/ depends on NOTHING else in the layer_publisher package.
"""

from layer_publisher.core.config import (
    AwsConfig,
    BuildConfig,
    CatalogConfig,
    LayerConfig,
    PublisherConfig,
    load_config,
)
from layer_publisher.core.enums import Architecture, Backend, PublishStage
from layer_publisher.core.exceptions import (
    BuildError,
    CatalogFormatError,
    ConfigurationError,
    DiscoveryError,
    NotFoundError,
    OrchestrationError,
    PersistError,
    PublishError,
    PublisherError,
    ServiceCallError,
)
from layer_publisher.core.models import (
    ArtifactBundle,
    BuildFailure,
    Catalog,
    LayerVersion,
    PublishFailure,
    PublishOutcome,
    PublishResult,
    PublishRunReport,
)

__all__ = [
    # Config
    "PublisherConfig",
    "AwsConfig",
    "LayerConfig",
    "BuildConfig",
    "CatalogConfig",
    "load_config",
    # Enums
    "Architecture",
    "Backend",
    "PublishStage",
    # Models
    "ArtifactBundle",
    "BuildFailure",
    "Catalog",
    "LayerVersion",
    "PublishFailure",
    "PublishOutcome",
    "PublishResult",
    "PublishRunReport",
    # Exceptions
    "PublisherError",
    "ConfigurationError",
    "ServiceCallError",
    "DiscoveryError",
    "BuildError",
    "PublishError",
    "OrchestrationError",
    "PersistError",
    "CatalogFormatError",
    "NotFoundError",
]
