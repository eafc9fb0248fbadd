"""
layer-publisher - Multi-Region Lambda Layer Publisher
=======================================================

Builds the runtime extension once per processor architecture, publishes it
as a public Lambda layer version in every AWS region, and records the
resulting ARNs in a catalog that deployment code resolves at synth time:

    Region discovery  →  Build (arm64, x86_64)  →  Publish per region
                                                 →  arns.txt + layers.json

Package Layout:
    1. core          - Config, enums, models, exceptions, logging setup
    2. integrations  - AWS clients (boto3) and in-memory fakes
    3. pipeline      - RegionDirectory, ArtifactBuilder, RegionPublisher,
                       PublishOrchestrator
    4. infrastructure- Catalog writer and resolver
    5. facade / cli  - Run driver and command line entry point

Quick Start:
    >>> from layer_publisher import LayerPublisher, load_config
    >>> report = await LayerPublisher(load_config()).run()
"""

# =============================================================================
# Package Version
# =============================================================================
__version__ = "0.1.0"

# =============================================================================
# Package-Level Exports
# =============================================================================
from layer_publisher.core.config import PublisherConfig, load_config
from layer_publisher.facade import LayerPublisher
from layer_publisher.infrastructure.catalog_resolver import CatalogResolver

__all__ = ["CatalogResolver", "LayerPublisher", "PublisherConfig", "load_config", "__version__"]
