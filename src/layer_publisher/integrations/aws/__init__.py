"""
layer_publisher.integrations.aws - AWS Service Integrations
=============================================================

Available Components:
    - RegionDirectoryClient / LayerRepository:  abstract contracts
    - Ec2RegionDirectoryClient / LambdaLayerRepository:  boto3-backed
    - InMemoryRegionDirectoryClient / InMemoryLayerBackend:  dry runs, tests
    - create_region_directory_client / create_repository_factory:  backend
      selection from PublisherConfig

The boto3 implementations are imported lazily by the factory so that the
in-memory backend works without touching botocore.
"""

from layer_publisher.integrations.aws.base import (
    LayerRepository,
    RegionDirectoryClient,
    RepositoryFactory,
)
from layer_publisher.integrations.aws.factory import (
    create_region_directory_client,
    create_repository_factory,
)
from layer_publisher.integrations.aws.mock import (
    DEFAULT_MOCK_REGIONS,
    InMemoryLayerBackend,
    InMemoryLayerRepository,
    InMemoryRegionDirectoryClient,
)

__all__ = [
    "LayerRepository",
    "RegionDirectoryClient",
    "RepositoryFactory",
    "create_region_directory_client",
    "create_repository_factory",
    "DEFAULT_MOCK_REGIONS",
    "InMemoryLayerBackend",
    "InMemoryLayerRepository",
    "InMemoryRegionDirectoryClient",
]
