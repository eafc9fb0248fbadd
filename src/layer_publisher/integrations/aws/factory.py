"""
layer_publisher.integrations.aws.factory - Backend Factory
============================================================

Maps the configured backend to concrete integration objects:

    - "aws"  → Ec2RegionDirectoryClient + LambdaLayerRepository per region
    - "mock" → InMemoryRegionDirectoryClient + one shared InMemoryLayerBackend

Usage:
    >>> config = PublisherConfig(backend="mock")
    >>> directory_client = create_region_directory_client(config)
    >>> factory = create_repository_factory(config)
    >>> repo = factory("eu-west-1")
"""

from __future__ import annotations

from layer_publisher.core.config import PublisherConfig
from layer_publisher.core.enums import Backend
from layer_publisher.core.exceptions import ConfigurationError
from layer_publisher.integrations.aws.base import (
    LayerRepository,
    RegionDirectoryClient,
    RepositoryFactory,
)


def create_region_directory_client(config: PublisherConfig) -> RegionDirectoryClient:
    """Create the region directory client for the configured backend.

    Raises:
        ConfigurationError: If the backend is not recognized.
    """
    if config.backend == Backend.AWS:
        from layer_publisher.integrations.aws.boto_clients import Ec2RegionDirectoryClient
        return Ec2RegionDirectoryClient(config.aws)

    if config.backend == Backend.MOCK:
        from layer_publisher.integrations.aws.mock import InMemoryRegionDirectoryClient
        return InMemoryRegionDirectoryClient()

    raise ConfigurationError(
        message=f"Unknown backend: '{config.backend}'",
        error_code="UNKNOWN_BACKEND",
        details={"backend": str(config.backend)},
    )


def create_repository_factory(config: PublisherConfig) -> RepositoryFactory:
    """Create the region-scoped repository handle factory.

    For "aws", each call builds a new boto3 Lambda client for the region.
    For "mock", all handles share one in-memory backend so versions
    accumulate the way they would in a real account.

    Raises:
        ConfigurationError: If the backend is not recognized.
    """
    if config.backend == Backend.AWS:
        from layer_publisher.integrations.aws.boto_clients import LambdaLayerRepository

        aws_config = config.aws

        def _lambda_repository(region: str) -> LayerRepository:
            return LambdaLayerRepository(region, aws_config)

        return _lambda_repository

    if config.backend == Backend.MOCK:
        from layer_publisher.integrations.aws.mock import InMemoryLayerBackend

        backend = InMemoryLayerBackend(
            account_id=config.layer.account_id,
            partition=config.layer.partition,
        )
        return backend.repository

    raise ConfigurationError(
        message=f"Unknown backend: '{config.backend}'",
        error_code="UNKNOWN_BACKEND",
        details={"backend": str(config.backend)},
    )
