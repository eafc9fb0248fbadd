"""
layer_publisher.integrations.aws.base - Cloud Service Interfaces
==================================================================

Abstract interfaces the pipeline talks to. The pipeline never imports
boto3 directly; it depends on these contracts so the backend can be
swapped (boto3 for real runs, in-memory for dry runs and tests).

    ┌──────────────────┐  describe_regions()  ┌─────────────────────────┐
    │ RegionDirectory  │ ───────────────────→ │ RegionDirectoryClient    │
    └──────────────────┘                      │  ├── Ec2RegionDirectory  │
                                              │  └── InMemory...         │
                                              └─────────────────────────┘
    ┌──────────────────┐  factory(region)     ┌─────────────────────────┐
    │ RegionPublisher  │ ───────────────────→ │ LayerRepository          │
    │                  │  create_version()    │  ├── LambdaLayerRepo...  │
    │                  │  grant_public_access │  └── InMemory...         │
    └──────────────────┘                      └─────────────────────────┘

A LayerRepository is a short-lived handle scoped to ONE region. The
RegionPublisher asks the RepositoryFactory for a fresh handle on every
publish call, so there is no process-wide client carrying hidden region
state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from layer_publisher.core.enums import Architecture
from layer_publisher.core.models import LayerVersion


class RegionDirectoryClient(ABC):
    """Read-only source of the regions where the platform is available."""

    @abstractmethod
    async def describe_regions(self) -> list[str]:
        """Return the raw region names reported by the directory service.

        The result is returned as-is (unsorted, possibly with duplicates or
        malformed entries); normalisation is the RegionDirectory's job.

        Raises:
            ServiceCallError: If the directory service call fails.
        """
        ...


class LayerRepository(ABC):
    """Region-scoped handle on the layer artifact repository.

    Attributes:
        region: The region every call on this handle is sent to.
    """

    def __init__(self, region: str) -> None:
        self.region = region

    @abstractmethod
    async def create_version(
        self,
        layer_name: str,
        architecture: Architecture,
        content: bytes,
        description: str = "",
    ) -> LayerVersion:
        """Publish ``content`` as a new version of ``layer_name``.

        Args:
            layer_name: Layer to add a version to (created if missing).
            architecture: Recorded as the version's compatible architecture.
            content: The zipped bundle bytes.
            description: Free-text description stored on the version.

        Returns:
            The new version number and its ARN.

        Raises:
            ServiceCallError: If the repository rejects the call.
        """
        ...

    @abstractmethod
    async def grant_public_access(
        self,
        layer_name: str,
        version: int,
        statement_id: str,
        action: str,
        principal: str = "*",
    ) -> None:
        """Grant ``principal`` permission to ``action`` on one layer version.

        Granting again with the same ``statement_id`` replaces the existing
        statement rather than adding a second one.

        Raises:
            ServiceCallError: If the repository rejects the call.
        """
        ...


# A handle factory: region name in, region-scoped repository out.
RepositoryFactory = Callable[[str], LayerRepository]
