"""
layer_publisher.pipeline - Publish Pipeline Components
========================================================

The components a publish run is sequenced from, leaves first:

    RegionDirectory      → which regions exist
    ArtifactBuilder      → one bundle per architecture
    RegionPublisher      → one (region, architecture) publish
    PublishOrchestrator  → all regions for one architecture, failure-isolated

The top-level sequencing lives in ``layer_publisher.facade``.
"""

from layer_publisher.pipeline.builder import ArtifactBuilder
from layer_publisher.pipeline.orchestrator import PublishOrchestrator
from layer_publisher.pipeline.region_directory import RegionDirectory
from layer_publisher.pipeline.region_publisher import RegionPublisher
from layer_publisher.pipeline.retry_policy import RetryPolicy

__all__ = [
    "ArtifactBuilder",
    "PublishOrchestrator",
    "RegionDirectory",
    "RegionPublisher",
    "RetryPolicy",
]
