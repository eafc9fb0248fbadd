"""
layer_publisher.facade - Publish Run Driver
=============================================

The single entry point that sequences one end-to-end publish run.

Architecture Context:
    ┌──────────────────────────────────────────────────────────┐
    │                 LayerPublisher (Facade)                   │
    │                                                          │
    │  1. RegionDirectory.list_regions()   (fatal on failure)  │
    │                        │                                 │
    │  2. for arch in [arm64, x86_64]:                         │
    │        ArtifactBuilder.build(arch)   (skips this arch)   │
    │        PublishOrchestrator.execute(regions, arch, ...)   │
    │                        │                                 │
    │  3. CatalogWriter.write(all results) (fatal on failure)  │
    │                        │                                 │
    │     → PublishRunReport                                   │
    └──────────────────────────────────────────────────────────┘

Failure Semantics:
    - DiscoveryError aborts before anything is built or written.
    - A BuildError skips that architecture; the others still publish and
      are persisted. If every architecture fails to build, the run raises
      before writing anything.
    - Region failures are absorbed by the orchestrator and listed in the
      report.
    - PersistError propagates: results that were not recorded are a failed
      run.

Usage:
    >>> config = load_config("layer-publisher.yaml")
    >>> report = await LayerPublisher(config).run()
    >>> report.catalog["eu-west-1"]["arm64"]
    'arn:aws:lambda:eu-west-1:354918379484:layer:optimeist-extension-arm64:4'
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import structlog

from layer_publisher.core.config import PublisherConfig
from layer_publisher.core.exceptions import BuildError
from layer_publisher.core.models import BuildFailure, PublishRunReport
from layer_publisher.infrastructure.catalog_store import CatalogWriter
from layer_publisher.integrations.aws.base import RegionDirectoryClient, RepositoryFactory
from layer_publisher.integrations.aws.factory import (
    create_region_directory_client,
    create_repository_factory,
)
from layer_publisher.pipeline.builder import ArtifactBuilder
from layer_publisher.pipeline.orchestrator import PublishOrchestrator
from layer_publisher.pipeline.region_directory import RegionDirectory
from layer_publisher.pipeline.region_publisher import RegionPublisher
from layer_publisher.pipeline.retry_policy import RetryPolicy


logger = structlog.get_logger()


class LayerPublisher:
    """Top-level driver for a multi-region, multi-architecture layer publish.

    Every collaborator can be injected; anything not injected is built from
    the configuration (backend selection via the integrations factory).

    Args:
        config: Run configuration. Defaults to PublisherConfig().
        directory_client: Region directory client override.
        repository_factory: Region-scoped repository factory override.
        builder: Artifact builder override.
        writer: Catalog writer override.

    Attributes:
        _directory: Region discovery.
        _builder: Bundle builds, one per architecture.
        _orchestrator: Per-architecture fan-out over regions.
        _writer: Report and catalog persistence.
    """

    def __init__(
        self,
        config: Optional[PublisherConfig] = None,
        *,
        directory_client: Optional[RegionDirectoryClient] = None,
        repository_factory: Optional[RepositoryFactory] = None,
        builder: Optional[ArtifactBuilder] = None,
        writer: Optional[CatalogWriter] = None,
    ) -> None:
        self._config = config or PublisherConfig()

        # --- Discovery ---
        self._directory = RegionDirectory(
            directory_client or create_region_directory_client(self._config)
        )

        # --- Build ---
        self._builder = builder or ArtifactBuilder(self._config.build)

        # --- Publish ---
        publisher = RegionPublisher(
            repository_factory or create_repository_factory(self._config),
            layer_config=self._config.layer,
            call_timeout=self._config.call_timeout_seconds,
        )
        self._orchestrator = PublishOrchestrator(
            publisher,
            max_concurrency=self._config.max_concurrency,
            retry_policy=RetryPolicy(
                max_retries=self._config.max_publish_retries,
                initial_delay=self._config.retry_initial_delay,
            ),
        )

        # --- Persist ---
        self._writer = writer or CatalogWriter(
            report_path=self._config.catalog.report_path,
            catalog_path=self._config.catalog.catalog_path,
            merge_previous=self._config.catalog.merge_previous,
        )

        self._logger = logger.bind(component="layer_publisher")

    @property
    def config(self) -> PublisherConfig:
        return self._config

    async def run(self) -> PublishRunReport:
        """Execute one publish run.

        Returns:
            The run report. ``report.is_partial`` is True when a region or
            an architecture was skipped.

        Raises:
            DiscoveryError: If no regions could be discovered.
            BuildError: If no architecture could be built.
            PersistError: If the report or catalog could not be written.
        """
        report = PublishRunReport()
        architectures = self._config.architectures
        self._logger.info(
            "publish_run_starting",
            backend=self._config.backend.value,
            architectures=[arch.value for arch in architectures],
        )

        report.regions = await self._directory.list_regions()

        for architecture in architectures:
            try:
                bundle = await self._builder.build(architecture)
            except BuildError as exc:
                self._logger.error(
                    "architecture_build_failed",
                    architecture=architecture.value,
                    error=exc.to_dict(),
                )
                report.build_failures.append(
                    BuildFailure(
                        architecture=architecture,
                        error_code=exc.error_code,
                        message=exc.message,
                        diagnostics=exc.diagnostics,
                    )
                )
                continue

            outcome = await self._orchestrator.execute(report.regions, architecture, bundle)
            report.results.extend(outcome.results)
            report.failures.extend(outcome.failures)

        if len(report.build_failures) == len(architectures):
            raise BuildError(
                message="No architecture could be built; nothing was published",
                architecture=",".join(arch.value for arch in architectures),
                diagnostics="\n".join(f.diagnostics for f in report.build_failures if f.diagnostics),
                error_code="ALL_BUILDS_FAILED",
                details={
                    "build_failures": [f.model_dump(mode="json") for f in report.build_failures],
                },
            )

        _, report.catalog = self._writer.write(report.results)
        report.report_path = self._writer.report_path
        report.catalog_path = self._writer.catalog_path
        report.completed_at = datetime.now(timezone.utc)

        self._logger.info(
            "publish_run_completed",
            regions=len(report.regions),
            published=len(report.results),
            skipped_regions=[f"{f.region}/{f.architecture.value}" for f in report.failures],
            failed_builds=[f.architecture.value for f in report.build_failures],
            partial=report.is_partial,
        )
        return report
