"""
layer_publisher.pipeline.orchestrator - Publish Orchestrator
==============================================================

Fans one architecture's bundle out to every target region.

Architecture Context:
    ┌────────────────────────────────────────────────────────────────┐
    │                     PublishOrchestrator                         │
    │                                                                │
    │  regions ──→ [ap-northeast-1] ──→ RegionPublisher ──→ result   │
    │              [ap-northeast-2] ──→ RegionPublisher ──→ SKIPPED  │
    │              [ap-south-1]     ──→ RegionPublisher ──→ result   │
    │              ...                                               │
    │                                                                │
    │  → PublishOutcome(results in input order, failures)            │
    └────────────────────────────────────────────────────────────────┘

Execution Rules:
    - Regions are published in the supplied order. With the default worker
      count of 1 this is strictly one region at a time, which keeps the run
      under the Lambda API's per-account rate limits.
    - ``max_concurrency > 1`` publishes up to N regions at once; results
      are still returned in input order.
    - A PublishError is logged, recorded as a PublishFailure, and skipped.
      This is the only layer that swallows a publish failure.
    - The orchestrator raises only for structurally invalid input.
    - Any other exception is a bug: in-flight publishes are cancelled and it
      propagates.

Usage:
    >>> orchestrator = PublishOrchestrator(region_publisher)
    >>> results = await orchestrator.run(regions, Architecture.ARM64, bundle)
"""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence, Union

import structlog

from layer_publisher.core.enums import Architecture, PublishStage
from layer_publisher.core.exceptions import OrchestrationError, PublishError
from layer_publisher.core.models import (
    ArtifactBundle,
    PublishFailure,
    PublishOutcome,
    PublishResult,
)
from layer_publisher.pipeline.region_publisher import RegionPublisher
from layer_publisher.pipeline.retry_policy import RetryPolicy


logger = structlog.get_logger()


class PublishOrchestrator:
    """Publishes one architecture's bundle into every region with failure isolation.

    Args:
        publisher: Performs the single-region publish.
        max_concurrency: Regions published at once (1 = sequential).
        retry_policy: Retry settings; defaults to no retries.

    Attributes:
        _publisher: The RegionPublisher doing the remote calls.
        _max_concurrency: Worker bound for one run.
        _retry_policy: Which failures are retried, and how long to wait.
        _logger: Structured logger with orchestrator context.
    """

    def __init__(
        self,
        publisher: RegionPublisher,
        max_concurrency: int = 1,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        if max_concurrency < 1:
            raise OrchestrationError(
                message=f"max_concurrency must be >= 1, got {max_concurrency}",
                error_code="INVALID_CONCURRENCY",
                details={"max_concurrency": max_concurrency},
            )
        self._publisher = publisher
        self._max_concurrency = max_concurrency
        self._retry_policy = retry_policy or RetryPolicy()
        self._logger = logger.bind(component="publish_orchestrator")

    # =========================================================================
    # Entry Points
    # =========================================================================

    async def run(
        self,
        regions: Sequence[str],
        architecture: Architecture,
        bundle: ArtifactBundle,
    ) -> list[PublishResult]:
        """Publish ``bundle`` into ``regions`` and return the successes.

        Args:
            regions: Target regions, in the order to publish them.
            architecture: Architecture of ``bundle``.
            bundle: The bundle to publish.

        Returns:
            One PublishResult per succeeding region, in input order.

        Raises:
            OrchestrationError: If ``regions`` is empty or ``bundle`` is
                missing or built for another architecture.
        """
        outcome = await self.execute(regions, architecture, bundle)
        return outcome.results

    async def execute(
        self,
        regions: Sequence[str],
        architecture: Architecture,
        bundle: ArtifactBundle,
    ) -> PublishOutcome:
        """Like ``run()``, but also returns the skipped regions.

        Returns:
            PublishOutcome with results (input order) and failures.
        """
        targets = self._validate(regions, architecture, bundle)

        self._logger.info(
            "architecture_publish_starting",
            architecture=architecture.value,
            bundle=str(bundle.path),
            region_count=len(targets),
            max_concurrency=self._max_concurrency,
        )

        if self._max_concurrency == 1:
            outcomes = []
            for region in targets:
                outcomes.append(await self._publish_region(region, architecture, bundle))
        else:
            outcomes = await self._publish_bounded(targets, architecture, bundle)

        outcome = PublishOutcome(
            architecture=architecture,
            results=[o for o in outcomes if isinstance(o, PublishResult)],
            failures=[o for o in outcomes if isinstance(o, PublishFailure)],
        )

        self._logger.info(
            "architecture_publish_completed",
            architecture=architecture.value,
            published=len(outcome.results),
            skipped=len(outcome.failures),
            skipped_regions=outcome.skipped_regions,
        )
        return outcome

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _validate(
        self,
        regions: Sequence[str],
        architecture: Architecture,
        bundle: Optional[ArtifactBundle],
    ) -> list[str]:
        if bundle is None:
            raise OrchestrationError(
                message="No bundle supplied",
                error_code="MISSING_BUNDLE",
                details={"architecture": architecture.value},
            )
        if bundle.architecture != architecture:
            raise OrchestrationError(
                message=(
                    f"Bundle was built for {bundle.architecture.value}, "
                    f"not {architecture.value}"
                ),
                error_code="BUNDLE_ARCHITECTURE_MISMATCH",
                details={
                    "bundle_architecture": bundle.architecture.value,
                    "architecture": architecture.value,
                },
            )
        if not regions:
            raise OrchestrationError(
                message="Region list is empty",
                error_code="EMPTY_REGION_LIST",
                details={"architecture": architecture.value},
            )

        # One in-flight publish per (region, architecture): drop repeats.
        targets = list(dict.fromkeys(regions))
        if len(targets) != len(regions):
            self._logger.warning(
                "duplicate_regions_dropped",
                architecture=architecture.value,
                dropped=len(regions) - len(targets),
            )
        return targets

    async def _publish_bounded(
        self,
        targets: list[str],
        architecture: Architecture,
        bundle: ArtifactBundle,
    ) -> list[Union[PublishResult, PublishFailure]]:
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _bounded(region: str) -> Union[PublishResult, PublishFailure]:
            async with semaphore:
                return await self._publish_region(region, architecture, bundle)

        tasks = [asyncio.create_task(_bounded(region)) for region in targets]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # Unexpected error: cancel the sibling publishes and wait for them.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _publish_region(
        self,
        region: str,
        architecture: Architecture,
        bundle: ArtifactBundle,
    ) -> Union[PublishResult, PublishFailure]:
        attempt = 0
        while True:
            try:
                return await self._publisher.publish(region, architecture, bundle)
            except PublishError as exc:
                if self._retry_policy.should_retry(exc, attempt):
                    delay = self._retry_policy.calculate_delay(attempt)
                    self._logger.warning(
                        "region_publish_retrying",
                        region=region,
                        architecture=architecture.value,
                        error_code=exc.error_code,
                        attempt=attempt + 1,
                        delay_seconds=round(delay, 3),
                    )
                    await asyncio.sleep(delay)
                    attempt += 1
                    continue

                self._logger.warning(
                    "region_publish_skipped",
                    region=region,
                    architecture=architecture.value,
                    stage=exc.stage,
                    error=exc.to_dict(),
                )
                return PublishFailure(
                    region=region,
                    architecture=architecture,
                    stage=PublishStage(exc.stage),
                    error_code=exc.error_code,
                    message=exc.message,
                    attempts=attempt + 1,
                    orphaned_version=exc.details.get("orphaned_version"),
                    version_may_exist=exc.details.get("version_may_exist", False),
                )
