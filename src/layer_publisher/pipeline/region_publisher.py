"""
layer_publisher.pipeline.region_publisher - Single-Region Publish
===================================================================

Publishes one bundle into one region as a public layer version.

Publish Flow:
    ┌──────────────┐  factory(region)   ┌─────────────────┐
    │   Region     │ ─────────────────→ │ LayerRepository │
    │  Publisher   │                    │  (one region)   │
    │              │  1. create_version │                 │
    │              │ ─────────────────→ │ → version, ARN  │
    │              │  2. grant_public   │                 │
    │              │ ─────────────────→ │   statement id  │
    └──────────────┘                    └─────────────────┘

Every failure is raised as PublishError with the failing stage. A failure
at GRANT_PERMISSION means a layer version now exists without public access;
its number and ARN are kept in the error details so the operator can clean
it up or re-grant. A create call that timed out may still complete in AWS
(the worker thread is not interrupted), so its error carries
``version_may_exist``. There is no retry here; retries are the
orchestrator's decision.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Optional, TypeVar

import structlog

from layer_publisher.core.config import LayerConfig
from layer_publisher.core.enums import Architecture, PublishStage
from layer_publisher.core.exceptions import PublishError, PublisherError
from layer_publisher.core.models import ArtifactBundle, PublishResult
from layer_publisher.integrations.aws.base import RepositoryFactory


logger = structlog.get_logger()

T = TypeVar("T")


def _error_code(exc: BaseException) -> str:
    if isinstance(exc, PublisherError):
        return exc.error_code
    if isinstance(exc, asyncio.TimeoutError):
        return "CALL_TIMEOUT"
    return type(exc).__name__


# Error codes after which the request may have reached the service: the
# create call can have succeeded even though no response arrived.
AMBIGUOUS_CREATE_ERRORS = frozenset({"CALL_TIMEOUT", "ReadTimeoutError"})


class RegionPublisher:
    """Publishes a bundle as a public layer version in one region.

    Args:
        repository_factory: Creates a region-scoped repository handle.
        layer_config: Layer naming and permission settings.
        call_timeout: Seconds allowed per remote call (None = unbounded).

    Example:
        >>> publisher = RegionPublisher(backend.repository, LayerConfig())
        >>> result = await publisher.publish("eu-west-1", Architecture.ARM64, bundle)
        >>> result.artifact_reference
        'arn:aws:lambda:eu-west-1:354918379484:layer:optimeist-extension-arm64:4'
    """

    def __init__(
        self,
        repository_factory: RepositoryFactory,
        layer_config: Optional[LayerConfig] = None,
        call_timeout: Optional[float] = None,
    ) -> None:
        self._repository_factory = repository_factory
        self._layer_config = layer_config or LayerConfig()
        self._call_timeout = call_timeout
        self._logger = logger.bind(component="region_publisher")

    async def _call(self, awaitable: Awaitable[T]) -> T:
        if self._call_timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self._call_timeout)

    async def publish(
        self,
        region: str,
        architecture: Architecture,
        bundle: ArtifactBundle,
    ) -> PublishResult:
        """Create a layer version from ``bundle`` in ``region`` and make it public.

        Args:
            region: Target region.
            architecture: Target architecture (recorded on the version).
            bundle: The built bundle for ``architecture``.

        Returns:
            The PublishResult carrying the new version's ARN.

        Raises:
            PublishError: With stage READ_BUNDLE, OPEN_REPOSITORY,
                CREATE_VERSION or GRANT_PERMISSION.
        """
        layer_name = self._layer_config.layer_name(architecture)
        log = self._logger.bind(
            region=region,
            architecture=architecture.value,
            layer_name=layer_name,
        )
        log.info("layer_publish_starting")

        # --- Read the bundle ---
        try:
            content = await asyncio.to_thread(bundle.path.read_bytes)
        except OSError as exc:
            raise PublishError(
                message=f"Could not read bundle {bundle.path}: {exc}",
                region=region,
                architecture=architecture.value,
                stage=PublishStage.READ_BUNDLE.value,
                cause=exc,
                error_code="BUNDLE_UNREADABLE",
                details={"bundle": str(bundle.path)},
            ) from exc

        # --- Open the region-scoped repository ---
        try:
            repository = self._repository_factory(region)
        except Exception as exc:
            raise PublishError(
                message=f"Could not open layer repository for {region}: {exc}",
                region=region,
                architecture=architecture.value,
                stage=PublishStage.OPEN_REPOSITORY.value,
                cause=exc,
                error_code=_error_code(exc),
            ) from exc

        # --- Step 1: create the layer version ---
        try:
            layer_version = await self._call(
                repository.create_version(
                    layer_name,
                    architecture,
                    content,
                    description=self._layer_config.description,
                )
            )
        except Exception as exc:
            error_code = _error_code(exc)
            version_may_exist = error_code in AMBIGUOUS_CREATE_ERRORS
            if version_may_exist:
                log.warning("layer_version_state_unknown", error_code=error_code)
            raise PublishError(
                message=f"Creating layer version in {region} failed: {exc}",
                region=region,
                architecture=architecture.value,
                stage=PublishStage.CREATE_VERSION.value,
                cause=exc,
                error_code=error_code,
                details={"version_may_exist": version_may_exist},
            ) from exc

        # --- Step 2: grant public access on that version ---
        try:
            await self._call(
                repository.grant_public_access(
                    layer_name,
                    layer_version.version,
                    statement_id=self._layer_config.statement_id,
                    action=self._layer_config.permission_action,
                    principal=self._layer_config.permission_principal,
                )
            )
        except Exception as exc:
            details: dict[str, Any] = {
                "orphaned_version": layer_version.version,
                "orphaned_arn": layer_version.arn,
            }
            raise PublishError(
                message=(
                    f"Layer version {layer_version.version} created in {region} "
                    f"but granting public access failed: {exc}"
                ),
                region=region,
                architecture=architecture.value,
                stage=PublishStage.GRANT_PERMISSION.value,
                cause=exc,
                error_code=_error_code(exc),
                details=details,
            ) from exc

        log.info(
            "layer_published",
            version=layer_version.version,
            arn=layer_version.arn,
        )
        return PublishResult(
            region=region,
            architecture=architecture,
            artifact_reference=layer_version.arn,
            version=layer_version.version,
        )
