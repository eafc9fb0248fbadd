"""
layer_publisher.integrations.aws.mock - In-Memory Cloud Backend
=================================================================

In-memory implementations of the integration interfaces. They make no
network calls and are used for dry runs (``backend: mock``) and tests.

Why an In-Memory Backend?
    1. **No credentials required**: runs anywhere.
    2. **Deterministic output**: version numbers count up from 1 per layer.
    3. **Failure injection**: any (region, stage) can be made to fail,
       optionally only for the first N calls (to exercise retries).
    4. **Call tracking**: every call is recorded for assertions.

Usage:
    >>> backend = InMemoryLayerBackend()
    >>> backend.fail_region("eu-west-2", error_code="ServiceException")
    >>> repo = backend.repository("eu-west-1")   # a RepositoryFactory
    >>> version = await repo.create_version("ext-arm64", Architecture.ARM64, b"zip")
    >>> version.arn
    'arn:aws:lambda:eu-west-1:000000000000:layer:ext-arm64:1'
"""

from __future__ import annotations

from typing import Any, Optional

from layer_publisher.core.enums import Architecture, PublishStage
from layer_publisher.core.exceptions import ServiceCallError
from layer_publisher.core.models import LayerVersion
from layer_publisher.integrations.aws.base import LayerRepository, RegionDirectoryClient


# Regions the mock directory reports by default.
DEFAULT_MOCK_REGIONS: tuple[str, ...] = (
    "ap-northeast-1",
    "ap-northeast-2",
    "ap-northeast-3",
    "ap-south-1",
    "ap-southeast-1",
    "ap-southeast-2",
    "ca-central-1",
    "eu-central-1",
    "eu-north-1",
    "eu-west-1",
    "eu-west-2",
    "eu-west-3",
    "sa-east-1",
    "us-east-1",
    "us-east-2",
    "us-west-1",
    "us-west-2",
)

_OPERATIONS = {
    PublishStage.CREATE_VERSION: "PublishLayerVersion",
    PublishStage.GRANT_PERMISSION: "AddLayerVersionPermission",
}


# =============================================================================
# Region Directory
# =============================================================================
class InMemoryRegionDirectoryClient(RegionDirectoryClient):
    """Returns a fixed list of regions, or fails on demand.

    Args:
        regions: Raw entries to report (returned as-is, unsorted).
        error: If set, describe_regions() raises it instead.
    """

    def __init__(
        self,
        regions: Optional[list[Any]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self._regions = list(DEFAULT_MOCK_REGIONS if regions is None else regions)
        self._error = error
        self.call_count = 0

    async def describe_regions(self) -> list[str]:
        self.call_count += 1
        if self._error is not None:
            raise self._error
        return list(self._regions)


# =============================================================================
# Layer Backend
# =============================================================================
class InMemoryLayerBackend:
    """Shared state behind every InMemoryLayerRepository handle.

    One backend models the whole account across regions; each repository
    handle is a view on it scoped to one region.

    Attributes:
        call_history: Every call as a dict with "operation", "region" and
            the call arguments, in call order.
    """

    def __init__(self, account_id: str = "000000000000", partition: str = "aws") -> None:
        self._account_id = account_id
        self._partition = partition
        self._versions: dict[tuple[str, str], list[LayerVersion]] = {}
        self._permissions: dict[tuple[str, str, int], dict[str, dict[str, str]]] = {}
        # (region, stage) → [error_code, remaining failures or None for always]
        self._failures: dict[tuple[str, PublishStage], list[Any]] = {}
        self.call_history: list[dict[str, Any]] = []

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------
    def repository(self, region: str) -> "InMemoryLayerRepository":
        """RepositoryFactory: a fresh handle scoped to ``region``."""
        return InMemoryLayerRepository(region, self)

    # -------------------------------------------------------------------------
    # Failure Injection
    # -------------------------------------------------------------------------
    def fail_region(
        self,
        region: str,
        stage: PublishStage = PublishStage.CREATE_VERSION,
        error_code: str = "ServiceException",
        times: Optional[int] = None,
    ) -> None:
        """Make calls for ``region`` at ``stage`` fail.

        Args:
            region: Region to fail.
            stage: CREATE_VERSION or GRANT_PERMISSION.
            error_code: Error code carried by the raised ServiceCallError.
            times: Fail only the next ``times`` calls; None fails forever.
        """
        self._failures[(region, stage)] = [error_code, times]

    def _maybe_fail(self, region: str, stage: PublishStage) -> None:
        entry = self._failures.get((region, stage))
        if entry is None:
            return
        error_code, remaining = entry
        if remaining is not None:
            if remaining <= 0:
                return
            entry[1] = remaining - 1
        raise ServiceCallError(
            message=f"Simulated {error_code} in {region}",
            operation=_OPERATIONS[stage],
            region=region,
            error_code=error_code,
        )

    # -------------------------------------------------------------------------
    # Repository Operations
    # -------------------------------------------------------------------------
    def create_version(
        self,
        region: str,
        layer_name: str,
        architecture: Architecture,
        content: bytes,
        description: str,
    ) -> LayerVersion:
        self.call_history.append({
            "operation": "create_version",
            "region": region,
            "layer_name": layer_name,
            "architecture": architecture.value,
            "size_bytes": len(content),
            "description": description,
        })
        self._maybe_fail(region, PublishStage.CREATE_VERSION)

        versions = self._versions.setdefault((region, layer_name), [])
        number = len(versions) + 1
        layer_version = LayerVersion(
            version=number,
            arn=(
                f"arn:{self._partition}:lambda:{region}:{self._account_id}"
                f":layer:{layer_name}:{number}"
            ),
        )
        versions.append(layer_version)
        return layer_version

    def grant_public_access(
        self,
        region: str,
        layer_name: str,
        version: int,
        statement_id: str,
        action: str,
        principal: str,
    ) -> None:
        self.call_history.append({
            "operation": "grant_public_access",
            "region": region,
            "layer_name": layer_name,
            "version": version,
            "statement_id": statement_id,
        })
        self._maybe_fail(region, PublishStage.GRANT_PERMISSION)

        known = self._versions.get((region, layer_name), [])
        if not any(v.version == version for v in known):
            raise ServiceCallError(
                message=f"Layer version {layer_name}:{version} not found in {region}",
                operation="AddLayerVersionPermission",
                region=region,
                error_code="ResourceNotFoundException",
            )

        statements = self._permissions.setdefault((region, layer_name, version), {})
        statements[statement_id] = {"action": action, "principal": principal}

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------
    def versions(self, region: str, layer_name: str) -> list[LayerVersion]:
        """All versions created for ``layer_name`` in ``region``."""
        return list(self._versions.get((region, layer_name), []))

    def permissions(self, region: str, layer_name: str, version: int) -> dict[str, dict[str, str]]:
        """Permission statements on one version, keyed by statement id."""
        return dict(self._permissions.get((region, layer_name, version), {}))

    def regions_called(self, operation: str = "create_version") -> list[str]:
        """Regions in call order for ``operation``."""
        return [call["region"] for call in self.call_history if call["operation"] == operation]


# =============================================================================
# Layer Repository Handle
# =============================================================================
class InMemoryLayerRepository(LayerRepository):
    """Region-scoped view on an InMemoryLayerBackend."""

    def __init__(self, region: str, backend: InMemoryLayerBackend) -> None:
        super().__init__(region)
        self._backend = backend

    async def create_version(
        self,
        layer_name: str,
        architecture: Architecture,
        content: bytes,
        description: str = "",
    ) -> LayerVersion:
        return self._backend.create_version(
            self.region, layer_name, architecture, content, description
        )

    async def grant_public_access(
        self,
        layer_name: str,
        version: int,
        statement_id: str,
        action: str,
        principal: str = "*",
    ) -> None:
        self._backend.grant_public_access(
            self.region, layer_name, version, statement_id, action, principal
        )
