"""
Tests for layer_publisher.pipeline.region_publisher
=====================================================

These tests verify a single (region, architecture) publish against the
in-memory backend:
    - Create-then-grant with the configured layer name and permission
    - Each failing stage surfaces as PublishError with that stage
    - A grant failure reports the orphaned version
    - Per-call timeouts map to CALL_TIMEOUT and flag a possible version
"""

import asyncio

import pytest

from layer_publisher.core.enums import Architecture, PublishStage
from layer_publisher.core.exceptions import PublishError
from layer_publisher.core.models import ArtifactBundle, LayerVersion
from layer_publisher.integrations.aws.base import LayerRepository
from layer_publisher.pipeline.region_publisher import RegionPublisher


class SlowRepository(LayerRepository):
    """Repository whose create call never finishes in time."""

    async def create_version(self, layer_name, architecture, content, description=""):
        await asyncio.sleep(10)
        return LayerVersion(version=1, arn="arn:never")

    async def grant_public_access(self, layer_name, version, statement_id, action, principal="*"):
        return None


# =============================================================================
# Test: Successful Publish
# =============================================================================
class TestPublish:
    """Tests for publish() on the happy path."""

    async def test_publishes_public_version(self, region_publisher, backend, arm64_bundle) -> None:
        """Create then grant yields a public version's ARN."""
        result = await region_publisher.publish("eu-west-1", Architecture.ARM64, arm64_bundle)

        assert result.region == "eu-west-1"
        assert result.architecture == Architecture.ARM64
        assert result.version == 1
        assert result.artifact_reference == (
            "arn:aws:lambda:eu-west-1:123456789012:layer:optimeist-extension-arm64:1"
        )
        assert backend.permissions("eu-west-1", "optimeist-extension-arm64", 1) == {
            "public": {"action": "lambda:GetLayerVersion", "principal": "*"},
        }

    async def test_uploads_bundle_with_description(self, region_publisher, backend, arm64_bundle) -> None:
        """The bundle bytes and description reach create_version."""
        await region_publisher.publish("eu-west-1", Architecture.ARM64, arm64_bundle)

        create_call = backend.call_history[0]
        assert create_call["operation"] == "create_version"
        assert create_call["size_bytes"] == len(arm64_bundle.path.read_bytes())
        assert create_call["description"] == "Optimeist Extension"
        assert create_call["architecture"] == "arm64"

    async def test_each_publish_creates_new_version(self, region_publisher, arm64_bundle) -> None:
        """Publishing twice creates two versions."""
        first = await region_publisher.publish("eu-west-1", Architecture.ARM64, arm64_bundle)
        second = await region_publisher.publish("eu-west-1", Architecture.ARM64, arm64_bundle)
        assert (first.version, second.version) == (1, 2)

    async def test_handle_is_scoped_per_call(self, backend, layer_config, arm64_bundle) -> None:
        """Each publish asks the factory for its region's handle."""
        requested = []

        def factory(region):
            requested.append(region)
            return backend.repository(region)

        publisher = RegionPublisher(factory, layer_config)
        await publisher.publish("eu-west-1", Architecture.ARM64, arm64_bundle)
        await publisher.publish("us-east-1", Architecture.ARM64, arm64_bundle)

        assert requested == ["eu-west-1", "us-east-1"]


# =============================================================================
# Test: Publish Failures
# =============================================================================
class TestPublishFailures:
    """Tests for PublishError stages."""

    async def test_create_failure(self, region_publisher, backend, arm64_bundle) -> None:
        """A create failure stops before the grant."""
        backend.fail_region("eu-west-1", error_code="TooManyRequestsException")

        with pytest.raises(PublishError) as exc_info:
            await region_publisher.publish("eu-west-1", Architecture.ARM64, arm64_bundle)

        error = exc_info.value
        assert error.stage == PublishStage.CREATE_VERSION.value
        assert error.region == "eu-west-1"
        assert error.architecture == "arm64"
        assert error.error_code == "TooManyRequestsException"
        assert backend.regions_called("grant_public_access") == []

    async def test_grant_failure_reports_orphan(self, region_publisher, backend, arm64_bundle) -> None:
        """A grant failure reports the version left behind."""
        backend.fail_region("eu-west-1", stage=PublishStage.GRANT_PERMISSION)

        with pytest.raises(PublishError) as exc_info:
            await region_publisher.publish("eu-west-1", Architecture.ARM64, arm64_bundle)

        error = exc_info.value
        assert error.stage == PublishStage.GRANT_PERMISSION.value
        assert error.details["orphaned_version"] == 1
        assert error.details["orphaned_arn"].endswith(":optimeist-extension-arm64:1")

    async def test_unreadable_bundle(self, region_publisher, backend, tmp_path) -> None:
        """An unreadable bundle fails before any remote call."""
        bundle = ArtifactBundle(architecture=Architecture.ARM64, path=tmp_path / "gone.zip")

        with pytest.raises(PublishError) as exc_info:
            await region_publisher.publish("eu-west-1", Architecture.ARM64, bundle)

        assert exc_info.value.stage == PublishStage.READ_BUNDLE.value
        assert exc_info.value.error_code == "BUNDLE_UNREADABLE"
        assert backend.call_history == []

    async def test_repository_open_failure(self, layer_config, arm64_bundle) -> None:
        """A factory error is raised with the open_repository stage."""
        def factory(region):
            raise ValueError(f"bad region {region}")

        publisher = RegionPublisher(factory, layer_config)

        with pytest.raises(PublishError) as exc_info:
            await publisher.publish("eu-west-1", Architecture.ARM64, arm64_bundle)

        assert exc_info.value.stage == PublishStage.OPEN_REPOSITORY.value
        assert exc_info.value.error_code == "ValueError"
        assert isinstance(exc_info.value.cause, ValueError)

    async def test_call_timeout(self, layer_config, arm64_bundle) -> None:
        """A slow create maps to CALL_TIMEOUT and may have landed."""
        publisher = RegionPublisher(SlowRepository, layer_config, call_timeout=0.01)

        with pytest.raises(PublishError) as exc_info:
            await publisher.publish("eu-west-1", Architecture.ARM64, arm64_bundle)

        assert exc_info.value.error_code == "CALL_TIMEOUT"
        assert exc_info.value.stage == PublishStage.CREATE_VERSION.value
        assert exc_info.value.details["version_may_exist"] is True
