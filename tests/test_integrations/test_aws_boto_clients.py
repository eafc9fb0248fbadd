"""
Tests for layer_publisher.integrations.aws.boto_clients
=========================================================

The boto3 adapters are exercised against real botocore clients with a
Stubber attached, so request parameters are validated against the service
models and no network call is made.
"""

import boto3
import pytest
from botocore.exceptions import EndpointConnectionError
from botocore.stub import Stubber

from layer_publisher.core.config import AwsConfig
from layer_publisher.core.enums import Architecture
from layer_publisher.core.exceptions import DiscoveryError, ServiceCallError
from layer_publisher.integrations.aws.boto_clients import (
    Ec2RegionDirectoryClient,
    LambdaLayerRepository,
    classify_error,
)
from layer_publisher.pipeline.region_directory import RegionDirectory


ARN = "arn:aws:lambda:eu-west-1:123456789012:layer:optimeist-extension-arm64:3"


def _client(service: str, region: str = "eu-west-1"):
    return boto3.client(
        service,
        region_name=region,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def lambda_client():
    client = _client("lambda")
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


@pytest.fixture
def ec2_client():
    client = _client("ec2", "us-east-1")
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


# =============================================================================
# Test: Error Classification
# =============================================================================
class TestClassifyError:
    """Tests for botocore → ServiceCallError mapping."""

    def test_transport_error_uses_class_name(self) -> None:
        """Transport errors are coded by exception class."""
        exc = EndpointConnectionError(endpoint_url="https://lambda.eu-west-1.amazonaws.com")
        error = classify_error(exc, "PublishLayerVersion", "eu-west-1")
        assert error.error_code == "EndpointConnectionError"
        assert error.operation == "PublishLayerVersion"
        assert error.region == "eu-west-1"


# =============================================================================
# Test: EC2 Region Directory
# =============================================================================
class TestEc2RegionDirectoryClient:
    """Tests for DescribeRegions."""

    async def test_returns_region_names(self, ec2_client) -> None:
        """DescribeRegions is reduced to region names."""
        client, stubber = ec2_client
        stubber.add_response(
            "describe_regions",
            {"Regions": [{"RegionName": "us-east-1"}, {"RegionName": "eu-west-1"}]},
        )

        regions = await Ec2RegionDirectoryClient(client=client).describe_regions()

        assert regions == ["us-east-1", "eu-west-1"]

    async def test_client_error_is_classified(self, ec2_client) -> None:
        """A ClientError keeps its AWS code and HTTP status."""
        client, stubber = ec2_client
        stubber.add_client_error(
            "describe_regions",
            service_error_code="UnauthorizedOperation",
            service_message="not allowed",
            http_status_code=403,
        )

        with pytest.raises(ServiceCallError) as exc_info:
            await Ec2RegionDirectoryClient(client=client).describe_regions()

        assert exc_info.value.error_code == "UnauthorizedOperation"
        assert exc_info.value.operation == "DescribeRegions"
        assert exc_info.value.details["http_status"] == 403

    async def test_unknown_profile_fails_at_discovery(self, tmp_path, monkeypatch) -> None:
        """A bad profile surfaces as a discovery failure, not at construction."""
        monkeypatch.setenv("AWS_CONFIG_FILE", str(tmp_path / "config"))
        monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "credentials"))
        client = Ec2RegionDirectoryClient(AwsConfig(profile_name="no-such-profile"))

        with pytest.raises(ServiceCallError) as exc_info:
            await client.describe_regions()
        assert exc_info.value.error_code == "ProfileNotFound"

        with pytest.raises(DiscoveryError) as exc_info:
            await RegionDirectory(client).list_regions()
        assert exc_info.value.error_code == "DIRECTORY_UNAVAILABLE"


# =============================================================================
# Test: Lambda Layer Repository
# =============================================================================
class TestLambdaLayerRepository:
    """Tests for PublishLayerVersion and AddLayerVersionPermission."""

    async def test_create_version_sends_bundle(self, lambda_client) -> None:
        """PublishLayerVersion receives the zip and architecture."""
        client, stubber = lambda_client
        stubber.add_response(
            "publish_layer_version",
            {"LayerVersionArn": ARN, "Version": 3},
            expected_params={
                "LayerName": "optimeist-extension-arm64",
                "Description": "Optimeist Extension",
                "Content": {"ZipFile": b"zip-bytes"},
                "CompatibleArchitectures": ["arm64"],
            },
        )
        repo = LambdaLayerRepository("eu-west-1", client=client)

        version = await repo.create_version(
            "optimeist-extension-arm64",
            Architecture.ARM64,
            b"zip-bytes",
            description="Optimeist Extension",
        )

        assert version.version == 3
        assert version.arn == ARN

    async def test_create_version_throttled(self, lambda_client) -> None:
        """Throttling surfaces with its AWS error code."""
        client, stubber = lambda_client
        stubber.add_client_error(
            "publish_layer_version",
            service_error_code="TooManyRequestsException",
            http_status_code=429,
        )
        repo = LambdaLayerRepository("eu-west-1", client=client)

        with pytest.raises(ServiceCallError) as exc_info:
            await repo.create_version("optimeist-extension-arm64", Architecture.ARM64, b"zip")

        assert exc_info.value.error_code == "TooManyRequestsException"
        assert exc_info.value.region == "eu-west-1"

    async def test_grant_public_access(self, lambda_client) -> None:
        """AddLayerVersionPermission receives the public statement."""
        client, stubber = lambda_client
        stubber.add_response(
            "add_layer_version_permission",
            {"Statement": "{}", "RevisionId": "rev-1"},
            expected_params={
                "LayerName": "optimeist-extension-arm64",
                "VersionNumber": 3,
                "StatementId": "public",
                "Action": "lambda:GetLayerVersion",
                "Principal": "*",
            },
        )
        repo = LambdaLayerRepository("eu-west-1", client=client)

        await repo.grant_public_access(
            "optimeist-extension-arm64", 3, "public", "lambda:GetLayerVersion", "*"
        )

    async def test_grant_replaces_existing_statement(self, lambda_client) -> None:
        """A conflicting statement id is removed and granted again."""
        client, stubber = lambda_client
        params = {
            "LayerName": "optimeist-extension-arm64",
            "VersionNumber": 3,
            "StatementId": "public",
            "Action": "lambda:GetLayerVersion",
            "Principal": "*",
        }
        stubber.add_client_error(
            "add_layer_version_permission",
            service_error_code="ResourceConflictException",
            http_status_code=409,
            expected_params=params,
        )
        stubber.add_response(
            "remove_layer_version_permission",
            {},
            expected_params={
                "LayerName": "optimeist-extension-arm64",
                "VersionNumber": 3,
                "StatementId": "public",
            },
        )
        stubber.add_response(
            "add_layer_version_permission",
            {"Statement": "{}", "RevisionId": "rev-2"},
            expected_params=params,
        )
        repo = LambdaLayerRepository("eu-west-1", client=client)

        await repo.grant_public_access(
            "optimeist-extension-arm64", 3, "public", "lambda:GetLayerVersion", "*"
        )

    async def test_grant_failure_is_classified(self, lambda_client) -> None:
        """A grant failure is classified with its operation."""
        client, stubber = lambda_client
        stubber.add_client_error(
            "add_layer_version_permission",
            service_error_code="AccessDeniedException",
            http_status_code=403,
        )
        repo = LambdaLayerRepository("eu-west-1", client=client)

        with pytest.raises(ServiceCallError) as exc_info:
            await repo.grant_public_access(
                "optimeist-extension-arm64", 3, "public", "lambda:GetLayerVersion"
            )

        assert exc_info.value.error_code == "AccessDeniedException"
        assert exc_info.value.operation == "AddLayerVersionPermission"
