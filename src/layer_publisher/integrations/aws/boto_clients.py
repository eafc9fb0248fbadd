"""
layer_publisher.integrations.aws.boto_clients - boto3-backed Implementations
==============================================================================

Real AWS implementations of the integration interfaces:

    - Ec2RegionDirectoryClient:  EC2 DescribeRegions (enabled regions only)
    - LambdaLayerRepository:     Lambda PublishLayerVersion and
                                 AddLayerVersionPermission for one region

boto3 clients are blocking, so every call runs in a worker thread via
``asyncio.to_thread``. botocore failures are classified into
ServiceCallError right here, the smallest scope that knows the AWS error
code, and re-raised with the operation and region attached.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from layer_publisher.core.config import AwsConfig
from layer_publisher.core.enums import Architecture
from layer_publisher.core.exceptions import ServiceCallError
from layer_publisher.core.models import LayerVersion
from layer_publisher.integrations.aws.base import LayerRepository, RegionDirectoryClient


logger = structlog.get_logger()


# =============================================================================
# Helpers
# =============================================================================
def _client_config(aws_config: AwsConfig) -> Config:
    return Config(
        connect_timeout=aws_config.connect_timeout,
        read_timeout=aws_config.read_timeout,
        retries={"max_attempts": aws_config.max_attempts, "mode": "standard"},
    )


def create_client(service: str, region: str, aws_config: Optional[AwsConfig] = None) -> Any:
    """Create a boto3 client for ``service`` in ``region``.

    A new session is created per client; boto3 sessions are not safe to
    share across the worker threads the calls run in.
    """
    aws_config = aws_config or AwsConfig()
    session = boto3.session.Session(profile_name=aws_config.profile_name)
    return session.client(service, region_name=region, config=_client_config(aws_config))


def classify_error(
    exc: Exception,
    operation: str,
    region: Optional[str],
) -> ServiceCallError:
    """Turn a botocore exception into a ServiceCallError.

    ClientError keeps the AWS error code (e.g. "TooManyRequestsException")
    so retry policies can match on it. Transport errors (BotoCoreError)
    use the exception class name (e.g. "EndpointConnectionError").
    """
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        error_code = error.get("Code") or "ClientError"
        message = error.get("Message") or str(exc)
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        details = {"http_status": status} if status else {}
    else:
        error_code = type(exc).__name__
        message = str(exc)
        details = {}

    return ServiceCallError(
        message=f"{operation} failed: {message}",
        operation=operation,
        region=region,
        error_code=error_code,
        details=details,
    )


# =============================================================================
# EC2 Region Directory
# =============================================================================
class Ec2RegionDirectoryClient(RegionDirectoryClient):
    """Lists the regions enabled for the account via EC2 DescribeRegions.

    Args:
        aws_config: Client settings; ``discovery_region`` picks the endpoint.
        client: Pre-built EC2 client (tests pass a stubbed one).

    The client is created on first use, so session errors (an unknown
    profile, a malformed region) surface from ``describe_regions``.
    """

    def __init__(
        self,
        aws_config: Optional[AwsConfig] = None,
        client: Optional[Any] = None,
    ) -> None:
        self._aws_config = aws_config or AwsConfig()
        self._region = self._aws_config.discovery_region
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = create_client("ec2", self._region, self._aws_config)
        return self._client

    async def describe_regions(self) -> list[str]:
        try:
            client = self._get_client()
            response = await asyncio.to_thread(client.describe_regions)
        except (ClientError, BotoCoreError) as exc:
            raise classify_error(exc, "DescribeRegions", self._region) from exc

        return [entry.get("RegionName") for entry in response.get("Regions", [])]


# =============================================================================
# Lambda Layer Repository
# =============================================================================
class LambdaLayerRepository(LayerRepository):
    """Publishes layer versions into a single region.

    Args:
        region: Region the handle is scoped to.
        aws_config: Client settings.
        client: Pre-built Lambda client (tests pass a stubbed one).
    """

    def __init__(
        self,
        region: str,
        aws_config: Optional[AwsConfig] = None,
        client: Optional[Any] = None,
    ) -> None:
        super().__init__(region)
        self._client = client or create_client("lambda", region, aws_config)
        self._logger = logger.bind(component="lambda_layer_repository", region=region)

    async def create_version(
        self,
        layer_name: str,
        architecture: Architecture,
        content: bytes,
        description: str = "",
    ) -> LayerVersion:
        try:
            response = await asyncio.to_thread(
                self._client.publish_layer_version,
                LayerName=layer_name,
                Description=description,
                Content={"ZipFile": content},
                CompatibleArchitectures=[architecture.value],
            )
        except (ClientError, BotoCoreError) as exc:
            raise classify_error(exc, "PublishLayerVersion", self.region) from exc

        layer_version = LayerVersion(
            version=response["Version"],
            arn=response["LayerVersionArn"],
        )
        self._logger.debug(
            "layer_version_created",
            layer_name=layer_name,
            version=layer_version.version,
            size_bytes=len(content),
        )
        return layer_version

    async def grant_public_access(
        self,
        layer_name: str,
        version: int,
        statement_id: str,
        action: str,
        principal: str = "*",
    ) -> None:
        try:
            await self._add_permission(layer_name, version, statement_id, action, principal)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code != "ResourceConflictException":
                raise classify_error(exc, "AddLayerVersionPermission", self.region) from exc

            # Statement id already present on this version: replace it.
            self._logger.info(
                "layer_permission_replaced",
                layer_name=layer_name,
                version=version,
                statement_id=statement_id,
            )
            try:
                await asyncio.to_thread(
                    self._client.remove_layer_version_permission,
                    LayerName=layer_name,
                    VersionNumber=version,
                    StatementId=statement_id,
                )
                await self._add_permission(layer_name, version, statement_id, action, principal)
            except (ClientError, BotoCoreError) as retry_exc:
                raise classify_error(
                    retry_exc, "AddLayerVersionPermission", self.region
                ) from retry_exc
        except BotoCoreError as exc:
            raise classify_error(exc, "AddLayerVersionPermission", self.region) from exc

    async def _add_permission(
        self,
        layer_name: str,
        version: int,
        statement_id: str,
        action: str,
        principal: str,
    ) -> None:
        await asyncio.to_thread(
            self._client.add_layer_version_permission,
            LayerName=layer_name,
            VersionNumber=version,
            StatementId=statement_id,
            Action=action,
            Principal=principal,
        )
