"""
layer_publisher.pipeline.region_directory - Target Region Discovery
=====================================================================

Produces the region snapshot a publish run targets. The raw directory
response is validated, deduplicated, and sorted in a natural, locale-aware
order (case-insensitive, digit runs compared as numbers) so run order and
reports are stable and diff cleanly between runs.

Any failure is fatal to the run and is not retried here: with no regions,
no work is well-defined.
"""

from __future__ import annotations

import re

import structlog

from layer_publisher.core.exceptions import DiscoveryError, PublisherError
from layer_publisher.integrations.aws.base import RegionDirectoryClient


logger = structlog.get_logger()

_DIGITS = re.compile(r"(\d+)")


def region_sort_key(region: str) -> tuple:
    """Natural sort key: ``us-west-2`` sorts before ``us-west-10``."""
    parts = tuple(
        (0, int(token), "") if token.isdigit() else (1, 0, token.casefold())
        for token in _DIGITS.split(region)
        if token
    )
    return (parts, region)


class RegionDirectory:
    """Enumerates the regions a layer should be published into.

    Args:
        client: Directory service client (EC2 or in-memory).

    Example:
        >>> directory = RegionDirectory(Ec2RegionDirectoryClient())
        >>> await directory.list_regions()
        ['ap-northeast-1', 'ap-northeast-2', ..., 'us-west-2']
    """

    def __init__(self, client: RegionDirectoryClient) -> None:
        self._client = client
        self._logger = logger.bind(component="region_directory")

    async def list_regions(self) -> list[str]:
        """Return the deduplicated, sorted region snapshot.

        Raises:
            DiscoveryError: If the directory is unreachable, returns nothing,
                or returns entries that are not region names.
        """
        try:
            raw = await self._client.describe_regions()
        except PublisherError as exc:
            raise DiscoveryError(
                message=f"Region directory unavailable: {exc.message}",
                error_code="DIRECTORY_UNAVAILABLE",
                details={"cause": exc.to_dict()},
            ) from exc
        except Exception as exc:
            raise DiscoveryError(
                message=f"Region directory unavailable: {exc}",
                error_code="DIRECTORY_UNAVAILABLE",
                details={"cause": str(exc), "error_type": type(exc).__name__},
            ) from exc

        if not isinstance(raw, (list, tuple)):
            raise DiscoveryError(
                message="Region directory returned a malformed response",
                error_code="DIRECTORY_MALFORMED",
                details={"response_type": type(raw).__name__},
            )

        malformed = [entry for entry in raw if not isinstance(entry, str) or not entry.strip()]
        if malformed:
            raise DiscoveryError(
                message="Region directory returned malformed region entries",
                error_code="DIRECTORY_MALFORMED",
                details={"malformed_entries": [repr(entry) for entry in malformed]},
            )

        regions = sorted({entry.strip() for entry in raw}, key=region_sort_key)
        if not regions:
            raise DiscoveryError(
                message="Region directory returned no regions",
                error_code="NO_REGIONS",
            )

        self._logger.info("regions_discovered", count=len(regions), regions=regions)
        return regions
