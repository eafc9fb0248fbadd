"""
layer_publisher.infrastructure.catalog_resolver - Catalog Resolver
====================================================================

Deploy-time lookup of the layer ARN for a (region, architecture) pair.

    >>> resolver = CatalogResolver.from_file(Path("src/layers.json"))
    >>> resolver.resolve("eu-west-1", Architecture.ARM64)
    'arn:aws:lambda:eu-west-1:354918379484:layer:optimeist-extension-arm64:4'

A miss raises NotFoundError; the caller decides what to do. The one
fallback offered, ``resolve_or_synthesize``, builds the ARN from a known
version number and logs a warning, since that ARN was never verified
against a publish run. No network calls are made here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Union

import structlog

from layer_publisher.core.config import LayerConfig
from layer_publisher.core.enums import Architecture
from layer_publisher.core.exceptions import NotFoundError
from layer_publisher.infrastructure.catalog_store import load_catalog


logger = structlog.get_logger()

ArchitectureLike = Union[Architecture, str]


def _arch_value(architecture: ArchitectureLike) -> str:
    if isinstance(architecture, Architecture):
        return architecture.value
    return str(architecture)


def resolve(
    catalog: Mapping[str, Mapping[str, str]],
    region: str,
    architecture: ArchitectureLike,
) -> str:
    """Return the reference stored for (region, architecture).

    Raises:
        NotFoundError: If the region or architecture is absent, or the
            stored reference is blank.
    """
    arch = _arch_value(architecture)
    reference = catalog.get(region, {}).get(arch)
    if not reference or not reference.strip():
        raise NotFoundError(
            message=f"No layer published for {region}/{arch}",
            region=region,
            architecture=arch,
        )
    return reference


def synthesize_layer_arn(
    region: str,
    architecture: ArchitectureLike,
    version: int,
    account_id: str,
    layer_name_prefix: str,
    partition: str = "aws",
) -> str:
    """Build a layer version ARN from its parts without consulting a catalog."""
    return (
        f"arn:{partition}:lambda:{region}:{account_id}:layer:"
        f"{layer_name_prefix}-{_arch_value(architecture)}:{version}"
    )


class CatalogResolver:
    """Resolves layer ARNs from an in-memory or persisted catalog.

    Args:
        catalog: Region → architecture → ARN mapping.
        layer_config: Naming used by ``resolve_or_synthesize``.
    """

    def __init__(
        self,
        catalog: Mapping[str, Mapping[str, str]],
        layer_config: Optional[LayerConfig] = None,
    ) -> None:
        self._catalog = catalog
        self._layer_config = layer_config or LayerConfig()
        self._logger = logger.bind(component="catalog_resolver")

    @classmethod
    def from_file(
        cls,
        path: Path,
        layer_config: Optional[LayerConfig] = None,
    ) -> "CatalogResolver":
        """Load the catalog at ``path`` (see ``load_catalog`` for errors)."""
        return cls(load_catalog(Path(path)), layer_config=layer_config)

    @property
    def regions(self) -> list[str]:
        return sorted(self._catalog)

    def resolve(self, region: str, architecture: ArchitectureLike) -> str:
        return resolve(self._catalog, region, architecture)

    def resolve_or_synthesize(
        self,
        region: str,
        architecture: ArchitectureLike,
        fallback_version: Optional[int] = None,
    ) -> str:
        """Resolve, falling back to a synthesized ARN when a version is given.

        Raises:
            NotFoundError: On a miss with no ``fallback_version``.
        """
        try:
            return self.resolve(region, architecture)
        except NotFoundError:
            if fallback_version is None:
                raise

        arn = synthesize_layer_arn(
            region,
            architecture,
            fallback_version,
            account_id=self._layer_config.account_id,
            layer_name_prefix=self._layer_config.name_prefix,
            partition=self._layer_config.partition,
        )
        self._logger.warning(
            "layer_arn_synthesized",
            region=region,
            architecture=_arch_value(architecture),
            version=fallback_version,
            arn=arn,
        )
        return arn
