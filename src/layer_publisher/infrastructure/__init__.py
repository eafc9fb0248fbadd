"""
layer_publisher.infrastructure - Catalog Persistence and Lookup
=================================================================

The run outputs (markdown report, JSON catalog) and the deploy-time
resolver that reads the catalog back.
"""

from layer_publisher.infrastructure.catalog_resolver import (
    CatalogResolver,
    resolve,
    synthesize_layer_arn,
)
from layer_publisher.infrastructure.catalog_store import (
    CatalogWriter,
    build_catalog,
    load_catalog,
    render_report,
    write_text_atomically,
)

__all__ = [
    "CatalogResolver",
    "CatalogWriter",
    "build_catalog",
    "load_catalog",
    "render_report",
    "resolve",
    "synthesize_layer_arn",
    "write_text_atomically",
]
