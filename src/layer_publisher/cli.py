"""CLI for publishing the extension layer and resolving published ARNs.

    layer-publisher publish [--config FILE] [--backend aws|mock] ...
    layer-publisher resolve REGION ARCH [--catalog FILE] [--fallback-version N]

Exit statuses:
    0  success (skipped regions are listed in the summary, not an error)
    1  unexpected error
    2  configuration error
    3  region discovery failed
    4  an architecture failed to build
    5  report or catalog could not be written or read
    6  no layer in the catalog for the requested region/architecture
"""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Optional, Sequence

import structlog

from layer_publisher.core.config import PublisherConfig, load_config
from layer_publisher.core.enums import Architecture, Backend
from layer_publisher.core.exceptions import (
    BuildError,
    CatalogFormatError,
    ConfigurationError,
    DiscoveryError,
    NotFoundError,
    PersistError,
    PublisherError,
)
from layer_publisher.core.logging_config import configure_logging
from layer_publisher.facade import LayerPublisher
from layer_publisher.infrastructure.catalog_resolver import CatalogResolver


logger = structlog.get_logger()

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIG = 2
EXIT_DISCOVERY = 3
EXIT_BUILD = 4
EXIT_PERSIST = 5
EXIT_NOT_FOUND = 6


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="layer-publisher",
        description="Publish the extension as a public Lambda layer in every region",
    )
    parser.add_argument("--config", default=None, help="YAML configuration file")
    parser.add_argument("--log-level", default=None)
    parser.add_argument("--log-format", choices=["console", "json"], default=None)
    subparsers = parser.add_subparsers(dest="command", required=True)

    publish = subparsers.add_parser("publish", help="Build, publish and record layer ARNs")
    publish.add_argument(
        "--backend",
        choices=[backend.value for backend in Backend],
        default=None,
        help="'mock' publishes into an in-memory account (dry run)",
    )
    publish.add_argument(
        "--architecture",
        dest="architectures",
        action="append",
        choices=[arch.value for arch in Architecture],
        default=None,
        help="Repeat to select several; defaults to all",
    )
    publish.add_argument("--max-concurrency", type=int, default=None)
    publish.add_argument(
        "--merge-previous",
        action="store_true",
        help="Keep catalog entries for regions not published this run",
    )

    resolve = subparsers.add_parser("resolve", help="Print the layer ARN for a region")
    resolve.add_argument("region")
    resolve.add_argument("architecture", choices=[arch.value for arch in Architecture])
    resolve.add_argument("--catalog", default=None, help="Catalog JSON file")
    resolve.add_argument(
        "--fallback-version",
        type=int,
        default=None,
        help="Synthesize the ARN with this version if the catalog has no entry",
    )
    return parser


def _load(args: argparse.Namespace) -> PublisherConfig:
    overrides = {
        "log_level": args.log_level,
        "log_format": args.log_format,
        "backend": getattr(args, "backend", None),
        "architectures": getattr(args, "architectures", None),
        "max_concurrency": getattr(args, "max_concurrency", None),
    }
    config = load_config(args.config, **overrides)
    if getattr(args, "merge_previous", False):
        config = config.model_copy(
            update={"catalog": config.catalog.model_copy(update={"merge_previous": True})}
        )
    return config


def _publish(config: PublisherConfig) -> int:
    report = asyncio.run(LayerPublisher(config).run())
    print(
        json.dumps(
            {
                "published": len(report.results),
                "skipped": [
                    f.model_dump(
                        mode="json",
                        include={
                            "region",
                            "architecture",
                            "stage",
                            "error_code",
                            "orphaned_version",
                            "version_may_exist",
                        },
                    )
                    for f in report.failures
                ],
                "failed_builds": [f.architecture.value for f in report.build_failures],
                "report_path": str(report.report_path),
                "catalog_path": str(report.catalog_path),
            },
            sort_keys=True,
        )
    )
    return EXIT_BUILD if report.build_failures else EXIT_OK


def _resolve(config: PublisherConfig, args: argparse.Namespace) -> int:
    catalog_path = args.catalog or config.catalog.catalog_path
    resolver = CatalogResolver.from_file(catalog_path, layer_config=config.layer)
    print(
        resolver.resolve_or_synthesize(
            args.region,
            args.architecture,
            fallback_version=args.fallback_version,
        )
    )
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level or "INFO", args.log_format or "console")

    try:
        config = _load(args)
    except (ConfigurationError, FileNotFoundError) as exc:
        logger.error("configuration_failed", error=str(exc))
        return EXIT_CONFIG
    configure_logging(config.log_level, config.log_format)
    structlog.contextvars.bind_contextvars(environment=config.environment)

    try:
        if args.command == "publish":
            return _publish(config)
        return _resolve(config, args)
    except ConfigurationError as exc:
        logger.error("configuration_failed", error=exc.to_dict())
        return EXIT_CONFIG
    except DiscoveryError as exc:
        logger.error("region_discovery_failed", error=exc.to_dict())
        return EXIT_DISCOVERY
    except BuildError as exc:
        logger.error("build_failed", error=exc.to_dict())
        return EXIT_BUILD
    except (PersistError, CatalogFormatError) as exc:
        logger.error("catalog_io_failed", error=exc.to_dict())
        return EXIT_PERSIST
    except NotFoundError as exc:
        logger.error("layer_not_found", error=exc.to_dict())
        return EXIT_NOT_FOUND
    except PublisherError as exc:
        logger.error("publish_run_failed", error=exc.to_dict())
        return EXIT_UNEXPECTED
    except Exception:
        logger.exception("unexpected_error")
        return EXIT_UNEXPECTED
    finally:
        structlog.contextvars.clear_contextvars()


if __name__ == "__main__":
    raise SystemExit(main())
