"""
layer_publisher.infrastructure.catalog_store - Catalog Writer
===============================================================

Folds a run's flat result list into the region → architecture → ARN
catalog and persists the two run outputs:

    arns.txt          Markdown table for humans, one row per result in
                      publish order (duplicates included).
    src/layers.json   JSON catalog for the resolver, one ARN per
                      (region, architecture); a later result for the same
                      key replaces the earlier one.

Catalog Shape:
    {
      "eu-west-1": {"arm64": "arn:...:1", "x86_64": "arn:...:1"},
      "us-east-1": {"arm64": "arn:...:7"}
    }

Both files are written to a hidden temp file beside the destination and
moved into place with ``os.replace``, so a reader never sees a partial file.
The report is written first, then the catalog. Both writes are attempted
even if the first one fails.

By default a run's catalog replaces the previous one wholesale. With
``merge_previous`` the existing catalog is loaded and this run's results
are layered on top, so regions skipped this run keep their last reference.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional
from uuid import uuid4

import structlog

from layer_publisher.core.exceptions import CatalogFormatError, PersistError
from layer_publisher.core.models import Catalog, PublishResult


logger = structlog.get_logger()

REPORT_HEADER = "| Region | Arch | ARN |\n| -------- | -------- | -------- |\n"


# =============================================================================
# Pure Transformations
# =============================================================================
def build_catalog(
    results: Iterable[PublishResult],
    base: Optional[Mapping[str, Mapping[str, str]]] = None,
) -> Catalog:
    """Fold results into a catalog; the last result for a key wins.

    Args:
        results: Results in publish order.
        base: Optional catalog to layer the results on top of.

    Returns:
        A new catalog. ``base`` is not modified.
    """
    catalog: Catalog = {region: dict(entries) for region, entries in (base or {}).items()}
    for result in results:
        catalog.setdefault(result.region, {})[result.architecture.value] = (
            result.artifact_reference
        )
    return catalog


def render_report(results: Iterable[PublishResult]) -> str:
    """Render the markdown report table, one row per result in input order."""
    rows = [
        f"|{result.region}|{result.architecture.value}|{result.artifact_reference}|\n"
        for result in results
    ]
    return REPORT_HEADER + "".join(rows)


def render_catalog(catalog: Mapping[str, Mapping[str, str]]) -> str:
    return json.dumps(catalog, indent=2, sort_keys=True) + "\n"


# =============================================================================
# File I/O
# =============================================================================
def _atomic_temp_path(target_path: Path) -> Path:
    return target_path.parent / f".{target_path.name}.{uuid4().hex}.tmp"


def write_text_atomically(text: str, output_path: Path) -> Path:
    """Write text atomically (temp file in the same directory + rename)."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = _atomic_temp_path(output_path)
    try:
        temp_path.write_text(text, encoding="utf-8")
        os.replace(temp_path, output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return output_path


def _validate_catalog(data: Any, path: Path) -> Catalog:
    if not isinstance(data, dict):
        raise CatalogFormatError(
            message=f"Catalog {path} must be a JSON object",
            path=str(path),
        )
    for region, entries in data.items():
        if not isinstance(entries, dict):
            raise CatalogFormatError(
                message=f"Catalog entry for {region!r} must be an object",
                path=str(path),
                details={"region": region},
            )
        for architecture, reference in entries.items():
            if not isinstance(reference, str):
                raise CatalogFormatError(
                    message=f"Reference for {region}/{architecture} must be a string",
                    path=str(path),
                    details={"region": region, "architecture": architecture},
                )
    return data


def load_catalog(path: Path) -> Catalog:
    """Load a persisted catalog.

    A missing file is an empty catalog (nothing published yet).

    Raises:
        CatalogFormatError: If the file cannot be read or is not a
            region → architecture → string mapping.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        raise CatalogFormatError(
            message=f"Catalog {path} could not be read: {exc}",
            path=str(path),
            error_code="CATALOG_UNREADABLE",
        ) from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CatalogFormatError(
            message=f"Catalog {path} is not valid JSON: {exc}",
            path=str(path),
        ) from exc

    return _validate_catalog(data, path)


# =============================================================================
# Catalog Writer
# =============================================================================
class CatalogWriter:
    """Persists a run's report and catalog.

    Args:
        report_path: Destination of the markdown report.
        catalog_path: Destination of the JSON catalog.
        merge_previous: Layer new results over the existing catalog
            instead of replacing it.

    Example:
        >>> writer = CatalogWriter(Path("arns.txt"), Path("src/layers.json"))
        >>> report, catalog = writer.write(results)
    """

    def __init__(
        self,
        report_path: Path,
        catalog_path: Path,
        merge_previous: bool = False,
    ) -> None:
        self.report_path = Path(report_path)
        self.catalog_path = Path(catalog_path)
        self.merge_previous = merge_previous
        self._logger = logger.bind(component="catalog_writer")

    def write(self, results: list[PublishResult]) -> tuple[str, Catalog]:
        """Render and persist the report and catalog for ``results``.

        Args:
            results: All results of the run, in publish order.

        Returns:
            The rendered report text and the catalog that was written.

        Raises:
            PersistError: If the previous catalog cannot be merged, or if
                either file cannot be written. The error names the first
                failing target; any other failure is listed in details.
        """
        base: Catalog = {}
        if self.merge_previous:
            try:
                base = load_catalog(self.catalog_path)
            except CatalogFormatError as exc:
                raise PersistError(
                    message=f"Cannot merge into existing catalog: {exc.message}",
                    target=str(self.catalog_path),
                    error_code="PREVIOUS_CATALOG_MALFORMED",
                    details={"cause": exc.to_dict()},
                ) from exc

        report = render_report(results)
        catalog = build_catalog(results, base=base)

        failures: list[tuple[Path, OSError]] = []
        for target, text in (
            (self.report_path, report),
            (self.catalog_path, render_catalog(catalog)),
        ):
            try:
                write_text_atomically(text, target)
            except OSError as exc:
                self._logger.error("output_write_failed", target=str(target), error=str(exc))
                failures.append((target, exc))

        if failures:
            target, cause = failures[0]
            raise PersistError(
                message=f"Could not write {target}: {cause}",
                target=str(target),
                details={
                    "cause": str(cause),
                    "additional_failures": [
                        {"target": str(other), "cause": str(exc)}
                        for other, exc in failures[1:]
                    ],
                },
            ) from cause

        self._logger.info(
            "catalog_written",
            report_path=str(self.report_path),
            catalog_path=str(self.catalog_path),
            rows=len(results),
            regions=len(catalog),
            merged=self.merge_previous,
        )
        return report, catalog
