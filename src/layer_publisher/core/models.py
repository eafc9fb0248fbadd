"""
layer_publisher.core.models - Core Data Models
================================================

Pydantic data models that flow between the pipeline components.

Model Hierarchy:
    ArtifactBundle    → What was built? (one zip per architecture per run)
    LayerVersion      → What did the repository create? (version + ARN)
    PublishResult     → Which reference now serves (region, architecture)?
    PublishFailure    → Which region was skipped, and why?
    PublishOutcome    → Everything one orchestrator run produced
    PublishRunReport  → Everything one end-to-end run produced

Data Flow:
    ┌──────────────┐  ArtifactBundle  ┌────────────────┐  PublishResult
    │   Artifact   │ ───────────────→ │    Publish     │ ─────────────┐
    │   Builder    │                  │  Orchestrator  │              │
    └──────────────┘                  └────────────────┘              ▼
                                              │ PublishFailure  ┌──────────┐
                                              └───────────────→ │ Catalog  │
                                                  (report only) │  Writer  │
                                                                └──────────┘

Result models are frozen: a result is a snapshot of something that already
happened in AWS and is never edited afterwards.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from layer_publisher.core.enums import Architecture, PublishStage


# A catalog maps region → architecture value → layer version ARN.
Catalog = dict[str, dict[str, str]]


def _now() -> datetime:
    """Current UTC timestamp."""
    return datetime.now(timezone.utc)


# =============================================================================
# Artifact Bundle
# =============================================================================
class ArtifactBundle(BaseModel):
    """A packaged extension zip built for one architecture.

    Owned by the ArtifactBuilder until handed to the RegionPublisher;
    read-only afterwards.

    Attributes:
        architecture: Architecture the bundle was built for.
        path: Architecture-qualified location of the zip on local disk.
        built_at: When the build finished (UTC).
    """

    model_config = {"frozen": True}

    architecture: Architecture = Field(
        description="Architecture the bundle was built for",
    )
    path: Path = Field(
        description="Architecture-qualified path to the packaged zip",
    )
    built_at: datetime = Field(
        default_factory=_now,
        description="When the build finished (UTC)",
    )


# =============================================================================
# Layer Version
# =============================================================================
class LayerVersion(BaseModel):
    """A layer version as returned by the repository's create call."""

    model_config = {"frozen": True}

    version: int = Field(ge=1, description="Layer version number")
    arn: str = Field(min_length=1, description="Layer version ARN")


# =============================================================================
# Publish Result
# =============================================================================
class PublishResult(BaseModel):
    """Outcome of one successful publish-and-grant for (region, architecture).

    Attributes:
        region: Region the layer version was published into.
        architecture: Architecture of the published bundle.
        artifact_reference: The layer version ARN consumers attach.
        version: Layer version number, when known.
    """

    model_config = {"frozen": True}

    region: str = Field(min_length=1, description="Target region")
    architecture: Architecture = Field(description="Bundle architecture")
    artifact_reference: str = Field(
        min_length=1,
        description="Layer version ARN",
    )
    version: Optional[int] = Field(
        default=None,
        description="Layer version number (None for results loaded from elsewhere)",
    )

    @property
    def key(self) -> tuple[str, Architecture]:
        """The (region, architecture) catalog key of this result."""
        return (self.region, self.architecture)


# =============================================================================
# Publish Failure
# =============================================================================
class PublishFailure(BaseModel):
    """Diagnostic record for a region the orchestrator skipped."""

    model_config = {"frozen": True}

    region: str
    architecture: Architecture
    stage: PublishStage
    error_code: str
    message: str
    attempts: int = Field(default=1, ge=1)
    orphaned_version: Optional[int] = Field(
        default=None,
        description="Version left without public access by a grant failure",
    )
    version_may_exist: bool = Field(
        default=False,
        description="A timed-out create call may still have created a version",
    )


# =============================================================================
# Publish Outcome
# =============================================================================
class PublishOutcome(BaseModel):
    """Results and failures of one orchestrator run for one architecture.

    ``results`` preserves the input region order.
    """

    architecture: Architecture
    results: list[PublishResult] = Field(default_factory=list)
    failures: list[PublishFailure] = Field(default_factory=list)

    @property
    def skipped_regions(self) -> list[str]:
        return [failure.region for failure in self.failures]


# =============================================================================
# Build Failure
# =============================================================================
class BuildFailure(BaseModel):
    """Diagnostic record for an architecture whose build failed."""

    model_config = {"frozen": True}

    architecture: Architecture
    error_code: str
    message: str
    diagnostics: str = ""


# =============================================================================
# Publish Run Report
# =============================================================================
class PublishRunReport(BaseModel):
    """Summary of one end-to-end publish run.

    Attributes:
        regions: The region snapshot the run targeted.
        results: All successful results, arm64 first, then x86_64.
        failures: Regions skipped per architecture.
        build_failures: Architectures that never reached the publish phase.
        report_path: Where the markdown report was written.
        catalog_path: Where the JSON catalog was written.
        catalog: The catalog content that was persisted.
    """

    regions: list[str] = Field(default_factory=list)
    results: list[PublishResult] = Field(default_factory=list)
    failures: list[PublishFailure] = Field(default_factory=list)
    build_failures: list[BuildFailure] = Field(default_factory=list)
    report_path: Optional[Path] = None
    catalog_path: Optional[Path] = None
    catalog: Catalog = Field(default_factory=dict)
    started_at: datetime = Field(default_factory=_now)
    completed_at: Optional[datetime] = None

    @property
    def is_partial(self) -> bool:
        """True when at least one region or architecture was skipped."""
        return bool(self.failures or self.build_failures)
