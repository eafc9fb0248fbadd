"""
Shared Test Fixtures for layer-publisher
===========================================

Reusable pytest fixtures, organized by layer:

    1. Configuration fixtures
    2. Integration fixtures (in-memory AWS backend, directory client)
    3. Build fixtures (fake toolchain runner, builder)
    4. Pipeline fixtures (publisher, orchestrator)
    5. Catalog fixtures (writer paths)
"""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from layer_publisher.core.config import BuildConfig, CatalogConfig, LayerConfig, PublisherConfig
from layer_publisher.core.enums import Architecture, Backend
from layer_publisher.core.models import ArtifactBundle
from layer_publisher.infrastructure.catalog_store import CatalogWriter
from layer_publisher.integrations.aws.mock import (
    InMemoryLayerBackend,
    InMemoryRegionDirectoryClient,
)
from layer_publisher.pipeline.builder import ArtifactBuilder
from layer_publisher.pipeline.orchestrator import PublishOrchestrator
from layer_publisher.pipeline.region_publisher import RegionPublisher


ACCOUNT_ID = "123456789012"


# =============================================================================
# Fake Toolchain
# =============================================================================
class FakeToolchain:
    """Stands in for ``cargo lambda build``.

    On success it writes the fixed output zip the real toolchain produces.
    Architectures listed in ``fail`` exit non-zero with a compiler error.
    """

    def __init__(self, output_path: Path, fail: tuple[Architecture, ...] = ()) -> None:
        self.output_path = output_path
        self.fail_targets = {arch.target_triple for arch in fail}
        self.commands: list[list[str]] = []

    def __call__(self, command, cwd, timeout):
        self.commands.append(list(command))
        target = command[command.index("--target") + 1]
        if target in self.fail_targets:
            return subprocess.CompletedProcess(
                command, 101, stdout="", stderr="error[E0432]: unresolved import"
            )
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_bytes(f"zip for {target}".encode())
        return subprocess.CompletedProcess(command, 0, stdout="Finished release", stderr="")


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def layer_config():
    """Layer naming for a test account."""
    return LayerConfig(account_id=ACCOUNT_ID)


@pytest.fixture
def build_config(tmp_path):
    """Build settings rooted in a temporary workspace."""
    return BuildConfig(workspace=tmp_path)


@pytest.fixture
def config(tmp_path, layer_config, build_config):
    """Mock-backend configuration writing outputs under tmp_path."""
    return PublisherConfig(
        backend=Backend.MOCK,
        layer=layer_config,
        build=build_config,
        catalog=CatalogConfig(
            report_path=tmp_path / "arns.txt",
            catalog_path=tmp_path / "src" / "layers.json",
        ),
    )


# =============================================================================
# Integrations
# =============================================================================

@pytest.fixture
def backend():
    """Fresh in-memory layer backend for the test account."""
    return InMemoryLayerBackend(account_id=ACCOUNT_ID)


@pytest.fixture
def directory_client():
    """In-memory directory client reporting a small region set."""
    return InMemoryRegionDirectoryClient(["us-east-1", "eu-west-1", "ap-south-1"])


# =============================================================================
# Build
# =============================================================================

@pytest.fixture
def toolchain(build_config):
    """Fake toolchain that always succeeds."""
    return FakeToolchain(build_config.output_path())


@pytest.fixture
def builder(build_config, toolchain):
    """ArtifactBuilder wired to the fake toolchain."""
    return ArtifactBuilder(build_config, runner=toolchain)


@pytest.fixture
def arm64_bundle(tmp_path):
    """A bundle file on disk for arm64."""
    path = tmp_path / "optimeist-extension-arm64.zip"
    path.write_bytes(b"PK\x03\x04 arm64 bundle")
    return ArtifactBundle(architecture=Architecture.ARM64, path=path)


# =============================================================================
# Pipeline
# =============================================================================

@pytest.fixture
def region_publisher(backend, layer_config):
    """RegionPublisher over the in-memory backend."""
    return RegionPublisher(backend.repository, layer_config)


@pytest.fixture
def orchestrator(region_publisher):
    """Sequential orchestrator with no retries."""
    return PublishOrchestrator(region_publisher)


# =============================================================================
# Catalog
# =============================================================================

@pytest.fixture
def writer(tmp_path):
    """CatalogWriter targeting tmp_path."""
    return CatalogWriter(
        report_path=tmp_path / "arns.txt",
        catalog_path=tmp_path / "src" / "layers.json",
    )
