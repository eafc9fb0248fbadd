"""
layer_publisher.core.enums - Type-Safe Enumerations
=====================================================

Enumerations used throughout layer-publisher. All enums inherit from both
``str`` and ``Enum`` so they serialize to plain strings in JSON/YAML and
compare equal to their string values (``Architecture.ARM64 == "arm64"``).
"""

from enum import Enum


# =============================================================================
# Architecture Enumeration
# =============================================================================
# Exactly two processor architectures are supported. Each one maps to:
#   - the Rust target triple handed to the toolchain
#   - the suffix appended to the layer name and the bundle file name
#
# The declaration order is the run order: arm64 is built and published
# first, then x86_64.
# =============================================================================
class Architecture(str, Enum):
    """Processor architecture a layer bundle is built for.

    Usage:
        >>> Architecture.ARM64.target_triple
        'aarch64-unknown-linux-musl'
        >>> Architecture("x86_64").layer_suffix
        'x86_64'
    """

    ARM64 = "arm64"
    X86_64 = "x86_64"

    @property
    def target_triple(self) -> str:
        """Toolchain build target for this architecture."""
        return _TARGET_TRIPLES[self]

    @property
    def layer_suffix(self) -> str:
        """Suffix used in the layer name and bundle file name."""
        return self.value


_TARGET_TRIPLES: dict[Architecture, str] = {
    Architecture.ARM64: "aarch64-unknown-linux-musl",
    Architecture.X86_64: "x86_64-unknown-linux-musl",
}


# =============================================================================
# Publish Stage Enumeration
# =============================================================================
# Identifies which step of a Region Publisher call failed. GRANT_PERMISSION
# is the partial-failure state: the version exists but is not public.
# OPEN_REPOSITORY means the region-scoped client could not be created.
# =============================================================================
class PublishStage(str, Enum):
    """Step of a single (region, architecture) publish."""

    READ_BUNDLE = "read_bundle"             # Reading the bundle from local disk
    OPEN_REPOSITORY = "open_repository"     # Creating the region-scoped handle
    CREATE_VERSION = "create_version"       # PublishLayerVersion
    GRANT_PERMISSION = "grant_permission"   # AddLayerVersionPermission


# =============================================================================
# Backend Enumeration
# =============================================================================
# Selects the cloud integration. "mock" swaps in the in-memory region
# directory and layer repositories, which is what a dry run uses.
# =============================================================================
class Backend(str, Enum):
    """Which integration backend the pipeline talks to."""

    AWS = "aws"
    MOCK = "mock"
