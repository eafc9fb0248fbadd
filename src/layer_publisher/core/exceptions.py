"""
layer_publisher.core.exceptions - Custom Exception Hierarchy
==============================================================

This module defines the structured exception hierarchy for layer-publisher.
Components raise and catch specific exception types that carry contextual
information instead of bare strings.

Exception Hierarchy:
    PublisherError (base)
        ├── ConfigurationError   - Invalid config, missing required values
        ├── ServiceCallError     - A classified AWS API call failure
        ├── DiscoveryError       - Region list unavailable (fatal to the run)
        ├── BuildError           - Toolchain failure (fatal to one architecture)
        ├── PublishError         - One (region, architecture) publish failed
        ├── OrchestrationError   - Orchestrator given structurally invalid input
        ├── PersistError         - Report or catalog could not be written
        ├── CatalogFormatError   - Persisted catalog could not be parsed
        └── NotFoundError        - Resolver lookup miss

Error Handling Flow:
    LayerRepository call fails
        → integration raises ServiceCallError (AWS error code attached)
        → RegionPublisher wraps it in PublishError with the failing stage
        → PublishOrchestrator logs it, records a PublishFailure, continues
    Every other layer propagates.

Usage:
    >>> from layer_publisher.core.exceptions import PublishError
    >>> raise PublishError(
    ...     message="Layer version created but permission grant failed",
    ...     region="eu-west-1",
    ...     architecture="arm64",
    ...     stage="grant_permission",
    ...     error_code="AccessDeniedException",
    ... )
"""

from __future__ import annotations

from typing import Any, Optional


# =============================================================================
# Base Exception
# =============================================================================
# All layer-publisher exceptions inherit from this base class, so a caller
# can catch every framework error with a single except clause:
#
#   try:
#       report = await publisher.run()
#   except PublisherError as e:
#       logger.error(e.message, error_code=e.error_code, details=e.details)
# =============================================================================
class PublisherError(Exception):
    """Base exception for all layer-publisher errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code. Our own codes use
            UPPER_SNAKE_CASE; codes coming from AWS keep their service
            spelling (e.g., "TooManyRequestsException").
        details: Arbitrary dict with additional debugging context.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize this exception to a dictionary for structured logging.

        Returns:
            Dictionary with error_type, message, error_code, and details.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


# =============================================================================
# Configuration Error
# =============================================================================
class ConfigurationError(PublisherError):
    """Raised when layer-publisher configuration is invalid or missing.

    Common Causes:
        - Malformed YAML configuration file
        - Unknown backend name
        - Build command template without a ``{target}`` placeholder
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Service Call Error
# =============================================================================
# Raised by the integrations layer. The AWS error code (from botocore's
# ClientError response) becomes the error_code so the orchestrator's retry
# policy can match throttling codes directly.
# =============================================================================
class ServiceCallError(PublisherError):
    """Raised when a remote AWS API call fails.

    Attributes:
        operation: API operation name (e.g., "PublishLayerVersion").
        region: Region the call was sent to, if any.

    Example:
        >>> raise ServiceCallError(
        ...     message="Rate exceeded",
        ...     operation="PublishLayerVersion",
        ...     region="us-east-1",
        ...     error_code="TooManyRequestsException",
        ... )
    """

    def __init__(
        self,
        message: str,
        operation: str,
        region: Optional[str] = None,
        error_code: str = "SERVICE_CALL_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["operation"] = operation
        if region:
            enriched_details["region"] = region

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.operation = operation
        self.region = region


# =============================================================================
# Discovery Error
# =============================================================================
class DiscoveryError(PublisherError):
    """Raised when the set of target regions cannot be determined.

    Fatal to the whole run: with no regions there is no well-defined work.

    Common Causes:
        - Region directory service unreachable or denied
        - Directory returned an empty list
        - Directory returned malformed entries
    """

    def __init__(
        self,
        message: str,
        error_code: str = "DISCOVERY_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Build Error
# =============================================================================
class BuildError(PublisherError):
    """Raised when the toolchain fails to produce a bundle for an architecture.

    Fatal to publishing that architecture only; the other architecture's
    pipeline still runs.

    Attributes:
        architecture: The architecture whose build failed.
        diagnostics: Toolchain output (stderr, falling back to stdout).
    """

    def __init__(
        self,
        message: str,
        architecture: str,
        diagnostics: str = "",
        error_code: str = "BUILD_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["architecture"] = architecture
        if diagnostics:
            enriched_details["diagnostics"] = diagnostics

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.architecture = architecture
        self.diagnostics = diagnostics


# =============================================================================
# Publish Error
# =============================================================================
# The stage tells apart "nothing was created" (read_bundle, create_version)
# from the partial-failure state "a version exists but is not public"
# (grant_permission).
# =============================================================================
class PublishError(PublisherError):
    """Raised when publishing to one (region, architecture) pair fails.

    Attributes:
        region: Target region.
        architecture: Target architecture.
        stage: Which step failed: "read_bundle", "open_repository",
            "create_version" or "grant_permission".
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        region: str,
        architecture: str,
        stage: str,
        cause: Optional[BaseException] = None,
        error_code: str = "PUBLISH_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["region"] = region
        enriched_details["architecture"] = architecture
        enriched_details["stage"] = stage
        if cause is not None:
            enriched_details["cause"] = str(cause)

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.region = region
        self.architecture = architecture
        self.stage = stage
        self.cause = cause


# =============================================================================
# Orchestration Error
# =============================================================================
class OrchestrationError(PublisherError):
    """Raised when the orchestrator is given structurally invalid input.

    Single-region failures never raise; only an empty region list, a
    missing bundle, or a bundle built for another architecture do.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "INVALID_ORCHESTRATION_INPUT",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Persist Error
# =============================================================================
class PersistError(PublisherError):
    """Raised when the report or the catalog cannot be written.

    A publish run whose results cannot be durably recorded is a failed run.

    Attributes:
        target: Destination path that could not be written.
    """

    def __init__(
        self,
        message: str,
        target: str,
        error_code: str = "PERSIST_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["target"] = target

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.target = target


# =============================================================================
# Catalog Format Error
# =============================================================================
class CatalogFormatError(PublisherError):
    """Raised when a persisted catalog file is not a region → arch → ARN map."""

    def __init__(
        self,
        message: str,
        path: str,
        error_code: str = "CATALOG_MALFORMED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["path"] = path

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.path = path


# =============================================================================
# Not Found Error
# =============================================================================
# Expected on the consumer side: a region launched after the last publish
# run, or a region intentionally excluded. The caller decides on fallback.
# =============================================================================
class NotFoundError(PublisherError):
    """Raised when the catalog has no reference for (region, architecture).

    Attributes:
        region: The requested region.
        architecture: The requested architecture.
    """

    def __init__(
        self,
        message: str,
        region: str,
        architecture: str,
        error_code: str = "LAYER_NOT_FOUND",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["region"] = region
        enriched_details["architecture"] = architecture

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.region = region
        self.architecture = architecture
