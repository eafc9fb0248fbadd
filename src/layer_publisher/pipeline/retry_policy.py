"""
layer_publisher.pipeline.retry_policy - Orchestrator Retry Policy
===================================================================

Exponential backoff with jitter for region publishes the orchestrator
decides to retry. Retries are off by default (``max_retries=0``): the
pipeline runs sequentially to stay under the Lambda API rate limits, and a
skipped region is reported rather than hammered.

Backoff Formula:
    base_delay = initial_delay * (backoff_multiplier ^ attempt)
    jitter     = random(0, base_delay * 0.1)
    delay      = min(base_delay + jitter, max_delay)

Only CREATE_VERSION failures are eligible. Once a version exists, retrying
the whole publish would create another version instead of fixing the
permission on the first one. The same holds for a create call that timed
out: it may have landed, so it is never retried whatever the code list says.
"""

from __future__ import annotations

import random

from pydantic import BaseModel, Field

from layer_publisher.core.enums import PublishStage
from layer_publisher.core.exceptions import PublishError


class RetryPolicy(BaseModel):
    """Retry configuration for failed region publishes.

    Attributes:
        max_retries: Retry attempts after the first failure (0 = none).
        initial_delay: Base delay in seconds for the first retry.
        max_delay: Cap on any single delay.
        backoff_multiplier: Growth factor between attempts.
        retryable_errors: Error codes worth retrying (throttling, transient
            service faults, connection failures).

    Example:
        >>> policy = RetryPolicy(max_retries=2, initial_delay=0.5)
        >>> policy.calculate_delay(1)  # ~1.0s (0.5 * 2^1 + jitter)
    """

    max_retries: int = Field(default=0, ge=0, le=10)
    initial_delay: float = Field(default=1.0, gt=0, le=30.0)
    max_delay: float = Field(default=30.0, gt=0, le=300.0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0, le=10.0)
    retryable_errors: list[str] = Field(
        default=[
            "TooManyRequestsException",
            "ThrottlingException",
            "ServiceException",
            "EndpointConnectionError",
            "ConnectTimeoutError",
        ],
    )

    def calculate_delay(self, attempt: int) -> float:
        """Delay in seconds before retry number ``attempt`` (zero-based)."""
        base_delay = self.initial_delay * (self.backoff_multiplier ** attempt)
        jitter = random.uniform(0, base_delay * 0.1)
        return min(base_delay + jitter, self.max_delay)

    def is_retryable(self, error_code: str) -> bool:
        return error_code in self.retryable_errors

    def should_retry(self, error: PublishError, attempt: int) -> bool:
        """Whether to retry after ``error`` on zero-based ``attempt``."""
        return (
            attempt < self.max_retries
            and error.stage == PublishStage.CREATE_VERSION.value
            and not error.details.get("version_may_exist", False)
            and self.is_retryable(error.error_code)
        )
