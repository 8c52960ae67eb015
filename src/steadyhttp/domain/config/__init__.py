"""Configuration models with Pydantic validation."""

from steadyhttp.domain.config.client import (
    ClientConfig,
    ShouldRetry,
    default_should_retry,
    warn_if_shrinking,
)

__all__ = [
    "ClientConfig",
    "ShouldRetry",
    "default_should_retry",
    "warn_if_shrinking",
]
