"""Timeout and retry with jittered exponential backoff on top of a chainable request builder."""

from steadyhttp.application.client import Client, new
from steadyhttp.application.request import Request
from steadyhttp.domain.config import ClientConfig, ShouldRetry, default_should_retry
from steadyhttp.domain.errors import (
    DecodeError,
    RequestAlreadySentError,
    RequestBuildError,
    RequestOwnershipError,
    SteadyHTTPError,
)
from steadyhttp.domain.models import HTTPResponse, Outcome
from steadyhttp.infrastructure.config.config_manager import ConfigManager, ConfigurationError
from steadyhttp.infrastructure.logging_setup import setup_logging
from steadyhttp.infrastructure.retry import RetryEngine, RetryState

__all__ = [
    "Client",
    "ClientConfig",
    "ConfigManager",
    "ConfigurationError",
    "DecodeError",
    "HTTPResponse",
    "Outcome",
    "Request",
    "RequestAlreadySentError",
    "RequestBuildError",
    "RequestOwnershipError",
    "RetryEngine",
    "RetryState",
    "ShouldRetry",
    "SteadyHTTPError",
    "default_should_retry",
    "new",
    "setup_logging",
]
