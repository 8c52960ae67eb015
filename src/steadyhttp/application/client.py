"""Client: long-lived timeout/retry policy that stamps out requests"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Union

import requests

from steadyhttp.domain.config import ClientConfig, ShouldRetry, warn_if_shrinking
from steadyhttp.infrastructure.config.config_manager import ConfigManager
from steadyhttp.infrastructure.retry import RandomFactory
from steadyhttp.infrastructure.transport import new_http_session
from steadyhttp.application.request import Request

logger = logging.getLogger(__name__)


class Client:
    """Holds the shared transport and the policy copied into each request

    Construct once and reuse: all requests share one requests.Session, so
    connections are pooled and cookies persist across requests. Each
    request receives the config that was current when it was created;
    reconfiguring the client later does not touch requests already issued.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        session: Optional[requests.Session] = None,
        *,
        rng_factory: Optional[RandomFactory] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self._config = config or ClientConfig()
        self.session = session or new_http_session()
        warn_if_shrinking(self._config.backoff)
        self._rng_factory = rng_factory
        self._sleep = sleep

    @classmethod
    def from_config_file(cls, config_path: Optional[Union[str, Path]] = None) -> "Client":
        """Create a client from .steadyhttp.yml and STEADYHTTP_* variables

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        return cls(ConfigManager(config_path).get_client_config())

    @property
    def config(self) -> ClientConfig:
        return self._config

    def timeout(self, timeout: float) -> "Client":
        """Set the deadline in seconds for requests created from now on"""
        self._config = self._config.with_updates(timeout=timeout)
        return self

    def retry(
        self,
        max_retries: int,
        backoff: float,
        should_retry: Optional[ShouldRetry] = None,
    ) -> "Client":
        """Set the retry policy

        Args:
            max_retries: Retries after the first attempt
            backoff: Multiplier applied to each delay after the first
            should_retry: Predicate replacing the current one (kept if omitted)
        """
        changes = {"max_retries": max_retries, "backoff": backoff}
        if should_retry is not None:
            changes["should_retry"] = should_retry
        self._config = self._config.with_updates(**changes)
        warn_if_shrinking(backoff)
        logger.debug(f"Retry policy: max_retries={max_retries}, backoff={backoff}")
        return self

    def request(self) -> Request:
        """Start a new request; use it from a single thread only"""
        return Request(
            self.session,
            self._config,
            rng_factory=self._rng_factory,
            sleep=self._sleep,
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def new(config: Optional[ClientConfig] = None) -> Client:
    """Create a client. Call once and reuse it to share the transport."""
    return Client(config)
