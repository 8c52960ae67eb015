"""Client configuration model."""

import logging
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from steadyhttp.domain.models.response import HTTPResponse

logger = logging.getLogger(__name__)

ShouldRetry = Callable[[Optional[HTTPResponse], bytes, List[Exception]], bool]


def default_should_retry(
    response: Optional[HTTPResponse], body: bytes, errors: List[Exception]
) -> bool:
    """Retry only when the server answered with a 5xx status.

    Transport errors (no response at all) and 4xx responses are final.
    """
    if response is not None:
        return response.status_code > 499
    return False


def warn_if_shrinking(backoff: float) -> None:
    """Log a warning for a backoff multiplier that shrinks retry delays"""
    if 0.0 < backoff < 1.0:
        logger.warning(
            f"Backoff multiplier {backoff} is below 1: retry delays will shrink "
            "and may flood a failing server"
        )


class ClientConfig(BaseModel):
    """Timeout and retry policy of a client.

    Instances are frozen: a client replaces its config on reconfiguration,
    and every request keeps the instance it was created with.

    Attributes:
        timeout: Per-connection deadline in seconds (None = no deadline)
        max_retries: Number of retries after the first attempt
        backoff: Multiplier applied to the previous retry delay
        min_retry_delay: Lower bound of the first retry delay in seconds
        retry_delay_range: Width of the random jitter added to the first delay
        should_retry: Predicate deciding whether an attempt is retried
    """

    timeout: Optional[float] = Field(None, gt=0.0)
    max_retries: int = Field(0, ge=0)
    backoff: float = Field(0.0, ge=0.0)
    min_retry_delay: float = Field(0.1, ge=0.0)
    retry_delay_range: float = Field(0.2, ge=0.0)
    should_retry: ShouldRetry = Field(default=default_should_retry, exclude=True)

    model_config = ConfigDict(frozen=True, extra="forbid")

    def with_updates(self, **changes: Any) -> "ClientConfig":
        """Return a validated copy with the given fields replaced"""
        values = {name: getattr(self, name) for name in type(self).model_fields}
        values.update(changes)
        return type(self).model_validate(values)
