"""Standard response shape shared by the retry predicate and callers"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Mapping, Optional


@dataclass(frozen=True)
class HTTPResponse:
    """Normalized HTTP response

    Carries the same field names as ``requests.Response`` so code written
    against one reads naturally against the other. The body is returned
    separately by the terminal call.
    """

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    url: str = ""
    reason: Optional[str] = None
    elapsed: timedelta = field(default_factory=timedelta)
    encoding: Optional[str] = None

    @property
    def ok(self) -> bool:
        """True for status codes below 400"""
        return self.status_code < 400

    @property
    def is_server_error(self) -> bool:
        return self.status_code > 499


@dataclass(frozen=True)
class Outcome:
    """Result of a single attempt"""

    response: Optional[HTTPResponse]
    body: bytes = b""
    errors: List[Exception] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        """Check if the attempt ended without any response"""
        return self.response is None
