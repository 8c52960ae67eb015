"""Domain models."""

from steadyhttp.domain.models.response import HTTPResponse, Outcome

__all__ = ["HTTPResponse", "Outcome"]
