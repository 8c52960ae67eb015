"""Exceptions raised or recorded by steadyhttp"""


class SteadyHTTPError(Exception):
    """Base class for steadyhttp errors."""

    pass


class RequestAlreadySentError(SteadyHTTPError):
    """A terminal operation was called twice on the same request."""

    pass


class RequestOwnershipError(SteadyHTTPError):
    """A request was used from a thread other than the one that created it."""

    pass


class RequestBuildError(SteadyHTTPError, ValueError):
    """Invalid input given to the request builder.

    Recorded in the error list of the terminal call rather than raised.
    """

    pass


class DecodeError(SteadyHTTPError, ValueError):
    """Decoded JSON body does not fit the destination."""

    pass
