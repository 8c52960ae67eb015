"""Shared transport: one requests.Session per client."""

from __future__ import annotations

import requests


def new_http_session() -> requests.Session:
    """Create the session shared by every request of a client.

    requests keeps cookies in a RequestsCookieJar that follows the domain
    rules of the standard cookie policy. Deadlines are not set here: each
    request passes its own timeout to ``Session.request``.
    """
    return requests.Session()
