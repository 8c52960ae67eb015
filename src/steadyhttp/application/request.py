"""Request session: one logical HTTP exchange with retry around its terminal call"""

from __future__ import annotations

import dataclasses
import json
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import requests
from pydantic import BaseModel, ValidationError

from steadyhttp.domain.config import ClientConfig
from steadyhttp.domain.errors import DecodeError, RequestAlreadySentError, RequestOwnershipError
from steadyhttp.domain.models.response import HTTPResponse, Outcome
from steadyhttp.infrastructure.agent import Agent
from steadyhttp.infrastructure.retry import RandomFactory, RetryEngine

logger = logging.getLogger(__name__)


def to_http_response(response: Optional[requests.Response]) -> Optional[HTTPResponse]:
    """Re-read a requests.Response as the standard response shape"""
    if response is None:
        return None
    return HTTPResponse(
        status_code=response.status_code,
        headers=response.headers,
        url=response.url,
        reason=response.reason,
        elapsed=response.elapsed,
        encoding=response.encoding,
    )


def _attribute_names(destination: Any) -> Set[str]:
    names: Set[str] = set()
    if dataclasses.is_dataclass(destination):
        names.update(f.name for f in dataclasses.fields(destination))
    names.update(getattr(type(destination), "__annotations__", {}))
    names.update(getattr(destination, "__dict__", {}))
    return {name for name in names if not name.startswith("_")}


def decode_into(body: bytes, destination: Any) -> None:
    """Decode a JSON body into ``destination`` in place

    Supports dicts, lists, pydantic models, dataclasses and plain objects.
    Keys without a matching attribute are ignored; attribute names match
    exactly first, then case-insensitively.

    Raises:
        ValueError: If the body is not JSON or does not fit the destination
    """
    data = json.loads(body)

    if isinstance(destination, dict):
        if not isinstance(data, dict):
            raise DecodeError(f"Cannot decode JSON {type(data).__name__} into a dict")
        destination.update(data)
        return

    if isinstance(destination, list):
        if not isinstance(data, list):
            raise DecodeError(f"Cannot decode JSON {type(data).__name__} into a list")
        destination[:] = data
        return

    if not isinstance(data, dict):
        raise DecodeError(
            f"Cannot decode JSON {type(data).__name__} into {type(destination).__name__}"
        )

    if isinstance(destination, BaseModel):
        merged = {**destination.model_dump(by_alias=True), **data}
        validated = type(destination).model_validate(merged)
        for name in type(destination).model_fields:
            setattr(destination, name, getattr(validated, name))
        return

    names = _attribute_names(destination)
    if not names:
        raise DecodeError(f"Cannot decode JSON object into {type(destination).__name__}")
    folded = {name.lower(): name for name in names}
    for key, value in data.items():
        name = key if key in names else folded.get(key.lower())
        if name is not None:
            setattr(destination, name, value)


class Request:
    """Chainable, single-use HTTP request

    Every builder call returns the request itself. One of ``end``,
    ``end_bytes`` or ``end_struct`` finishes the chain; a request must stay
    on the thread that created it and cannot be ended twice.
    """

    def __init__(
        self,
        session: requests.Session,
        config: ClientConfig,
        *,
        rng_factory: Optional[RandomFactory] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self._agent = Agent(session, timeout=config.timeout)
        self._config = config
        self._engine = RetryEngine(
            config.max_retries,
            config.backoff,
            config.min_retry_delay,
            config.retry_delay_range,
            rng_factory=rng_factory,
            sleep=sleep,
        )
        self._owner = threading.get_ident()
        self._sent = False
        self.attempts = 0

    @property
    def config(self) -> ClientConfig:
        return self._config

    def _check_owner(self) -> None:
        if threading.get_ident() != self._owner:
            raise RequestOwnershipError("Request used from a thread other than its creator")

    def get(self, target_url: str) -> "Request":
        self._check_owner()
        self._agent.get(target_url)
        return self

    def post(self, target_url: str) -> "Request":
        self._check_owner()
        self._agent.post(target_url)
        return self

    def put(self, target_url: str) -> "Request":
        self._check_owner()
        self._agent.put(target_url)
        return self

    def head(self, target_url: str) -> "Request":
        self._check_owner()
        self._agent.head(target_url)
        return self

    def delete(self, target_url: str) -> "Request":
        self._check_owner()
        self._agent.delete(target_url)
        return self

    def patch(self, target_url: str) -> "Request":
        self._check_owner()
        self._agent.patch(target_url)
        return self

    def set(self, param: str, value: str) -> "Request":
        """Set a single header (last write wins)"""
        self._check_owner()
        self._agent.set(param, value)
        return self

    def set_headers(self, headers: Dict[str, str]) -> "Request":
        self._check_owner()
        for key, value in headers.items():
            self._agent.set(key, value)
        return self

    def type(self, type_str: str) -> "Request":
        """Set the content type used to encode the body (json, form, text, ...)"""
        self._check_owner()
        self._agent.type(type_str)
        return self

    def query(self, content: Any) -> "Request":
        self._check_owner()
        self._agent.query(content)
        return self

    def send(self, content: Any) -> "Request":
        self._check_owner()
        self._agent.send(content)
        return self

    def set_debug(self, enabled: bool) -> "Request":
        self._check_owner()
        self._agent.set_debug(enabled)
        return self

    def _execute(self) -> Tuple[Optional[requests.Response], Outcome]:
        """Run the exchange under the retry engine, keeping the last attempt"""
        self._check_owner()
        if self._sent:
            raise RequestAlreadySentError("Request has already been sent")
        self._sent = True

        native: Optional[requests.Response] = None
        outcome = Outcome(response=None)

        def _attempt() -> bool:
            nonlocal native, outcome
            native, body, errors = self._agent.end_bytes()
            outcome = Outcome(response=to_http_response(native), body=body, errors=errors)
            if not outcome.failed:
                logger.debug(
                    f"{self._agent.method} {self._agent.url} -> {outcome.response.status_code}"
                )
            return self._config.should_retry(outcome.response, outcome.body, list(outcome.errors))

        def _describe() -> str:
            if outcome.response is not None:
                return f"status {outcome.response.status_code}"
            if outcome.errors:
                return f"error: {outcome.errors[-1]}"
            return "no response"

        self.attempts = self._engine.run(_attempt, _describe)
        return native, outcome

    def end(self) -> Tuple[Optional[HTTPResponse], str, List[Exception]]:
        """Send the request and return the body as text"""
        native, outcome = self._execute()
        text = native.text if native is not None else ""
        return outcome.response, text, list(outcome.errors)

    def end_bytes(self) -> Tuple[Optional[HTTPResponse], bytes, List[Exception]]:
        """Send the request and return the body as bytes"""
        _, outcome = self._execute()
        return outcome.response, outcome.body, list(outcome.errors)

    def end_struct(self, content: Any) -> Tuple[Optional[HTTPResponse], bytes, List[Exception]]:
        """Send the request and decode the JSON body into ``content``

        A decode failure is appended to the error list; response and body
        are still returned.
        """
        _, outcome = self._execute()
        errors = list(outcome.errors)
        try:
            decode_into(outcome.body, content)
        except (ValueError, ValidationError, AttributeError) as e:
            logger.debug(f"Failed to decode response body: {e}")
            errors.append(e)
        return outcome.response, outcome.body, errors
