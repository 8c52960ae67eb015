"""Chainable request builder over requests.

Agent accumulates method, URL, headers, query and body across calls and
performs a single exchange per ``end``/``end_bytes`` call. It never raises
for transport problems: they come back in the error list together with a
``None`` response.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlencode

import requests
from pydantic import BaseModel
from pydantic_core import to_jsonable_python
from requests.structures import CaseInsensitiveDict

from steadyhttp.domain.errors import RequestBuildError

logger = logging.getLogger(__name__)

GET = "GET"
POST = "POST"
PUT = "PUT"
HEAD = "HEAD"
DELETE = "DELETE"
PATCH = "PATCH"

TYPES = {
    "json": "application/json",
    "form": "application/x-www-form-urlencoded",
    "urlencoded": "application/x-www-form-urlencoded",
    "text": "text/plain",
    "html": "text/html",
    "xml": "application/xml",
}
RAW_TYPES = ("text", "html", "xml")

Pairs = List[Tuple[str, str]]


def _to_mapping(content: Any) -> Optional[Dict[str, Any]]:
    """Convert structured content to a plain dict (None if not structured)"""
    if isinstance(content, BaseModel):
        return content.model_dump(mode="json", by_alias=True)
    if dataclasses.is_dataclass(content) and not isinstance(content, type):
        return dataclasses.asdict(content)
    if isinstance(content, Mapping):
        return dict(content)
    return None


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return _dumps(value)
    return str(value)


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), default=to_jsonable_python)


def _pairs(mapping: Mapping[str, Any]) -> Iterator[Tuple[str, str]]:
    for key, value in mapping.items():
        if isinstance(value, (list, tuple)):
            for item in value:
                yield str(key), _form_value(item)
        else:
            yield str(key), _form_value(value)


def _parse_json_object(content: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(content)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


class Agent:
    """Stateful request builder bound to a shared requests.Session

    Not thread-safe: one agent serves one logical request.
    """

    def __init__(self, session: requests.Session, timeout: Optional[float] = None):
        self.session = session
        self.timeout = timeout
        self.method = GET
        self.url = ""
        self.header: CaseInsensitiveDict = CaseInsensitiveDict()
        self.target_type = "json"
        self.data: Dict[str, Any] = {}
        self.slice_data: List[Any] = []
        self.form_data: Pairs = []
        self.query_data: Pairs = []
        self.raw_body: Optional[Union[str, bytes]] = None
        self.errors: List[Exception] = []
        self.debug = False

    def _open(self, method: str, url: str) -> "Agent":
        self.method = method
        self.url = url
        return self

    def get(self, url: str) -> "Agent":
        return self._open(GET, url)

    def post(self, url: str) -> "Agent":
        return self._open(POST, url)

    def put(self, url: str) -> "Agent":
        return self._open(PUT, url)

    def head(self, url: str) -> "Agent":
        return self._open(HEAD, url)

    def delete(self, url: str) -> "Agent":
        return self._open(DELETE, url)

    def patch(self, url: str) -> "Agent":
        return self._open(PATCH, url)

    def set(self, param: str, value: str) -> "Agent":
        self.header[param] = value
        return self

    def type(self, type_str: str) -> "Agent":
        key = type_str.lower()
        if key not in TYPES:
            self.errors.append(RequestBuildError(f"Unsupported content type: {type_str!r}"))
            return self
        self.target_type = "form" if key == "urlencoded" else key
        return self

    def set_debug(self, enabled: bool) -> "Agent":
        self.debug = enabled
        return self

    def query(self, content: Any) -> "Agent":
        """Append query parameters from a string or structured value"""
        if isinstance(content, str):
            parsed = _parse_json_object(content)
            if parsed is not None:
                self.query_data.extend(_pairs(parsed))
            else:
                self.query_data.extend(parse_qsl(content, keep_blank_values=True))
            return self

        mapping = _to_mapping(content)
        if mapping is None:
            self.errors.append(
                RequestBuildError(f"Unsupported query content: {type(content).__name__}")
            )
            return self
        try:
            self.query_data.extend(_pairs(mapping))
        except (TypeError, ValueError) as e:
            self.errors.append(RequestBuildError(f"Cannot encode query content: {e}"))
        return self

    def send(self, content: Any) -> "Agent":
        """Add content to the body

        JSON object strings and structured values merge into one JSON object.
        Other strings are read as form data, or appended verbatim for raw
        content types.
        """
        if isinstance(content, bytes):
            self.raw_body = content
            return self
        if isinstance(content, str):
            return self._send_string(content)
        if isinstance(content, (list, tuple)):
            self.slice_data.extend(content)
            return self

        mapping = _to_mapping(content)
        if mapping is None:
            self.errors.append(
                RequestBuildError(f"Unsupported body content: {type(content).__name__}")
            )
            return self
        self.data.update(mapping)
        return self

    def _send_string(self, content: str) -> "Agent":
        if self.target_type in RAW_TYPES:
            self._append_raw(content)
            return self

        parsed = _parse_json_object(content)
        if parsed is not None:
            self.data.update(parsed)
            return self

        try:
            pairs = parse_qsl(content, keep_blank_values=True, strict_parsing=True)
        except ValueError:
            self._append_raw(content)
            self.target_type = "text"
            return self
        self.form_data.extend(pairs)
        self.target_type = "form"
        return self

    def _append_raw(self, content: str) -> None:
        if isinstance(self.raw_body, str):
            self.raw_body += content
        else:
            self.raw_body = content

    def _body(self) -> Optional[Union[str, bytes]]:
        if self.method in (GET, HEAD):
            return None
        if isinstance(self.raw_body, bytes):
            return self.raw_body
        if self.target_type == "form":
            pairs = list(self.form_data) + list(_pairs(self.data))
            return urlencode(pairs) if pairs else None
        if self.target_type == "json":
            if self.raw_body is not None:
                return self.raw_body
            if self.slice_data:
                return _dumps(self.slice_data)
            if self.data:
                return _dumps(self.data)
            return None
        return self.raw_body

    def _headers(self, body: Optional[Union[str, bytes]]) -> Dict[str, str]:
        headers = dict(self.header)
        if body is not None and not any(k.lower() == "content-type" for k in headers):
            headers["Content-Type"] = TYPES[self.target_type]
        return headers

    def end_bytes(self) -> Tuple[Optional[requests.Response], bytes, List[Exception]]:
        """Perform the exchange once and return the raw body"""
        if self.errors:
            return None, b"", list(self.errors)

        try:
            body = self._body()
        except (TypeError, ValueError) as e:
            error = RequestBuildError(f"Cannot encode request body: {e}")
            error.__cause__ = e
            return None, b"", [error]
        headers = self._headers(body)
        if isinstance(body, str):
            body = body.encode("utf-8")

        if self.debug:
            logger.info(
                f"[steadyhttp] {self.method} {self.url} params={self.query_data} "
                f"headers={headers} body={body!r}"
            )

        try:
            response = self.session.request(
                self.method,
                self.url,
                params=self.query_data or None,
                data=body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.debug(f"{self.method} {self.url} failed: {e}")
            return None, b"", [e]

        if self.debug:
            logger.info(
                f"[steadyhttp] {response.status_code} {response.reason} "
                f"from {response.url} body={response.content!r}"
            )
        return response, response.content, []

    def end(self) -> Tuple[Optional[requests.Response], str, List[Exception]]:
        """Perform the exchange once and return the body as text"""
        response, body, errors = self.end_bytes()
        if response is None:
            return None, "", errors
        return response, response.text, errors
