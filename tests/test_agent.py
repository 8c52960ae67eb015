"""Tests for the request builder encoding rules"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from datetime import datetime

import pytest
import requests
from pydantic import BaseModel

from steadyhttp.domain.errors import RequestBuildError
from steadyhttp.infrastructure.agent import Agent


@pytest.fixture
def agent():
    session = requests.Session()
    yield Agent(session)
    session.close()


def test_get_sets_headers(server, agent):
    response, body, errors = agent.get(server.url + "/set_header").set("API-Key", "fookey").end()
    assert errors == []
    assert response.status_code == 200
    assert server.requests[0].method == "GET"
    assert server.requests[0].headers["api-key"] == "fookey"


def test_get_never_sends_body(server, agent):
    agent.get(server.url).send('{"a": 1}').end_bytes()
    assert server.requests[0].body == b""


def test_json_strings_merge(server, agent):
    agent.post(server.url).send('{"query1":"test"}').send('{"query2":"test"}').end()
    recorded = server.requests[0]
    assert recorded.body == b'{"query1":"test","query2":"test"}'
    assert recorded.headers["content-type"] == "application/json"


def test_form_strings_switch_to_form(server, agent):
    agent.post(server.url).send("query1=test").send("query2=test").end()
    recorded = server.requests[0]
    assert recorded.body == b"query1=test&query2=test"
    assert recorded.headers["content-type"] == "application/x-www-form-urlencoded"


def test_form_then_json_string(server, agent):
    agent.post(server.url).send("query1=test").send('{"query2":"test"}').end()
    assert server.requests[0].body == b"query1=test&query2=test"


def test_form_type_encodes_json_content(server, agent):
    agent.post(server.url).type("form").send('{"id":123456789, "name":"nemo"}').end()
    assert server.requests[0].body == b"id=123456789&name=nemo"


def test_long_ids_stay_integers(server, agent):
    agent.post(server.url).send('{"id":123456789, "name":"nemo"}').end()
    assert server.requests[0].body == b'{"id":123456789,"name":"nemo"}'


@dataclass
class Upper:
    color: str
    size: int = 0


class Style(BaseModel):
    name: str
    upper: Upper


def test_structured_content_merges(server, agent):
    agent.post(server.url).send('{"a":"a"}').send(Style(name="Cindy", upper=Upper("red"))).end()
    assert json.loads(server.requests[0].body) == {
        "a": "a",
        "name": "Cindy",
        "upper": {"color": "red", "size": 0},
    }


def test_list_content_sends_json_array(server, agent):
    agent.put(server.url).send([1, 2]).send([3]).end()
    assert server.requests[0].method == "PUT"
    assert server.requests[0].body == b"[1,2,3]"


def test_raw_bytes_sent_as_is(server, agent):
    agent.post(server.url).set("Content-Type", "application/octet-stream").send(b"\x00\x01").end()
    recorded = server.requests[0]
    assert recorded.body == b"\x00\x01"
    assert recorded.headers["content-type"] == "application/octet-stream"


def test_text_type_sends_raw_string(server, agent):
    agent.post(server.url).type("text").send("hello ").send("a=b").end()
    recorded = server.requests[0]
    assert recorded.body == b"hello a=b"
    assert recorded.headers["content-type"] == "text/plain"


def test_plain_string_becomes_text(server, agent):
    agent.patch(server.url).send("just words").end()
    assert server.requests[0].method == "PATCH"
    assert server.requests[0].body == b"just words"


def test_query_accumulates(server, agent):
    agent.post(server.url).query("query1=test").query("query2=test").query({"tag": ["a", "b"]}).end()
    query = server.requests[0].query
    assert query["query1"] == ["test"]
    assert query["query2"] == ["test"]
    assert query["tag"] == ["a", "b"]


def test_query_accepts_json_object_string(server, agent):
    agent.get(server.url).query('{"flag": true, "n": 3}').end()
    assert server.requests[0].query == {"flag": ["true"], "n": ["3"]}


def test_unknown_type_recorded_without_network(server, agent):
    response, body, errors = agent.post(server.url).type("yaml").end()
    assert response is None
    assert body == ""
    assert len(errors) == 1
    assert isinstance(errors[0], RequestBuildError)
    assert server.count == 0


def test_unsupported_body_recorded(server, agent):
    _, _, errors = agent.post(server.url).send(42).end_bytes()
    assert isinstance(errors[0], RequestBuildError)
    assert server.count == 0


def test_transport_error_returned(agent):
    response, body, errors = agent.get("http://127.0.0.1:9/unreachable").end_bytes()
    assert response is None
    assert body == b""
    assert isinstance(errors[0], requests.ConnectionError)


def test_debug_logs_exchange(server, agent, caplog):
    server.responder = lambda request: (201, {}, b"created")
    with caplog.at_level("INFO", logger="steadyhttp.infrastructure.agent"):
        agent.post(server.url).set_debug(True).send('{"a":1}').end()
    assert "POST" in caplog.text
    assert "201" in caplog.text


def test_head_and_delete(server, agent):
    agent.head(server.url).end()
    Agent(agent.session).delete(server.url + "/item").end()
    assert [r.method for r in server.requests] == ["HEAD", "DELETE"]
    assert server.requests[1].path == "/item"


def test_json_body_encodes_dates(server, agent):
    agent.post(server.url).send({"at": datetime(2024, 1, 2, 3, 4, 5)}).end()
    assert json.loads(server.requests[0].body) == {"at": "2024-01-02T03:04:05"}


def test_unencodable_body_recorded_without_network(server, agent):
    response, body, errors = agent.post(server.url).send({"handle": object()}).end()
    assert response is None
    assert body == ""
    assert len(errors) == 1
    assert isinstance(errors[0], RequestBuildError)
    assert isinstance(errors[0].__cause__, (TypeError, ValueError))
    assert server.count == 0


def test_unencodable_query_recorded_without_network(server, agent):
    _, _, errors = agent.get(server.url).query({"filter": {"handle": object()}}).end_bytes()
    assert isinstance(errors[0], RequestBuildError)
    assert server.count == 0


def test_timeout_passed_per_exchange(server):
    def slow(request):
        threading.Event().wait(0.2)
        return 200, {}, b""

    server.responder = slow
    session = requests.Session()
    try:
        _, _, errors = Agent(session, timeout=0.05).get(server.url).end()
        assert isinstance(errors[0], requests.Timeout)
        response, _, errors = Agent(session).get(server.url).end()
        assert errors == []
        assert response.status_code == 200
    finally:
        session.close()
