from __future__ import annotations

import json
from http import HTTPStatus

import pytest
from pydantic import BaseModel

from fnhost.resolver import Empty, Failure, Raw, Settlement, Structured, Text, classify, render


class Item(BaseModel):
    name: str
    count: int


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ({"a": 1}, Structured({"a": 1})),
        ([1, 2], Structured([1, 2])),
        ("text", Text("text")),
        (b"\x00\x01", Raw(b"\x00\x01")),
        (bytearray(b"ab"), Raw(b"ab")),
        (None, Empty()),
        (42, Text("42")),
    ],
)
def test_classify(value: object, expected: object) -> None:
    assert classify(value) == expected


def test_classify_model_is_structured() -> None:
    assert isinstance(classify(Item(name="a", count=1)), Structured)


def test_render_structured() -> None:
    resp = render(Settlement(Structured({"a": [1, 2]}), 200, {}))
    assert resp.status_code == HTTPStatus.OK
    assert resp.body == b'{"a":[1,2]}'
    assert resp.headers["content-type"] == "application/json"


def test_render_model() -> None:
    resp = render(Settlement(classify(Item(name="a", count=2)), 200, {}))
    assert json.loads(resp.body) == {"name": "a", "count": 2}


def test_render_text_and_raw() -> None:
    text = render(Settlement(Text("ok"), 201, {}))
    assert text.status_code == HTTPStatus.CREATED
    assert text.body == b"ok"
    assert text.headers["content-type"].startswith("text/plain")

    raw = render(Settlement(Raw(b"\x00"), 200, {}))
    assert raw.body == b"\x00"
    assert raw.headers["content-type"] == "application/octet-stream"


def test_render_empty() -> None:
    resp = render(Settlement(Empty(), 204, {}))
    assert resp.body == b""
    assert "content-type" not in resp.headers


def test_controller_headers_win() -> None:
    headers = {"Content-Type": "text/csv", "X-Multi": ["a", "b"], "X-Num": 7}
    resp = render(Settlement(Text("a,b"), 200, headers))
    assert resp.headers["content-type"] == "text/csv"
    assert resp.headers.getlist("x-multi") == ["a", "b"]
    assert resp.headers["x-num"] == "7"


def test_render_failure() -> None:
    resp = render(Settlement(Failure(ValueError("boom")), 500, {"X-Trace": "t"}))
    assert resp.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert resp.body == b"boom"
    assert resp.headers["x-trace"] == "t"


def test_unserializable_value_becomes_server_error() -> None:
    resp = render(Settlement(Structured([float("nan")]), 200, {}))
    assert resp.status_code == HTTPStatus.INTERNAL_SERVER_ERROR


@pytest.mark.parametrize("status", [204, 304, 101])
def test_bodiless_status_drops_body(status: int) -> None:
    resp = render(Settlement(Text("x"), status, {"Content-Type": "text/csv", "X-Kept": "1"}))
    assert resp.status_code == status
    assert resp.body == b""
    assert "content-type" not in resp.headers
    assert "content-length" not in resp.headers
    assert resp.headers["x-kept"] == "1"
