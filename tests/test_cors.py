from http import HTTPStatus

import pytest
from werkzeug.test import Client

from swipesvc.cors import CORSOptions, cors

ORIGIN = "http://localhost:3000"
METHODS = ("GET", "POST", "OPTIONS")
HEADERS = ("Origin", "Content-Type", "Authorization")


def _inner(environ, start_response):
    environ["inner.called"] = True
    start_response("200 OK", [("Content-Type", "text/plain")])
    return [b"hello"]


def _client(options):
    return Client(cors(options)(_inner))


@pytest.fixture
def options():
    return CORSOptions(
        allowed_origins=(ORIGIN,),
        allowed_methods=METHODS,
        allowed_headers=HEADERS,
        allow_credentials=True,
    )


def test_allowed_origin_gets_headers(options):
    resp = _client(options).get("/", headers={"Origin": ORIGIN})
    assert resp.status_code == HTTPStatus.OK
    assert resp.data == b"hello"
    assert resp.headers["Access-Control-Allow-Origin"] == ORIGIN
    assert resp.headers["Access-Control-Allow-Methods"] == ", ".join(METHODS)
    assert resp.headers["Access-Control-Allow-Headers"] == ", ".join(HEADERS)
    assert resp.headers["Access-Control-Allow-Credentials"] == "true"
    assert "Access-Control-Max-Age" not in resp.headers


def test_disallowed_origin_passes_through(options):
    resp = _client(options).get("/", headers={"Origin": "http://elsewhere.example.com"})
    assert resp.data == b"hello"
    assert "Access-Control-Allow-Origin" not in resp.headers
    assert "Access-Control-Allow-Credentials" not in resp.headers


def test_missing_origin_passes_through(options):
    resp = _client(options).get("/")
    assert resp.data == b"hello"
    assert "Access-Control-Allow-Methods" not in resp.headers


def test_preflight_from_allowed_origin_is_answered(options):
    resp = _client(options).options("/anything", headers={"Origin": ORIGIN})
    assert resp.status_code == HTTPStatus.NO_CONTENT
    assert resp.data == b""
    assert resp.headers["Access-Control-Allow-Origin"] == ORIGIN


def test_preflight_from_disallowed_origin_reaches_app(options):
    resp = _client(options).options("/", headers={"Origin": "http://elsewhere.example.com"})
    assert resp.status_code == HTTPStatus.OK
    assert resp.data == b"hello"


def test_wildcard_echoes_origin():
    opts = CORSOptions(allowed_origins=("*",))
    origin = "http://any.example.com"
    resp = _client(opts).get("/", headers={"Origin": origin})
    assert resp.headers["Access-Control-Allow-Origin"] == origin
    assert "Access-Control-Allow-Credentials" not in resp.headers


def test_no_origin_list_allows_everyone_without_origin_header():
    opts = CORSOptions(allowed_methods=("GET",))
    resp = _client(opts).get("/", headers={"Origin": "http://any.example.com"})
    assert resp.headers["Access-Control-Allow-Methods"] == "GET"
    assert "Access-Control-Allow-Origin" not in resp.headers


def test_max_age_header():
    opts = CORSOptions(allowed_origins=(ORIGIN,), max_age=600)
    resp = _client(opts).get("/", headers={"Origin": ORIGIN})
    assert resp.headers["Access-Control-Max-Age"] == str(600)


def test_allows_and_response_headers_agree(options):
    assert options.allows(ORIGIN)
    assert not options.allows("")
    names = [name for name, _ in options.response_headers(ORIGIN)]
    assert names == [
        "Access-Control-Allow-Origin",
        "Access-Control-Allow-Methods",
        "Access-Control-Allow-Headers",
        "Access-Control-Allow-Credentials",
    ]