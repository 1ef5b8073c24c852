import json

import pytest

from swipesvc.main import main, parse_listen_addr


@pytest.mark.parametrize(
    "addr, expected",
    [
        (":8080", ("", 8080)),
        ("localhost:9000", ("localhost", 9000)),
        ("[::1]:8081", ("::1", 8081)),
        ("127.0.0.1:", ("127.0.0.1", 0)),
    ],
)
def test_parse_listen_addr(addr, expected):
    assert parse_listen_addr(addr) == expected


def test_empty_addr_means_http_port():
    assert parse_listen_addr("") == ("", 80)


def test_service_name_port():
    assert parse_listen_addr("localhost:http") == parse_listen_addr("localhost:80")


@pytest.mark.parametrize(
    "addr",
    ["localhost", "::1:80", "[::1:80", "host:99999", "host:no-such-service-name"],
)
def test_parse_listen_addr_rejects(addr):
    with pytest.raises(ValueError):
        parse_listen_addr(addr)


def test_main_fails_on_bad_database_url(monkeypatch, capsys):
    monkeypatch.setenv("DB_URL", "not a url")
    monkeypatch.setenv("LOG_FORMAT", "JSON")
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    assert main([]) == 1
    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    record = json.loads(lines[-1])
    assert record["msg"] == "failed to create postgres_repo"
    assert record["level"] == "ERROR"


def test_main_rejects_unknown_arguments():
    with pytest.raises(SystemExit) as exc:
        main(["--bogus"])
    assert exc.value.code == 2