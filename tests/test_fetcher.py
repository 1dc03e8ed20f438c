from types import SimpleNamespace

import pytest
import requests

from fetch_url import fetcher
from fetch_url.errors import BlockedAddressError, FetchError


def _response(status_code=200, text="<html></html>", content_type="text/html; charset=utf-8"):
    return SimpleNamespace(status_code=status_code, text=text, headers={"Content-Type": content_type}, encoding=None)


@pytest.fixture
def no_network(monkeypatch):
    def fail(*args, **kwargs):  # pragma: no cover - only runs if the guard is broken
        raise AssertionError("network call attempted")

    monkeypatch.setattr(fetcher.requests, "get", fail)


@pytest.mark.parametrize(
    "url, hostname",
    [
        ("http://127.0.0.1/", "127.0.0.1"),
        ("http://10.1.2.3:8080/admin", "10.1.2.3"),
        ("https://192.168.0.10/", "192.168.0.10"),
        ("http://172.16.5.4/", "172.16.5.4"),
        ("http://169.254.169.254/latest/meta-data/", "169.254.169.254"),
        ("http://224.0.0.1/", "224.0.0.1"),
        ("http://255.255.255.255/", "255.255.255.255"),
        ("http://240.0.0.1/", "240.0.0.1"),
        ("http://0.0.0.0/", "0.0.0.0"),
        ("http://[::1]/", "::1"),
        ("http://[fe80::1]/", "fe80::1"),
        ("http://[ff02::1]/", "ff02::1"),
        ("http://[::ffff:127.0.0.1]/", "::ffff:127.0.0.1"),
        ("http://127.1/", "127.1"),
    ],
)
def test_non_public_ip_literals_are_blocked(no_network, url, hostname):
    with pytest.raises(BlockedAddressError) as excinfo:
        fetcher.fetch_html(url)

    message = str(excinfo.value)
    assert message.startswith(f"Fetcher blocked an attempt to fetch a private IP {hostname}.")
    assert excinfo.value.hostname == hostname


def test_public_hosts_pass_the_guard():
    fetcher.check_host("https://example.com/page")
    fetcher.check_host("http://93.184.216.34/")
    fetcher.check_host("https://[2606:2800:220:1:248:1893:25c8:1946]/")


def test_fetch_merges_spoofed_and_caller_headers(monkeypatch):
    captured = {}

    def fake_get(url, headers=None, timeout=None, allow_redirects=None):
        captured.update(url=url, headers=headers, timeout=timeout, allow_redirects=allow_redirects)
        return _response(text="<p>ok</p>")

    monkeypatch.setattr(fetcher.requests, "get", fake_get)

    html = fetcher.fetch_html(
        "https://news.example.org/story",
        {"user-agent": "CustomAgent/1.0", "X-Test": "1"},
        timeout=12.5,
    )

    assert html == "<p>ok</p>"
    headers = captured["headers"]
    assert headers["User-Agent"] == "CustomAgent/1.0"
    assert headers["X-Test"] == "1"
    assert headers["Referer"] == "https://news.example.org/"
    assert headers["Origin"] == "https://news.example.org"
    assert headers["Sec-Fetch-Mode"] == "navigate"
    assert captured["timeout"] == 12.5
    assert captured["allow_redirects"] is True


def test_spoofed_user_agent_comes_from_pool():
    headers = fetcher.spoof_headers("https://example.com")
    assert headers["User-Agent"] in fetcher.USER_AGENTS
    assert len(fetcher.USER_AGENTS) == 20


@pytest.mark.parametrize("status", [301, 404, 500, 503])
def test_non_success_status_raises_http_error(monkeypatch, status):
    monkeypatch.setattr(fetcher.requests, "get", lambda *args, **kwargs: _response(status_code=status))

    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch_html("https://example.com")

    assert str(excinfo.value) == f"Failed to fetch https://example.com: HTTP error: {status}"


def test_transport_errors_are_wrapped(monkeypatch):
    def fake_get(*args, **kwargs):
        raise requests.ConnectionError("Network error")

    monkeypatch.setattr(fetcher.requests, "get", fake_get)

    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch_html("https://example.com")

    assert str(excinfo.value) == "Failed to fetch https://example.com: Network error"
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_errors_without_message_report_unknown_error(monkeypatch):
    def fake_get(*args, **kwargs):
        raise RuntimeError()

    monkeypatch.setattr(fetcher.requests, "get", fake_get)

    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch_html("https://example.com")

    assert str(excinfo.value) == "Failed to fetch https://example.com: Unknown error"


def test_missing_charset_defaults_to_utf8(monkeypatch):
    response = _response(content_type="text/html")
    monkeypatch.setattr(fetcher.requests, "get", lambda *args, **kwargs: response)

    fetcher.fetch_html("https://example.com")

    assert response.encoding == "utf-8"


def test_declared_charset_is_left_alone(monkeypatch):
    response = _response(content_type="text/html; charset=ISO-8859-1")
    monkeypatch.setattr(fetcher.requests, "get", lambda *args, **kwargs: response)

    fetcher.fetch_html("https://example.com")

    assert response.encoding is None
