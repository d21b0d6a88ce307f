"""Tests for the Icecast reachability check."""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest

from svxstream.verify import check_reachable, check_url, wait_and_check


def _client(status: int | None = None, exc: Exception | None = None, seen: list | None = None) -> httpx.Client:
    seen = [] if seen is None else seen

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if exc is not None:
            raise exc
        return httpx.Response(status, headers={"Location": "/status.xsl"})

    return httpx.Client(transport=httpx.MockTransport(handler))


class TestCheckReachable:
    @pytest.mark.parametrize("status", [200, 302])
    def test_ok_statuses(self, status):
        assert check_reachable("10.0.0.5", client=_client(status)) is True

    @pytest.mark.parametrize("status", [204, 301, 404, 500])
    def test_other_statuses(self, status):
        assert check_reachable("10.0.0.5", client=_client(status)) is False

    def test_uses_head_on_stream_port(self):
        seen: list[httpx.Request] = []
        check_reachable("10.0.0.5", client=_client(200, seen=seen))
        request = seen[0]
        assert request.method == "HEAD"
        assert str(request.url) == "http://10.0.0.5:8000/"

    def test_connection_refused(self):
        client = _client(exc=httpx.ConnectError("refused"))
        assert check_reachable("10.0.0.5", client=client) is False

    def test_timeout(self):
        client = _client(exc=httpx.ReadTimeout("slow"))
        assert check_reachable("10.0.0.5", client=client) is False

    def test_default_client_error(self):
        with patch("svxstream.verify.httpx.head", side_effect=httpx.ConnectError("down")):
            assert check_reachable("10.0.0.5") is False

    @pytest.mark.parametrize("host, expected", [
        ("::1", "http://[::1]:8000/"),
        ("fe80::1", "http://[fe80::1]:8000/"),
    ])
    def test_ipv6_host_is_bracketed(self, host, expected):
        seen: list[httpx.Request] = []
        assert check_reachable(host, client=_client(200, seen=seen)) is True
        assert str(seen[0].url) == expected

    @pytest.mark.parametrize("host", ["pi.lan:80", "10.0.0.5:8000"])
    def test_host_with_port_is_unreachable(self, host):
        seen: list[httpx.Request] = []
        assert check_reachable(host, client=_client(200, seen=seen)) is False
        assert seen == []


class TestWaitAndCheck:
    @patch("svxstream.verify.check_reachable", return_value=True)
    @patch("svxstream.verify.time.sleep")
    def test_sleeps_before_probe(self, mock_sleep, mock_check):
        assert wait_and_check("h", grace=5) is True
        mock_sleep.assert_called_once_with(5)
        mock_check.assert_called_once_with("h", 8000)

    def test_url(self):
        assert check_url("pi.local", 8001) == "http://pi.local:8001/"

    def test_url_ipv6(self):
        assert check_url("::1") == "http://[::1]:8000/"
