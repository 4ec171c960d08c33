import sys
from pathlib import Path

import pytest
import requests

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT))

import monad_client  # noqa: E402
from monad_client import UpstreamError  # noqa: E402
from monad_config import MonadConfig  # noqa: E402

ADDRESS = "0x" + "ab" * 20


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def _cfg(**overrides):
    values = {
        "rpc_url": "https://rpc.test",
        "reservoir_api_url": "https://reservoir.test",
        "request_timeout": 5.0,
    }
    values.update(overrides)
    return MonadConfig(**values)


# ---------------------------------------------------------------------------
# format_units
# ---------------------------------------------------------------------------


def test_format_units_whole():
    assert monad_client.format_units(10**18) == "1"


def test_format_units_fraction_strips_zeros():
    assert monad_client.format_units(5 * 10**17) == "0.5"
    assert monad_client.format_units(1) == "0.000000000000000001"


def test_format_units_zero_and_negative():
    assert monad_client.format_units(0) == "0"
    assert monad_client.format_units(-15 * 10**17) == "-1.5"


# ---------------------------------------------------------------------------
# Balance RPC
# ---------------------------------------------------------------------------


def test_get_balance_wei_posts_json_rpc(monkeypatch):
    calls = {}

    def fake_post(url, json=None, timeout=None):
        calls.update(url=url, json=json, timeout=timeout)
        return FakeResponse(payload={"jsonrpc": "2.0", "id": 1, "result": "0xde0b6b3a7640000"})

    monkeypatch.setattr(monad_client.requests, "post", fake_post)

    assert monad_client.get_balance_wei(_cfg(), ADDRESS) == 10**18
    assert calls["url"] == "https://rpc.test"
    assert calls["json"]["method"] == "eth_getBalance"
    assert calls["json"]["params"] == [ADDRESS, "latest"]
    assert calls["timeout"] == 5.0


def test_get_balance_wei_rejects_bad_address(monkeypatch):
    def fail_post(*_a, **_kw):
        raise AssertionError("should not be called")

    monkeypatch.setattr(monad_client.requests, "post", fail_post)

    with pytest.raises(UpstreamError, match="is invalid"):
        monad_client.get_balance_wei(_cfg(), "not-an-address")


def test_get_balance_wei_rpc_error(monkeypatch):
    monkeypatch.setattr(
        monad_client.requests,
        "post",
        lambda *a, **kw: FakeResponse(payload={"error": {"code": -32602, "message": "bad params"}}),
    )
    with pytest.raises(UpstreamError, match="bad params"):
        monad_client.get_balance_wei(_cfg(), ADDRESS)


def test_get_balance_wei_missing_result(monkeypatch):
    monkeypatch.setattr(monad_client.requests, "post", lambda *a, **kw: FakeResponse(payload={"id": 1}))
    with pytest.raises(UpstreamError, match="missing a result"):
        monad_client.get_balance_wei(_cfg(), ADDRESS)


def test_get_balance_wei_http_status(monkeypatch):
    monkeypatch.setattr(monad_client.requests, "post", lambda *a, **kw: FakeResponse(status_code=503))
    with pytest.raises(UpstreamError, match="status 503"):
        monad_client.get_balance_wei(_cfg(), ADDRESS)


# ---------------------------------------------------------------------------
# Reservoir API
# ---------------------------------------------------------------------------


def test_get_user_tokens_url_and_headers(monkeypatch):
    calls = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        calls.update(url=url, headers=headers)
        return FakeResponse(payload={"tokens": []})

    monkeypatch.setattr(monad_client.requests, "get", fake_get)

    data = monad_client.get_user_tokens(_cfg(reservoir_api_key="k-123"), ADDRESS)
    assert data == {"tokens": []}
    assert calls["url"] == f"https://reservoir.test/users/{ADDRESS}/tokens/v10"
    assert calls["headers"]["x-api-key"] == "k-123"


def test_get_trending_mints_url(monkeypatch):
    calls = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        calls["url"] = url
        calls["headers"] = headers
        return FakeResponse(payload={"mints": []})

    monkeypatch.setattr(monad_client.requests, "get", fake_get)

    assert monad_client.get_trending_mints(_cfg()) == {"mints": []}
    assert calls["url"] == "https://reservoir.test/collections/trending-mints/v2"
    assert "x-api-key" not in calls["headers"]


def test_reservoir_non_2xx(monkeypatch):
    monkeypatch.setattr(monad_client.requests, "get", lambda *a, **kw: FakeResponse(status_code=404))
    with pytest.raises(UpstreamError) as excinfo:
        monad_client.get_trending_mints(_cfg())
    assert str(excinfo.value) == "API request failed with status 404"


def test_reservoir_transport_error(monkeypatch):
    def boom(*_a, **_kw):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(monad_client.requests, "get", boom)
    with pytest.raises(UpstreamError, match="connection refused"):
        monad_client.get_user_tokens(_cfg(), ADDRESS)


def test_reservoir_non_object_body(monkeypatch):
    monkeypatch.setattr(monad_client.requests, "get", lambda *a, **kw: FakeResponse(payload=[1, 2]))
    with pytest.raises(UpstreamError, match="not a JSON object"):
        monad_client.get_trending_mints(_cfg())


def test_reservoir_invalid_json(monkeypatch):
    monkeypatch.setattr(
        monad_client.requests, "get", lambda *a, **kw: FakeResponse(payload=ValueError("no json"))
    )
    with pytest.raises(UpstreamError, match="not valid JSON"):
        monad_client.get_trending_mints(_cfg())


def test_get_user_tokens_quotes_address(monkeypatch):
    calls = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        calls["url"] = url
        return FakeResponse(payload={"tokens": []})

    monkeypatch.setattr(monad_client.requests, "get", fake_get)

    monad_client.get_user_tokens(_cfg(), "0x1/../collections?x=#y")
    assert calls["url"] == (
        "https://reservoir.test/users/0x1%2F..%2Fcollections%3Fx%3D%23y/tokens/v10"
    )
