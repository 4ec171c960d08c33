"""
Upstream accessors for the Monad testnet.

Implements:
- Native MON balance lookup over JSON-RPC (eth_getBalance)
- Tokens owned by an address (Reservoir users/tokens)
- Trending mints (Reservoir collections/trending-mints)
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote

import requests

from monad_config import MonadConfig

logger = logging.getLogger(__name__)

MON_DECIMALS = 18

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class UpstreamError(Exception):
    """An upstream RPC or marketplace request failed or returned an unusable body."""

    pass


# ---------------------------------------------------------------------------
# Unit helpers
# ---------------------------------------------------------------------------


def format_units(value: int, decimals: int = MON_DECIMALS) -> str:
    """Render a smallest-unit integer as a decimal string, trailing zeros stripped."""
    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10**decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0")
    if fraction_str:
        return f"{sign}{whole}.{fraction_str}"
    return f"{sign}{whole}"


def _check_address(address: str) -> str:
    if not _ADDRESS_RE.match(address):
        raise UpstreamError(f'Address "{address}" is invalid.')
    return address


# ---------------------------------------------------------------------------
# Chain RPC
# ---------------------------------------------------------------------------


def _rpc_call(cfg: MonadConfig, method: str, params: list[Any]) -> Any:
    """POST a JSON-RPC 2.0 request and return its result member."""
    payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
    logger.debug("RPC %s %s", method, cfg.rpc_url)
    try:
        resp = requests.post(cfg.rpc_url, json=payload, timeout=cfg.request_timeout)
    except requests.RequestException as exc:
        raise UpstreamError(str(exc)) from exc
    if not resp.ok:
        raise UpstreamError(f"RPC request failed with status {resp.status_code}")

    try:
        data = resp.json()
    except ValueError as exc:
        raise UpstreamError("RPC response was not valid JSON") from exc
    if not isinstance(data, dict):
        raise UpstreamError("RPC response was not a JSON object")

    error = data.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise UpstreamError(f"RPC error: {message}")
    if "result" not in data or data["result"] is None:
        raise UpstreamError(f"RPC response for {method} is missing a result")
    return data["result"]


def get_balance_wei(cfg: MonadConfig, address: str) -> int:
    """Return the native balance of address in wei."""
    result = _rpc_call(cfg, "eth_getBalance", [_check_address(address), "latest"])
    try:
        return int(result, 16)
    except (TypeError, ValueError) as exc:
        raise UpstreamError(f"Unexpected balance value: {result!r}") from exc


# ---------------------------------------------------------------------------
# Reservoir marketplace API
# ---------------------------------------------------------------------------


def _reservoir_get(cfg: MonadConfig, path: str, params: dict | None = None) -> dict[str, Any]:
    """GET request to the Reservoir API."""
    url = f"{cfg.reservoir_api_url}{path}"
    headers = {"accept": "application/json"}
    if cfg.reservoir_api_key:
        headers["x-api-key"] = cfg.reservoir_api_key

    logger.debug("GET %s", url)
    try:
        resp = requests.get(url, params=params, headers=headers, timeout=cfg.request_timeout)
    except requests.RequestException as exc:
        raise UpstreamError(str(exc)) from exc
    if not resp.ok:
        raise UpstreamError(f"API request failed with status {resp.status_code}")

    try:
        data = resp.json()
    except ValueError as exc:
        raise UpstreamError("API response was not valid JSON") from exc
    if not isinstance(data, dict):
        raise UpstreamError("API response was not a JSON object")
    return data


def get_user_tokens(cfg: MonadConfig, address: str) -> dict[str, Any]:
    """Tokens owned by address, as returned by users/{address}/tokens/v10."""
    return _reservoir_get(cfg, f"/users/{quote(address, safe='')}/tokens/v10")


def get_trending_mints(cfg: MonadConfig) -> dict[str, Any]:
    """Trending mints, as returned by collections/trending-mints/v2."""
    return _reservoir_get(cfg, "/collections/trending-mints/v2")
