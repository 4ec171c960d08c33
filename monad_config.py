from __future__ import annotations

import logging
import os
from dataclasses import dataclass

MONAD_TESTNET_RPC = "https://testnet-rpc.monad.xyz"
RESERVOIR_MONAD_TESTNET = "https://api-monad-testnet.reservoir.tools"
DEFAULT_REQUEST_TIMEOUT = 15.0


class MonadConfigError(Exception):
    """Invalid configuration for the Monad testnet server."""

    pass


@dataclass(frozen=True)
class MonadConfig:
    """
    Configuration for the Monad testnet MCP server.

    Values are sourced from environment variables or a .env file.

    - MONAD_RPC_URL: JSON-RPC endpoint used for balance lookups.
    - RESERVOIR_API_URL: Reservoir marketplace API base URL.
    - RESERVOIR_API_KEY: optional API key, sent as the x-api-key header.
    - MONAD_REQUEST_TIMEOUT: upstream timeout in seconds (default 15).
    - MONAD_LOG_LEVEL: logging level name (default INFO).
    """

    rpc_url: str = MONAD_TESTNET_RPC
    reservoir_api_url: str = RESERVOIR_MONAD_TESTNET
    reservoir_api_key: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> MonadConfig:
        rpc_url = os.getenv("MONAD_RPC_URL", "").strip() or MONAD_TESTNET_RPC
        api_url = os.getenv("RESERVOIR_API_URL", "").strip() or RESERVOIR_MONAD_TESTNET
        api_key = os.getenv("RESERVOIR_API_KEY", "").strip() or None

        timeout_raw = os.getenv("MONAD_REQUEST_TIMEOUT", "").strip()
        if timeout_raw:
            try:
                timeout = float(timeout_raw)
            except ValueError as exc:
                raise MonadConfigError(
                    f"Invalid MONAD_REQUEST_TIMEOUT={timeout_raw!r}. Must be a number."
                ) from exc
            if timeout <= 0:
                raise MonadConfigError(
                    f"Invalid MONAD_REQUEST_TIMEOUT={timeout_raw!r}. Must be greater than zero."
                )
        else:
            timeout = DEFAULT_REQUEST_TIMEOUT

        log_level = os.getenv("MONAD_LOG_LEVEL", "INFO").strip().upper() or "INFO"
        if not isinstance(logging.getLevelName(log_level), int):
            raise MonadConfigError(f"Invalid MONAD_LOG_LEVEL={log_level!r}.")

        return cls(
            rpc_url=rpc_url.rstrip("/"),
            reservoir_api_url=api_url.rstrip("/"),
            reservoir_api_key=api_key,
            request_timeout=timeout,
            log_level=log_level,
        )
