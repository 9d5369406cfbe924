"""
XChain Proofs - Configuration
Environment-driven settings. A `.env` file in the working directory is loaded
on import.
"""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# Default HTTP timeout for RPC requests (seconds)
DEFAULT_RPC_TIMEOUT = 30


def chains_file() -> Optional[str]:
    """Path of a JSON chain table replacing the built-in one, if configured."""
    path = os.getenv("XCHAIN_CHAINS_FILE", "").strip()
    return path or None


def rpc_timeout() -> float:
    raw = os.getenv("XCHAIN_RPC_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_RPC_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"XCHAIN_RPC_TIMEOUT must be a number, got {raw!r}")


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def rpc_override(short_name: str) -> list[str]:
    """
    Get RPC URL overrides for a chain from the environment.

    `ETH_RPC_URL=https://a,https://b` replaces the endpoints configured for the
    chain whose short name is `eth`. Dashes in short names become underscores.

    Args:
        short_name: Chain short name from the registry

    Returns:
        List of URLs (empty when no override is set)
    """
    env_name = f"{short_name.upper().replace('-', '_')}_RPC_URL"
    raw = os.getenv(env_name, "")
    return [url.strip() for url in raw.split(",") if url.strip()]
