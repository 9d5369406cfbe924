"""
XChain Proofs - Multi-Chain Provider
Selects an RPC endpoint for a chain and wraps it in a JSON-RPC transport.
"""

import logging
import random
import re
from typing import Any, Optional, Protocol, Sequence

from aiohttp import ClientTimeout
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.providers.async_base import AsyncBaseProvider
from web3.types import RPCEndpoint

from . import config
from .chain_registry import ChainDefinition, ChainRegistry
from .exceptions import TransportError, UnknownChainId

logger = logging.getLogger(__name__)


def mask_api_key(url: str) -> str:
    """Hide credentials embedded in an RPC URL before it is logged."""
    if not url:
        return url
    # Alchemy /v2/<key> and Infura /v3/<key> path segments
    masked = re.sub(r'/(v[23])/[A-Za-z0-9_-]{16,}', r'/\1/***MASKED***', url)
    return re.sub(r'([?&](?:api[_-]?key|key|token)=)[^&]+', r'\1***MASKED***', masked, flags=re.IGNORECASE)


class Transport(Protocol):
    """Read-only JSON-RPC connection to a chain node."""

    endpoint: Optional[str]

    async def request(self, method: str, params: Sequence[Any]) -> Any:
        """Issue one JSON-RPC call and return its `result`."""


class RPCTransport:
    """
    JSON-RPC transport backed by a web3 async provider.

    Every call is a single request: provider exceptions and JSON-RPC error
    objects are raised as TransportError, never retried.
    """

    def __init__(self, provider: AsyncBaseProvider, endpoint: Optional[str] = None):
        self.w3 = AsyncWeb3(provider)
        self.endpoint = endpoint

    @classmethod
    def from_url(cls, url: str, timeout: Optional[float] = None) -> "RPCTransport":
        timeout = timeout if timeout is not None else config.rpc_timeout()
        provider = AsyncHTTPProvider(
            url,
            request_kwargs={"timeout": ClientTimeout(total=timeout)},
            exception_retry_configuration=None,
        )
        return cls(provider, endpoint=url)

    async def request(self, method: str, params: Sequence[Any]) -> Any:
        endpoint = mask_api_key(self.endpoint) if self.endpoint else None
        try:
            response = await self.w3.provider.make_request(RPCEndpoint(method), list(params))
        except Exception as e:
            raise TransportError(method, endpoint, str(e)) from e

        error = response.get("error")
        if error:
            if isinstance(error, dict):
                raise TransportError(method, endpoint, str(error.get("message")), error.get("code"))
            raise TransportError(method, endpoint, str(error))

        if "result" not in response:
            raise TransportError(method, endpoint, "response carries neither result nor error")
        return response["result"]

    async def close(self) -> None:
        disconnect = getattr(self.w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()


async def fetch_chain_id(transport: Transport) -> int:
    """
    Ask the node which chain it serves.

    Raises:
        UnknownChainId: If the node reports no chain id or zero
    """
    raw = await transport.request("eth_chainId", [])
    try:
        chain_id = int(raw, 16) if isinstance(raw, str) else int(raw or 0)
    except (TypeError, ValueError):
        raise UnknownChainId(f"Unparseable chain id from {transport.endpoint}: {raw!r}")
    if not chain_id:
        raise UnknownChainId(f"Unable to determine chain id from {transport.endpoint}")
    return chain_id


class EndpointSelector(Protocol):
    """Strategy choosing which configured endpoint serves the next transport."""

    def choose(self, chain: ChainDefinition, urls: Sequence[str]) -> str:
        ...


class RandomEndpointSelector:
    """Uniform random choice among the chain's endpoints."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def choose(self, chain: ChainDefinition, urls: Sequence[str]) -> str:
        return self.rng.choice(list(urls))


class MultiChainProvider:
    """
    Opens JSON-RPC transports for any chain in the registry.

    Endpoint lists come from the registry unless `<SHORT_NAME>_RPC_URL` is set
    in the environment, in which case that comma-separated list wins.
    """

    def __init__(
        self,
        registry: ChainRegistry,
        selector: Optional[EndpointSelector] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize multi-chain provider.

        Args:
            registry: Chain table to resolve chain ids against
            selector: Endpoint selection strategy (default: uniform random)
            timeout: HTTP timeout in seconds (default: XCHAIN_RPC_TIMEOUT)
        """
        self.registry = registry
        self.selector = selector or RandomEndpointSelector()
        self.timeout = timeout

    def endpoints(self, chain_id: int) -> list[str]:
        chain = self.registry.lookup(chain_id)
        return config.rpc_override(chain.short_name) or list(chain.rpc_urls)

    def open(self, chain_id: int) -> RPCTransport:
        """
        Open a transport for a chain.

        Args:
            chain_id: Chain ID

        Returns:
            RPCTransport bound to one of the chain's endpoints

        Raises:
            UnsupportedChain: If the chain id is not in the registry
        """
        chain = self.registry.lookup(chain_id)
        url = self.selector.choose(chain, self.endpoints(chain_id))
        logger.info(f"[RPC] Using {mask_api_key(url)} for {chain.name} ({chain_id})")
        return RPCTransport.from_url(url, timeout=self.timeout)
