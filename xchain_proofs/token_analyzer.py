"""
XChain Proofs - Token Analyzer
Reads ERC-20 metadata and balances through raw eth_call requests.
"""

import logging
from dataclasses import dataclass
from typing import Any

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import to_bytes
from web3 import Web3

from .constants import ERC20_CALL_TYPES, FUNCTION_SELECTORS
from .exceptions import IntrospectionError, TransportError, UnknownChainId
from .multichain_provider import Transport, fetch_chain_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenInfo:
    address: str
    chain_id: int
    name: str
    symbol: str
    decimals: int
    total_supply: int


def checksum(address: str, role: str = "address") -> str:
    """Checksum an address, reporting malformed input as IntrospectionError."""
    try:
        return Web3.to_checksum_address(address)
    except (TypeError, ValueError) as e:
        raise IntrospectionError(str(address), role, f"invalid address: {e}") from e


def format_units(value: int, decimals: int) -> str:
    """
    Render a raw integer amount scaled by `decimals`.

    Always keeps at least one fractional digit and trims trailing zeros:
    format_units(10**18, 18) == "1.0", format_units(1_500_000, 6) == "1.5".
    """
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), 10 ** decimals)
    frac_digits = str(frac).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{sign}{whole}.{frac_digits or '0'}"


class TokenAnalyzer:
    """
    ERC-20 introspection over a JSON-RPC transport.

    Every failure (revert, transport error, undecodable return data) surfaces
    as IntrospectionError carrying the token address and the failing call.
    """

    def __init__(self, transport: Transport):
        self.transport = transport

    async def _call(self, address: str, function: str, *args: Any, block: str = "latest") -> Any:
        arg_types, return_types = ERC20_CALL_TYPES[function]
        data = bytes.fromhex(FUNCTION_SELECTORS[function]) + encode(arg_types, list(args))

        try:
            raw = await self.transport.request(
                "eth_call", [{"to": address, "data": "0x" + data.hex()}, block]
            )
        except TransportError as e:
            raise IntrospectionError(address, f"{function}()", str(e)) from e

        try:
            result = to_bytes(hexstr=raw)
        except (TypeError, ValueError) as e:
            raise IntrospectionError(address, f"{function}()", f"invalid return data {raw!r}") from e
        if not result:
            # Empty return data: no such function, or not a contract at all
            raise IntrospectionError(address, f"{function}()", "empty return data")

        try:
            return decode(return_types, result)[0]
        except (DecodingError, ValueError, OverflowError) as e:
            raise IntrospectionError(address, f"{function}()", f"cannot decode return data: {e}") from e

    async def describe(self, address: str) -> TokenInfo:
        """
        Fetch name, symbol, decimals and total supply.

        Args:
            address: Token contract address

        Returns:
            TokenInfo for the contract on the transport's chain

        Raises:
            IntrospectionError: If any call fails
        """
        address = checksum(address)

        try:
            chain_id = await fetch_chain_id(self.transport)
        except (TransportError, UnknownChainId) as e:
            raise IntrospectionError(address, "eth_chainId", str(e)) from e

        info = TokenInfo(
            address=address,
            chain_id=chain_id,
            name=await self._call(address, "name"),
            symbol=await self._call(address, "symbol"),
            decimals=await self._call(address, "decimals"),
            total_supply=await self._call(address, "totalSupply"),
        )
        logger.debug(f"[TOKEN] {info.symbol} at {address} on chain {chain_id}: {info.decimals} decimals")
        return info

    async def is_likely_token(self, address: str) -> bool:
        """True iff `describe` succeeds for the address."""
        try:
            await self.describe(address)
        except IntrospectionError as e:
            logger.debug(f"[TOKEN] {address} is not an ERC-20 token: {e}")
            return False
        return True

    async def balance_of(self, token: str, holder: str, block: str = "latest") -> int:
        """
        Read balanceOf(holder) on a token.

        Raises:
            IntrospectionError: If the call fails
        """
        token = checksum(token)
        holder = checksum(holder, "holder")
        return await self._call(token, "balanceOf", holder, block=block)
