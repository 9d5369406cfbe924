"""
XChain Proofs - Storage Slot Locator
Finds which storage slot holds a token's balance mapping.

Solidity stores `mapping(address => uint256)` entries at
keccak256(pad32(holder) ++ uint256(slot)), but the declared slot of the
mapping is not part of the ABI. It is found empirically: read the holder's
balance through balanceOf(), then probe candidate slots with eth_getStorageAt
until one holds the same 32-byte value.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from eth_utils import keccak

from .constants import MAX_SLOT_INDEX, SLOT_SHORTLIST, ZERO_HASH
from .exceptions import SlotNotFound
from .multichain_provider import Transport
from .token_analyzer import TokenAnalyzer, checksum, format_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageSlotResult:
    index: int
    balance: int
    balance_decimal: str


def map_slot(holder: str, index: int) -> str:
    """
    Storage key of `holder`'s entry in a mapping declared at slot `index`.

    Args:
        holder: 20-byte address (any casing)
        index: Mapping slot index

    Returns:
        0x-prefixed 32-byte hex key
    """
    key = bytes.fromhex(holder[2:] if holder.startswith(("0x", "0X")) else holder).rjust(32, b"\x00")
    return "0x" + keccak(key + index.to_bytes(32, "big")).hex()


def candidate_slots(shortlist: Sequence[int] = SLOT_SHORTLIST, limit: int = MAX_SLOT_INDEX) -> Iterator[int]:
    """Shortlisted indices first, then the rest of [0, limit) ascending."""
    seen = set()
    for index in shortlist:
        if 0 <= index < limit and index not in seen:
            seen.add(index)
            yield index
    for index in range(limit):
        if index not in seen:
            yield index


def to_storage_word(value: int) -> str:
    return "0x" + value.to_bytes(32, "big").hex()


class StorageSlotLocator:
    """
    Sequential brute-force search for a token's balance mapping slot.

    Candidates are probed one at a time in `candidate_slots()` order and the
    first match wins. A transport error aborts the whole search.
    """

    def __init__(
        self,
        transport: Transport,
        token_analyzer: Optional[TokenAnalyzer] = None,
        shortlist: Sequence[int] = SLOT_SHORTLIST,
    ):
        self.transport = transport
        self.token_analyzer = token_analyzer or TokenAnalyzer(transport)
        self.shortlist = tuple(shortlist)

    async def locate(self, token: str, holder: str, block: str = "latest") -> Optional[StorageSlotResult]:
        """
        Find the mapping slot holding `holder`'s balance.

        Args:
            token: Token contract address
            holder: Balance holder address
            block: Block tag or hash used for both balanceOf and storage reads

        Returns:
            StorageSlotResult, or None if no slot in [0, 256) matches.
            A zero balance is never located.

        Raises:
            IntrospectionError: If token metadata or balance cannot be read
            TransportError: If any storage read fails
        """
        token = checksum(token)
        holder = checksum(holder, "holder")

        details = await self.token_analyzer.describe(token)
        balance = await self.token_analyzer.balance_of(token, holder, block=block)
        expected = to_storage_word(balance)
        logger.debug(f"[SLOT] {holder} holds {balance} of {details.symbol} ({token})")

        probed = 0
        for index in candidate_slots(self.shortlist):
            probed += 1
            raw = await self.transport.request(
                "eth_getStorageAt", [token, map_slot(holder, index), block]
            )
            value = raw.lower() if isinstance(raw, str) else raw

            if value == expected and value != ZERO_HASH:
                logger.info(f"[SLOT] Balance mapping of {token} found at slot {index:#x} after {probed} probes")
                return StorageSlotResult(
                    index=index,
                    balance=balance,
                    balance_decimal=format_units(balance, details.decimals),
                )

        logger.info(f"[SLOT] No balance mapping slot found for {token} (holder {holder})")
        return None

    async def require(self, token: str, holder: str, block: str = "latest") -> StorageSlotResult:
        """Like `locate`, but raises SlotNotFound instead of returning None."""
        result = await self.locate(token, holder, block)
        if result is None:
            raise SlotNotFound(token, holder)
        return result
