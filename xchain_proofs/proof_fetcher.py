"""
XChain Proofs - Proof Fetcher
Retrieves account and storage Merkle proofs via eth_getProof and re-encodes
them as a single canonical RLP list.

No Merkle verification happens here; that is left to the proof's consumer.
"""

import logging
from typing import Any, Sequence

import rlp
from eth_utils import to_bytes

from .exceptions import ProofError, TransportError
from .multichain_provider import Transport
from .storage_analyzer import map_slot
from .token_analyzer import checksum

logger = logging.getLogger(__name__)


def encode_proof(nodes: Sequence[str]) -> bytes:
    """
    Decode each hex-encoded trie node and re-encode the list as one RLP item.

    Args:
        nodes: Proof nodes as returned by eth_getProof

    Returns:
        RLP-encoded list of decoded nodes

    Raises:
        ProofError: If a node is not valid hex or not valid RLP
    """
    decoded = []
    for position, node in enumerate(nodes):
        try:
            decoded.append(rlp.decode(to_bytes(hexstr=node)))
        except (TypeError, ValueError, rlp.DecodingError) as e:
            raise ProofError(f"Proof node {position} is not valid RLP: {e}") from e
    return rlp.encode(decoded)


class ProofFetcher:
    """Account/storage proof retrieval for one transport."""

    def __init__(self, transport: Transport):
        self.transport = transport

    async def _get_proof(self, address: str, keys: list[str], block_hash: str) -> dict[str, Any]:
        try:
            response = await self.transport.request("eth_getProof", [address, keys, block_hash])
        except TransportError as e:
            raise ProofError(f"Proof retrieval for {address} at {block_hash} failed: {e}") from e
        if not isinstance(response, dict):
            raise ProofError(f"eth_getProof returned no proof for {address} at {block_hash}")
        return response

    async def storage_proof(self, block_hash: str, token: str, slot_index: int, holder: str) -> bytes:
        """
        Storage proof for `holder`'s entry in the mapping at `slot_index`.

        Args:
            block_hash: Block to prove against
            token: Token contract address
            slot_index: Balance mapping slot (see StorageSlotLocator)
            holder: Balance holder address

        Returns:
            RLP-encoded list of storage trie nodes
        """
        token = checksum(token)
        key = map_slot(checksum(holder, "holder"), slot_index)
        response = await self._get_proof(token, [key], block_hash)

        try:
            nodes = response["storageProof"][0]["proof"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProofError(f"eth_getProof response for {token} lacks a storage proof") from e

        logger.debug(f"[PROOF] Storage proof for {token} slot {slot_index:#x}: {len(nodes)} nodes")
        return encode_proof(nodes)

    async def account_proof(self, block_hash: str, token: str) -> bytes:
        """
        Account proof for a contract.

        Returns:
            RLP-encoded list of state trie nodes
        """
        token = checksum(token)
        response = await self._get_proof(token, [], block_hash)

        nodes = response.get("accountProof")
        if not isinstance(nodes, list):
            raise ProofError(f"eth_getProof response for {token} lacks an account proof")

        logger.debug(f"[PROOF] Account proof for {token}: {len(nodes)} nodes")
        return encode_proof(nodes)
