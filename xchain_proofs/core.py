"""
XChain Proofs - Core
Orchestrates slot discovery, proof retrieval and header reconstruction into a
single balance proof bundle.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from .block_header import BlockHeaderBuilder
from .chain_registry import ChainRegistry
from .exceptions import StorageProofsUnsupported
from .multichain_provider import MultiChainProvider, Transport
from .proof_fetcher import ProofFetcher
from .storage_analyzer import StorageSlotLocator, StorageSlotResult
from .token_analyzer import TokenAnalyzer, TokenInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceProofBundle:
    """Everything a verifier needs to check a balance against a block hash."""

    chain_id: int
    block_hash: str
    token: TokenInfo
    holder: str
    slot: StorageSlotResult
    account_proof: bytes
    storage_proof: bytes
    block_header: bytes

    def to_dict(self) -> dict[str, Any]:
        return {
            "chain_id": self.chain_id,
            "block_hash": self.block_hash,
            "token": {
                "address": self.token.address,
                "chain_id": self.token.chain_id,
                "name": self.token.name,
                "symbol": self.token.symbol,
                "decimals": self.token.decimals,
                "total_supply": str(self.token.total_supply),
            },
            "holder": self.holder,
            "slot": {
                "index": self.slot.index,
                "balance": str(self.slot.balance),
                "balance_decimal": self.slot.balance_decimal,
            },
            "account_proof": "0x" + self.account_proof.hex(),
            "storage_proof": "0x" + self.storage_proof.hex(),
            "block_header": "0x" + self.block_header.hex(),
        }


class CrossChainProver:
    """
    Builds balance proofs for any chain in the registry.

    Usage:
        prover = CrossChainProver(default_registry())
        bundle = await prover.prove_balance(1, token, holder, block_hash)
    """

    def __init__(self, registry: ChainRegistry, provider: Optional[MultiChainProvider] = None):
        self.registry = registry
        self.provider = provider or MultiChainProvider(registry)

    async def prove_balance(
        self,
        chain_id: int,
        token: str,
        holder: str,
        block_hash: str,
        transport: Optional[Transport] = None,
    ) -> BalanceProofBundle:
        """
        Locate the holder's balance slot and fetch proofs plus header.

        Args:
            chain_id: Chain the token lives on
            token: Token contract address
            holder: Balance holder address
            block_hash: Block used as trust anchor
            transport: Pre-opened transport (default: open one via the provider)

        Returns:
            BalanceProofBundle

        Raises:
            UnsupportedChain: If the chain is not in the registry (no network call is made)
            StorageProofsUnsupported: If the chain cannot produce storage proofs
            SlotNotFound: If no balance mapping slot matches
        """
        chain = self.registry.lookup(chain_id)
        if chain.cannot_make_storage_proofs:
            raise StorageProofsUnsupported(chain_id)

        if transport is None:
            opened = self.provider.open(chain_id)
            try:
                return await self.prove_balance(chain_id, token, holder, block_hash, transport=opened)
            finally:
                await opened.close()

        tokens = TokenAnalyzer(transport)
        locator = StorageSlotLocator(transport, tokens)
        slot = await locator.require(token, holder, block_hash)
        details = await tokens.describe(token)

        fetcher = ProofFetcher(transport)
        headers = BlockHeaderBuilder(transport, self.registry)
        account_proof, storage_proof, block_header = await asyncio.gather(
            fetcher.account_proof(block_hash, token),
            fetcher.storage_proof(block_hash, token, slot.index, holder),
            headers.header_rlp(block_hash),
        )

        logger.info(
            f"[PROVER] Built balance proof for {holder} in {details.symbol} on {chain.name} at {block_hash}"
        )
        return BalanceProofBundle(
            chain_id=chain_id,
            block_hash=block_hash,
            token=details,
            holder=holder,
            slot=slot,
            account_proof=account_proof,
            storage_proof=storage_proof,
            block_header=block_header,
        )
