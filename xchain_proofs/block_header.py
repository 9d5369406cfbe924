"""
XChain Proofs - Block Header Reconstructor
Rebuilds the canonical RLP header of a block from its JSON-RPC form.

The output must hash to the block hash, so the field list follows the chain's
rule set exactly: base fee (EIP-1559), withdrawals root (EIP-4895), blob gas
fields (EIP-4844), parent beacon block root (EIP-4788) and requests hash
(EIP-7685) are appended only when active. An active field the node omits takes
its hardfork default; a field whose EIP is inactive is rejected. Consensus
values such as difficulty or extra data are carried over as-is, never
validated.
"""

import hashlib
import logging
from typing import Any, Mapping, Union

import rlp
from eth_utils import keccak, to_bytes

from .chain_registry import ChainRegistry
from .exceptions import BlockHeaderError, UnknownHardfork
from .hardforks import RuleSet, derive_rule_set
from .multichain_provider import Transport, fetch_chain_id

logger = logging.getLogger(__name__)

# Root of an empty trie and hash of an empty request list
EMPTY_TRIE_ROOT = keccak(rlp.encode(b""))
EMPTY_REQUESTS_HASH = hashlib.sha256(b"").digest()

# (JSON-RPC key, field kind), in RLP order
BASE_HEADER_FIELDS = (
    ("parentHash", "bytes"),
    ("sha3Uncles", "bytes"),
    ("miner", "bytes"),
    ("stateRoot", "bytes"),
    ("transactionsRoot", "bytes"),
    ("receiptsRoot", "bytes"),
    ("logsBloom", "bytes"),
    ("difficulty", "int"),
    ("number", "int"),
    ("gasLimit", "int"),
    ("gasUsed", "int"),
    ("timestamp", "int"),
    ("extraData", "bytes"),
    ("mixHash", "bytes"),
    ("nonce", "bytes"),
)

# (activating EIP, (JSON-RPC key, field kind, default when omitted)), in RLP order
EIP_HEADER_FIELDS = (
    (1559, (("baseFeePerGas", "int", 7),)),
    (4895, (("withdrawalsRoot", "bytes", EMPTY_TRIE_ROOT),)),
    (4844, (("blobGasUsed", "int", 0), ("excessBlobGas", "int", 0))),
    (4788, (("parentBeaconBlockRoot", "bytes", b"\x00" * 32),)),
    (7685, (("requestsHash", "bytes", EMPTY_REQUESTS_HASH),)),
)


def _convert(key: str, kind: str, value: Any) -> Union[int, bytes]:
    try:
        if kind == "int":
            return int(value, 16) if isinstance(value, str) else int(value)
        return to_bytes(hexstr=value)
    except (TypeError, ValueError) as e:
        raise BlockHeaderError(f"Header field {key} has invalid value {value!r}") from e


def header_fields(block: Mapping[str, Any], rules: RuleSet) -> list[Union[int, bytes]]:
    """
    Header field values in RLP order for the given rule set.

    Args:
        block: Block object from eth_getBlockByHash
        rules: Active consensus rules of the block's chain

    Returns:
        List of ints (quantities) and bytes (data)

    Raises:
        BlockHeaderError: If a base field is missing, or the block carries a
            field whose EIP the rule set does not activate
    """
    values = []
    for key, kind in BASE_HEADER_FIELDS:
        value = block.get(key)
        if value is None:
            raise BlockHeaderError(f"Block is missing header field {key}")
        values.append(_convert(key, kind, value))

    for eip, fields in EIP_HEADER_FIELDS:
        active = rules.is_activated(eip)
        for key, kind, default in fields:
            value = block.get(key)
            if not active:
                if value is not None:
                    raise BlockHeaderError(
                        f"Header field {key} requires EIP-{eip}, which is not active under {rules.hardfork}"
                    )
                continue
            values.append(default if value is None else _convert(key, kind, value))
    return values


def encode_header(block: Mapping[str, Any], rules: RuleSet) -> bytes:
    return rlp.encode(header_fields(block, rules))


def header_hash(header_rlp: bytes) -> str:
    """Block hash committed to by an RLP header."""
    return "0x" + keccak(header_rlp).hex()


class BlockHeaderBuilder:
    """Fetches a block by hash and serializes its header for the node's chain."""

    def __init__(self, transport: Transport, registry: ChainRegistry):
        self.transport = transport
        self.registry = registry

    async def rule_set(self) -> RuleSet:
        """
        Rule set of the chain the transport is connected to.

        Raises:
            UnknownChainId: If the node cannot report its chain id
            UnsupportedChain: If that chain is not in the registry
            UnknownHardfork: If the registry entry has no usable hardfork
            RuleSetError: If the entry's custom EIPs are inconsistent
        """
        chain_id = await fetch_chain_id(self.transport)
        chain = self.registry.lookup(chain_id)
        if not chain.hardfork:
            raise UnknownHardfork(chain.hardfork, chain_id)

        try:
            return derive_rule_set(chain.hardfork, chain.custom_eips)
        except UnknownHardfork:
            raise UnknownHardfork(chain.hardfork, chain_id) from None

    async def header_rlp(self, block_hash: str) -> bytes:
        """
        Canonical RLP serialization of a block header.

        Args:
            block_hash: Hash of the block to reconstruct

        Returns:
            RLP bytes whose keccak256 is the block hash
        """
        rules = await self.rule_set()

        block = await self.transport.request("eth_getBlockByHash", [block_hash, False])
        if not block:
            raise BlockHeaderError(f"Block {block_hash} not found on {self.transport.endpoint}")

        encoded = encode_header(block, rules)
        computed = header_hash(encoded)
        if computed != str(block_hash).lower():
            logger.warning(
                f"[HEADER] Reconstructed header for {block_hash} hashes to {computed} ({rules.hardfork})"
            )
        else:
            logger.debug(f"[HEADER] Reconstructed {len(encoded)}-byte header for {block_hash}")
        return encoded
