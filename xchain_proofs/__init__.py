"""
XChain Proofs - Cross-Chain State-Proof Engine

Read-only evidence gathering for balance claims on EVM chains:
- Chain registry with per-chain hardfork / custom EIP configuration
- RPC endpoint selection (pluggable, uniform random by default)
- ERC-20 introspection (name, symbol, decimals, supply, balances)
- Balance mapping storage slot discovery
- Account and storage Merkle proofs (eth_getProof, canonical RLP)
- Hardfork-correct RLP block header reconstruction

Usage:
    from xchain_proofs import CrossChainProver, default_registry

    prover = CrossChainProver(default_registry())
    bundle = await prover.prove_balance(1, token, holder, block_hash)
"""

from .block_header import BlockHeaderBuilder, header_hash
from .chain_registry import ChainDefinition, ChainRegistry, default_registry
from .core import BalanceProofBundle, CrossChainProver
from .exceptions import (
    BlockHeaderError,
    IntrospectionError,
    ProofError,
    RegistryError,
    RuleSetError,
    SlotNotFound,
    StorageProofsUnsupported,
    TransportError,
    UnknownChainId,
    UnknownHardfork,
    UnsupportedChain,
    XChainError,
)
from .hardforks import RuleSet, derive_rule_set
from .multichain_provider import (
    EndpointSelector,
    MultiChainProvider,
    RandomEndpointSelector,
    RPCTransport,
)
from .proof_fetcher import ProofFetcher
from .storage_analyzer import StorageSlotLocator, StorageSlotResult, candidate_slots, map_slot
from .token_analyzer import TokenAnalyzer, TokenInfo, format_units

__all__ = [
    # Orchestrator
    "CrossChainProver",
    "BalanceProofBundle",

    # Registry and transports
    "ChainDefinition",
    "ChainRegistry",
    "default_registry",
    "EndpointSelector",
    "RandomEndpointSelector",
    "MultiChainProvider",
    "RPCTransport",

    # Components
    "TokenAnalyzer",
    "TokenInfo",
    "format_units",
    "StorageSlotLocator",
    "StorageSlotResult",
    "candidate_slots",
    "map_slot",
    "ProofFetcher",
    "BlockHeaderBuilder",
    "header_hash",
    "RuleSet",
    "derive_rule_set",

    # Errors
    "XChainError",
    "RegistryError",
    "UnsupportedChain",
    "UnknownChainId",
    "UnknownHardfork",
    "RuleSetError",
    "TransportError",
    "IntrospectionError",
    "SlotNotFound",
    "StorageProofsUnsupported",
    "ProofError",
    "BlockHeaderError",
]

__version__ = "1.0.0"
