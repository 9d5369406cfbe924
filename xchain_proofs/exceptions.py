"""
XChain Proofs - Exceptions
Error taxonomy for the state-proof engine.
"""

from typing import Optional


class XChainError(Exception):
    """Base class for every error raised by the engine."""


class RegistryError(XChainError):
    """Chain table is malformed (duplicate chain id or display name)."""


class UnsupportedChain(XChainError):
    """Chain id is not present in the registry."""

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        super().__init__(f"Unsupported chain: {chain_id}")


class UnknownChainId(XChainError):
    """The RPC endpoint could not report a usable chain id."""


class UnknownHardfork(XChainError):
    """Registry entry has no hardfork label, or the label is not recognised."""

    def __init__(self, hardfork: Optional[str], chain_id: Optional[int] = None):
        self.hardfork = hardfork
        self.chain_id = chain_id
        where = f" for chain {chain_id}" if chain_id is not None else ""
        super().__init__(f"Unknown hardfork{where}: {hardfork!r}")


class RuleSetError(XChainError):
    """Extra EIPs cannot be layered on top of the hardfork baseline."""


class TransportError(XChainError):
    """JSON-RPC call failed at the network or node level."""

    def __init__(self, method: str, endpoint: Optional[str], message: str, code: Optional[int] = None):
        self.method = method
        self.endpoint = endpoint
        self.code = code
        detail = f"code={code} " if code is not None else ""
        super().__init__(f"{method} failed on {endpoint or '<unknown endpoint>'}: {detail}{message}")


class IntrospectionError(XChainError):
    """ERC20 metadata or balance call reverted or could not be decoded."""

    def __init__(self, address: str, method: str, message: str):
        self.address = address
        self.method = method
        super().__init__(f"{method} failed for token {address}: {message}")


class SlotNotFound(XChainError):
    """No candidate mapping slot produced the holder's balance."""

    def __init__(self, token: str, holder: str):
        self.token = token
        self.holder = holder
        super().__init__(f"Balance slot not found for holder {holder} in token {token}")


class StorageProofsUnsupported(XChainError):
    """Chain is flagged as unable to produce storage proofs."""

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        super().__init__(f"Chain {chain_id} cannot produce storage proofs")


class ProofError(XChainError):
    """eth_getProof returned a payload that cannot be re-encoded."""


class BlockHeaderError(XChainError):
    """Block could not be fetched or lacks a field required by its rule set."""
