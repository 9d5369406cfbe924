"""
XChain Proofs - Chain Registry
Read-only catalog of supported chains and their consensus metadata.
"""

import json
import logging
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from . import config
from .constants import CHAIN_CONFIG
from .exceptions import RegistryError, UnsupportedChain

logger = logging.getLogger(__name__)


class NativeCurrency(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    symbol: str
    decimals: int = Field(ge=0)


class Explorer(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    standard: Optional[str] = None
    icon: Optional[str] = None


class ChainDefinition(BaseModel):
    """
    Connection and consensus metadata for one chain.

    Accepts both snake_case keys and the camelCase keys used by public chain
    lists (`chainId`, `rpcUrls`, `customEIPs`, ...). Explorer, ENS and parent
    data are display-only.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    chain_id: int = Field(validation_alias=AliasChoices("chain_id", "chainId"), gt=0)
    name: str = Field(min_length=1)
    chain: str = ""
    short_name: str = Field(validation_alias=AliasChoices("short_name", "shortName"), min_length=1)
    native_currency: NativeCurrency = Field(
        validation_alias=AliasChoices("native_currency", "nativeCurrency")
    )
    rpc_urls: tuple[str, ...] = Field(validation_alias=AliasChoices("rpc_urls", "rpcUrls"), min_length=1)
    hardfork: Optional[str] = None
    custom_eips: tuple[int, ...] = Field(
        default=(), validation_alias=AliasChoices("custom_eips", "customEIPs")
    )
    cannot_make_storage_proofs: bool = Field(
        default=False,
        validation_alias=AliasChoices("cannot_make_storage_proofs", "cannotMakeStorageProofs"),
    )

    # Display only
    network_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("network_id", "networkId"))
    slip44: Optional[int] = None
    icon: Optional[str] = None
    info_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("info_url", "infoURL"))
    features: tuple[dict[str, Any], ...] = ()
    explorers: tuple[Explorer, ...] = ()
    ens: Optional[dict[str, Any]] = None
    parent: Optional[dict[str, Any]] = None


class ChainRegistry:
    """
    Immutable chain table keyed by chain id.

    Built once at startup and injected into every component that needs it.
    Duplicate chain ids or display names are rejected, since the derived
    name -> chain id index would otherwise silently drop an entry.
    """

    def __init__(self, chains: Iterable[ChainDefinition]):
        by_id: dict[int, ChainDefinition] = {}
        by_name: dict[str, int] = {}

        for chain in chains:
            if chain.chain_id in by_id:
                raise RegistryError(f"Duplicate chain id in registry: {chain.chain_id}")
            if chain.name in by_name:
                raise RegistryError(
                    f"Duplicate chain name {chain.name!r} (chain ids {by_name[chain.name]} and {chain.chain_id})"
                )
            by_id[chain.chain_id] = chain
            by_name[chain.name] = chain.chain_id

        self._chains = MappingProxyType(by_id)
        self.name_to_chain_id: Mapping[str, int] = MappingProxyType(by_name)

    @classmethod
    def from_config(cls, table: Mapping[Any, Mapping[str, Any]]) -> "ChainRegistry":
        """
        Build a registry from a {chain_id: definition} table.

        Keys may be ints or numeric strings (as in JSON). A `chain_id`/`chainId`
        inside a definition must agree with its key.
        """
        chains = []
        for key, raw in table.items():
            try:
                chain_id = int(key, 0) if isinstance(key, str) else int(key)
            except ValueError:
                raise RegistryError(f"Invalid chain id key: {key!r}")

            data = dict(raw)
            declared = data.pop("chainId", data.pop("chain_id", chain_id))
            if int(declared) != chain_id:
                raise RegistryError(f"Chain {chain_id} declares mismatching chain id {declared}")

            try:
                chains.append(ChainDefinition(chain_id=chain_id, **data))
            except ValidationError as e:
                raise RegistryError(f"Invalid definition for chain {chain_id}: {e}") from e

        return cls(chains)

    @classmethod
    def from_file(cls, path: str) -> "ChainRegistry":
        """Load a JSON chain table from disk."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                table = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise RegistryError(f"Cannot load chain table from {path}: {e}") from e

        if not isinstance(table, dict):
            raise RegistryError(f"Chain table in {path} must be a JSON object")

        registry = cls.from_config(table)
        logger.info(f"[REGISTRY] Loaded {len(registry)} chains from {path}")
        return registry

    def lookup(self, chain_id: int) -> ChainDefinition:
        try:
            return self._chains[chain_id]
        except KeyError:
            raise UnsupportedChain(chain_id) from None

    def chain_id_for_name(self, name: str) -> int:
        try:
            return self.name_to_chain_id[name]
        except KeyError:
            raise RegistryError(f"No chain named {name!r}") from None

    def supports_storage_proofs(self, chain_id: int) -> bool:
        return not self.lookup(chain_id).cannot_make_storage_proofs

    def explorer_url(self, chain_id: int, address: str) -> Optional[str]:
        """
        Get block explorer URL for an address.

        Args:
            chain_id: Chain ID
            address: Contract/wallet address

        Returns:
            Explorer URL, or None when the chain lists no explorer
        """
        chain = self.lookup(chain_id)
        if not chain.explorers:
            return None
        base_url = chain.explorers[0].url.rstrip("/")
        return f"{base_url}/address/{address}"

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._chains

    def __iter__(self) -> Iterator[ChainDefinition]:
        return iter(self._chains.values())

    def __len__(self) -> int:
        return len(self._chains)


def default_registry() -> ChainRegistry:
    """Registry from `XCHAIN_CHAINS_FILE` when set, else the built-in table."""
    path = config.chains_file()
    if path:
        return ChainRegistry.from_file(path)
    return ChainRegistry.from_config(CHAIN_CONFIG)
