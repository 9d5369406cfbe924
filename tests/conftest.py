from typing import Any, Callable, Optional

import pytest
from eth_abi import decode, encode
from eth_utils import keccak

from xchain_proofs import ChainRegistry, TransportError
from xchain_proofs.constants import CHAIN_CONFIG, FUNCTION_SELECTORS, ZERO_HASH

TOKEN = "0x" + "aa" * 20
HOLDER = "0x" + "cc" * 20

SELECTOR_NAMES = {selector: name for name, selector in FUNCTION_SELECTORS.items()}


class StubTransport:
    """In-memory JSON-RPC node answering the calls the engine issues."""

    def __init__(self, chain_id: int = 1, endpoint: str = "stub://node"):
        self.endpoint = endpoint
        self.chain_id = chain_id
        self.calls: list[tuple[str, list]] = []
        self.handlers: dict[str, Callable[..., Any]] = {}
        self.token: Optional[dict[str, Any]] = None
        self.balances: dict[str, int] = {}
        self.storage: dict[str, str] = {}
        self.proof: Optional[dict[str, Any]] = None
        self.blocks: dict[str, dict[str, Any]] = {}
        self.closed = False

    def deploy_token(self, name="Test Token", symbol="TST", decimals=18, total_supply=10**24, balances=None):
        self.token = {"name": name, "symbol": symbol, "decimals": decimals, "totalSupply": total_supply}
        self.balances = {k.lower(): v for k, v in (balances or {}).items()}

    def calls_to(self, method: str) -> list[list]:
        return [params for name, params in self.calls if name == method]

    async def request(self, method: str, params):
        self.calls.append((method, list(params)))
        if method in self.handlers:
            return self.handlers[method](*params)

        if method == "eth_chainId":
            return hex(self.chain_id)
        if method == "eth_call":
            return self._eth_call(params[0]["data"])
        if method == "eth_getStorageAt":
            return self.storage.get(params[1].lower(), ZERO_HASH)
        if method == "eth_getProof":
            return self.proof
        if method == "eth_getBlockByHash":
            return self.blocks.get(params[0].lower())
        raise TransportError(method, self.endpoint, "method not supported by stub")

    def _eth_call(self, data: str) -> str:
        function = SELECTOR_NAMES.get(data[2:10])
        if self.token is None or function is None:
            raise TransportError("eth_call", self.endpoint, "execution reverted", 3)

        if function == "balanceOf":
            (holder,) = decode(["address"], bytes.fromhex(data[10:]))
            return "0x" + encode(["uint256"], [self.balances.get(holder.lower(), 0)]).hex()

        value = self.token[function]
        abi_type = {"name": "string", "symbol": "string", "decimals": "uint8"}.get(function, "uint256")
        return "0x" + encode([abi_type], [value]).hex()

    async def close(self) -> None:
        self.closed = True


def make_block(**overrides) -> dict[str, Any]:
    """Cancun-era block as returned by eth_getBlockByHash(hash, false), without its hash."""
    block = {
        "parentHash": "0x" + "11" * 32,
        "sha3Uncles": "0x1dcc4de8dec75d7aab85b567b6ccd41ad312451b948a7413f0a142fd40d49347",
        "miner": "0x" + "22" * 20,
        "stateRoot": "0x" + "33" * 32,
        "transactionsRoot": "0x" + "44" * 32,
        "receiptsRoot": "0x" + "55" * 32,
        "logsBloom": "0x" + "00" * 256,
        "difficulty": "0x0",
        "number": "0x1312d00",
        "gasLimit": "0x1c9c380",
        "gasUsed": "0xa5e1b3",
        "timestamp": "0x66b2c3d4",
        "extraData": "0x6265617665726275696c642e6f7267",
        "mixHash": "0x" + "66" * 32,
        "nonce": "0x0000000000000000",
        "baseFeePerGas": "0x3b9aca00",
        "withdrawalsRoot": "0x" + "77" * 32,
        "blobGasUsed": "0x20000",
        "excessBlobGas": "0x0",
        "parentBeaconBlockRoot": "0x" + "88" * 32,
        "totalDifficulty": "0xc70d815d562d3cfa955",
        "size": "0x1f4",
        "transactions": [],
        "uncles": [],
        "withdrawals": [],
    }
    block.update(overrides)
    return block


def block_hash_of(header_rlp: bytes) -> str:
    return "0x" + keccak(header_rlp).hex()


@pytest.fixture
def registry() -> ChainRegistry:
    return ChainRegistry.from_config(CHAIN_CONFIG)


@pytest.fixture
def transport() -> StubTransport:
    return StubTransport(chain_id=1)
