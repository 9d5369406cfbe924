import hashlib

import pytest
import rlp
from eth_utils import keccak

from xchain_proofs import (
    BlockHeaderBuilder,
    BlockHeaderError,
    ChainRegistry,
    UnknownChainId,
    UnknownHardfork,
    UnsupportedChain,
    derive_rule_set,
    header_hash,
)
from xchain_proofs.block_header import header_fields
from xchain_proofs.constants import CHAIN_CONFIG

from conftest import StubTransport, block_hash_of, make_block


FIELDS = (
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
    ("baseFeePerGas", "int"),
    ("withdrawalsRoot", "bytes"),
    ("blobGasUsed", "int"),
    ("excessBlobGas", "int"),
    ("parentBeaconBlockRoot", "bytes"),
)

LONDON_ONLY = ("withdrawalsRoot", "blobGasUsed", "excessBlobGas", "parentBeaconBlockRoot")


def expected_header(block, upto):
    """Header list written out field by field; `upto` counts the fields included."""
    return rlp.encode([
        int(block[key], 16) if kind == "int" else bytes.fromhex(block[key][2:])
        for key, kind in FIELDS[:upto]
    ])


def london_block(**overrides):
    block = make_block(**overrides)
    for key in LONDON_ONLY:
        del block[key]
    return block


def serve(transport, block, upto):
    block_hash = block_hash_of(expected_header(block, upto))
    transport.blocks[block_hash] = dict(block, hash=block_hash)
    return block_hash


async def test_cancun_header_hashes_to_block_hash(registry):
    transport = StubTransport(chain_id=1)
    block_hash = serve(transport, make_block(), 20)

    header = await BlockHeaderBuilder(transport, registry).header_rlp(block_hash)

    assert header_hash(header) == block_hash
    assert len(rlp.decode(header)) == 20
    assert transport.calls_to("eth_getBlockByHash") == [[block_hash, False]]


async def test_london_chain_header(registry):
    transport = StubTransport(chain_id=137)
    block_hash = serve(transport, london_block(), 16)

    header = await BlockHeaderBuilder(transport, registry).header_rlp(block_hash)

    assert header_hash(header) == block_hash
    assert len(rlp.decode(header)) == 16


async def test_london_chain_rejects_later_fields(registry):
    transport = StubTransport(chain_id=137)
    block_hash = "0x" + "bb" * 32
    transport.blocks[block_hash] = make_block()

    with pytest.raises(BlockHeaderError, match="withdrawalsRoot requires EIP-4895"):
        await BlockHeaderBuilder(transport, registry).header_rlp(block_hash)


async def test_custom_eips_shape_header(registry):
    transport = StubTransport(chain_id=56)
    block = make_block()
    del block["parentBeaconBlockRoot"]
    block_hash = serve(transport, block, 19)

    header = await BlockHeaderBuilder(transport, registry).header_rlp(block_hash)

    fields = rlp.decode(header)
    assert len(fields) == 19
    assert fields[-1] == b""  # excessBlobGas of zero, no parent beacon root after it
    assert header_hash(header) == block_hash


async def test_header_round_trip_is_stable(registry):
    transport = StubTransport(chain_id=1)
    block_hash = serve(transport, make_block(extraData="0x", gasUsed="0x0"), 20)
    builder = BlockHeaderBuilder(transport, registry)

    first = await builder.header_rlp(block_hash)
    second = await builder.header_rlp(block_hash)

    assert first == second
    assert rlp.encode(rlp.decode(first)) == first


async def test_mismatched_hash_is_returned_not_rejected(registry):
    transport = StubTransport(chain_id=1)
    block_hash = "0x" + "bb" * 32
    transport.blocks[block_hash] = make_block()

    header = await BlockHeaderBuilder(transport, registry).header_rlp(block_hash)
    assert header == expected_header(make_block(), 20)


async def test_unknown_chain_id(registry):
    transport = StubTransport(chain_id=0)
    with pytest.raises(UnknownChainId):
        await BlockHeaderBuilder(transport, registry).header_rlp("0x" + "bb" * 32)


async def test_unsupported_chain_fetches_no_block(registry):
    transport = StubTransport(chain_id=999999)
    with pytest.raises(UnsupportedChain):
        await BlockHeaderBuilder(transport, registry).header_rlp("0x" + "bb" * 32)
    assert transport.calls_to("eth_getBlockByHash") == []


async def test_missing_hardfork():
    table = {1: {key: value for key, value in CHAIN_CONFIG[1].items() if key != "hardfork"}}
    registry = ChainRegistry.from_config(table)
    with pytest.raises(UnknownHardfork) as exc:
        await BlockHeaderBuilder(StubTransport(chain_id=1), registry).header_rlp("0x" + "bb" * 32)
    assert exc.value.chain_id == 1


async def test_block_not_found(registry):
    with pytest.raises(BlockHeaderError, match="not found"):
        await BlockHeaderBuilder(StubTransport(chain_id=1), registry).header_rlp("0x" + "bb" * 32)


def test_missing_base_field():
    block = make_block()
    del block["stateRoot"]
    with pytest.raises(BlockHeaderError, match="stateRoot"):
        header_fields(block, derive_rule_set("cancun"))


def test_absent_gated_fields_take_hardfork_defaults():
    block = make_block()
    for key in ("withdrawalsRoot", "blobGasUsed", "excessBlobGas", "parentBeaconBlockRoot"):
        del block[key]

    fields = header_fields(block, derive_rule_set("cancun"))

    assert len(fields) == 20
    assert fields[16] == keccak(rlp.encode(b""))
    assert fields[17:19] == [0, 0]
    assert fields[19] == b"\x00" * 32


async def test_cancun_block_without_blob_fields(registry):
    block = make_block()
    del block["blobGasUsed"], block["excessBlobGas"], block["parentBeaconBlockRoot"]
    expected = rlp.encode(
        rlp.decode(expected_header(make_block(), 17)) + [0, 0, b"\x00" * 32]
    )
    transport = StubTransport(chain_id=1)
    block_hash = block_hash_of(expected)
    transport.blocks[block_hash] = block

    header = await BlockHeaderBuilder(transport, registry).header_rlp(block_hash)

    assert header == expected
    assert header_hash(header) == block_hash


def test_prague_requests_hash_default():
    fields = header_fields(make_block(), derive_rule_set("prague"))
    assert len(fields) == 21
    assert fields[-1] == hashlib.sha256(b"").digest()

    with pytest.raises(BlockHeaderError, match="requestsHash"):
        header_fields(make_block(requestsHash="0x" + "99" * 32), derive_rule_set("cancun"))


def test_invalid_field_value():
    with pytest.raises(BlockHeaderError, match="gasLimit"):
        header_fields(make_block(gasLimit="0xnothex"), derive_rule_set("cancun"))
