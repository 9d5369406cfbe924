import pytest
from eth_utils import keccak

from xchain_proofs import (
    IntrospectionError,
    SlotNotFound,
    StorageSlotLocator,
    TransportError,
    candidate_slots,
    map_slot,
)
from xchain_proofs.storage_analyzer import to_storage_word

from conftest import HOLDER, TOKEN


def test_map_slot_matches_solidity_layout():
    expected = keccak(bytes(12) + bytes.fromhex("cc" * 20) + (0x65).to_bytes(32, "big"))
    assert map_slot(HOLDER, 0x65) == "0x" + expected.hex()
    assert map_slot(HOLDER.upper().replace("0X", "0x"), 0x65) == map_slot(HOLDER, 0x65)
    assert map_slot(HOLDER, 0) != map_slot(HOLDER, 1)


def test_candidate_order():
    order = list(candidate_slots())
    assert order[:4] == [0x65, 0x1, 0x33, 0x0]
    assert order[4:7] == [0x2, 0x3, 0x4]
    assert sorted(order) == list(range(256))


def test_candidate_order_custom_shortlist():
    assert list(candidate_slots([3, 3, 300, 1], limit=5)) == [3, 1, 0, 2, 4]


def probed_slots(transport):
    by_key = {map_slot(HOLDER, i): i for i in range(256)}
    return [by_key[params[1]] for params in transport.calls_to("eth_getStorageAt")]


async def test_locate_shortlisted_slot(transport):
    balance = 1_000_000_000_000_000_000
    transport.deploy_token(decimals=18, balances={HOLDER: balance})
    transport.storage[map_slot(HOLDER, 0x65)] = to_storage_word(balance)

    result = await StorageSlotLocator(transport).locate(TOKEN, HOLDER)

    assert result.index == 0x65
    assert result.balance == balance
    assert result.balance_decimal == "1.0"
    assert probed_slots(transport) == [0x65]


async def test_locate_slot_outside_shortlist(transport):
    transport.deploy_token(decimals=6, balances={HOLDER: 2_500_000})
    transport.storage[map_slot(HOLDER, 9)] = to_storage_word(2_500_000)

    result = await StorageSlotLocator(transport).locate(TOKEN, HOLDER, block="0x" + "bb" * 32)

    assert result.index == 9
    assert result.balance_decimal == "2.5"
    assert probed_slots(transport) == [0x65, 0x1, 0x33, 0, 2, 3, 4, 5, 6, 7, 8, 9]
    assert {params[2] for params in transport.calls_to("eth_getStorageAt")} == {"0x" + "bb" * 32}


async def test_first_match_wins(transport):
    transport.deploy_token(balances={HOLDER: 7})
    transport.storage[map_slot(HOLDER, 0)] = to_storage_word(7)
    transport.storage[map_slot(HOLDER, 0x33)] = to_storage_word(7)

    result = await StorageSlotLocator(transport).locate(TOKEN, HOLDER)
    assert result.index == 0x33


async def test_zero_balance_is_never_located(transport):
    transport.deploy_token(balances={})

    result = await StorageSlotLocator(transport).locate(TOKEN, HOLDER)

    assert result is None
    assert len(transport.calls_to("eth_getStorageAt")) == 256


async def test_wrong_value_not_found(transport):
    transport.deploy_token(balances={HOLDER: 100})
    transport.storage[map_slot(HOLDER, 0x65)] = to_storage_word(99)

    locator = StorageSlotLocator(transport)
    assert await locator.locate(TOKEN, HOLDER) is None
    with pytest.raises(SlotNotFound):
        await locator.require(TOKEN, HOLDER)


async def test_search_order_is_deterministic(transport):
    transport.deploy_token(balances={HOLDER: 5})
    locator = StorageSlotLocator(transport)

    await locator.locate(TOKEN, HOLDER)
    first = probed_slots(transport)
    transport.calls.clear()
    await locator.locate(TOKEN, HOLDER)

    assert probed_slots(transport) == first


async def test_storage_read_failure_aborts_search(transport):
    transport.deploy_token(balances={HOLDER: 5})
    reads = []

    def failing_read(address, key, block):
        reads.append(key)
        if len(reads) == 3:
            raise TransportError("eth_getStorageAt", transport.endpoint, "timeout")
        return "0x" + "00" * 32

    transport.handlers["eth_getStorageAt"] = failing_read

    with pytest.raises(TransportError):
        await StorageSlotLocator(transport).locate(TOKEN, HOLDER)
    assert len(reads) == 3


async def test_introspection_failure_propagates(transport):
    with pytest.raises(IntrospectionError):
        await StorageSlotLocator(transport).locate(TOKEN, HOLDER)
    assert transport.calls_to("eth_getStorageAt") == []
