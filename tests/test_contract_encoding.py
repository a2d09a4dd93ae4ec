"""
Contract Encoding & World State Test Suite

Coverage:
  - address normalisation and CREATE address derivation
  - function selectors and call data
  - world-state balances, storage and snapshots
  - collaborator dispatch rules

Run with:
    pytest tests/test_contract_encoding.py -v
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from eth_abi import decode

from collector_dao.constants import ONE_ETHER, UINT256_MAX
from collector_dao.contracts import (
    CollectibleContract,
    Contract,
    ContractRevert,
    InsufficientFundsError,
    StateError,
    WorldState,
)
from collector_dao.crypto import (
    compute_function_selector,
    decode_function_call,
    encode_function_call,
    generate_contract_address,
    normalize_address,
    parse_argument_types,
)
from collector_dao.exceptions import InvalidAddressError


ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
DEPLOYER = "0x" + "de" * 20


# ══════════════════════════════════════════════════════════════════════
#  ADDRESSES & CALL DATA
# ══════════════════════════════════════════════════════════════════════


class TestAddresses:
    """normalize_address() / generate_contract_address()."""

    def test_checksum_form(self):
        addr = normalize_address("0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed")
        assert addr == "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"

    @pytest.mark.parametrize("bad", ["", "0x1234", "hello", None, 42])
    def test_invalid(self, bad):
        with pytest.raises(InvalidAddressError):
            normalize_address(bad)

    def test_create_address_known_vector(self):
        # keccak(rlp([sender, 0]))[-20:]
        sender = "0x6ac7ea33f8831ea9dcc53393aaa88b25a785dbf0"
        assert generate_contract_address(sender, 0) == normalize_address(
            "0xcd234a471b72ba2f1ccf0a70fcaba648a5eecd8d"
        )

    def test_create_address_depends_on_nonce(self):
        assert generate_contract_address(DEPLOYER, 0) != generate_contract_address(DEPLOYER, 1)


class TestCallData:
    """Selectors and ABI encoding."""

    def test_transfer_selector(self):
        assert compute_function_selector("transfer(address,uint256)").hex() == "a9059cbb"

    def test_parse_argument_types(self):
        assert parse_argument_types("mint(address,uint256)") == ("address", "uint256")
        assert parse_argument_types("ping()") == ()

    def test_parse_malformed_signature(self):
        with pytest.raises(ValueError, match="Malformed"):
            parse_argument_types("mint")

    def test_encode_and_split(self):
        data = encode_function_call("mint(address)", normalize_address(ALICE))
        selector, args = decode_function_call(data)
        assert selector == compute_function_selector("mint(address)")
        assert decode(["address"], args) == (normalize_address(ALICE),)

    def test_encode_no_args_is_selector(self):
        assert encode_function_call("ping()") == compute_function_selector("ping()")

    def test_encode_arity_checked(self):
        with pytest.raises(ValueError, match="takes 1 arguments"):
            encode_function_call("mint(address)")

    def test_short_data_has_no_selector(self):
        assert decode_function_call(b"\x01\x02") == (b"", b"")


# ══════════════════════════════════════════════════════════════════════
#  WORLD STATE
# ══════════════════════════════════════════════════════════════════════


class TestWorldState:
    """Balances, storage, contracts, snapshots."""

    def test_transfer(self):
        world = WorldState()
        world.credit(ALICE, ONE_ETHER)
        world.transfer(ALICE, BOB, ONE_ETHER // 4)
        assert world.get_balance(ALICE) == 3 * ONE_ETHER // 4
        assert world.get_balance(BOB) == ONE_ETHER // 4

    def test_transfer_insufficient(self):
        world = WorldState()
        with pytest.raises(InsufficientFundsError):
            world.transfer(ALICE, BOB, 1)

    def test_negative_transfer(self):
        with pytest.raises(StateError):
            WorldState().transfer(ALICE, BOB, -1)

    def test_credit_overflow(self):
        world = WorldState()
        world.set_balance(ALICE, UINT256_MAX)
        with pytest.raises(OverflowError):
            world.credit(ALICE, 1)

    def test_deploy_uses_create_address(self):
        world = WorldState()
        nft = CollectibleContract()
        address = world.deploy(nft, DEPLOYER)
        assert address == generate_contract_address(DEPLOYER, 0)
        assert nft.address == address
        assert world.is_contract(address)
        assert world.get_nonce(DEPLOYER) == 1

    def test_snapshot_revert(self):
        world = WorldState()
        world.credit(ALICE, 5)
        snap = world.snapshot()
        world.credit(ALICE, 5)
        world.set_storage(BOB, "k", 1)
        world.revert(snap)
        assert world.get_balance(ALICE) == 5
        assert world.get_storage(BOB, "k") is None

    def test_revert_unregisters_deployed_contract(self):
        world = WorldState()
        snap = world.snapshot()
        address = world.deploy(CollectibleContract(), DEPLOYER)
        world.revert(snap)
        assert not world.is_contract(address)
        assert world.get_nonce(DEPLOYER) == 0

    def test_discard_keeps_state(self):
        world = WorldState()
        snap = world.snapshot()
        world.credit(ALICE, 5)
        world.discard(snap)
        assert world.get_balance(ALICE) == 5
        with pytest.raises(ValueError):
            world.revert(snap)

    def test_to_dict_skips_empty_accounts(self):
        world = WorldState()
        world.get_account(BOB)
        world.credit(ALICE, 1)
        assert list(world.to_dict()["accounts"]) == [normalize_address(ALICE)]


# ══════════════════════════════════════════════════════════════════════
#  COLLABORATORS
# ══════════════════════════════════════════════════════════════════════


class Vault(Contract):
    """Non-payable test contract."""

    FUNCTIONS = {"store(uint256)": "store"}

    def store(self, state, sender, value, amount):
        state.set_storage(self.address, "stored", amount)


class TestContractDispatch:
    """Contract.handle_call()."""

    def _deployed(self, contract):
        world = WorldState()
        world.deploy(contract, DEPLOYER)
        return world, contract

    def test_method_dispatched(self):
        world, vault = self._deployed(Vault())
        vault.handle_call(world, ALICE, 0, encode_function_call("store(uint256)", 7))
        assert world.get_storage(vault.address, "stored") == 7

    def test_non_payable_rejects_value(self):
        world, vault = self._deployed(Vault())
        with pytest.raises(ContractRevert, match="NON_PAYABLE"):
            vault.handle_call(world, ALICE, 1, encode_function_call("store(uint256)", 7))

    def test_empty_payload_without_receive(self):
        world, vault = self._deployed(Vault())
        with pytest.raises(ContractRevert, match="NO_RECEIVE"):
            vault.handle_call(world, ALICE, 0, b"")

    def test_payable_receive(self):
        world, nft = self._deployed(CollectibleContract())
        assert nft.handle_call(world, ALICE, 5, b"") == b""

    def test_collectible_mints_sequential_ids(self):
        world, nft = self._deployed(CollectibleContract())
        for expected in (1, 2):
            out = nft.handle_call(world, ALICE, 0,
                                  encode_function_call("mint(address)", normalize_address(BOB)))
            assert decode(["uint256"], out) == (expected,)
        assert nft.balance_of(world, BOB) == 2
        assert nft.total_minted(world) == 2

    def test_collectible_supply_cap(self):
        world, nft = self._deployed(CollectibleContract(max_supply=1))
        call = encode_function_call("mint(address)", normalize_address(BOB))
        nft.handle_call(world, ALICE, 0, call)
        with pytest.raises(ContractRevert, match="SOLD_OUT"):
            nft.handle_call(world, ALICE, 0, call)
