"""
Collectible Minting Contract

A minimal NFT-style collaborator: ``mint(address)`` assigns the next token
id to the given owner. It is the reference target for DAO proposals that
buy collectibles, and what the test-suite dispatches against.

Storage layout (WorldState keys under this contract's address):
    "next_id"            -> int, last minted token id
    ("owner", token_id)  -> owner address
    ("balance", owner)   -> number of tokens held
"""

from typing import Optional

from eth_abi import encode

from ..crypto.contract import normalize_address
from .base import Contract, ContractRevert


class CollectibleContract(Contract):
    """Collectible token with an optional mint price and supply cap."""

    FUNCTIONS = {
        "mint(address)": "mint",
    }
    PAYABLE = True

    def __init__(self, name: str = "RareNFT", mint_price: int = 0, max_supply: Optional[int] = None):
        super().__init__()
        self.name = name
        self.mint_price = mint_price
        self.max_supply = max_supply

    def mint(self, state, sender: str, value: int, to: str) -> bytes:
        if value < self.mint_price:
            raise ContractRevert("INSUFFICIENT_PAYMENT")
        token_id = state.get_storage(self.address, "next_id", 0) + 1
        if self.max_supply is not None and token_id > self.max_supply:
            raise ContractRevert("SOLD_OUT")

        owner = normalize_address(to)
        state.set_storage(self.address, "next_id", token_id)
        state.set_storage(self.address, ("owner", token_id), owner)
        state.set_storage(self.address, ("balance", owner), self.balance_of(state, owner) + 1)
        return encode(["uint256"], [token_id])

    # ── Views ─────────────────────────────────────────────────────────

    def balance_of(self, state, owner: str) -> int:
        return state.get_storage(self.address, ("balance", normalize_address(owner)), 0)

    def owner_of(self, state, token_id: int) -> Optional[str]:
        return state.get_storage(self.address, ("owner", token_id))

    def total_minted(self, state) -> int:
        return state.get_storage(self.address, "next_id", 0)
