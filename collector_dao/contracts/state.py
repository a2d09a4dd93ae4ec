"""
In-Memory World State

Holds everything a proposal's actions can touch outside the governance
ledger: funding-asset balances, account nonces, per-contract storage, and the
registry of deployed collaborator contracts.

Execution atomicity relies on snapshot() / revert(): the dispatcher takes a
snapshot before the first action and reverts to it if any action fails.
Storage values must be immutable (ints, strings, tuples) because snapshots
copy the storage mapping, not the values.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..constants import UINT256_MAX
from ..crypto.contract import generate_contract_address, normalize_address
from ..exceptions import CollectorDAOException
from ..logger import get_logger

logger = get_logger(__name__)


class StateError(CollectorDAOException):
    """World state error."""


class InsufficientFundsError(StateError):
    """Account cannot cover a debit."""


@dataclass
class Account:
    """Funding-asset account."""
    address: str
    balance: int = 0
    nonce: int = 0

    @property
    def is_empty(self) -> bool:
        return self.balance == 0 and self.nonce == 0


class WorldState:
    """
    Manages funding-asset accounts, contract storage and deployed contracts.

    Provides:
    - Account state (balance, nonce)
    - Contract storage keyed by (address, key)
    - Contract registry (address -> Contract object)
    - State snapshots and reverts
    """

    def __init__(self):
        self._accounts: Dict[str, Account] = {}
        self._storage: Dict[Tuple[str, Any], Any] = {}
        self._contracts: Dict[str, Any] = {}
        self._snapshots: List[Dict] = []

    # ── Accounts ──────────────────────────────────────────────────────

    def get_account(self, address: str) -> Account:
        address = normalize_address(address)
        account = self._accounts.get(address)
        if account is None:
            account = Account(address=address)
            self._accounts[address] = account
        return account

    def get_balance(self, address: str) -> int:
        return self.get_account(address).balance

    def set_balance(self, address: str, balance: int) -> None:
        if balance < 0 or balance > UINT256_MAX:
            raise StateError(f"Balance out of range: {balance}")
        self.get_account(address).balance = balance

    def credit(self, address: str, amount: int) -> None:
        account = self.get_account(address)
        if account.balance + amount > UINT256_MAX:
            raise OverflowError(f"Balance of {account.address} would overflow")
        account.balance += amount

    def debit(self, address: str, amount: int) -> None:
        account = self.get_account(address)
        if account.balance < amount:
            raise InsufficientFundsError(
                f"{account.address} balance {account.balance} < {amount}"
            )
        account.balance -= amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """Move funding asset between accounts."""
        if amount < 0:
            raise StateError("Transfer amount cannot be negative")
        if amount == 0:
            return
        self.debit(sender, amount)
        self.credit(recipient, amount)

    def get_nonce(self, address: str) -> int:
        return self.get_account(address).nonce

    def increment_nonce(self, address: str) -> None:
        self.get_account(address).nonce += 1

    # ── Storage ───────────────────────────────────────────────────────

    def get_storage(self, address: str, key: Any, default: Any = None) -> Any:
        return self._storage.get((normalize_address(address), key), default)

    def set_storage(self, address: str, key: Any, value: Any) -> None:
        self._storage[(normalize_address(address), key)] = value

    # ── Contracts ─────────────────────────────────────────────────────

    def deploy(self, contract: Any, deployer: str) -> str:
        """
        Register *contract* at its CREATE address and return that address.

        The address is derived from the deployer and its current nonce.
        """
        address = generate_contract_address(deployer, self.get_nonce(deployer))
        self.increment_nonce(deployer)
        contract.address = address
        self._contracts[address] = contract
        logger.info(f"Contract {type(contract).__name__} deployed at {address} by {deployer}")
        return address

    def get_contract(self, address: str) -> Optional[Any]:
        return self._contracts.get(normalize_address(address))

    def is_contract(self, address: str) -> bool:
        return normalize_address(address) in self._contracts

    # ── Snapshots ─────────────────────────────────────────────────────

    def snapshot(self) -> int:
        """
        Create state snapshot for revert.

        Returns:
            Snapshot ID
        """
        snapshot = {
            'accounts': {addr: Account(**vars(acc)) for addr, acc in self._accounts.items()},
            'storage': dict(self._storage),
            'contracts': dict(self._contracts),
        }
        self._snapshots.append(snapshot)
        return len(self._snapshots) - 1

    def revert(self, snapshot_id: int) -> None:
        """
        Revert state to snapshot.

        Args:
            snapshot_id: Snapshot ID from snapshot()
        """
        if snapshot_id < 0 or snapshot_id >= len(self._snapshots):
            raise ValueError(f"Invalid snapshot ID: {snapshot_id}")

        snapshot = self._snapshots[snapshot_id]
        self._accounts = snapshot['accounts']
        self._storage = snapshot['storage']
        self._contracts = snapshot['contracts']

        # Remove this and newer snapshots
        self._snapshots = self._snapshots[:snapshot_id]

    def discard(self, snapshot_id: int) -> None:
        """Keep current state and drop the snapshot (and any newer ones)."""
        if snapshot_id < 0 or snapshot_id >= len(self._snapshots):
            raise ValueError(f"Invalid snapshot ID: {snapshot_id}")
        self._snapshots = self._snapshots[:snapshot_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accounts": {
                addr: {"balance": str(acc.balance), "nonce": acc.nonce}
                for addr, acc in self._accounts.items()
                if not acc.is_empty
            },
            "contracts": {
                addr: type(c).__name__ for addr, c in self._contracts.items()
            },
            "storageSlots": len(self._storage),
        }
