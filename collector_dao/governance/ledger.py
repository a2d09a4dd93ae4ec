"""
Voting-Weight Ledger

Tracks the DAO token's per-member balances and the delegation relation,
and derives each member's voting balance from them.

  - balance_of(x):     raw token balance, unaffected by delegation
  - delegates(x):      the member x delegates to (x itself by default)
  - voting_balance(x): sum of balances of every holder whose delegation
                       chain ends at x, or 0 if x has delegated away

Voting weight is always derived at read time and is NOT checkpointed per
proposal: a holder who acquires tokens, or receives a delegation, after a
proposal was created votes with the new weight. This matches the deployed
contract's behaviour and is kept as-is.
"""

from typing import Any, Dict, List

from ..constants import TOKEN_NAME, TOKEN_SYMBOL, UINT256_MAX
from ..crypto.contract import normalize_address
from ..exceptions import GovernanceError
from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class LedgerError(GovernanceError):
    """Base ledger error."""
    code = "LEDGER_ERROR"


class InsufficientBalanceError(LedgerError):
    """Debit larger than the holder's balance."""
    code = "INSUFFICIENT_BALANCE"


class DelegationCycleError(LedgerError):
    """Delegation would make the delegation graph cyclic."""
    code = "DELEGATION_CYCLE"


# ══════════════════════════════════════════════════════════════════════
#  LEDGER
# ══════════════════════════════════════════════════════════════════════

class VotingLedger:
    """
    DAO voting token ledger with delegation.

    Only non-self delegations are stored; an address absent from
    ``_delegates`` delegates to itself. Because every stored edge points
    away from its holder and cycles are rejected, following ``_delegates``
    from any address always ends at a self-delegating root.
    """

    def __init__(self, name: str = TOKEN_NAME, symbol: str = TOKEN_SYMBOL):
        self.name = name
        self.symbol = symbol
        self._balances: Dict[str, int] = {}
        self._delegates: Dict[str, str] = {}
        self._total_supply = 0
        self._snapshots: List[Dict[str, Any]] = []

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, member: str) -> int:
        return self._balances.get(normalize_address(member), 0)

    def delegates(self, member: str) -> str:
        member = normalize_address(member)
        return self._delegates.get(member, member)

    def holders(self) -> List[str]:
        return [addr for addr, bal in self._balances.items() if bal > 0]

    def _chain(self, member: str) -> List[str]:
        """Addresses visited following delegations from *member*, root last."""
        chain = [member]
        while member in self._delegates:
            member = self._delegates[member]
            chain.append(member)
        return chain

    def _root(self, member: str) -> str:
        return self._chain(member)[-1]

    def voting_balance(self, member: str) -> int:
        """Derived voting weight of *member* (see module docstring)."""
        member = normalize_address(member)
        if member in self._delegates:
            return 0
        return sum(
            bal for holder, bal in self._balances.items()
            if self._root(holder) == member
        )

    # ── Mutations ─────────────────────────────────────────────────────

    def mint(self, member: str, amount: int) -> None:
        """Credit *amount* new tokens to *member*."""
        if amount < 0:
            raise ValueError("Mint amount cannot be negative")
        member = normalize_address(member)
        balance = self._balances.get(member, 0)
        if self._total_supply + amount > UINT256_MAX or balance + amount > UINT256_MAX:
            raise OverflowError(f"Minting {amount} to {member} overflows uint256")

        self._balances[member] = balance + amount
        self._total_supply += amount
        logger.debug(f"Mint: {amount} {self.symbol} → {member}")

    def burn(self, member: str, amount: int) -> None:
        """Debit *amount* tokens from *member* and remove them from supply."""
        if amount < 0:
            raise ValueError("Burn amount cannot be negative")
        member = normalize_address(member)
        balance = self._balances.get(member, 0)
        if balance < amount:
            raise InsufficientBalanceError(
                f"{member} balance {balance} < burn amount {amount}"
            )
        self._balances[member] = balance - amount
        self._total_supply -= amount
        logger.debug(f"Burn: {amount} {self.symbol} from {member}")

    def delegate(self, member: str, target: str) -> None:
        """
        Point *member*'s voting weight at *target*.

        Delegating to oneself resets the delegation. Both the previous and
        the new root see their voting balance change within this call.
        """
        member = normalize_address(member)
        target = normalize_address(target)

        if target == member:
            if self._delegates.pop(member, None) is not None:
                logger.info(f"Delegation reset: {member} → self")
            return

        if member in self._chain(target):
            raise DelegationCycleError(
                f"{member} cannot delegate to {target}: {target} already "
                f"delegates (directly or transitively) to {member}"
            )

        previous = self._delegates.get(member, member)
        self._delegates[member] = target
        logger.info(f"Delegation: {member} → {target} (was {previous})")

    # ── Snapshots ─────────────────────────────────────────────────────

    def snapshot(self) -> int:
        """Capture balances and delegations; returns a snapshot id."""
        self._snapshots.append({
            "balances": dict(self._balances),
            "delegates": dict(self._delegates),
            "total_supply": self._total_supply,
        })
        return len(self._snapshots) - 1

    def revert(self, snapshot_id: int) -> None:
        if snapshot_id < 0 or snapshot_id >= len(self._snapshots):
            raise ValueError(f"Invalid snapshot ID: {snapshot_id}")
        snap = self._snapshots[snapshot_id]
        self._balances = snap["balances"]
        self._delegates = snap["delegates"]
        self._total_supply = snap["total_supply"]
        self._snapshots = self._snapshots[:snapshot_id]

    def discard(self, snapshot_id: int) -> None:
        if snapshot_id < 0 or snapshot_id >= len(self._snapshots):
            raise ValueError(f"Invalid snapshot ID: {snapshot_id}")
        self._snapshots = self._snapshots[:snapshot_id]

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "totalSupply": str(self._total_supply),
            "balances": {a: str(b) for a, b in self._balances.items()},
            "delegates": dict(self._delegates),
        }

    def __repr__(self) -> str:
        return f"<VotingLedger {self.symbol} supply={self._total_supply} holders={len(self.holders())}>"
