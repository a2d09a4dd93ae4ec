"""
Membership Registry

One-time, fee-gated join. A successful join marks the caller as a member,
mints a fixed allotment of voting tokens to it and moves the payment into
the DAO treasury.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from ..constants import MEMBERSHIP_TOKEN_AMOUNT, MIN_MEMBERSHIP_FEE
from ..crypto.contract import normalize_address
from ..exceptions import GovernanceError
from ..logger import get_logger
from .ledger import VotingLedger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class MembershipError(GovernanceError):
    """Base membership error."""
    code = "MEMBERSHIP_ERROR"


class InsufficientFeeError(MembershipError):
    """Payment below the minimum membership fee."""
    code = "MINIMUM_MEMBERSHIP_FEE_REQUIRED"


class AlreadyMemberError(MembershipError):
    """Caller has already joined."""
    code = "NOT_A_NEW_MEMBER"


class NotAMemberError(MembershipError):
    """Caller has not joined."""
    code = "NOT_A_MEMBER"


# ══════════════════════════════════════════════════════════════════════
#  REGISTRY
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Membership:
    """Join record for one member."""
    member: str
    payment: int
    tokens_minted: int
    joined_at: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "member": self.member,
            "payment": str(self.payment),
            "tokensMinted": str(self.tokens_minted),
            "joinedAt": self.joined_at,
        }


class MembershipRegistry:
    """
    Tracks who has joined and credits treasury and ledger on join.

    Args:
        ledger:        Voting-weight ledger the allotment is minted into
        credit_treasury: Callable(amount) that books the payment into the
                       DAO's funding-asset balance
        now_fn:        Callable() → current timestamp, stamped on each join
    """

    def __init__(
        self,
        ledger: VotingLedger,
        credit_treasury,
        min_fee: int = MIN_MEMBERSHIP_FEE,
        token_amount: int = MEMBERSHIP_TOKEN_AMOUNT,
        now_fn: Callable[[], float] = time.time,
    ):
        self._ledger = ledger
        self._credit_treasury = credit_treasury
        self.min_fee = min_fee
        self.token_amount = token_amount
        self._now = now_fn
        self._members: Dict[str, Membership] = {}

    def is_member(self, address: str) -> bool:
        return normalize_address(address) in self._members

    def get_membership(self, address: str) -> Membership:
        address = normalize_address(address)
        if address not in self._members:
            raise NotAMemberError(f"{address} is not a member")
        return self._members[address]

    @property
    def members(self) -> List[str]:
        return list(self._members)

    def join(self, member: str, payment: int) -> Membership:
        """
        Join the DAO with *payment* of the funding asset.

        The minted allotment is fixed; paying more than the minimum buys
        no extra weight.
        """
        member = normalize_address(member)
        if payment < self.min_fee:
            raise InsufficientFeeError(
                f"Payment {payment} below minimum membership fee {self.min_fee}"
            )
        if member in self._members:
            raise AlreadyMemberError(f"{member} has already joined")

        snapshot_id = self._ledger.snapshot()
        try:
            self._ledger.mint(member, self.token_amount)
            self._credit_treasury(payment)
        except OverflowError:
            self._ledger.revert(snapshot_id)
            raise
        self._ledger.discard(snapshot_id)

        record = Membership(
            member=member,
            payment=payment,
            tokens_minted=self.token_amount,
            joined_at=self._now(),
        )
        self._members[member] = record
        logger.info(f"Member joined: {member} paid {payment}, minted {self.token_amount}")
        return record

    def to_dict(self) -> Dict[str, Any]:
        return {
            "minFee": str(self.min_fee),
            "tokenAmount": str(self.token_amount),
            "memberCount": len(self._members),
            "members": {a: m.to_dict() for a, m in self._members.items()},
        }
