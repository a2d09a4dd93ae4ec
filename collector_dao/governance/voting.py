"""
Token-Weighted Voting Engine

Implements:
  - One ballot per (proposal, voter), permanent once cast
  - Weight = voter's live voting balance at the moment of voting
  - For / against tallies on the proposal record
  - Voting accepted only while the proposal is ACTIVE
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple

from ..constants import QUORUM_VOTES
from ..crypto.contract import normalize_address
from ..exceptions import GovernanceError
from ..logger import get_logger
from .ledger import VotingLedger
from .proposals import (
    ProposalPendingError,
    ProposalState,
    ProposalStateError,
    ProposalStore,
    VotingClosedError,
    proposal_state,
)

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class VotingError(GovernanceError):
    """Base voting error."""
    code = "VOTING_ERROR"


class InsufficientVotingBalanceError(VotingError):
    """Voter has no voting weight (no balance, or delegated away)."""
    code = "INSUFFICIENT_VOTING_BALANCE"


class AlreadyVotedError(ProposalStateError):
    """Voter already cast a ballot on this proposal."""
    code = "ALREADY_VOTED"


# ══════════════════════════════════════════════════════════════════════
#  RECEIPT
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Receipt:
    """Ballot of one voter on one proposal."""
    has_voted: bool = False
    support: bool = False
    votes: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasVoted": self.has_voted,
            "support": self.support,
            "votes": str(self.votes),
        }


_EMPTY_RECEIPT = Receipt()


# ══════════════════════════════════════════════════════════════════════
#  VOTING ENGINE
# ══════════════════════════════════════════════════════════════════════

class VotingEngine:
    """
    Records ballots and accumulates tallies.

    Responsibilities:
        - Gate ballots on the proposal's derived state
        - Reject double voting and zero-weight voting
        - Write receipt and tally together
    """

    def __init__(
        self,
        store: ProposalStore,
        ledger: VotingLedger,
        now_fn: Callable[[], float],
        quorum_votes: int = QUORUM_VOTES,
    ):
        """
        Args:
            store:        Proposal store ballots refer to
            ledger:       Source of live voting balances
            now_fn:       Callable() → current timestamp
            quorum_votes: Quorum floor used to derive state
        """
        self._store = store
        self._ledger = ledger
        self._now = now_fn
        self.quorum_votes = quorum_votes
        self._receipts: Dict[Tuple[int, str], Receipt] = {}
        self._voters: Dict[int, List[str]] = {}

    # ── Cast vote ─────────────────────────────────────────────────────

    def cast_vote(self, proposal_id: int, voter: str, support: bool) -> Receipt:
        """
        Cast *voter*'s full current voting balance for or against a proposal.

        Raises:
            UnknownProposalError:            no such proposal
            ProposalPendingError:            voting has not opened
            VotingClosedError:               voting has closed
            AlreadyVotedError:               voter already has a receipt
            InsufficientVotingBalanceError:  voter's weight is zero
        """
        proposal = self._store.get(proposal_id)
        voter = normalize_address(voter)

        state = proposal_state(proposal, self._now(), self.quorum_votes)
        if state == ProposalState.PENDING:
            raise ProposalPendingError(
                f"Voting on proposal #{proposal_id} has not started"
            )
        if state != ProposalState.ACTIVE:
            raise VotingClosedError(
                f"Voting on proposal #{proposal_id} is closed (state={state.name})"
            )

        key = (proposal_id, voter)
        if key in self._receipts:
            raise AlreadyVotedError(
                f"{voter} has already voted on proposal #{proposal_id}"
            )

        weight = self._ledger.voting_balance(voter)
        if weight == 0:
            raise InsufficientVotingBalanceError(
                f"{voter} has no voting balance"
            )

        receipt = Receipt(has_voted=True, support=bool(support), votes=weight)
        if receipt.support:
            proposal.for_votes += weight
        else:
            proposal.against_votes += weight
        self._receipts[key] = receipt
        self._voters.setdefault(proposal_id, []).append(voter)

        logger.info(
            f"Vote: {voter} → {'FOR' if receipt.support else 'AGAINST'} "
            f"on proposal #{proposal_id} (weight={weight})"
        )
        return receipt

    # ── Queries ───────────────────────────────────────────────────────

    def get_receipt(self, proposal_id: int, voter: str) -> Receipt:
        """Receipt for (proposal, voter); an empty receipt if none was cast."""
        self._store.get(proposal_id)
        return self._receipts.get((proposal_id, normalize_address(voter)), _EMPTY_RECEIPT)

    def has_voted(self, proposal_id: int, voter: str) -> bool:
        return (proposal_id, normalize_address(voter)) in self._receipts

    def voters(self, proposal_id: int) -> List[str]:
        return list(self._voters.get(proposal_id, []))

    def voter_count(self, proposal_id: int) -> int:
        return len(self._voters.get(proposal_id, []))

    def get_receipts(self, proposal_id: int) -> Dict[str, Receipt]:
        return {v: self._receipts[(proposal_id, v)] for v in self._voters.get(proposal_id, [])}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quorumVotes": str(self.quorum_votes),
            "ballots": len(self._receipts),
            "receipts": {
                pid: {v: r.to_dict() for v, r in self.get_receipts(pid).items()}
                for pid in self._voters
            },
        }

    def __repr__(self) -> str:
        return f"<VotingEngine ballots={len(self._receipts)}>"
