"""
Governance Proposals

Defines the proposal record, its derived lifecycle state and the
append-only store that hands out dense sequential ids.

Lifecycle (derived, never stored):

    PENDING ──▶ ACTIVE ──▶ SUCCEEDED ──▶ EXECUTED
                      └──▶ DEFEATED
"""

import hashlib
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Sequence, Tuple

from eth_utils import is_hexstr, to_bytes

from ..constants import QUORUM_VOTES, UINT256_MAX, VOTING_DELAY_SECONDS, VOTING_PERIOD_SECONDS
from ..crypto.contract import normalize_address
from ..exceptions import GovernanceError
from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class InvalidProposalError(GovernanceError):
    """Raised when proposal data is invalid."""
    code = "INVALID_PROPOSAL"


class NoActionsError(InvalidProposalError):
    """Proposal has no target calls."""
    code = "PROPOSAL_MUST_PROVIDE_ACTIONS"


class ArityMismatchError(InvalidProposalError):
    """targets / values / signatures / calldatas differ in length."""
    code = "PROPOSAL_FUNCTION_ARITY_MISMATCH"


class ProposalStateError(GovernanceError):
    """Operation not allowed in the proposal's current state."""
    code = "INVALID_PROPOSAL_STATE"


class UnknownProposalError(ProposalStateError):
    """No proposal with this id."""
    code = "UNKNOWN_PROPOSAL"


class ProposalNotActiveError(ProposalStateError):
    """Proposal is outside its voting window."""
    code = "PROPOSAL_NOT_ACTIVE"


class ProposalPendingError(ProposalNotActiveError):
    """Voting window has not opened yet."""
    code = "PROPOSAL_PENDING"


class VotingClosedError(ProposalNotActiveError):
    """Voting window has closed."""
    code = "VOTING_LINE_CLOSED"


class ProposalActiveError(ProposalStateError):
    """Voting window is still open."""
    code = "PROPOSAL_ACTIVE"


class ProposalDefeatedError(ProposalStateError):
    """Proposal did not pass."""
    code = "PROPOSAL_DEFEATED"


class AlreadyExecutedError(ProposalStateError):
    """Proposal has already been executed."""
    code = "PROPOSAL_ALREADY_EXECUTED"


# ══════════════════════════════════════════════════════════════════════
#  STATE
# ══════════════════════════════════════════════════════════════════════

class ProposalState(IntEnum):
    """Lifecycle stage, in the contract's enum order."""
    PENDING = 0      # Created, voting not yet open
    ACTIVE = 1       # Voting window open
    DEFEATED = 2     # Window closed, did not pass
    SUCCEEDED = 3    # Window closed, passed
    EXECUTED = 4     # Actions dispatched


@dataclass(frozen=True)
class ProposalAction:
    """One target call of a proposal."""
    target: str
    value: int
    signature: str
    calldata: bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "value": str(self.value),
            "signature": self.signature,
            "calldata": "0x" + self.calldata.hex(),
        }


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL
# ══════════════════════════════════════════════════════════════════════

@dataclass
class Proposal:
    """
    Stored governance proposal.

    Fields:
        id:             Dense sequential identifier, starting at 1
        proposer:       Address that created it
        targets:        Addresses to call
        values:         Funding-asset amount sent with each call
        signatures:     Human-readable function signatures (informational)
        calldatas:      Pre-encoded call payloads
        description:    Free text
        created_at:     Creation timestamp
        voting_start:   created_at + voting delay
        voting_end:     voting_start + voting period
        for_votes:      Weight cast in favour
        against_votes:  Weight cast against
        executed:       Set once execution succeeded
    """
    id: int
    proposer: str
    targets: Tuple[str, ...]
    values: Tuple[int, ...]
    signatures: Tuple[str, ...]
    calldatas: Tuple[bytes, ...]
    description: str
    created_at: float
    voting_start: float
    voting_end: float
    for_votes: int = 0
    against_votes: int = 0
    executed: bool = False
    executed_at: float = field(default=0.0, repr=False)

    @property
    def actions(self) -> List[ProposalAction]:
        return [
            ProposalAction(t, v, s, c)
            for t, v, s, c in zip(self.targets, self.values, self.signatures, self.calldatas)
        ]

    @property
    def proposal_hash(self) -> str:
        """Deterministic hash over proposer, actions and description."""
        h = hashlib.blake2b(digest_size=32)
        h.update(str(self.id).encode())
        h.update(self.proposer.encode())
        for action in self.actions:
            h.update(action.target.encode())
            h.update(action.value.to_bytes(32, "big"))
            h.update(action.signature.encode())
            h.update(action.calldata)
        h.update(self.description.encode())
        return h.hexdigest()

    @property
    def total_votes(self) -> int:
        return self.for_votes + self.against_votes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "proposer": self.proposer,
            "actions": [a.to_dict() for a in self.actions],
            "description": self.description,
            "proposalHash": self.proposal_hash,
            "createdAt": self.created_at,
            "votingStart": self.voting_start,
            "votingEnd": self.voting_end,
            "forVotes": str(self.for_votes),
            "againstVotes": str(self.against_votes),
            "executed": self.executed,
        }

    def __repr__(self) -> str:
        return (
            f"<Proposal #{self.id} by {self.proposer} actions={len(self.targets)} "
            f"for={self.for_votes} against={self.against_votes} executed={self.executed}>"
        )


def proposal_state(proposal: Proposal, now: float, quorum_votes: int = QUORUM_VOTES) -> ProposalState:
    """
    Derive the lifecycle state of *proposal* at time *now*.

    A proposal succeeds when for-votes strictly exceed against-votes and,
    if *quorum_votes* is non-zero, reach the quorum floor.
    """
    if proposal.executed:
        return ProposalState.EXECUTED
    if now < proposal.voting_start:
        return ProposalState.PENDING
    if now < proposal.voting_end:
        return ProposalState.ACTIVE
    if proposal.for_votes > proposal.against_votes and proposal.for_votes >= quorum_votes:
        return ProposalState.SUCCEEDED
    return ProposalState.DEFEATED


def _to_calldata(data) -> bytes:
    """Accept raw bytes or a 0x-prefixed hex string."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str) and is_hexstr(data):
        return to_bytes(hexstr=data)
    raise InvalidProposalError(f"Invalid calldata: {data!r}")


# ══════════════════════════════════════════════════════════════════════
#  STORE
# ══════════════════════════════════════════════════════════════════════

class ProposalStore:
    """
    Append-only proposal arena.

    Proposal *n* lives at index ``n - 1``; ids are never reused.
    """

    def __init__(
        self,
        voting_delay: float = VOTING_DELAY_SECONDS,
        voting_period: float = VOTING_PERIOD_SECONDS,
    ):
        if voting_delay < 0:
            raise ValueError("voting_delay cannot be negative")
        if voting_period <= 0:
            raise ValueError("voting_period must be positive")
        self.voting_delay = voting_delay
        self.voting_period = voting_period
        self._proposals: List[Proposal] = []
        self._latest_by_proposer: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._proposals)

    @property
    def proposal_count(self) -> int:
        return len(self._proposals)

    def exists(self, proposal_id: int) -> bool:
        if isinstance(proposal_id, bool) or not isinstance(proposal_id, int):
            return False
        return 1 <= proposal_id <= len(self._proposals)

    def get(self, proposal_id: int) -> Proposal:
        if not self.exists(proposal_id):
            raise UnknownProposalError(f"Proposal #{proposal_id} does not exist")
        return self._proposals[proposal_id - 1]

    def all(self) -> List[Proposal]:
        return list(self._proposals)

    def latest_proposal_id(self, proposer: str) -> int:
        """Id of *proposer*'s most recent proposal, 0 if none."""
        return self._latest_by_proposer.get(normalize_address(proposer), 0)

    @staticmethod
    def validate_actions(
        targets: Sequence[str],
        values: Sequence[int],
        signatures: Sequence[str],
        calldatas: Sequence[bytes],
    ) -> None:
        """Reject empty or ragged action arrays before anything is stored."""
        if len(targets) == 0:
            raise NoActionsError("Proposal must provide at least one action")
        lengths = {len(targets), len(values), len(signatures), len(calldatas)}
        if len(lengths) != 1:
            raise ArityMismatchError(
                f"Action arrays differ in length: targets={len(targets)} "
                f"values={len(values)} signatures={len(signatures)} "
                f"calldatas={len(calldatas)}"
            )
        for value in values:
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidProposalError(f"Invalid action value: {value!r}")
            if value < 0 or value > UINT256_MAX:
                raise InvalidProposalError(f"Invalid action value: {value!r}")

    def create(
        self,
        proposer: str,
        targets: Sequence[str],
        values: Sequence[int],
        signatures: Sequence[str],
        calldatas: Sequence[bytes],
        description: str,
        now: float,
    ) -> Proposal:
        """Validate, allocate the next id and store a new proposal."""
        proposer = normalize_address(proposer)
        self.validate_actions(targets, values, signatures, calldatas)
        normalized_targets = tuple(normalize_address(t) for t in targets)

        voting_start = now + self.voting_delay
        proposal = Proposal(
            id=len(self._proposals) + 1,
            proposer=proposer,
            targets=normalized_targets,
            values=tuple(values),
            signatures=tuple(signatures),
            calldatas=tuple(_to_calldata(c) for c in calldatas),
            description=description,
            created_at=now,
            voting_start=voting_start,
            voting_end=voting_start + self.voting_period,
        )
        self._proposals.append(proposal)
        self._latest_by_proposer[proposer] = proposal.id

        logger.info(
            f"Proposal #{proposal.id} created by {proposer} "
            f"({len(proposal.targets)} action(s)): {description!r}"
        )
        return proposal
