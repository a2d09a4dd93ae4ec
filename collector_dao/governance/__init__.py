"""
Collector DAO Governance

Provides:
  - VotingLedger                                   (ledger.py)
  - Membership / MembershipRegistry                (membership.py)
  - ProposalState / Proposal / ProposalStore       (proposals.py)
  - Receipt / VotingEngine                         (voting.py)
  - CallTransport / ExecutionDispatcher            (execution.py)
  - SystemClock / ManualClock                      (clock.py)
  - CollectorDAO facade                            (dao.py)
"""

from .clock import ManualClock, SystemClock
from .ledger import (
    DelegationCycleError,
    InsufficientBalanceError,
    LedgerError,
    VotingLedger,
)
from .membership import (
    AlreadyMemberError,
    InsufficientFeeError,
    Membership,
    MembershipError,
    MembershipRegistry,
    NotAMemberError,
)
from .proposals import (
    AlreadyExecutedError,
    ArityMismatchError,
    InvalidProposalError,
    NoActionsError,
    Proposal,
    ProposalAction,
    ProposalActiveError,
    ProposalDefeatedError,
    ProposalNotActiveError,
    ProposalPendingError,
    ProposalState,
    ProposalStateError,
    ProposalStore,
    UnknownProposalError,
    VotingClosedError,
    proposal_state,
)
from .voting import (
    AlreadyVotedError,
    InsufficientVotingBalanceError,
    Receipt,
    VotingEngine,
    VotingError,
)
from .execution import (
    CallResult,
    CallTransport,
    ExecutionDispatcher,
    ExecutionFailedError,
    LocalCallTransport,
)
from .dao import CollectorDAO

__all__ = [
    # Clock
    "ManualClock",
    "SystemClock",
    # Ledger
    "DelegationCycleError",
    "InsufficientBalanceError",
    "LedgerError",
    "VotingLedger",
    # Membership
    "AlreadyMemberError",
    "InsufficientFeeError",
    "Membership",
    "MembershipError",
    "MembershipRegistry",
    "NotAMemberError",
    # Proposals
    "AlreadyExecutedError",
    "ArityMismatchError",
    "InvalidProposalError",
    "NoActionsError",
    "Proposal",
    "ProposalAction",
    "ProposalActiveError",
    "ProposalDefeatedError",
    "ProposalNotActiveError",
    "ProposalPendingError",
    "ProposalState",
    "ProposalStateError",
    "ProposalStore",
    "UnknownProposalError",
    "VotingClosedError",
    "proposal_state",
    # Voting
    "AlreadyVotedError",
    "InsufficientVotingBalanceError",
    "Receipt",
    "VotingEngine",
    "VotingError",
    # Execution
    "CallResult",
    "CallTransport",
    "ExecutionDispatcher",
    "ExecutionFailedError",
    "LocalCallTransport",
    # Facade
    "CollectorDAO",
]
