"""
Proposal Execution Dispatcher

Implements:
  - CallTransport: the one-operation seam through which a proposal's
    actions reach their targets (invoke(sender, target, value, payload))
  - LocalCallTransport: dispatches into the in-memory WorldState
  - ExecutionDispatcher: state/outcome checks, ordered dispatch, and
    all-or-nothing rollback across every registered participant
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from ..constants import QUORUM_VOTES
from ..contracts.state import WorldState
from ..exceptions import CollectorDAOException, GovernanceError
from ..logger import get_logger
from .proposals import (
    AlreadyExecutedError,
    ProposalActiveError,
    ProposalDefeatedError,
    ProposalPendingError,
    ProposalState,
    ProposalStore,
    proposal_state,
)

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class ExecutionFailedError(GovernanceError):
    """An action's call failed; the whole execution was rolled back."""
    code = "PROPOSAL_EXECUTION_FAILED"

    def __init__(self, message: str, action_index: int = -1, reason: str = ""):
        super().__init__(message)
        self.action_index = action_index
        self.reason = reason


# ══════════════════════════════════════════════════════════════════════
#  TRANSPORT
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CallResult:
    """Outcome of one dispatched call. Return data is never interpreted."""
    success: bool
    return_data: bytes = b""
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "returnData": "0x" + self.return_data.hex(),
            "reason": self.reason,
        }


class CallTransport(ABC):
    """How a proposal action reaches its target."""

    @abstractmethod
    def invoke(self, sender: str, target: str, value: int, payload: bytes) -> CallResult:
        """Call *target* with *payload*, sending *value* of the funding asset."""


class LocalCallTransport(CallTransport):
    """
    Dispatches calls into a WorldState.

    The value is moved from *sender* to *target* first; the registered
    contract at *target* then handles the payload. An address with no
    contract accepts the value and ignores the payload, as a plain account
    would. A failed call leaves the world state untouched.
    """

    def __init__(self, state: WorldState):
        self.state = state

    def invoke(self, sender: str, target: str, value: int, payload: bytes) -> CallResult:
        snapshot_id = self.state.snapshot()
        try:
            self.state.transfer(sender, target, value)
            contract = self.state.get_contract(target)
            if contract is None:
                return_data = b""
            else:
                return_data = contract.handle_call(self.state, sender, value, payload)
        except (CollectorDAOException, OverflowError) as e:
            self.state.revert(snapshot_id)
            logger.warning(f"Call {sender} --> {target} failed: {e}")
            return CallResult(success=False, reason=str(e))

        self.state.discard(snapshot_id)
        return CallResult(success=True, return_data=return_data)


# ══════════════════════════════════════════════════════════════════════
#  DISPATCHER
# ══════════════════════════════════════════════════════════════════════

class Snapshottable(Protocol):
    """State that can be rolled back by the dispatcher."""

    def snapshot(self) -> int: ...

    def revert(self, snapshot_id: int) -> None: ...

    def discard(self, snapshot_id: int) -> None: ...


class ExecutionDispatcher:
    """
    Executes succeeded proposals atomically.

    Every participant is snapshotted before the first action. If any action
    fails (or the transport raises), all participants are reverted and the
    proposal stays unexecuted.
    """

    def __init__(
        self,
        store: ProposalStore,
        transport: CallTransport,
        sender: str,
        now_fn: Callable[[], float],
        participants: Optional[Sequence[Snapshottable]] = None,
        quorum_votes: int = QUORUM_VOTES,
    ):
        """
        Args:
            store:        Proposal store
            transport:    CallTransport used for every action
            sender:       Address the calls originate from (the DAO)
            now_fn:       Callable() → current timestamp
            participants: State rolled back on failure
            quorum_votes: Quorum floor used to derive state
        """
        self._store = store
        self.transport = transport
        self.sender = sender
        self._now = now_fn
        self._participants: List[Snapshottable] = list(participants or [])
        self.quorum_votes = quorum_votes
        self._execution_log: List[Dict[str, Any]] = []

    def add_participant(self, participant: Snapshottable) -> None:
        self._participants.append(participant)

    # ── Checks ────────────────────────────────────────────────────────

    def _require_executable(self, proposal_id: int):
        proposal = self._store.get(proposal_id)
        if proposal.executed:
            raise AlreadyExecutedError(f"Proposal #{proposal_id} already executed")

        state = proposal_state(proposal, self._now(), self.quorum_votes)
        if state == ProposalState.DEFEATED:
            raise ProposalDefeatedError(
                f"Proposal #{proposal_id} was defeated "
                f"(for={proposal.for_votes} against={proposal.against_votes})"
            )
        if state == ProposalState.PENDING:
            raise ProposalPendingError(f"Proposal #{proposal_id} is still pending")
        if state == ProposalState.ACTIVE:
            raise ProposalActiveError(f"Voting on proposal #{proposal_id} is still open")
        return proposal

    # ── Snapshots ─────────────────────────────────────────────────────

    def _snapshot_all(self) -> List[Tuple[Snapshottable, int]]:
        return [(p, p.snapshot()) for p in self._participants]

    @staticmethod
    def _revert_all(snapshots: List[Tuple[Snapshottable, int]]) -> None:
        for participant, snapshot_id in reversed(snapshots):
            participant.revert(snapshot_id)

    @staticmethod
    def _discard_all(snapshots: List[Tuple[Snapshottable, int]]) -> None:
        for participant, snapshot_id in reversed(snapshots):
            participant.discard(snapshot_id)

    # ── Execute ───────────────────────────────────────────────────────

    def execute(self, proposal_id: int, executor: Optional[str] = None) -> List[CallResult]:
        """
        Dispatch every action of a SUCCEEDED proposal, in order.

        Raises:
            UnknownProposalError:   no such proposal
            AlreadyExecutedError:   executed before
            ProposalDefeatedError:  vote failed
            ProposalPendingError / ProposalActiveError: vote not concluded
            ExecutionFailedError:   an action failed; nothing was applied
        """
        proposal = self._require_executable(proposal_id)

        snapshots = self._snapshot_all()
        results: List[CallResult] = []
        try:
            for index, action in enumerate(proposal.actions):
                result = self.transport.invoke(
                    self.sender, action.target, action.value, action.calldata
                )
                if not result.success:
                    raise ExecutionFailedError(
                        f"Proposal #{proposal_id} action {index} "
                        f"({action.signature or 'call'} on {action.target}) failed: "
                        f"{result.reason or 'call reverted'}",
                        action_index=index,
                        reason=result.reason,
                    )
                results.append(result)
        except Exception:
            self._revert_all(snapshots)
            logger.warning(f"Proposal #{proposal_id} execution rolled back")
            raise

        self._discard_all(snapshots)
        proposal.executed = True
        proposal.executed_at = self._now()

        self._execution_log.append({
            "proposalId": proposal.id,
            "executor": executor,
            "actions": len(results),
            "executedAt": proposal.executed_at,
        })
        logger.info(
            f"Proposal #{proposal.id} EXECUTED: {len(results)} action(s) dispatched"
            + (f" by {executor}" if executor else "")
        )
        return results

    # ── Queries ───────────────────────────────────────────────────────

    @property
    def execution_log(self) -> List[Dict[str, Any]]:
        return list(self._execution_log)

    def execution_count(self) -> int:
        return len(self._execution_log)

    def __repr__(self) -> str:
        return (
            f"<ExecutionDispatcher transport={type(self.transport).__name__} "
            f"executed={len(self._execution_log)}>"
        )
