"""
Collector DAO

Facade over the governance components. Every public method is one
indivisible operation: it either completes and commits, or raises before
(or after fully undoing) any mutation.

Callers are passed explicitly (``member``, ``proposer``, ``voter``) where
the contract would read the transaction sender.
"""

from typing import Any, Dict, List, Optional, Sequence

from ..config.loader import DAOConfig, GovernanceConfig, TokenConfig
from ..contracts.state import WorldState
from ..crypto.contract import normalize_address
from ..logger import configure_logging, get_logger
from .clock import SystemClock
from .execution import CallResult, CallTransport, ExecutionDispatcher, LocalCallTransport
from .ledger import VotingLedger
from .membership import Membership, MembershipRegistry, NotAMemberError
from .proposals import Proposal, ProposalState, ProposalStore, proposal_state
from .voting import Receipt, VotingEngine

logger = get_logger(__name__)


class CollectorDAO:
    """
    Membership-gated governance engine.

    Wiring:
        join      → MembershipRegistry → VotingLedger.mint + treasury credit
        propose   → ProposalStore
        cast_vote → VotingEngine (reads VotingLedger.voting_balance)
        execute   → ExecutionDispatcher → CallTransport, rollback over
                    WorldState and VotingLedger
        state     → proposal_state(proposal, clock.now())
    """

    def __init__(
        self,
        config: Optional[GovernanceConfig] = None,
        token: Optional[TokenConfig] = None,
        clock=None,
        world: Optional[WorldState] = None,
        transport: Optional[CallTransport] = None,
    ):
        """
        Args:
            config:    Governance parameters (defaults from constants)
            token:     Voting token name/symbol
            clock:     Object with now() → timestamp (SystemClock by default)
            world:     WorldState holding the treasury and collaborators
            transport: CallTransport for execution (LocalCallTransport over *world*)
        """
        self.config = config or GovernanceConfig()
        self.config.validate()
        token = token or TokenConfig()

        self.address = normalize_address(self.config.dao_address)
        self.clock = clock or SystemClock()
        self.world = world if world is not None else WorldState()

        self.ledger = VotingLedger(name=token.name, symbol=token.symbol)
        if self.config.treasury_initial_tokens:
            self.ledger.mint(self.address, self.config.treasury_initial_tokens)

        self.membership = MembershipRegistry(
            self.ledger,
            self._credit_treasury,
            min_fee=self.config.min_membership_fee,
            token_amount=self.config.membership_token_amount,
            now_fn=self.clock.now,
        )
        self.proposals = ProposalStore(
            voting_delay=self.config.voting_delay,
            voting_period=self.config.voting_period,
        )
        self.voting = VotingEngine(
            self.proposals, self.ledger, self.clock.now, self.config.quorum_votes
        )
        self.transport = transport or LocalCallTransport(self.world)
        self.dispatcher = ExecutionDispatcher(
            self.proposals,
            self.transport,
            sender=self.address,
            now_fn=self.clock.now,
            participants=[self.world, self.ledger],
            quorum_votes=self.config.quorum_votes,
        )
        logger.info(
            f"CollectorDAO deployed at {self.address} "
            f"(fee={self.config.min_membership_fee}, delay={self.config.voting_delay}s, "
            f"period={self.config.voting_period}s, quorum={self.config.quorum_votes})"
        )

    @classmethod
    def from_config(cls, cfg: DAOConfig, **kwargs) -> "CollectorDAO":
        """Build a DAO from a loaded DAOConfig, applying its logging settings."""
        cfg.validate()
        configure_logging(
            level=cfg.logging.level,
            file_output=cfg.logging.file_output,
            log_file=cfg.logging.file_path or None,
        )
        return cls(config=cfg.governance, token=cfg.token, **kwargs)

    # ── Treasury ──────────────────────────────────────────────────────

    def _credit_treasury(self, amount: int) -> None:
        self.world.credit(self.address, amount)

    def treasury_balance(self) -> int:
        """Funding-asset balance held by the DAO."""
        return self.world.get_balance(self.address)

    # ── Membership ────────────────────────────────────────────────────

    def join(self, member: str, payment: int) -> Membership:
        return self.membership.join(member, payment)

    def is_member(self, address: str) -> bool:
        return self.membership.is_member(address)

    # ── Ledger surface ────────────────────────────────────────────────

    def balance_of(self, address: str) -> int:
        return self.ledger.balance_of(address)

    def token_balance(self, address: str) -> int:
        """Alias of balance_of, named after the contract's tokenBalance view."""
        return self.ledger.balance_of(address)

    def voting_balance(self, address: str) -> int:
        return self.ledger.voting_balance(address)

    def delegate(self, member: str, target: str) -> None:
        self.ledger.delegate(member, target)

    def delegates(self, member: str) -> str:
        return self.ledger.delegates(member)

    # ── Proposals ─────────────────────────────────────────────────────

    def propose(
        self,
        proposer: str,
        targets: Sequence[str],
        values: Sequence[int],
        signatures: Sequence[str],
        calldatas: Sequence[bytes],
        description: str,
    ) -> int:
        """
        Create a proposal and return its id.

        Anyone may propose unless require_membership_to_propose is set.
        """
        if self.config.require_membership_to_propose and not self.is_member(proposer):
            raise NotAMemberError(f"{proposer} must join before proposing")
        proposal = self.proposals.create(
            proposer, targets, values, signatures, calldatas, description,
            now=self.clock.now(),
        )
        return proposal.id

    def get_proposal(self, proposal_id: int) -> Proposal:
        return self.proposals.get(proposal_id)

    def latest_proposal_id(self, proposer: str) -> int:
        return self.proposals.latest_proposal_id(proposer)

    @property
    def proposal_count(self) -> int:
        return self.proposals.proposal_count

    def state(self, proposal_id: int) -> ProposalState:
        return proposal_state(
            self.proposals.get(proposal_id), self.clock.now(), self.config.quorum_votes
        )

    # ── Voting ────────────────────────────────────────────────────────

    def cast_vote(self, voter: str, proposal_id: int, support: bool) -> Receipt:
        return self.voting.cast_vote(proposal_id, voter, support)

    def get_receipt(self, proposal_id: int, voter: str) -> Receipt:
        return self.voting.get_receipt(proposal_id, voter)

    # ── Execution ─────────────────────────────────────────────────────

    def execute(self, proposal_id: int, executor: Optional[str] = None) -> List[CallResult]:
        return self.dispatcher.execute(proposal_id, executor=executor)

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "treasuryBalance": str(self.treasury_balance()),
            "proposalCount": self.proposal_count,
            "proposals": [p.to_dict() for p in self.proposals.all()],
            "ledger": self.ledger.to_dict(),
            "membership": self.membership.to_dict(),
            "voting": self.voting.to_dict(),
            "executionLog": self.dispatcher.execution_log,
        }

    def __repr__(self) -> str:
        return (
            f"<CollectorDAO {self.address} members={len(self.membership.members)} "
            f"proposals={self.proposal_count}>"
        )
