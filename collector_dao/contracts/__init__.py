"""
Collaborator contracts and the in-memory world state they live in.
"""

from .base import Contract, ContractRevert
from .collectible import CollectibleContract
from .state import Account, InsufficientFundsError, StateError, WorldState

__all__ = [
    "Account",
    "CollectibleContract",
    "Contract",
    "ContractRevert",
    "InsufficientFundsError",
    "StateError",
    "WorldState",
]
