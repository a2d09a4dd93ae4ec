"""
Collaborator Contract Base

A collaborator is any object deployed into the WorldState that can receive
a call from the DAO. Subclasses declare their callable functions in
``FUNCTIONS`` (signature -> method name); the base class resolves the
selector, ABI-decodes the arguments and invokes the method.
"""

from typing import Dict, Optional

from eth_abi.exceptions import DecodingError

from ..crypto.contract import (
    compute_function_selector,
    decode_arguments,
    decode_function_call,
    parse_argument_types,
)
from ..exceptions import CollectorDAOException


class ContractRevert(CollectorDAOException):
    """Raised by a contract to reject a call; all of its effects are undone."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class Contract:
    """Base class for collaborator contracts."""

    FUNCTIONS: Dict[str, str] = {}
    PAYABLE: bool = False

    def __init__(self):
        self.address: Optional[str] = None
        self._dispatch = {
            compute_function_selector(sig): (parse_argument_types(sig), method)
            for sig, method in self.FUNCTIONS.items()
        }

    def handle_call(self, state, sender: str, value: int, payload: bytes) -> bytes:
        """
        Execute *payload* against this contract.

        Returns the method's return data (bytes). Raises ContractRevert on
        any rejection.
        """
        if value and not self.PAYABLE:
            raise ContractRevert("NON_PAYABLE")
        if not payload:
            return self.receive(state, sender, value)

        selector, args_data = decode_function_call(bytes(payload))
        entry = self._dispatch.get(selector)
        if entry is None:
            raise ContractRevert(f"UNKNOWN_SELECTOR 0x{bytes(payload[:4]).hex()}")
        arg_types, method_name = entry
        try:
            args = decode_arguments(arg_types, args_data)
        except DecodingError as e:
            raise ContractRevert(f"BAD_CALLDATA: {e}")

        result = getattr(self, method_name)(state, sender, value, *args)
        return result if result is not None else b""

    def receive(self, state, sender: str, value: int) -> bytes:
        """Plain value transfer with empty payload."""
        if not self.PAYABLE:
            raise ContractRevert("NO_RECEIVE")
        return b""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} at {self.address}>"
