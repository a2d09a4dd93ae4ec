"""
Contract Addressing and Call Encoding

Ethereum-compatible helpers used by the governance engine and the
collaborator contracts it calls:
  - address normalisation (EIP-55 checksum)
  - CREATE contract address derivation
  - function selectors and ABI call data
"""

from typing import Any, Sequence, Tuple

import rlp
from eth_abi import decode, encode
from eth_utils import is_address, keccak, to_checksum_address

from ..exceptions import InvalidAddressError


def normalize_address(address: str) -> str:
    """
    Return the EIP-55 checksum form of *address*.

    Raises InvalidAddressError for anything that is not a 20-byte hex address.
    """
    if not isinstance(address, str) or not is_address(address):
        raise InvalidAddressError(f"Invalid address: {address!r}")
    return to_checksum_address(address)


def generate_contract_address(sender: str, nonce: int) -> str:
    """
    Generate contract address using CREATE opcode logic.

    Address = keccak256(rlp([sender, nonce]))[-20:]

    Args:
        sender: Deployer address
        nonce: Deployer nonce

    Returns:
        Contract address (checksum format)
    """
    sender_bytes = bytes.fromhex(normalize_address(sender)[2:])
    hash_bytes = keccak(rlp.encode([sender_bytes, nonce]))
    return to_checksum_address('0x' + hash_bytes[-20:].hex())


def compute_function_selector(function_signature: str) -> bytes:
    """
    Compute function selector (first 4 bytes of keccak256(sig)).

    Args:
        function_signature: Function signature like "mint(address)"

    Returns:
        4-byte function selector
    """
    return keccak(text=function_signature)[:4]


def parse_argument_types(function_signature: str) -> Tuple[str, ...]:
    """Split "mint(address,uint256)" into ('address', 'uint256')."""
    try:
        args_start = function_signature.index('(') + 1
        args_end = function_signature.rindex(')')
    except ValueError:
        raise ValueError(f"Malformed function signature: {function_signature!r}")
    arg_types_str = function_signature[args_start:args_end]
    if not arg_types_str:
        return ()
    return tuple(t.strip() for t in arg_types_str.split(','))


def encode_function_call(function_signature: str, *args: Any) -> bytes:
    """
    Encode function call data (selector + ABI-encoded arguments).

    Args:
        function_signature: Function signature
        *args: Function arguments

    Returns:
        Encoded call data
    """
    selector = compute_function_selector(function_signature)
    arg_types = parse_argument_types(function_signature)
    if len(arg_types) != len(args):
        raise ValueError(
            f"{function_signature} takes {len(arg_types)} arguments, got {len(args)}"
        )
    if not arg_types:
        return selector
    return selector + encode(list(arg_types), list(args))


def decode_function_call(data: bytes) -> Tuple[bytes, bytes]:
    """
    Split call data into selector and arguments.

    Args:
        data: Encoded function call data

    Returns:
        Tuple of (selector, arguments)
    """
    if len(data) < 4:
        return b'', b''
    return data[:4], data[4:]


def decode_arguments(arg_types: Sequence[str], data: bytes) -> Tuple[Any, ...]:
    """ABI-decode the argument section of call data."""
    return tuple(decode(list(arg_types), data))
