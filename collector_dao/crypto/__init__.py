"""
Collector DAO Crypto Module

Address and call-data helpers shared by governance and contracts.
"""

from .contract import (
    compute_function_selector,
    decode_arguments,
    decode_function_call,
    encode_function_call,
    generate_contract_address,
    normalize_address,
    parse_argument_types,
)

__all__ = [
    "compute_function_selector",
    "decode_arguments",
    "decode_function_call",
    "encode_function_call",
    "generate_contract_address",
    "normalize_address",
    "parse_argument_types",
]
