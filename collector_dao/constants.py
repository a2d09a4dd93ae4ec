"""
Collector DAO Constants

This module consolidates all global constants and environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast

from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# ==================================================================================
# UNITS
# ==================================================================================
# Both the funding asset and the voting token use 18 decimals.
DECIMALS = 18
ONE_ETHER = 10 ** DECIMALS
ONE_TOKEN = 10 ** DECIMALS

# Upper bound of every on-ledger integer (balances, supply, tallies)
UINT256_MAX = 2 ** 256 - 1


# ==================================================================================
# GOVERNANCE PARAMETERS
# ==================================================================================
# These are per-deployment defaults. A deployment overrides them through
# config.toml or COLLECTOR_DAO_* environment variables (see collector_dao.config).

MIN_MEMBERSHIP_FEE = 1 * ONE_ETHER          # Minimum payment accepted by join()
MEMBERSHIP_TOKEN_AMOUNT = 1 * ONE_TOKEN     # Voting tokens minted per new member
TREASURY_INITIAL_TOKENS = 10 * ONE_TOKEN    # Minted to the DAO itself at deployment

VOTING_DELAY_SECONDS = 15                   # ~1 block between creation and voting start
VOTING_PERIOD_SECONDS = 3 * 24 * 60 * 60    # 3 days
QUORUM_VOTES = 0                            # 0 disables the quorum floor

REQUIRE_MEMBERSHIP_TO_PROPOSE = False

TOKEN_NAME = "Collector DAO Token"
TOKEN_SYMBOL = "CTOKEN"

# Deterministic address of the DAO treasury in the in-memory world state
DAO_ADDRESS = "0x" + "c0" * 20


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    def __hash__(self):
        return hash(bool(self))


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = dict(LOGGER_DEFAULTS)
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
