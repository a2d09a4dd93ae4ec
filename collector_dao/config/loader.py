"""
Collector DAO TOML Configuration Loader

Loads config.toml at startup with environment variable overrides.
Each section is a dataclass with from_dict() and apply_env().

Environment variable mapping:
    [governance] min_membership_fee → COLLECTOR_DAO_MIN_MEMBERSHIP_FEE
    [governance] voting_period      → COLLECTOR_DAO_VOTING_PERIOD
    [logging] level                 → COLLECTOR_DAO_LOG_LEVEL
    ...
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib as tomli
else:
    import tomli

from ..constants import (
    DAO_ADDRESS,
    MEMBERSHIP_TOKEN_AMOUNT,
    MIN_MEMBERSHIP_FEE,
    QUORUM_VOTES,
    REQUIRE_MEMBERSHIP_TO_PROPOSE,
    TOKEN_NAME,
    TOKEN_SYMBOL,
    TREASURY_INITIAL_TOKENS,
    UINT256_MAX,
    VOTING_DELAY_SECONDS,
    VOTING_PERIOD_SECONDS,
)
from ..crypto.contract import normalize_address
from ..exceptions import ConfigurationError, InvalidAddressError

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"1", "true", "yes", "on"}


def _env_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_STRINGS


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass
class GovernanceConfig:
    """[governance] section."""
    dao_address: str = DAO_ADDRESS
    min_membership_fee: int = MIN_MEMBERSHIP_FEE
    membership_token_amount: int = MEMBERSHIP_TOKEN_AMOUNT
    treasury_initial_tokens: int = TREASURY_INITIAL_TOKENS
    voting_delay: int = VOTING_DELAY_SECONDS
    voting_period: int = VOTING_PERIOD_SECONDS
    quorum_votes: int = QUORUM_VOTES
    require_membership_to_propose: bool = REQUIRE_MEMBERSHIP_TO_PROPOSE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GovernanceConfig":
        return cls(
            dao_address=data.get("dao_address", DAO_ADDRESS),
            min_membership_fee=int(data.get("min_membership_fee", MIN_MEMBERSHIP_FEE)),
            membership_token_amount=int(data.get("membership_token_amount", MEMBERSHIP_TOKEN_AMOUNT)),
            treasury_initial_tokens=int(data.get("treasury_initial_tokens", TREASURY_INITIAL_TOKENS)),
            voting_delay=int(data.get("voting_delay", VOTING_DELAY_SECONDS)),
            voting_period=int(data.get("voting_period", VOTING_PERIOD_SECONDS)),
            quorum_votes=int(data.get("quorum_votes", QUORUM_VOTES)),
            require_membership_to_propose=bool(
                data.get("require_membership_to_propose", REQUIRE_MEMBERSHIP_TO_PROPOSE)
            ),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("COLLECTOR_DAO_ADDRESS"):
            self.dao_address = v
        if v := os.environ.get("COLLECTOR_DAO_MIN_MEMBERSHIP_FEE"):
            self.min_membership_fee = int(v)
        if v := os.environ.get("COLLECTOR_DAO_MEMBERSHIP_TOKEN_AMOUNT"):
            self.membership_token_amount = int(v)
        if v := os.environ.get("COLLECTOR_DAO_TREASURY_INITIAL_TOKENS"):
            self.treasury_initial_tokens = int(v)
        if v := os.environ.get("COLLECTOR_DAO_VOTING_DELAY"):
            self.voting_delay = int(v)
        if v := os.environ.get("COLLECTOR_DAO_VOTING_PERIOD"):
            self.voting_period = int(v)
        if v := os.environ.get("COLLECTOR_DAO_QUORUM_VOTES"):
            self.quorum_votes = int(v)
        if v := os.environ.get("COLLECTOR_DAO_REQUIRE_MEMBERSHIP_TO_PROPOSE"):
            self.require_membership_to_propose = _env_bool(v)

    def validate(self) -> None:
        try:
            normalize_address(self.dao_address)
        except InvalidAddressError as e:
            raise ConfigurationError(f"dao_address: {e}")
        for name in ("min_membership_fee", "membership_token_amount",
                     "treasury_initial_tokens", "quorum_votes", "voting_delay"):
            value = getattr(self, name)
            if value < 0 or value > UINT256_MAX:
                raise ConfigurationError(f"{name} out of range: {value}")
        if self.membership_token_amount == 0:
            raise ConfigurationError("membership_token_amount must be positive")
        if self.voting_period <= 0:
            raise ConfigurationError("voting_period must be positive")


@dataclass
class TokenConfig:
    """[token] section."""
    name: str = TOKEN_NAME
    symbol: str = TOKEN_SYMBOL

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenConfig":
        return cls(
            name=data.get("name", TOKEN_NAME),
            symbol=data.get("symbol", TOKEN_SYMBOL),
        )

    def validate(self) -> None:
        if not self.name:
            raise ConfigurationError("Token name cannot be empty")
        if not self.symbol:
            raise ConfigurationError("Token symbol cannot be empty")


@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = "INFO"
    file_output: bool = False
    file_path: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(
            level=str(data.get("level", "INFO")).upper(),
            file_output=bool(data.get("file_output", False)),
            file_path=data.get("file_path", ""),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("COLLECTOR_DAO_LOG_LEVEL"):
            self.level = v.upper()
        if v := os.environ.get("COLLECTOR_DAO_LOG_FILE"):
            self.file_output = True
            self.file_path = v

    def validate(self) -> None:
        if self.level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"Invalid log level: {self.level}")


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass
class DAOConfig:
    """Complete deployment configuration."""
    governance: GovernanceConfig = field(default_factory=GovernanceConfig)
    token: TokenConfig = field(default_factory=TokenConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DAOConfig":
        return cls(
            governance=GovernanceConfig.from_dict(data.get("governance", {})),
            token=TokenConfig.from_dict(data.get("token", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "DAOConfig":
        """
        Load configuration from a TOML file.

        A missing file yields defaults (with env overrides applied).
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        with open(path, "rb") as f:
            try:
                raw = tomli.load(f)
            except tomli.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid TOML in {config_path}: {e}")

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.governance.apply_env()
        self.logging.apply_env()

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigurationError: on invalid config
        """
        self.governance.validate()
        self.token.validate()
        self.logging.validate()
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        g = self.governance
        return {
            "governance": {
                "dao_address": g.dao_address,
                "min_membership_fee": str(g.min_membership_fee),
                "membership_token_amount": str(g.membership_token_amount),
                "treasury_initial_tokens": str(g.treasury_initial_tokens),
                "voting_delay": g.voting_delay,
                "voting_period": g.voting_period,
                "quorum_votes": str(g.quorum_votes),
                "require_membership_to_propose": g.require_membership_to_propose,
            },
            "token": {"name": self.token.name, "symbol": self.token.symbol},
            "logging": {"level": self.logging.level, "file_output": self.logging.file_output},
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> DAOConfig:
    """
    Load DAO configuration.

    Resolution order:
        1. Explicit *path* argument
        2. COLLECTOR_DAO_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("COLLECTOR_DAO_CONFIG", "config.toml")
    cfg = DAOConfig.from_file(path)
    cfg.validate()
    return cfg
