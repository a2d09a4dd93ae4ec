"""
Configuration Loader Test Suite

Coverage:
  - defaults from constants
  - TOML sections and environment overrides
  - validation errors
  - load_config resolution order

Run with:
    pytest tests/test_config.py -v
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from collector_dao.config import (
    DAOConfig,
    GovernanceConfig,
    LoggingConfig,
    TokenConfig,
    load_config,
)
from collector_dao.constants import (
    DAO_ADDRESS,
    MIN_MEMBERSHIP_FEE,
    ONE_ETHER,
    QUORUM_VOTES,
    VOTING_PERIOD_SECONDS,
)
from collector_dao.exceptions import ConfigurationError


SAMPLE_TOML = """
[governance]
min_membership_fee = 2000000000000000000
voting_delay = 30
voting_period = 600
quorum_votes = 5
require_membership_to_propose = true

[token]
name = "Art Club"
symbol = "ART"

[logging]
level = "debug"
"""

ENV_VARS = [
    "COLLECTOR_DAO_ADDRESS",
    "COLLECTOR_DAO_MIN_MEMBERSHIP_FEE",
    "COLLECTOR_DAO_MEMBERSHIP_TOKEN_AMOUNT",
    "COLLECTOR_DAO_TREASURY_INITIAL_TOKENS",
    "COLLECTOR_DAO_VOTING_DELAY",
    "COLLECTOR_DAO_VOTING_PERIOD",
    "COLLECTOR_DAO_QUORUM_VOTES",
    "COLLECTOR_DAO_REQUIRE_MEMBERSHIP_TO_PROPOSE",
    "COLLECTOR_DAO_LOG_LEVEL",
    "COLLECTOR_DAO_LOG_FILE",
    "COLLECTOR_DAO_CONFIG",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(SAMPLE_TOML)
    return path


class TestDefaults:
    """Unconfigured deployment."""

    def test_governance_defaults(self):
        g = GovernanceConfig()
        assert g.dao_address == DAO_ADDRESS
        assert g.min_membership_fee == MIN_MEMBERSHIP_FEE == ONE_ETHER
        assert g.voting_period == VOTING_PERIOD_SECONDS
        assert g.quorum_votes == QUORUM_VOTES == 0
        assert g.require_membership_to_propose is False

    def test_defaults_validate(self):
        assert DAOConfig().validate() is True

    def test_missing_file_yields_defaults(self, tmp_path):
        cfg = DAOConfig.from_file(str(tmp_path / "absent.toml"))
        assert cfg.governance == GovernanceConfig()


class TestFromFile:
    """TOML parsing."""

    def test_sections_parsed(self, config_file):
        cfg = DAOConfig.from_file(str(config_file))
        assert cfg.governance.min_membership_fee == 2 * ONE_ETHER
        assert cfg.governance.voting_delay == 30
        assert cfg.governance.voting_period == 600
        assert cfg.governance.quorum_votes == 5
        assert cfg.governance.require_membership_to_propose is True
        assert cfg.token == TokenConfig(name="Art Club", symbol="ART")
        assert cfg.logging.level == "DEBUG"

    def test_unset_keys_keep_defaults(self, config_file):
        cfg = DAOConfig.from_file(str(config_file))
        assert cfg.governance.dao_address == DAO_ADDRESS

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("[governance\nvoting_delay = ")
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            DAOConfig.from_file(str(path))

    def test_to_dict(self, config_file):
        d = DAOConfig.from_file(str(config_file)).to_dict()
        assert d["governance"]["min_membership_fee"] == str(2 * ONE_ETHER)
        assert d["token"]["symbol"] == "ART"


class TestEnvOverrides:
    """COLLECTOR_DAO_* variables win over the file."""

    def test_env_overrides_file(self, config_file, monkeypatch):
        monkeypatch.setenv("COLLECTOR_DAO_VOTING_PERIOD", "900")
        monkeypatch.setenv("COLLECTOR_DAO_REQUIRE_MEMBERSHIP_TO_PROPOSE", "no")
        cfg = DAOConfig.from_file(str(config_file))
        assert cfg.governance.voting_period == 900
        assert cfg.governance.require_membership_to_propose is False

    def test_log_file_env_enables_file_output(self, monkeypatch):
        monkeypatch.setenv("COLLECTOR_DAO_LOG_FILE", "/tmp/dao.log")
        cfg = LoggingConfig()
        cfg.apply_env()
        assert cfg.file_output is True
        assert cfg.file_path == "/tmp/dao.log"

    def test_load_config_uses_env_path(self, config_file, monkeypatch):
        monkeypatch.setenv("COLLECTOR_DAO_CONFIG", str(config_file))
        cfg = load_config()
        assert cfg.token.symbol == "ART"

    def test_load_config_validates(self, tmp_path, monkeypatch):
        path = tmp_path / "bad.toml"
        path.write_text("[governance]\nvoting_period = 0\n")
        with pytest.raises(ConfigurationError, match="voting_period"):
            load_config(str(path))


class TestValidation:
    """Rejected configurations."""

    def test_bad_dao_address(self):
        with pytest.raises(ConfigurationError, match="dao_address"):
            GovernanceConfig(dao_address="0xnope").validate()

    def test_negative_fee(self):
        with pytest.raises(ConfigurationError, match="min_membership_fee"):
            GovernanceConfig(min_membership_fee=-1).validate()

    def test_zero_allotment(self):
        with pytest.raises(ConfigurationError):
            GovernanceConfig(membership_token_amount=0).validate()

    def test_empty_symbol(self):
        with pytest.raises(ConfigurationError):
            TokenConfig(symbol="").validate()

    def test_bad_log_level(self):
        with pytest.raises(ConfigurationError, match="log level"):
            LoggingConfig(level="LOUD").validate()
