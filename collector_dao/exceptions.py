"""
Collector DAO Exceptions

Package-wide exception classes. Governance modules derive their own,
more specific errors from GovernanceError.
"""


class CollectorDAOException(Exception):
    """Base exception for Collector DAO."""
    pass


class ConfigurationError(CollectorDAOException):
    """Configuration error."""
    pass


class InvalidAddressError(CollectorDAOException):
    """Invalid address format."""
    pass


class GovernanceError(CollectorDAOException):
    """
    Base governance exception.

    Every subclass carries a stable ``code`` matching the revert reason
    used by the on-chain contract, so callers can branch on it without
    parsing messages.
    """
    code = "GOVERNANCE_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
