"""
Exceptions for the RPC conformance harness.
"""
from typing import List, Optional


class ConformanceError(Exception):
    """Base exception for all harness errors."""
    pass


class ConfigError(ConformanceError):
    """Raised when the topology configuration is missing or inconsistent."""
    pass


class RpcError(ConformanceError):
    """Raised when a JSON-RPC call returns an error object."""

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        super().__init__(message)


class FatalRpcError(RpcError):
    """Raised when a lookup fails for any reason other than 'not yet available'."""
    pass


class ResultTimeoutError(ConformanceError, TimeoutError):
    """Raised when a transaction is not confirmed before the deadline."""

    def __init__(self, tx_hash: str, waited: Optional[float] = None):
        self.tx_hash = tx_hash
        self.waited = waited
        message = f"Timed out waiting for transaction {tx_hash}"
        if waited is not None:
            message += f" after {waited:.2f}s"
        super().__init__(message)


class ValidationError(ConformanceError):
    """
    Raised when a receipt or confirmed transaction fails an expected-field check.

    Attributes:
        failures: Every check that failed, in the order they were evaluated
    """

    def __init__(self, failures: List[str]):
        self.failures = list(failures)
        super().__init__("; ".join(self.failures) or "validation failed")
