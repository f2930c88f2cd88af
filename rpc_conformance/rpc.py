"""
JSON-RPC gateway for a single channel endpoint.
"""
import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from pydantic import BaseModel, ValidationError as PydanticValidationError

from .exceptions import RpcError
from .models import ConfirmedTransaction, Receipt, parse_hex_int

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# Error codes meaning "the artifact is not available yet"
PENDING_CODE = -31002
EXECUTING_CODE = -31003
NOT_FOUND_CODE = -31004
TRANSIENT_CODES = frozenset({PENDING_CODE, EXECUTING_CODE, NOT_FOUND_CODE})


class LookupStatus(str, Enum):
    """Outcome of a single lookup by transaction hash."""
    FOUND = "FOUND"
    PENDING = "PENDING"
    FATAL = "FATAL"


@dataclass(frozen=True)
class LookupResult:
    """
    Result of one lookup attempt.

    Exactly one of ``artifact`` (FOUND) or ``error`` (PENDING / FATAL) is set.
    """
    status: LookupStatus
    artifact: Optional[BaseModel] = None
    error: Optional[RpcError] = None

    @classmethod
    def found(cls, artifact: BaseModel) -> "LookupResult":
        return cls(LookupStatus.FOUND, artifact=artifact)

    @classmethod
    def pending(cls, error: RpcError) -> "LookupResult":
        return cls(LookupStatus.PENDING, error=error)

    @classmethod
    def fatal(cls, error: RpcError) -> "LookupResult":
        return cls(LookupStatus.FATAL, error=error)


class RpcGateway:
    """
    Executes JSON-RPC calls against one channel endpoint.

    The HTTP session retries connection-level failures; JSON-RPC errors are
    never retried here.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = 10.0,
        retry_count: int = 3,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the gateway

        Args:
            endpoint: Channel API URL (``<node>/api/v3/<channel>``)
            timeout: HTTP timeout in seconds
            retry_count: Number of connection-level retries
            session: Optional pre-configured session
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self._ids = itertools.count(1)

        if session is None:
            session = requests.Session()
            retries = Retry(
                total=retry_count,
                backoff_factor=0.5,
                status_forcelist=[502, 503, 504],
                allowed_methods=["POST"],
                raise_on_status=False,
                connect=retry_count,
                read=retry_count,
            )
            session.mount("http://", HTTPAdapter(max_retries=retries))
            session.mount("https://", HTTPAdapter(max_retries=retries))
        self.session = session

    def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Perform a JSON-RPC call.

        Returns:
            The ``result`` member of the response

        Raises:
            RpcError: On a JSON-RPC error object, HTTP failure or malformed response
        """
        request: Dict[str, Any] = {"jsonrpc": "2.0", "method": method, "id": next(self._ids)}
        if params is not None:
            request["params"] = params
        logger.debug(f"RPC request to {self.endpoint}: {method}")

        try:
            response = self.session.post(self.endpoint, json=request, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"RPC {method} failed: {e}")
            raise RpcError(f"RPC {method} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise RpcError(
                f"Invalid JSON response for {method} (HTTP {response.status_code})"
            ) from e
        if not isinstance(body, dict):
            raise RpcError(f"Unexpected response for {method}: {body!r}")

        error = body.get("error")
        if error is not None:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message", "") if isinstance(error, dict) else str(error)
            logger.debug(f"RPC {method} returned error {code}: {message}")
            raise RpcError(f"{method}: {message} (code {code})", code=code)

        if "result" not in body:
            raise RpcError(f"Response for {method} has neither result nor error")
        return body["result"]

    def _lookup(self, method: str, tx_hash: str, model: Type[T]) -> LookupResult:
        try:
            raw = self.call(method, {"txHash": tx_hash})
        except RpcError as e:
            if e.code in TRANSIENT_CODES:
                return LookupResult.pending(e)
            return LookupResult.fatal(e)
        try:
            return LookupResult.found(model.model_validate(raw))
        except PydanticValidationError as e:
            return LookupResult.fatal(RpcError(f"Malformed {method} response: {e}"))

    def lookup_transaction_result(self, tx_hash: str) -> LookupResult:
        """Single ``icx_getTransactionResult`` attempt, classified."""
        return self._lookup("icx_getTransactionResult", tx_hash, Receipt)

    def lookup_transaction(self, tx_hash: str) -> LookupResult:
        """Single ``icx_getTransactionByHash`` attempt, classified."""
        return self._lookup("icx_getTransactionByHash", tx_hash, ConfirmedTransaction)

    def send_transaction(self, params: Dict[str, Any]) -> str:
        """Submit a signed transaction and return its hash."""
        return self.call("icx_sendTransaction", params)

    def get_balance(self, address: str) -> int:
        return parse_hex_int(self.call("icx_getBalance", {"address": address}))
