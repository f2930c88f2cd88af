"""
Transaction building, signing and submission.
"""
import re
import time
import hashlib
import logging
from typing import Any, Callable, Dict, Optional

from .models import TransactionRequest
from .rpc import RpcGateway
from .wallet import KeyWallet

logger = logging.getLogger(__name__)

DEFAULT_STEP_LIMIT = 1_000_000
CHAIN_SCORE_ADDRESS = "cx" + "0" * 40

_ESCAPE_RE = re.compile(r"([\\.{}\[\]])")


def _encode(value: Any) -> str:
    if value is None:
        return "\\0"
    if isinstance(value, dict):
        return "{" + _encode_members(value) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ".".join(_encode(v) for v in value) + "]"
    return _ESCAPE_RE.sub(r"\\\1", str(value))


def _encode_members(params: Dict[str, Any]) -> str:
    parts = []
    for key in sorted(params):
        parts.append(key)
        parts.append(_encode(params[key]))
    return ".".join(parts)


def serialize_transaction(params: Dict[str, Any]) -> bytes:
    """
    Canonical serialization hashed for the transaction id and signature.

    Keys are sorted; nested objects become ``{k.v}``, lists ``[a.b]``.
    """
    return ("icx_sendTransaction." + _encode_members(params)).encode("utf-8")


def transaction_hash(params: Dict[str, Any]) -> str:
    """Hash of unsigned transaction parameters, ``0x``-prefixed."""
    return "0x" + hashlib.sha3_256(serialize_transaction(params)).hexdigest()


class TxSubmitter:
    """
    Builds, signs and sends transactions on one channel.

    Every method blocks until the node accepts or rejects the request and
    returns the transaction hash reported by the node.
    """

    def __init__(
        self,
        gateway: RpcGateway,
        nid: int,
        version: int = 3,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.gateway = gateway
        self.nid = nid
        self.version = version
        self.clock = clock or time.time

    def build(
        self,
        wallet: KeyWallet,
        to: str,
        step_limit: int,
        value: Optional[int] = None,
        nonce: Optional[int] = None,
        data_type: Optional[str] = None,
        data: Optional[Any] = None,
    ) -> TransactionRequest:
        return TransactionRequest(
            version=self.version,
            sender=wallet.address,
            receiver=to,
            nid=self.nid,
            step_limit=step_limit,
            timestamp=int(self.clock() * 1_000_000),
            value=value,
            nonce=nonce,
            data_type=data_type,
            data=data,
        )

    def send(self, wallet: KeyWallet, request: TransactionRequest) -> str:
        """Sign ``request`` with ``wallet`` and submit it."""
        params = request.to_params()
        digest = hashlib.sha3_256(serialize_transaction(params)).digest()
        params["signature"] = wallet.sign(digest)

        tx_hash = self.gateway.send_transaction(params)
        local_hash = "0x" + digest.hex()
        if tx_hash != local_hash:
            logger.warning(f"Node returned hash {tx_hash}, expected {local_hash}")
        logger.info(f"Transaction sent: {tx_hash[:10]}... ({request.data_type or 'transfer'})")
        return tx_hash

    def transfer(
        self,
        wallet: KeyWallet,
        to: str,
        value: int,
        step_limit: int = DEFAULT_STEP_LIMIT,
        nonce: Optional[int] = None,
    ) -> str:
        """Plain value transfer."""
        return self.send(wallet, self.build(wallet, to, step_limit, value=value, nonce=nonce))

    def invoke(
        self,
        wallet: KeyWallet,
        to: str,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        value: Optional[int] = None,
        step_limit: int = DEFAULT_STEP_LIMIT,
        nonce: Optional[int] = None,
    ) -> str:
        """
        Call a score method.

        A zero ``value`` is treated as no value, so the record carries none.
        """
        data: Dict[str, Any] = {"method": method}
        if params is not None:
            data["params"] = params
        request = self.build(
            wallet, to, step_limit,
            value=value or None, nonce=nonce, data_type="call", data=data,
        )
        return self.send(wallet, request)

    def deploy(
        self,
        wallet: KeyWallet,
        content: bytes,
        params: Optional[Dict[str, Any]] = None,
        to: str = CHAIN_SCORE_ADDRESS,
        content_type: str = "application/zip",
        step_limit: int = DEFAULT_STEP_LIMIT,
    ) -> str:
        """Install (``to`` = chain score) or update (``to`` = score) a score."""
        data: Dict[str, Any] = {"contentType": content_type, "content": "0x" + content.hex()}
        if params is not None:
            data["params"] = params
        request = self.build(wallet, to, step_limit, data_type="deploy", data=data)
        return self.send(wallet, request)
