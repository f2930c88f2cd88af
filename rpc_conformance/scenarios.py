"""
End-to-end receipt conformance scenarios.

Each scenario drives a channel through a Harness: it submits transactions,
waits for their confirmation and raises ValidationError (or
ResultTimeoutError) when the node misbehaves. Scenarios create their own
wallets and share nothing but the read-only HarnessConfig.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .config import HarnessConfig
from .exceptions import ValidationError
from .models import STATUS_SUCCESS, Receipt, to_hex
from .poller import ConfirmationPoller
from .rpc import RpcGateway
from .submitter import CHAIN_SCORE_ADDRESS, DEFAULT_STEP_LIMIT, TxSubmitter
from .topology import Chain, Channel
from .validator import (
    BloomComparison, check_event_log, compare_bloom, find_event_logs,
    validate_confirmed_transaction, validate_receipt,
)
from .wallet import KeyWallet

logger = logging.getLogger(__name__)

DEFAULT_BALANCE = 100 * 10 ** 18
EVENT_STEP_LIMIT = 100
TRANSFER_VALUE = 2

EVENT_SIGNATURES = (
    "event_log_no_index(bool,Address,int,bytes,str)",
    "event_log_1_index(bool,Address,int,bytes,str)",
    "event_log_2_index(bool,Address,int,bytes,str)",
    "event_log_3_index(bool,Address,int,bytes,str)",
)


@dataclass
class Harness:
    """Gateway, submitter and poller bound to one channel."""
    channel: Channel
    gateway: RpcGateway
    submitter: TxSubmitter
    poller: ConfirmationPoller

    @property
    def chain(self) -> Chain:
        return self.channel.chain

    @classmethod
    def from_config(cls, config: HarnessConfig, channel: Optional[Channel] = None) -> "Harness":
        """Wire the components for ``channel`` (default: first channel of the first node)."""
        settings = config.settings
        channel = channel or config.topology.default_channel()
        gateway = RpcGateway(
            channel.api_url(settings.api_version),
            timeout=settings.http_timeout,
            retry_count=settings.retry_count,
        )
        submitter = TxSubmitter(gateway, nid=channel.chain.nid, version=settings.api_version)
        poller = ConfirmationPoller(
            gateway, waiting_time=settings.waiting_time, poll_interval=settings.poll_interval
        )
        return cls(channel=channel, gateway=gateway, submitter=submitter, poller=poller)

    def expect_success(self, tx_hash: str) -> Receipt:
        receipt = self.poller.await_result(tx_hash)
        if receipt.status != STATUS_SUCCESS:
            failure = receipt.failure.message if receipt.failure else "unknown"
            raise ValidationError([f"status: expected {STATUS_SUCCESS!r}, got {receipt.status!r} ({failure})"])
        return receipt


def fund_wallets(harness: Harness, addresses: Sequence[str], amount: int = DEFAULT_BALANCE) -> None:
    """Transfer ``amount`` from the god wallet to each address and wait for all results."""
    god = harness.chain.god_wallet
    tx_hashes = [harness.submitter.transfer(god, address, amount) for address in addresses]
    for tx_hash in tx_hashes:
        harness.expect_success(tx_hash)
    for address in addresses:
        balance = harness.gateway.get_balance(address)
        if balance < amount:
            raise ValidationError([f"balance of {address}: expected >= {amount}, got {balance}"])


class Score:
    """A deployed score reachable through a harness."""

    def __init__(self, harness: Harness, address: str):
        self.harness = harness
        self.address = address

    @classmethod
    def install(
        cls,
        harness: Harness,
        wallet: KeyWallet,
        content: bytes,
        params: Optional[Dict[str, Any]] = None,
    ) -> "Score":
        tx_hash = harness.submitter.deploy(wallet, content, params)
        receipt = harness.expect_success(tx_hash)
        if receipt.score_address is None:
            raise ValidationError([f"scoreAddress: missing on deploy {tx_hash}"])
        logger.info(f"Score installed at {receipt.score_address}")
        return cls(harness, receipt.score_address)

    def invoke(
        self,
        wallet: KeyWallet,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        value: int = 0,
        step_limit: int = EVENT_STEP_LIMIT,
    ) -> str:
        return self.harness.submitter.invoke(
            wallet, self.address, method, params, value=value, step_limit=step_limit
        )

    def wait_result(self, tx_hash: str) -> Receipt:
        return self.harness.poller.await_result(tx_hash)

    def invoke_and_wait_result(self, wallet: KeyWallet, method: str, params=None, value: int = 0,
                               step_limit: int = EVENT_STEP_LIMIT) -> Receipt:
        return self.wait_result(self.invoke(wallet, method, params, value, step_limit))


def event_log_params(indexed_count: int, p_bool: bool, p_addr: str) -> Dict[str, Any]:
    """Parameters of ``call_event_log`` in wire form."""
    return {
        "p_log_index": to_hex(indexed_count),
        "p_bool": to_hex(int(p_bool)),
        "p_addr": p_addr,
        "p_int": to_hex(10),
        "p_bytes": "0x" + bytes([1, 2, 3]).hex(),
        "p_str": "log test",
    }


def expected_event_values(p_bool: bool, p_addr: str) -> List[str]:
    """Event arguments as the node echoes them, in declaration order."""
    return [to_hex(int(p_bool)), p_addr, to_hex(10), "0x010203", "log test"]


def check_event_log_scenario(
    score: Score,
    caller: KeyWallet,
    indexed_count: int,
    p_addr: str,
    method: str = "call_event_log",
    emitter: Optional[str] = None,
    extra_params: Optional[Dict[str, Any]] = None,
) -> Receipt:
    """
    Emit an event with ``indexed_count`` indexed fields and check its decomposition.

    ``emitter`` is the score expected to log the event (defaults to ``score``;
    differs for inter-score calls).
    """
    params = event_log_params(indexed_count, True, p_addr)
    params.update(extra_params or {})
    receipt = score.invoke_and_wait_result(caller, method, params)
    if receipt.status != STATUS_SUCCESS:
        raise ValidationError([f"status: expected {STATUS_SUCCESS!r}, got {receipt.status!r}"])

    emitter = emitter or score.address
    events = find_event_logs(receipt, emitter)
    if not events:
        raise ValidationError([f"no event log from {emitter}"])
    if len(events) != 1:
        raise ValidationError([f"expected exactly one event log from {emitter}, got {len(events)}"])
    values = expected_event_values(True, p_addr)
    check_event_log(events[0], EVENT_SIGNATURES[indexed_count], values, indexed_count)
    return receipt


def check_inter_call_event_log_scenario(
    score: Score,
    callee: Score,
    caller: KeyWallet,
    indexed_count: int,
) -> Receipt:
    """
    Have ``score`` call ``callee``, which emits the event.

    The log must carry the callee's address, not the address of the score
    the transaction was sent to.
    """
    return check_event_log_scenario(
        score, caller, indexed_count, callee.address,
        method="inter_call_event_log",
        emitter=callee.address,
        extra_params={"_to": callee.address},
    )


def check_logs_bloom_scenario(score: Score, caller: KeyWallet, indexed_count: int) -> List[Receipt]:
    """
    Emit three events whose boolean argument is (False, False, True).

    At depth 0 the boolean is a data argument and all three blooms must be
    equal. At any deeper level the boolean is indexed, so the third bloom
    must differ from the first two.
    """
    receipts = []
    for p_bool in (False, False, True):
        params = event_log_params(indexed_count, p_bool, score.address)
        receipt = score.invoke_and_wait_result(caller, "call_event_log", params)
        if receipt.status != STATUS_SUCCESS:
            raise ValidationError([f"status: expected {STATUS_SUCCESS!r}, got {receipt.status!r}"])
        receipts.append(receipt)

    failures = []
    if compare_bloom(receipts[0], receipts[1]) != BloomComparison.EQUAL:
        failures.append("logsBloom: calls with equal arguments produced different blooms")
    third = compare_bloom(receipts[0], receipts[2])
    if indexed_count == 0 and third != BloomComparison.EQUAL:
        failures.append("logsBloom: data-only difference changed the bloom")
    if indexed_count > 0 and third != BloomComparison.DIFFERENT:
        failures.append("logsBloom: indexed difference did not change the bloom")
    if failures:
        raise ValidationError(failures)
    return receipts


def check_transfer_result_params(harness: Harness, caller: KeyWallet) -> Receipt:
    receiver = KeyWallet.create()
    tx_hash = harness.submitter.transfer(caller, receiver.address, TRANSFER_VALUE)
    receipt = harness.poller.await_result(tx_hash)
    validate_receipt(receipt, STATUS_SUCCESS, receiver.address, tx_hash)
    return receipt


def check_deploy_result_params(harness: Harness, caller: KeyWallet, content: bytes) -> Receipt:
    tx_hash = harness.submitter.deploy(caller, content, {})
    receipt = harness.poller.await_result(tx_hash)
    validate_receipt(receipt, STATUS_SUCCESS, CHAIN_SCORE_ADDRESS, tx_hash, require_score_address=True)
    return receipt


def check_call_result_params(score: Score, caller: KeyWallet) -> Receipt:
    params = event_log_params(3, False, score.address)
    tx_hash = score.invoke(caller, "call_event_log", params)
    receipt = score.wait_result(tx_hash)
    validate_receipt(receipt, STATUS_SUCCESS, score.address, tx_hash)
    return receipt


def check_transfer_tx_by_hash(harness: Harness, caller: KeyWallet) -> None:
    """A transfer record carries ``value`` and no ``dataType``/``data``."""
    receiver = KeyWallet.create()
    tx_hash = harness.submitter.transfer(caller, receiver.address, TRANSFER_VALUE, nonce=1)
    tx = harness.poller.await_transaction(tx_hash)
    validate_confirmed_transaction(
        tx, caller.address, receiver.address, TRANSFER_VALUE, DEFAULT_STEP_LIMIT,
        harness.chain.nid, 1, tx_hash, None, version=harness.submitter.version,
    )


def check_call_tx_by_hash(score: Score, caller: KeyWallet) -> None:
    """A call record carries ``dataType`` "call" and ``data`` but no ``value``."""
    params = event_log_params(3, False, score.address)
    tx_hash = score.invoke(caller, "call_event_log", params, step_limit=EVENT_STEP_LIMIT)
    tx = score.harness.poller.await_transaction(tx_hash)
    validate_confirmed_transaction(
        tx, caller.address, score.address, None, EVENT_STEP_LIMIT,
        score.harness.chain.nid, None, tx_hash, "call", version=score.harness.submitter.version,
    )
