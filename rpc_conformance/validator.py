"""
Receipt and confirmed-transaction validation.

Checks collect every failure before raising, so a single ValidationError
describes everything that is wrong with a receipt.
"""
import logging
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple, Union

from .bloom import LogsBloom, as_bloom, parse_signature
from .exceptions import ValidationError
from .models import ConfirmedTransaction, EventLog, Receipt

logger = logging.getLogger(__name__)

# Fields whose presence (not value) is required on every receipt
RECEIPT_PRESENCE_FIELDS = (
    ("tx_index", "txIndex"),
    ("block_height", "blockHeight"),
    ("block_hash", "blockHash"),
    ("cumulative_step_used", "cumulativeStepUsed"),
    ("step_used", "stepUsed"),
    ("step_price", "stepPrice"),
    ("event_logs", "eventLogs"),
    ("logs_bloom", "logsBloom"),
)

TX_PRESENCE_FIELDS = (
    ("timestamp", "timestamp"),
    ("tx_index", "txIndex"),
    ("block_height", "blockHeight"),
    ("block_hash", "blockHash"),
    ("signature", "signature"),
)


class BloomComparison(str, Enum):
    EQUAL = "equal"
    DIFFERENT = "different"


def _expect(failures: List[str], name: str, actual: Any, expected: Any) -> None:
    if actual != expected:
        failures.append(f"{name}: expected {expected!r}, got {actual!r}")


def _require(failures: List[str], obj: Any, fields: Sequence[Tuple[str, str]]) -> None:
    for attr, wire_name in fields:
        if getattr(obj, attr) is None:
            failures.append(f"{wire_name}: missing")


def validate_receipt(
    receipt: Receipt,
    expected_status: int,
    expected_to: str,
    expected_tx_hash: str,
    require_score_address: bool = False,
) -> None:
    """
    Validate a transaction result.

    Status, receiver and hash must match exactly; the remaining metadata
    must be present. Values of the present fields are not re-derived.

    Args:
        receipt: Receipt to check
        expected_status: STATUS_SUCCESS or STATUS_FAILURE
        expected_to: Receiver address, compared verbatim
        expected_tx_hash: Transaction hash, compared verbatim
        require_score_address: Also require ``scoreAddress`` (deploy receipts)

    Raises:
        ValidationError: Listing every failed check
    """
    failures: List[str] = []
    _expect(failures, "status", receipt.status, expected_status)
    _expect(failures, "to", receipt.to_address, expected_to)
    _expect(failures, "txHash", receipt.tx_hash, expected_tx_hash)
    _require(failures, receipt, RECEIPT_PRESENCE_FIELDS)
    if require_score_address and receipt.score_address is None:
        failures.append("scoreAddress: missing")

    if failures:
        logger.debug(f"Receipt {expected_tx_hash} failed validation: {failures}")
        raise ValidationError(failures)


def find_event_logs(receipt: Receipt, score_address: str) -> List[EventLog]:
    """Event logs of ``receipt`` emitted by ``score_address``."""
    return [e for e in (receipt.event_logs or []) if e.score_address == score_address]


def decompose_event_log(event: EventLog) -> Tuple[str, List[Optional[str]], List[Optional[str]]]:
    """
    Split an event log into signature, indexed arguments and data arguments.

    The split point is taken from the log itself; this only checks that
    ``len(indexed) - 1 + len(data)`` equals the parameter count declared by
    the signature.

    Raises:
        ValidationError: If the log has no signature or the split is inconsistent
    """
    if not event.indexed or not event.indexed[0]:
        raise ValidationError([f"event log of {event.score_address} has no signature"])
    signature = event.indexed[0]
    try:
        declared = len(parse_signature(signature))
    except ValueError as e:
        raise ValidationError([str(e)]) from e

    indexed_args = list(event.indexed[1:])
    data_args = list(event.data)
    if len(indexed_args) + len(data_args) != declared:
        raise ValidationError([
            f"{signature}: {len(indexed_args)} indexed + {len(data_args)} data "
            f"arguments, expected {declared}"
        ])
    return signature, indexed_args, data_args


def check_event_log(
    event: EventLog,
    signature: str,
    values: Sequence[Optional[str]],
    indexed_count: int,
) -> None:
    """
    Check an event emitted with ``indexed_count`` indexed parameters.

    ``indexed[1..k]`` must equal the first k values and ``data`` the rest.

    Raises:
        ValidationError: Listing every mismatch
    """
    actual_signature, indexed_args, data_args = decompose_event_log(event)
    failures: List[str] = []
    _expect(failures, "signature", actual_signature, signature)
    _expect(failures, "indexed", indexed_args, list(values[:indexed_count]))
    _expect(failures, "data", data_args, list(values[indexed_count:]))
    if failures:
        raise ValidationError(failures)


def compare_bloom(
    a: Union[Receipt, str, LogsBloom],
    b: Union[Receipt, str, LogsBloom],
) -> BloomComparison:
    """
    Compare two logs blooms bit for bit.

    Accepts receipts, hex strings or LogsBloom values.

    Raises:
        ValidationError: If a receipt carries no logs bloom or a bloom is not
            a valid 2048-bit hex value
    """
    blooms = []
    for value in (a, b):
        if isinstance(value, Receipt):
            if value.logs_bloom is None:
                raise ValidationError([f"logsBloom: missing on {value.tx_hash}"])
            value = value.logs_bloom
        try:
            blooms.append(as_bloom(value))
        except ValueError as e:
            raise ValidationError([f"logsBloom: {e}"]) from e
    return BloomComparison.EQUAL if blooms[0] == blooms[1] else BloomComparison.DIFFERENT


def validate_confirmed_transaction(
    tx: ConfirmedTransaction,
    from_address: str,
    to_address: str,
    value: Optional[int],
    step_limit: int,
    nid: int,
    nonce: Optional[int],
    tx_hash: str,
    data_type: Optional[str],
    version: int = 3,
) -> None:
    """
    Validate a confirmed-transaction record against what was submitted.

    ``value``, ``nonce`` and ``data_type`` are compared exactly, so passing
    None asserts the field is absent. ``data`` must be present exactly when
    ``dataType`` is.

    Raises:
        ValidationError: Listing every failed check
    """
    failures: List[str] = []
    _expect(failures, "version", tx.version, version)
    _expect(failures, "from", tx.from_address, from_address)
    _expect(failures, "to", tx.to_address, to_address)
    _expect(failures, "value", tx.value, value)
    _expect(failures, "stepLimit", tx.step_limit, step_limit)
    _expect(failures, "nid", tx.nid, nid)
    _expect(failures, "nonce", tx.nonce, nonce)
    _expect(failures, "txHash", tx.tx_hash, tx_hash)
    _require(failures, tx, TX_PRESENCE_FIELDS)
    _expect(failures, "dataType", tx.data_type, data_type)
    if data_type is not None and tx.data is None:
        failures.append("data: missing")
    elif data_type is None and tx.data is not None:
        failures.append("data: present without dataType")

    if failures:
        logger.debug(f"Transaction {tx_hash} failed validation: {failures}")
        raise ValidationError(failures)
