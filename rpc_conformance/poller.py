"""
Confirmation polling.

The poller repeatedly looks up a transaction by hash until the node reports
the artifact, the node reports a non-transient failure, or the deadline
passes. It inspects the LookupResult variant of each attempt; "pending"
lookups are absorbed and never surface to callers.
"""
import time
import logging
from typing import Callable, Optional

from .exceptions import FatalRpcError, ResultTimeoutError
from .models import ConfirmedTransaction, Receipt
from .rpc import LookupResult, LookupStatus, RpcGateway

logger = logging.getLogger(__name__)

Lookup = Callable[[str], LookupResult]


class ConfirmationPoller:
    """
    Waits for receipts and confirmed-transaction records.

    The loop has no back-off. With the default ``poll_interval`` of 0 it is a
    tight poll bounded only by the waiting budget. A positive interval is a
    fixed pause between attempts, cut short at the deadline; an artifact that
    appears within the last interval before the deadline is then reported as
    a timeout.
    """

    def __init__(
        self,
        gateway: RpcGateway,
        waiting_time: float = 30.0,
        poll_interval: float = 0.0,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """
        Args:
            gateway: Gateway of the channel the transaction was sent to
            waiting_time: Budget in seconds from the start of a wait
            poll_interval: Pause between attempts (0 polls without pausing)
            clock: Monotonic clock (default: time.monotonic)
            sleep: Sleep function (default: time.sleep)
        """
        self.gateway = gateway
        self.waiting_time = waiting_time
        self.poll_interval = poll_interval
        self.clock = clock or time.monotonic
        self.sleep = sleep or time.sleep

    def await_confirmation(
        self,
        tx_hash: str,
        lookup: Lookup,
        waiting_time: Optional[float] = None,
    ):
        """
        Poll ``lookup`` until it yields the artifact.

        Args:
            tx_hash: Transaction hash
            lookup: Single-attempt lookup returning a LookupResult
            waiting_time: Override of the configured budget

        Returns:
            The artifact of the first FOUND result

        Raises:
            FatalRpcError: If a lookup fails with a non-transient error
            ResultTimeoutError: If the deadline passes first
        """
        budget = self.waiting_time if waiting_time is None else waiting_time
        start = self.clock()
        deadline = start + budget
        attempts = 0

        while self.clock() < deadline:
            attempts += 1
            result = lookup(tx_hash)

            if result.status == LookupStatus.FOUND:
                logger.info(f"Transaction {tx_hash[:10]}... confirmed after {attempts} attempt(s)")
                return result.artifact

            if result.status == LookupStatus.FATAL:
                logger.error(f"Lookup of {tx_hash} failed: {result.error}")
                code = result.error.code if result.error is not None else None
                raise FatalRpcError(f"Lookup of {tx_hash} failed: {result.error}", code=code)

            logger.debug(f"Transaction {tx_hash[:10]}... pending ({result.error})")
            remaining = deadline - self.clock()
            if self.poll_interval > 0 and remaining > 0:
                self.sleep(min(self.poll_interval, remaining))

        waited = self.clock() - start
        logger.warning(f"Gave up on {tx_hash} after {attempts} attempt(s)")
        raise ResultTimeoutError(tx_hash, waited)

    def await_result(self, tx_hash: str, waiting_time: Optional[float] = None) -> Receipt:
        """Wait for the transaction result (receipt)."""
        return self.await_confirmation(tx_hash, self.gateway.lookup_transaction_result, waiting_time)

    def await_transaction(
        self, tx_hash: str, waiting_time: Optional[float] = None
    ) -> ConfirmedTransaction:
        """Wait for the confirmed-transaction record."""
        return self.await_confirmation(tx_hash, self.gateway.lookup_transaction, waiting_time)
