"""
Submission-confirmation state machine.

One :class:`TransactionSubmission` follows one notarized transaction
through ``NEW -> SUBMITTED -> PENDING -> {COMMITTED_SUCCESS,
COMMITTED_FAILURE, REJECTED}``. Submission happens once; status queries are
side-effect free and repeated until a terminal status, one at a time; the
committed details are fetched only after a terminal status was seen.

Cancelling or timing out only stops this client from waiting. The
transaction already handed to the gateway keeps its on-ledger fate.
"""
import logging
import threading
import time
from enum import Enum
from typing import Optional

from .bech32 import HashBech32Codec
from .config import poll_interval as default_poll_interval
from .exceptions import (
    AwaitCancelled,
    AwaitTimeoutError,
    InvalidStateError,
    StatusQueryError,
    SubmissionRejected,
)
from .gateway._rate_limited_log import rate_limited_log
from .gateway.exceptions import TRANSIENT_ERRORS, GatewayResponseError
from .gateway.transport import GatewayTransport
from .models import SubmissionResult, TransactionDetails, TransactionStatus, TransactionStatusResponse
from .transaction.notary import NotarizedTransaction

logger = logging.getLogger(__name__)

DEFAULT_DETAILS_RETRIES = 3
DEFAULT_SUBMIT_RETRIES = 3


class SubmissionState(str, Enum):
    NEW = "New"
    SUBMITTED = "Submitted"
    PENDING = "Pending"
    COMMITTED_SUCCESS = "CommittedSuccess"
    COMMITTED_FAILURE = "CommittedFailure"
    REJECTED = "Rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (
            SubmissionState.COMMITTED_SUCCESS,
            SubmissionState.COMMITTED_FAILURE,
            SubmissionState.REJECTED,
        )


_TERMINAL_STATES = {
    TransactionStatus.COMMITTED_SUCCESS: SubmissionState.COMMITTED_SUCCESS,
    TransactionStatus.COMMITTED_FAILURE: SubmissionState.COMMITTED_FAILURE,
    TransactionStatus.REJECTED: SubmissionState.REJECTED,
}


class TransactionSubmission:
    """
    Tracks a single notarized transaction from submission to receipt.

    Args:
        transport: Gateway transport
        transaction: The notarized transaction to submit
        hash_codec: Codec used to render the intent hash for status queries
        poll_interval: Seconds between status queries (default: SCRYPTO_POLL_INTERVAL or 1.0)
        max_query_failures: Consecutive transient query failures tolerated
            before giving up; None retries forever
        submit_retries: Resends of the same payload after a transient submit failure
    """

    def __init__(
        self,
        transport: GatewayTransport,
        transaction: NotarizedTransaction,
        hash_codec: HashBech32Codec,
        poll_interval: Optional[float] = None,
        max_query_failures: Optional[int] = None,
        submit_retries: int = DEFAULT_SUBMIT_RETRIES
    ):
        self.transport = transport
        self.transaction = transaction
        self.intent_hash = hash_codec.encode(transaction.intent_hash.value)
        self.poll_interval = default_poll_interval() if poll_interval is None else poll_interval
        self.max_query_failures = max_query_failures
        self.submit_retries = submit_retries

        self.state = SubmissionState.NEW
        self.last_status: Optional[TransactionStatusResponse] = None
        self._details: Optional[TransactionDetails] = None
        self._sends = 0

    def _transition(self, new_state: SubmissionState) -> None:
        if new_state is self.state:
            return
        logger.info(f"Transaction {self.intent_hash[:24]}... {self.state.value} -> {new_state.value}")
        self.state = new_state

    @property
    def status(self) -> Optional[TransactionStatus]:
        return self.last_status.status if self.last_status else None

    def submit(self) -> SubmissionResult:
        """
        Hand the notarized transaction to the gateway.

        A submit that fails with a transient error may still have reached
        the gateway, so the same payload is sent again up to
        ``submit_retries`` times. When the gateway reports a duplicate for a
        payload this submission already sent, the transaction is live and is
        treated as submitted.

        Returns:
            The gateway acknowledgement

        Raises:
            InvalidStateError: If this transaction was already submitted
            SubmissionRejected: If the gateway refuses the transaction, or
                reports a duplicate intent this submission never sent
            GatewayError: If the gateway stayed unreachable; the state stays
                NEW and calling ``submit`` again resends the same payload
        """
        if self.state is not SubmissionState.NEW:
            raise InvalidStateError(f"Transaction already submitted (state: {self.state.value})")

        payload = self.transaction.to_hex()
        attempt = 0
        while True:
            resend = self._sends > 0
            self._sends += 1
            try:
                result = self.transport.submit(payload)
                break
            except GatewayResponseError as e:
                logger.error(f"Gateway rejected transaction {self.intent_hash[:24]}...: {e}")
                raise SubmissionRejected(str(e), code=e.error_code, details=e.details) from e
            except TRANSIENT_ERRORS as e:
                attempt += 1
                if attempt > self.submit_retries:
                    raise
                logger.warning(
                    f"Resending transaction {self.intent_hash[:24]}... "
                    f"(attempt {attempt + 1}/{self.submit_retries + 1}): {e}"
                )
                time.sleep(self.poll_interval)

        if result.duplicate:
            if not resend:
                raise SubmissionRejected(
                    f"Duplicate intent {self.intent_hash} was already submitted",
                    code="DuplicateIntent",
                )
            logger.info(f"Gateway already holds transaction {self.intent_hash[:24]}... from an earlier send")

        self._transition(SubmissionState.SUBMITTED)
        return result

    def _wait(self, cancel_event: Optional[threading.Event], deadline: Optional[float]) -> None:
        delay = self.poll_interval
        if deadline is not None:
            delay = max(0.0, min(delay, deadline - time.monotonic()))
        if cancel_event is None:
            time.sleep(delay)
        elif cancel_event.wait(delay):
            raise AwaitCancelled(f"Stopped waiting for transaction {self.intent_hash}", submission=self)

    def await_terminal(
        self,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> TransactionStatus:
        """
        Poll the gateway until the transaction reaches a terminal status.

        ``Pending`` and ``Unknown`` keep the machine polling. Transient
        gateway failures are retried without resubmitting.

        Args:
            timeout: Seconds to wait before giving up; None waits indefinitely
            cancel_event: Setting this event stops the wait

        Returns:
            The terminal status

        Raises:
            InvalidStateError: If the transaction was never submitted
            AwaitCancelled: If ``cancel_event`` was set
            AwaitTimeoutError: If ``timeout`` elapsed first
            StatusQueryError: If transient failures exceeded ``max_query_failures``
            GatewayResponseError: If the gateway refused the status query
        """
        if self.state is SubmissionState.NEW:
            raise InvalidStateError("Cannot await a transaction that was not submitted")
        if self.state.is_terminal:
            return self.last_status.status

        deadline = None if timeout is None else time.monotonic() + timeout
        failures = 0

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise AwaitCancelled(f"Stopped waiting for transaction {self.intent_hash}", submission=self)

            try:
                response = self.transport.status(self.intent_hash)
            except TRANSIENT_ERRORS as e:
                failures += 1
                rate_limited_log(
                    f"Status query for {self.intent_hash[:24]}... failed: {e}",
                    level="warning",
                    interval=60,
                    logger_instance=logger
                )
                if self.max_query_failures is not None and failures > self.max_query_failures:
                    raise StatusQueryError(
                        f"Status query failed {failures} times in a row for {self.intent_hash}",
                        submission=self,
                    ) from e
            else:
                failures = 0
                self.last_status = response
                logger.debug(f"Transaction {self.intent_hash[:24]}... status {response.status.value}")
                if response.status.is_terminal:
                    self._transition(_TERMINAL_STATES[response.status])
                    return response.status
                self._transition(SubmissionState.PENDING)

            if deadline is not None and time.monotonic() >= deadline:
                raise AwaitTimeoutError(
                    f"Transaction {self.intent_hash} not finalized after {timeout}s "
                    f"(last status: {self.status.value if self.status else 'none'})",
                    submission=self,
                )
            self._wait(cancel_event, deadline)

    def fetch_details(self) -> TransactionDetails:
        """
        Fetch the committed details once a terminal status was observed.

        Returns:
            Transaction details including the receipt

        Raises:
            InvalidStateError: If no terminal status has been observed yet
            GatewayError: If the gateway keeps failing or refuses the query
        """
        if not self.state.is_terminal:
            raise InvalidStateError(
                f"Details are only available after a terminal status (state: {self.state.value})"
            )
        if self._details is not None:
            return self._details

        attempt = 0
        while True:
            try:
                self._details = self.transport.committed_details(self.intent_hash)
                return self._details
            except TRANSIENT_ERRORS as e:
                attempt += 1
                if attempt > DEFAULT_DETAILS_RETRIES:
                    raise
                logger.warning(
                    f"Retrying details query (attempt {attempt + 1}/{DEFAULT_DETAILS_RETRIES + 1}): {e}"
                )
                time.sleep(self.poll_interval)
