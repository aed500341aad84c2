"""
Stub-based transport implementation for the Gateway service.

An in-memory gateway for development and tests. It accepts submissions,
reports ``Pending`` for a configurable number of polls and then commits
with scripted receipt outputs, or fails/rejects when told to. Every call
is recorded in ``calls`` so tests can check request ordering.
"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..models import (
    CommittedTransaction,
    GatewayStatus,
    LedgerState,
    ReceiptOutput,
    SubmissionResult,
    TransactionDetails,
    TransactionReceipt,
    TransactionStatus,
    TransactionStatusResponse,
)
from .exceptions import GatewayConnectionError, GatewayResponseError, GatewayTimeoutError
from .transport import GatewayTransport

logger = logging.getLogger(__name__)

# Encoded unit value, what fee locks and void calls return
UNIT_OUTPUT = b"\x00"


class StubTransport(GatewayTransport):
    """
    A simple in-memory implementation of the Gateway transport.

    Args:
        epoch: Epoch reported by gateway_status
        pending_polls: Status queries answered ``Pending`` before the terminal state
        outputs: Raw receipt outputs of a successful commit, one per instruction
        failure: If set, commit as ``CommittedFailure`` with this error message
        rejection: If set, end as ``Rejected`` with this error message
        submit_error: If set, refuse every submission with this message
        status_errors: Number of status queries that fail with a connection error first
        lost_responses: Number of submissions accepted whose response then times out
    """

    def __init__(
        self,
        epoch: int = 100,
        pending_polls: int = 1,
        outputs: Optional[Sequence[Optional[bytes]]] = None,
        failure: Optional[str] = None,
        rejection: Optional[str] = None,
        submit_error: Optional[str] = None,
        status_errors: int = 0,
        lost_responses: int = 0
    ):
        self.gateway_url: Optional[str] = None
        self.initialized = False
        self.epoch = epoch
        self.pending_polls = pending_polls
        self.outputs = list(outputs) if outputs is not None else [UNIT_OUTPUT, UNIT_OUTPUT]
        self.failure = failure
        self.rejection = rejection
        self.submit_error = submit_error
        self.status_errors = status_errors
        self.lost_responses = lost_responses

        self.submissions: List[str] = []
        self.calls: List[Tuple[str, Optional[str]]] = []
        self._polls: Dict[str, int] = {}

    def is_available(self) -> bool:
        """
        Check if stub transport is available.

        Returns:
            Always True since stub transport has no dependencies
        """
        return True

    def initialize(self, gateway_url: str, verify_ssl: bool = True) -> None:
        self.gateway_url = gateway_url
        self.initialized = True
        logger.debug(f"Initialized stub transport for {gateway_url}")

    def _check_initialized(self) -> None:
        if not self.initialized:
            raise GatewayConnectionError("Stub transport not initialized")

    def _ledger_state(self) -> LedgerState:
        return LedgerState(network="stub", state_version=len(self.submissions), epoch=self.epoch)

    def _terminal_status(self) -> TransactionStatus:
        if self.rejection is not None:
            return TransactionStatus.REJECTED
        if self.failure is not None:
            return TransactionStatus.COMMITTED_FAILURE
        return TransactionStatus.COMMITTED_SUCCESS

    def _current_status(self, intent_hash: str) -> TransactionStatus:
        if not self.submissions:
            return TransactionStatus.UNKNOWN
        if self._polls.get(intent_hash, 0) <= self.pending_polls:
            return TransactionStatus.PENDING
        return self._terminal_status()

    def gateway_status(self) -> GatewayStatus:
        self._check_initialized()
        self.calls.append(("gateway_status", None))
        return GatewayStatus(ledger_state=self._ledger_state())

    def submit(self, notarized_transaction_hex: str) -> SubmissionResult:
        self._check_initialized()
        self.calls.append(("submit", notarized_transaction_hex))
        if self.submit_error is not None:
            raise GatewayResponseError(
                self.submit_error,
                error_code="InvalidTransactionError",
                details={"type": "InvalidTransactionError"},
                status_code=400
            )
        duplicate = notarized_transaction_hex in self.submissions
        if not duplicate:
            self.submissions.append(notarized_transaction_hex)
        logger.info(f"Stub accepted submission #{len(self.submissions)}")
        if self.lost_responses > 0:
            self.lost_responses -= 1
            raise GatewayTimeoutError("Simulated lost submit response")
        return SubmissionResult(duplicate=duplicate)

    def status(self, intent_hash: str) -> TransactionStatusResponse:
        self._check_initialized()
        self.calls.append(("status", intent_hash))
        if self.status_errors > 0:
            self.status_errors -= 1
            raise GatewayConnectionError("Simulated gateway outage")

        self._polls[intent_hash] = self._polls.get(intent_hash, 0) + 1
        status = self._current_status(intent_hash)
        error_message = None
        if status is TransactionStatus.REJECTED:
            error_message = self.rejection
        elif status is TransactionStatus.COMMITTED_FAILURE:
            error_message = self.failure
        return TransactionStatusResponse(status=status, error_message=error_message)

    def committed_details(self, intent_hash: str) -> TransactionDetails:
        self._check_initialized()
        self.calls.append(("details", intent_hash))
        status = self._current_status(intent_hash)
        if not status.is_terminal:
            raise GatewayResponseError(
                f"Transaction {intent_hash} is not committed",
                error_code="TransactionNotFoundError",
                status_code=404
            )

        if status is TransactionStatus.COMMITTED_SUCCESS:
            receipt = TransactionReceipt(
                status=status.value,
                output=[None if o is None else ReceiptOutput(hex=o.hex()) for o in self.outputs],
            )
        else:
            receipt = TransactionReceipt(
                status=status.value,
                error_message=self.failure if self.failure is not None else self.rejection,
            )
        return TransactionDetails(
            ledger_state=self._ledger_state(),
            transaction=CommittedTransaction(intent_hash=intent_hash, epoch=self.epoch, receipt=receipt),
        )

    def close(self) -> None:
        """Close the stub transport (no-op)."""
        pass
