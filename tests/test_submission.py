"""
Tests for the submission-confirmation state machine.
"""
import threading
import time
from unittest.mock import MagicMock

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from scrypto_sdk.exceptions import (
    AwaitCancelled,
    AwaitTimeoutError,
    InvalidStateError,
    StatusQueryError,
    SubmissionRejected,
)
from scrypto_sdk.gateway.exceptions import GatewayConnectionError, GatewayTimeoutError
from scrypto_sdk.gateway.stub_transport import StubTransport
from scrypto_sdk.models import SubmissionResult, TransactionStatus, TransactionStatusResponse
from scrypto_sdk.submission import SubmissionState, TransactionSubmission
from scrypto_sdk.transaction import assemble_and_notarize


@pytest.fixture
def transaction(enkinet, signer, manifest):
    transaction, _ = assemble_and_notarize(enkinet, 100, signer, manifest, nonce=1)
    return transaction


def _submission(transport, transaction, enkinet, **kwargs):
    return TransactionSubmission(transport, transaction, enkinet.hash_codec(), poll_interval=0.01, **kwargs)


def _stub(**kwargs):
    transport = StubTransport(**kwargs)
    transport.initialize("stub://gateway")
    return transport


class TestSubmit:
    def test_submit_moves_to_submitted(self, stub_transport, transaction, enkinet):
        submission = _submission(stub_transport, transaction, enkinet)
        assert submission.state is SubmissionState.NEW
        submission.submit()
        assert submission.state is SubmissionState.SUBMITTED
        assert stub_transport.submissions == [transaction.to_hex()]

    def test_intent_hash_is_bech32(self, stub_transport, transaction, enkinet):
        submission = _submission(stub_transport, transaction, enkinet)
        assert submission.intent_hash == transaction.intent_hash.to_bech32(enkinet.hash_codec())

    def test_submit_twice(self, stub_transport, transaction, enkinet):
        submission = _submission(stub_transport, transaction, enkinet)
        submission.submit()
        with pytest.raises(InvalidStateError):
            submission.submit()
        assert len(stub_transport.submissions) == 1

    def test_rejected_submission_is_never_polled(self, transaction, enkinet):
        transport = _stub(submit_error="Invalid transaction")
        submission = _submission(transport, transaction, enkinet)
        with pytest.raises(SubmissionRejected) as exc_info:
            submission.submit()
        assert exc_info.value.code == "InvalidTransactionError"
        assert submission.state is SubmissionState.NEW
        assert [name for name, _ in transport.calls] == ["submit"]
        with pytest.raises(InvalidStateError):
            submission.await_terminal()

    def test_duplicate_is_rejected(self, transaction, enkinet):
        transport = MagicMock()
        transport.submit.return_value = SubmissionResult(duplicate=True)
        submission = _submission(transport, transaction, enkinet)
        with pytest.raises(SubmissionRejected) as exc_info:
            submission.submit()
        assert exc_info.value.code == "DuplicateIntent"
        transport.status.assert_not_called()

    def test_duplicate_from_another_submission_is_rejected(self, stub_transport, transaction, enkinet):
        _submission(stub_transport, transaction, enkinet).submit()
        with pytest.raises(SubmissionRejected) as exc_info:
            _submission(stub_transport, transaction, enkinet).submit()
        assert exc_info.value.code == "DuplicateIntent"

    def test_lost_response_is_resent_and_accepted(self, transaction, enkinet):
        transport = _stub(lost_responses=1)
        submission = _submission(transport, transaction, enkinet)
        submission.submit()
        assert submission.state is SubmissionState.SUBMITTED
        assert [arg for name, arg in transport.calls] == [transaction.to_hex(), transaction.to_hex()]
        assert transport.submissions == [transaction.to_hex()]
        assert submission.await_terminal() is TransactionStatus.COMMITTED_SUCCESS

    def test_resend_budget_exhausted(self, transaction, enkinet):
        transport = _stub(lost_responses=3)
        submission = _submission(transport, transaction, enkinet, submit_retries=2)
        with pytest.raises(GatewayTimeoutError):
            submission.submit()
        assert submission.state is SubmissionState.NEW
        assert [name for name, _ in transport.calls] == ["submit"] * 3

        # The gateway already holds the payload; a later submit of the same one goes through
        submission.submit()
        assert submission.state is SubmissionState.SUBMITTED
        assert len(transport.submissions) == 1

    def test_connection_failure_before_send_then_accepted(self, transaction, enkinet):
        transport = MagicMock()
        transport.submit.side_effect = [GatewayConnectionError("refused"), SubmissionResult()]
        submission = _submission(transport, transaction, enkinet)
        submission.submit()
        assert submission.state is SubmissionState.SUBMITTED
        assert transport.submit.call_count == 2


class TestAwaitTerminal:
    def test_request_ordering(self, stub_transport, transaction, enkinet):
        submission = _submission(stub_transport, transaction, enkinet)
        submission.submit()
        status = submission.await_terminal()
        details = submission.fetch_details()

        assert status is TransactionStatus.COMMITTED_SUCCESS
        assert submission.state is SubmissionState.COMMITTED_SUCCESS
        assert details.get_output(1) == "00"
        names = [name for name, _ in stub_transport.calls]
        assert names == ["submit", "status", "status", "details"]
        assert all(arg == submission.intent_hash for name, arg in stub_transport.calls if name != "submit")

    def test_passes_through_pending(self, transaction, enkinet):
        transport = _stub(pending_polls=3)
        submission = _submission(transport, transaction, enkinet)
        submission.submit()
        states = []
        original = transport.status

        def spy(intent_hash):
            states.append(submission.state)
            return original(intent_hash)

        transport.status = spy
        submission.await_terminal()
        assert states == [
            SubmissionState.SUBMITTED,
            SubmissionState.PENDING,
            SubmissionState.PENDING,
            SubmissionState.PENDING,
        ]

    def test_unknown_is_not_terminal(self, transaction, enkinet):
        transport = MagicMock()
        transport.submit.return_value = SubmissionResult()
        transport.status.side_effect = [
            TransactionStatusResponse(status=TransactionStatus.UNKNOWN),
            TransactionStatusResponse(status=TransactionStatus.PENDING),
            TransactionStatusResponse(status=TransactionStatus.COMMITTED_SUCCESS),
        ]
        submission = _submission(transport, transaction, enkinet)
        submission.submit()
        assert submission.await_terminal() is TransactionStatus.COMMITTED_SUCCESS
        assert transport.status.call_count == 3

    def test_terminal_is_cached(self, stub_transport, transaction, enkinet):
        submission = _submission(stub_transport, transaction, enkinet)
        submission.submit()
        submission.await_terminal()
        calls = len(stub_transport.calls)
        assert submission.await_terminal() is TransactionStatus.COMMITTED_SUCCESS
        assert len(stub_transport.calls) == calls

    def test_committed_failure(self, transaction, enkinet):
        transport = _stub(failure="Panic: boom")
        submission = _submission(transport, transaction, enkinet)
        submission.submit()
        assert submission.await_terminal() is TransactionStatus.COMMITTED_FAILURE
        assert submission.fetch_details().get_error().message == "Panic: boom"

    def test_rejected(self, transaction, enkinet):
        transport = _stub(rejection="Transaction expired")
        submission = _submission(transport, transaction, enkinet)
        submission.submit()
        assert submission.await_terminal() is TransactionStatus.REJECTED
        assert submission.state is SubmissionState.REJECTED
        assert submission.last_status.error_message == "Transaction expired"

    def test_transient_errors_are_retried_without_resubmitting(self, transaction, enkinet):
        transport = _stub(status_errors=2)
        submission = _submission(transport, transaction, enkinet)
        submission.submit()
        assert submission.await_terminal() is TransactionStatus.COMMITTED_SUCCESS
        assert len(transport.submissions) == 1
        assert [name for name, _ in transport.calls].count("submit") == 1

    def test_retry_budget_exhausted(self, transaction, enkinet):
        transport = MagicMock()
        transport.submit.return_value = SubmissionResult()
        transport.status.side_effect = GatewayTimeoutError("timed out")
        submission = _submission(transport, transaction, enkinet, max_query_failures=2)
        submission.submit()
        with pytest.raises(StatusQueryError) as exc_info:
            submission.await_terminal()
        assert transport.status.call_count == 3
        assert exc_info.value.intent_hash == submission.intent_hash


    def test_zero_timeout_queries_once(self, transaction, enkinet):
        transport = _stub(pending_polls=10)
        submission = _submission(transport, transaction, enkinet)
        submission.submit()
        with pytest.raises(AwaitTimeoutError) as exc_info:
            submission.await_terminal(timeout=0)
        assert [name for name, _ in transport.calls] == ["submit", "status"]
        assert submission.state is SubmissionState.PENDING
        assert exc_info.value.intent_hash == submission.intent_hash

    def test_timed_out_submission_can_be_resumed(self, transaction, enkinet):
        transport = _stub(pending_polls=2)
        submission = _submission(transport, transaction, enkinet)
        submission.submit()
        with pytest.raises(AwaitTimeoutError) as exc_info:
            submission.await_terminal(timeout=0)

        resumed = exc_info.value.submission
        assert resumed is submission
        assert resumed.await_terminal() is TransactionStatus.COMMITTED_SUCCESS
        assert resumed.fetch_details().get_output(1) == "00"
        assert len(transport.submissions) == 1

    def test_last_wait_stops_at_deadline(self, monkeypatch, transaction, enkinet):
        clock = [1000.0]
        sleeps = []

        def fake_sleep(seconds):
            sleeps.append(seconds)
            clock[0] += seconds

        monkeypatch.setattr(time, "monotonic", lambda: clock[0])
        monkeypatch.setattr(time, "sleep", fake_sleep)
        transport = _stub(pending_polls=100)
        submission = _submission(transport, transaction, enkinet)
        submission.poll_interval = 1.0
        submission.submit()

        with pytest.raises(AwaitTimeoutError):
            submission.await_terminal(timeout=2.5)
        assert sleeps == [1.0, 1.0, 0.5]
        assert clock[0] == 1002.5
        assert [name for name, _ in transport.calls].count("status") == 4

    def test_cancellable_wait_stops_at_deadline(self, monkeypatch, transaction, enkinet):
        clock = [0.0]
        waits = []

        class _Event:
            def is_set(self):
                return False

            def wait(self, seconds):
                waits.append(seconds)
                clock[0] += seconds
                return False

        monkeypatch.setattr(time, "monotonic", lambda: clock[0])
        transport = _stub(pending_polls=100)
        submission = _submission(transport, transaction, enkinet)
        submission.poll_interval = 4.0
        submission.submit()

        with pytest.raises(AwaitTimeoutError):
            submission.await_terminal(timeout=3.0, cancel_event=_Event())
        assert waits == [3.0]
        assert clock[0] == 3.0

    @settings(max_examples=20, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(queries=st.integers(min_value=1, max_value=25))
    def test_status_queries_are_idempotent(self, transaction, enkinet, queries):
        transport = _stub(pending_polls=1000)
        submission = _submission(transport, transaction, enkinet)
        submission.submit()

        results = [transport.status(submission.intent_hash) for _ in range(queries)]
        assert all(result == results[0] for result in results)
        assert results[0].status is TransactionStatus.PENDING
        assert len(transport.submissions) == 1

    def test_cancel_before_first_poll(self, stub_transport, transaction, enkinet):
        submission = _submission(stub_transport, transaction, enkinet)
        submission.submit()
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(AwaitCancelled) as exc_info:
            submission.await_terminal(cancel_event=cancel)
        assert [name for name, _ in stub_transport.calls] == ["submit"]
        assert exc_info.value.intent_hash == submission.intent_hash

    def test_cancel_while_waiting(self, transaction, enkinet):
        transport = _stub(pending_polls=1000)
        submission = TransactionSubmission(transport, transaction, enkinet.hash_codec(), poll_interval=5)
        submission.submit()
        cancel = threading.Event()
        timer = threading.Timer(0.05, cancel.set)
        timer.start()
        try:
            with pytest.raises(AwaitCancelled):
                submission.await_terminal(cancel_event=cancel)
        finally:
            timer.cancel()
        assert submission.state is SubmissionState.PENDING

    def test_await_before_submit(self, stub_transport, transaction, enkinet):
        with pytest.raises(InvalidStateError):
            _submission(stub_transport, transaction, enkinet).await_terminal()


class TestFetchDetails:
    def test_not_before_terminal(self, stub_transport, transaction, enkinet):
        submission = _submission(stub_transport, transaction, enkinet)
        submission.submit()
        with pytest.raises(InvalidStateError):
            submission.fetch_details()
        assert "details" not in [name for name, _ in stub_transport.calls]

    def test_details_are_cached(self, stub_transport, transaction, enkinet):
        submission = _submission(stub_transport, transaction, enkinet)
        submission.submit()
        submission.await_terminal()
        first = submission.fetch_details()
        assert submission.fetch_details() is first
        assert [name for name, _ in stub_transport.calls].count("details") == 1

    def test_transient_details_errors_are_retried(self, stub_transport, transaction, enkinet):
        submission = _submission(stub_transport, transaction, enkinet)
        submission.submit()
        submission.await_terminal()
        original = stub_transport.committed_details
        failures = [GatewayConnectionError("reset")]

        def flaky(intent_hash):
            if failures:
                raise failures.pop()
            return original(intent_hash)

        stub_transport.committed_details = flaky
        assert submission.fetch_details().get_output(1) == "00"
