"""
Tests for the high-level ScryptoClient.
"""
import threading
from unittest.mock import MagicMock

import pytest

from scrypto_sdk import ScryptoClient
from scrypto_sdk.bech32 import EntityKind
from scrypto_sdk.client import CRYPTO_SCRYPTO_PACKAGE_ADDRESS
from scrypto_sdk.exceptions import (
    AwaitCancelled,
    AwaitTimeoutError,
    InputError,
    InvalidHeaderError,
    MalformedAddress,
    NetworkMismatch,
    SubmissionRejected,
)
from scrypto_sdk.gateway.http_transport import HttpTransport
from scrypto_sdk.gateway.stub_transport import StubTransport
from scrypto_sdk.models import TransactionStatus
from scrypto_sdk.transaction import CanonicalValueCodec, ManifestBuilder

codec = CanonicalValueCodec()


def _client(enkinet, signer, transport, **kwargs):
    return ScryptoClient(enkinet, signer, transport=transport, poll_interval=0, **kwargs)


def _stub(**kwargs):
    transport = StubTransport(**kwargs)
    transport.initialize("stub://gateway")
    return transport


class TestConstruction:
    def test_from_network_uses_profile_gateway(self, signer):
        client = ScryptoClient.from_network("enkinet", signer)
        assert client.network.id == 0x21
        assert client.gateway_url == "https://enkinet-gateway.radixdlt.com"
        assert isinstance(client.transport, HttpTransport)
        client.close()

    def test_gateway_env_override(self, signer, monkeypatch):
        monkeypatch.setenv("ENKINET_GATEWAY_URL", "stub://env")
        client = ScryptoClient.from_network("enkinet", signer)
        assert isinstance(client.transport, StubTransport)

    def test_explicit_context_needs_gateway(self, enkinet, signer):
        with pytest.raises(ValueError):
            ScryptoClient(enkinet, signer)

    def test_signer_required(self):
        with pytest.raises(ValueError):
            ScryptoClient.from_network("enkinet", None, gateway_url="stub://local")

    def test_unknown_network(self, signer):
        with pytest.raises(ValueError):
            ScryptoClient.from_network("devnet", signer)

    def test_context_manager_closes_transport(self, enkinet, signer):
        transport = MagicMock()
        with _client(enkinet, signer, transport):
            pass
        transport.close.assert_called_once()


class TestExecute:
    def test_success(self, enkinet, signer, manifest):
        transport = _stub(outputs=[b"\x00", codec.encode(b"\x11" * 32)])
        outcome = _client(enkinet, signer, transport).execute(manifest)

        assert outcome.ok
        assert outcome.status is TransactionStatus.COMMITTED_SUCCESS
        assert outcome.decode() == b"\x11" * 32
        assert outcome.intent_hash.startswith("txid_tdx_21_1")
        names = [name for name, _ in transport.calls]
        assert names == ["gateway_status", "submit", "status", "status", "details"]

    def test_header_uses_gateway_epoch(self, enkinet, signer, manifest):
        transport = _stub(epoch=4242)
        client = _client(enkinet, signer, transport)
        transaction, _ = client.build_transaction(manifest)
        assert transaction.header.start_epoch == 4242
        assert transaction.header.end_epoch == 4252
        assert transaction.header.network_id == 0x21

    def test_empty_validity_window_fails_before_gateway(self, enkinet, signer, manifest):
        transport = MagicMock()
        client = _client(enkinet, signer, transport, validity_epochs=0)
        with pytest.raises(InvalidHeaderError):
            client.execute(manifest)
        assert transport.method_calls == []

    def test_committed_failure_is_an_outcome(self, enkinet, signer, manifest):
        transport = _stub(failure="Panic: keccak input too large")
        outcome = _client(enkinet, signer, transport).execute(manifest)
        assert not outcome.ok
        assert outcome.status is TransactionStatus.COMMITTED_FAILURE
        assert outcome.output is None
        assert outcome.error.message == "Panic: keccak input too large"

    def test_rejection_skips_details(self, enkinet, signer, manifest):
        transport = _stub(rejection="Transaction expired")
        outcome = _client(enkinet, signer, transport).execute(manifest)
        assert outcome.status is TransactionStatus.REJECTED
        assert outcome.error.message == "Transaction expired"
        assert "details" not in [name for name, _ in transport.calls]

    def test_submission_rejected(self, enkinet, signer, manifest):
        transport = _stub(submit_error="Invalid transaction")
        with pytest.raises(SubmissionRejected):
            _client(enkinet, signer, transport).execute(manifest)
        assert "status" not in [name for name, _ in transport.calls]

    def test_explicit_slot_index(self, enkinet, signer, manifest):
        transport = _stub(outputs=[codec.encode("fee"), codec.encode("result")])
        outcome = _client(enkinet, signer, transport).execute(manifest, slot_index=0)
        assert outcome.decode() == "fee"

    def test_manifest_without_result(self, enkinet, signer):
        manifest = ManifestBuilder().lock_fee_from_faucet().build()
        transport = MagicMock()
        with pytest.raises(InputError):
            _client(enkinet, signer, transport).execute(manifest)
        transport.gateway_status.assert_not_called()

    def test_cancel(self, enkinet, signer, manifest):
        transport = _stub(pending_polls=100)
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(AwaitCancelled) as exc_info:
            _client(enkinet, signer, transport).execute(manifest, cancel_event=cancel)
        assert len(transport.submissions) == 1
        assert exc_info.value.intent_hash.startswith("txid_tdx_21_1")

    def test_timeout_keeps_the_submission(self, enkinet, signer, manifest):
        transport = _stub(pending_polls=1)
        with pytest.raises(AwaitTimeoutError) as exc_info:
            _client(enkinet, signer, transport).execute(manifest, timeout=0)

        submission = exc_info.value.submission
        assert submission.intent_hash == exc_info.value.intent_hash
        assert submission.await_terminal() is TransactionStatus.COMMITTED_SUCCESS
        assert len(transport.submissions) == 1

    def test_fresh_nonce_per_transaction(self, enkinet, signer, manifest):
        transport = _stub()
        client = _client(enkinet, signer, transport)
        first = client.execute(manifest)
        second = client.execute(manifest)
        assert first.intent_hash != second.intent_hash
        assert len(transport.submissions) == 2


class TestOperations:
    def test_keccak256_hash(self, enkinet, signer):
        transport = _stub(outputs=[b"\x00", codec.encode(b"\x22" * 32)])
        client = _client(enkinet, signer, transport)
        outcome = client.keccak256_hash(CRYPTO_SCRYPTO_PACKAGE_ADDRESS, b"hello")
        assert outcome.decode() == b"\x22" * 32

        submitted = bytes.fromhex(transport.submissions[0])
        assert b"keccak256_hash" in submitted
        assert b"CryptoScrypto" in submitted

    def test_keccak256_hash_raw_address(self, enkinet, signer):
        transport = _stub(outputs=[b"\x00", codec.encode(b"\x22" * 32)])
        outcome = _client(enkinet, signer, transport).keccak256_hash(bytes(30), b"hello")
        assert outcome.ok

    def test_wrong_network_address(self, enkinet, signer):
        mardunet_address = CRYPTO_SCRYPTO_PACKAGE_ADDRESS.replace("tdx_21_", "tdx_24_")
        transport = MagicMock()
        with pytest.raises(MalformedAddress):
            _client(enkinet, signer, transport).keccak256_hash(mardunet_address, b"hello")
        transport.gateway_status.assert_not_called()

    def test_network_mismatch(self, enkinet, signer):
        from scrypto_sdk.config import NetworkContext

        mardunet = NetworkContext(id=0x24, name="mardunet", hrp_suffix="tdx_24_")
        address = mardunet.address_codec().encode(bytes(30), EntityKind.PACKAGE)
        with pytest.raises(NetworkMismatch):
            _client(enkinet, signer, MagicMock()).keccak256_hash(address, b"hello")

    def test_bls12381_verify(self, enkinet, signer):
        transport = _stub(outputs=[b"\x00", codec.encode(True)])
        outcome = _client(enkinet, signer, transport).bls12381_verify(
            CRYPTO_SCRYPTO_PACKAGE_ADDRESS, b"msg", b"\x01" * 48, b"\x02" * 96
        )
        assert outcome.decode() is True
        assert b"bls12381_v1_verify" in bytes.fromhex(transport.submissions[0])

    def test_publish_package(self, enkinet, signer):
        transport = _stub(outputs=[b"\x00", codec.encode(b"\x0d" + bytes(29))])
        outcome = _client(enkinet, signer, transport).publish_package(b"\x00asm", b"definition", {"name": "demo"})
        address = enkinet.address_codec().encode(outcome.decode(), EntityKind.PACKAGE)
        assert address.startswith("package_tdx_21_1")
        assert b"\x00asm" in bytes.fromhex(transport.submissions[0])

    def test_publish_requires_code(self, enkinet, signer):
        with pytest.raises(InputError):
            _client(enkinet, signer, MagicMock()).publish_package(b"", b"definition")
