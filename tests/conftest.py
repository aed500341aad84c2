"""
Pytest fixtures for the Scrypto SDK tests.
"""
import time

import pytest

from scrypto_sdk.config import NetworkConfig, NetworkContext
from scrypto_sdk.gateway._rate_limited_log import reset_rate_limits
from scrypto_sdk.gateway.stub_transport import StubTransport
from scrypto_sdk.signer import Ed25519Signer, Secp256k1Signer
from scrypto_sdk.transaction.manifest import ManifestBuilder

# Arbitrary 30-byte package address
PACKAGE_BYTES = bytes.fromhex("0d97e137ff84f245b7054e9e699652bddc6f4ba036f37a1ff56b886f0d74")


# Make time.sleep instantaneous so polling and retries don't slow the suite down
@pytest.fixture(autouse=True)
def _fast_sleep(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda *_a, **_kw: None)


@pytest.fixture(autouse=True)
def _reset_state(monkeypatch):
    """Fresh rate-limit caches and network profiles for every test."""
    reset_rate_limits()
    NetworkConfig._networks_cache = None
    for var in ("ENKINET_GATEWAY_URL", "SCRYPTO_NETWORK", "SCRYPTO_POLL_INTERVAL", "SCRYPTO_INSECURE_GW"):
        monkeypatch.delenv(var, raising=False)
    yield
    NetworkConfig._networks_cache = None


@pytest.fixture
def enkinet():
    return NetworkContext(id=0x21, name="enkinet", hrp_suffix="tdx_21_")


@pytest.fixture
def signer():
    """Secp256k1 notary with scalar 3 (a throwaway test-network key)."""
    return Secp256k1Signer.from_int(3)


@pytest.fixture
def ed25519_signer():
    return Ed25519Signer(bytes(range(32)))


@pytest.fixture
def manifest():
    return (
        ManifestBuilder()
        .lock_fee_from_faucet()
        .call_function(PACKAGE_BYTES, "CryptoScrypto", "keccak256_hash", [b"hello"])
        .build()
    )


@pytest.fixture
def stub_transport():
    transport = StubTransport()
    transport.initialize("stub://gateway")
    return transport
