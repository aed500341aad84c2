"""
Tests for the NetworkConfig module.
"""
from unittest.mock import patch

import pytest

from scrypto_sdk.config import (
    NetworkConfig,
    NetworkContext,
    NetworkProfile,
    default_network,
    gateway_timeout,
    poll_interval,
)

# Sample network configuration
MOCK_NETWORKS = {
    "testnet": {
        "networkId": 240,
        "logicalName": "testnet",
        "hrpSuffix": "test_",
        "gateway": "https://gateway.example.com"
    }
}


class TestNetworkConfig:
    """Test NetworkConfig class."""

    def test_load_networks_cached(self):
        """Networks are served from the cache after the first load."""
        NetworkConfig._networks_cache = MOCK_NETWORKS
        with patch("importlib.resources.files") as mock_files:
            result = NetworkConfig.load_networks()
            mock_files.assert_not_called()
        assert result == MOCK_NETWORKS

    def test_packaged_profiles(self):
        networks = NetworkConfig.load_networks()
        assert set(networks) == {p.value for p in NetworkProfile}

    @pytest.mark.parametrize("name,network_id,suffix", [
        ("mainnet", 0x01, "rdx"),
        ("stokenet", 0x02, "tdx_2_"),
        ("enkinet", 0x21, "tdx_21_"),
        ("mardunet", 0x24, "tdx_24_"),
    ])
    def test_get_context(self, name, network_id, suffix):
        context = NetworkConfig.get_context(name)
        assert context == NetworkContext(id=network_id, name=name, hrp_suffix=suffix)

    def test_get_context_from_profile(self):
        assert NetworkConfig.get_context(NetworkProfile.ENKINET).id == 0x21

    def test_names_are_case_insensitive(self):
        assert NetworkConfig.get_context("Enkinet").name == "enkinet"

    def test_get_network_not_found(self):
        """Unknown networks list the available ones."""
        with pytest.raises(ValueError) as exc_info:
            NetworkConfig.get_network("devnet")
        assert "enkinet" in str(exc_info.value)

    def test_gateway_url_default(self):
        assert NetworkConfig.get_gateway_url("enkinet") == "https://enkinet-gateway.radixdlt.com"

    def test_gateway_url_env_override(self, monkeypatch):
        monkeypatch.setenv("ENKINET_GATEWAY_URL", "https://custom.example.com")
        assert NetworkConfig.get_gateway_url("enkinet") == "https://custom.example.com"

    def test_gateway_url_explicit_override(self, monkeypatch):
        monkeypatch.setenv("ENKINET_GATEWAY_URL", "https://custom.example.com")
        assert NetworkConfig.get_gateway_url("enkinet", override="stub://local") == "stub://local"


class TestNetworkContext:
    def test_id_must_fit_in_byte(self):
        with pytest.raises(ValueError):
            NetworkContext(id=256, name="bad", hrp_suffix="bad_")

    def test_suffix_required(self):
        with pytest.raises(ValueError):
            NetworkContext(id=1, name="bad", hrp_suffix="")

    def test_codecs_are_bound(self, enkinet):
        assert enkinet.address_codec().network is enkinet
        assert enkinet.hash_codec().network is enkinet


class TestEnvironmentSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SCRYPTO_GATEWAY_TIMEOUT", raising=False)
        assert default_network() == "enkinet"
        assert gateway_timeout() == 10
        assert poll_interval() == 1.0

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("SCRYPTO_NETWORK", "mardunet")
        monkeypatch.setenv("SCRYPTO_GATEWAY_TIMEOUT", "30")
        monkeypatch.setenv("SCRYPTO_POLL_INTERVAL", "0.25")
        assert default_network() == "mardunet"
        assert gateway_timeout() == 30
        assert poll_interval() == 0.25
