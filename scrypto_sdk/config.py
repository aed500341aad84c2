"""
Network configuration for the Scrypto SDK.

Network profiles are a closed set resolved once into an immutable
:class:`NetworkContext`; nothing else in the SDK selects behavior by
network name.
"""
import importlib.resources
import json
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from .bech32 import AddressBech32Codec, HashBech32Codec

DEFAULT_NETWORK = "enkinet"
DEFAULT_GATEWAY_TIMEOUT = 10
DEFAULT_POLL_INTERVAL = 1.0


class NetworkProfile(str, Enum):
    """Known ledger networks"""
    MAINNET = "mainnet"
    STOKENET = "stokenet"
    ENKINET = "enkinet"
    MARDUNET = "mardunet"


@dataclass(frozen=True)
class NetworkContext:
    """
    Static parameters of the target network.

    Attributes:
        id: Network discriminator byte embedded in every transaction header
        name: Logical network name
        hrp_suffix: Suffix appended to each entity prefix in Bech32m text
    """
    id: int
    name: str
    hrp_suffix: str

    def __post_init__(self):
        if not 0 <= self.id <= 0xFF:
            raise ValueError(f"Network id must fit in a byte, got {self.id}")
        if not self.hrp_suffix:
            raise ValueError("Network hrp_suffix must not be empty")

    def address_codec(self) -> AddressBech32Codec:
        return AddressBech32Codec(self)

    def hash_codec(self) -> HashBech32Codec:
        return HashBech32Codec(self)


class NetworkConfig:
    """Network configuration loader"""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load network profiles from the packaged networks.json.

        Returns:
            Dictionary of network name to profile
        """
        if cls._networks_cache is None:
            resource = importlib.resources.files("scrypto_sdk").joinpath("networks.json")
            with resource.open("r", encoding="utf-8") as f:
                cls._networks_cache = json.load(f)
        return cls._networks_cache

    @classmethod
    def get_network(cls, network: Union[str, NetworkProfile]) -> Dict[str, Any]:
        """
        Get a network profile by name.

        Raises:
            ValueError: If the network is not known
        """
        name = network.value if isinstance(network, NetworkProfile) else str(network).lower()
        networks = cls.load_networks()
        if name not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Network '{name}' not found. Available networks: {available}")
        return networks[name]

    @classmethod
    def get_context(cls, network: Union[str, NetworkProfile]) -> NetworkContext:
        """Resolve a profile into a NetworkContext."""
        profile = cls.get_network(network)
        return NetworkContext(
            id=int(profile["networkId"]),
            name=profile["logicalName"],
            hrp_suffix=profile["hrpSuffix"],
        )

    @classmethod
    def get_gateway_url(
        cls,
        network: Union[str, NetworkProfile],
        override: Optional[str] = None
    ) -> str:
        """
        Get the gateway URL for a network.

        Precedence: explicit override, then ``<NETWORK>_GATEWAY_URL``, then
        the profile default.
        """
        if override:
            return override
        profile = cls.get_network(network)
        env_var = f"{profile['logicalName'].upper().replace('-', '_')}_GATEWAY_URL"
        return os.environ.get(env_var) or profile["gateway"]


def default_network() -> str:
    return os.environ.get("SCRYPTO_NETWORK", DEFAULT_NETWORK)


def gateway_timeout() -> int:
    return int(os.environ.get("SCRYPTO_GATEWAY_TIMEOUT", str(DEFAULT_GATEWAY_TIMEOUT)))


def poll_interval() -> float:
    return float(os.environ.get("SCRYPTO_POLL_INTERVAL", str(DEFAULT_POLL_INTERVAL)))
