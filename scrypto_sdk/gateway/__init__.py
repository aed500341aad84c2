"""
Gateway module for the Scrypto SDK.

This module provides the transports used to reach the ledger Gateway
service, which accepts notarized transactions and reports their status and
committed receipts.
"""
from .exceptions import (
    GatewayConnectionError,
    GatewayError,
    GatewayResponseError,
    GatewayTimeoutError,
)
from .transport import GatewayTransport, get_transport

__all__ = [
    "GatewayTransport",
    "get_transport",
    "GatewayError",
    "GatewayConnectionError",
    "GatewayResponseError",
    "GatewayTimeoutError",
]
