"""
Transport layer for the ledger Gateway service.

This module provides an abstraction over how the SDK reaches the gateway,
so the submission state machine works the same against the HTTP API and
the in-memory stub used for development and tests.
"""
import logging
import urllib.parse
from abc import ABC, abstractmethod
from typing import Optional

from ..models import GatewayStatus, SubmissionResult, TransactionDetails, TransactionStatusResponse

logger = logging.getLogger(__name__)

STUB_SCHEME = "stub"


class GatewayTransport(ABC):
    """
    Abstract base class for Gateway transport implementations.

    Every call is a single request; retrying is up to the caller. Status
    and details queries are side-effect free and safe to repeat.
    """

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if this transport is available for use.

        Returns:
            True if transport is available, False otherwise
        """
        pass

    @abstractmethod
    def initialize(self, gateway_url: str, verify_ssl: bool = True) -> None:
        """
        Initialize the transport with the given gateway URL.

        Args:
            gateway_url: URL of the gateway service
            verify_ssl: Whether to verify SSL certificates

        Raises:
            ValueError: If the URL is not acceptable
        """
        pass

    @abstractmethod
    def gateway_status(self) -> GatewayStatus:
        """Get gateway status including the current ledger epoch."""
        pass

    @abstractmethod
    def submit(self, notarized_transaction_hex: str) -> SubmissionResult:
        """
        Submit a notarized transaction.

        Raises:
            GatewayResponseError: If the gateway refuses the transaction
            GatewayConnectionError: If the gateway cannot be reached
        """
        pass

    @abstractmethod
    def status(self, intent_hash: str) -> TransactionStatusResponse:
        """Query the status of a transaction by its Bech32m intent hash."""
        pass

    @abstractmethod
    def committed_details(self, intent_hash: str) -> TransactionDetails:
        """Get committed details, including the receipt outputs."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close any open connections or resources."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def get_transport(
    gateway_url: str,
    timeout: Optional[int] = None,
    retry_count: int = 3,
    verify_ssl: bool = True
) -> GatewayTransport:
    """
    Get an initialized transport for the gateway URL.

    ``stub://`` URLs select the in-memory stub; anything else uses HTTP.

    Args:
        gateway_url: URL of the gateway service
        timeout: HTTP timeout in seconds
        retry_count: Connection-level retries for HTTP requests
        verify_ssl: Whether to verify SSL certificates

    Returns:
        Initialized transport
    """
    scheme = urllib.parse.urlparse(gateway_url).scheme
    if scheme == STUB_SCHEME:
        from .stub_transport import StubTransport
        transport: GatewayTransport = StubTransport()
        logger.info("Using stub transport for Gateway")
    else:
        from .http_transport import HttpTransport
        transport = HttpTransport(timeout=timeout, retry_count=retry_count)
        logger.debug("Using HTTP transport for Gateway")
    transport.initialize(gateway_url, verify_ssl=verify_ssl)
    return transport
