"""
Exceptions for the Gateway module.
"""
from typing import Any, Dict, Optional

from ..exceptions import ScryptoSdkError


class GatewayError(ScryptoSdkError):
    """Base exception for Gateway-related errors."""
    pass


class GatewayConnectionError(GatewayError):
    """Raised when connection to the Gateway service fails or it answers with a 5xx."""
    pass


class GatewayTimeoutError(GatewayError):
    """Raised when a Gateway request times out."""
    pass


class GatewayResponseError(GatewayError):
    """Raised when the Gateway service returns an error response."""

    def __init__(
        self,
        message: str,
        error_code: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None
    ):
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(message)


# Errors worth retrying when the request itself is side-effect free
TRANSIENT_ERRORS = (GatewayConnectionError, GatewayTimeoutError)
