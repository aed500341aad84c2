"""
HTTP transport for the ledger Gateway API.
"""
import logging
import os
import urllib.parse
from typing import Any, Dict, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import gateway_timeout
from ..models import GatewayStatus, SubmissionResult, TransactionDetails, TransactionStatusResponse
from .exceptions import GatewayConnectionError, GatewayResponseError, GatewayTimeoutError
from .transport import GatewayTransport

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


class HttpTransport(GatewayTransport):
    """
    Gateway transport over the JSON HTTP API.

    Status and details queries are side-effect free, so their session retries
    connect, read and 5xx failures. Submissions go through a second session
    that only retries connection failures, where the request never left this
    host; a submit whose response was lost surfaces as a timeout instead of
    being replayed. Anything that still fails is mapped onto the gateway
    exception types.
    """

    def __init__(self, timeout: Optional[float] = None, retry_count: int = 3):
        """
        Initialize the transport.

        Args:
            timeout: Request timeout in seconds (default: SCRYPTO_GATEWAY_TIMEOUT or 10)
            retry_count: Number of connection-level retries per request
        """
        self.gateway_url: Optional[str] = None
        self.timeout = timeout or gateway_timeout()
        self.retry_count = retry_count
        self.session: Optional[requests.Session] = None
        self.submit_session: Optional[requests.Session] = None

    def is_available(self) -> bool:
        return True

    def initialize(self, gateway_url: str, verify_ssl: bool = True) -> None:
        self._validate_gateway_url(gateway_url)
        self.gateway_url = gateway_url.rstrip("/")

        query_retries = Retry(
            total=self.retry_count,
            backoff_factor=0.5,
            status_forcelist=[502, 503, 504],
            allowed_methods=["GET", "POST"],
            raise_on_status=False,
            connect=self.retry_count,
            read=self.retry_count,
            other=self.retry_count
        )
        submit_retries = Retry(
            total=self.retry_count,
            backoff_factor=0.5,
            allowed_methods=["GET"],
            raise_on_status=False,
            connect=self.retry_count,
            read=0,
            status=0,
            other=0
        )
        self.session = self._new_session(query_retries, verify_ssl)
        self.submit_session = self._new_session(submit_retries, verify_ssl)
        logger.debug(f"Initialized HTTP transport for {self.gateway_url}")

    @staticmethod
    def _new_session(retries: Retry, verify_ssl: bool) -> requests.Session:
        session = requests.Session()
        session.verify = verify_ssl
        session.mount("http://", HTTPAdapter(max_retries=retries))
        session.mount("https://", HTTPAdapter(max_retries=retries))
        return session

    def _validate_gateway_url(self, url: str) -> None:
        """
        Validate the gateway URL is secure.

        Raises:
            ValueError: If URL is invalid or uses insecure HTTP
        """
        parsed = urllib.parse.urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"Invalid gateway URL '{url}'")
        is_local = parsed.hostname in LOCAL_HOSTS
        if parsed.scheme != "https" and not is_local and os.environ.get("SCRYPTO_INSECURE_GW") != "1":
            raise ValueError(
                f"Gateway URL must use HTTPS for security (got: {parsed.scheme}://). "
                "Set SCRYPTO_INSECURE_GW=1 to allow HTTP for development."
            )

    def _post(
        self,
        path: str,
        body: Dict[str, Any],
        model: Type[M],
        session: Optional[requests.Session] = None
    ) -> M:
        if session is None:
            session = self.session
        if session is None:
            raise GatewayConnectionError("HTTP transport not initialized")
        url = f"{self.gateway_url}{path}"

        try:
            response = session.post(url, json=body, timeout=self.timeout)
        except requests.Timeout as e:
            raise GatewayTimeoutError(f"Gateway request to {path} timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise GatewayConnectionError(f"Gateway request to {path} failed: {e}") from e

        if response.status_code >= 500:
            raise GatewayConnectionError(f"Gateway returned {response.status_code} for {path}")

        try:
            payload = response.json()
        except ValueError as e:
            raise GatewayResponseError(
                f"Invalid JSON response from gateway for {path}: {e}",
                status_code=response.status_code
            ) from e

        if response.status_code >= 400:
            raise self._error_from_body(path, response.status_code, payload)

        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise GatewayResponseError(
                f"Unexpected gateway response for {path}: {e}",
                status_code=response.status_code
            ) from e

    @staticmethod
    def _error_from_body(path: str, status_code: int, payload: Any) -> GatewayResponseError:
        if not isinstance(payload, dict):
            return GatewayResponseError(f"Gateway returned {status_code} for {path}", status_code=status_code)
        details = payload.get("details") or {}
        error_code = details.get("type") if isinstance(details, dict) else None
        return GatewayResponseError(
            payload.get("message") or f"Gateway returned {status_code} for {path}",
            error_code=error_code or payload.get("code"),
            details=details if isinstance(details, dict) else {"details": details},
            status_code=status_code,
        )

    def gateway_status(self) -> GatewayStatus:
        return self._post("/status/gateway-status", {}, GatewayStatus)

    def submit(self, notarized_transaction_hex: str) -> SubmissionResult:
        if self.submit_session is None:
            raise GatewayConnectionError("HTTP transport not initialized")
        return self._post(
            "/transaction/submit",
            {"notarized_transaction_hex": notarized_transaction_hex},
            SubmissionResult,
            session=self.submit_session,
        )

    def status(self, intent_hash: str) -> TransactionStatusResponse:
        return self._post("/transaction/status", {"intent_hash": intent_hash}, TransactionStatusResponse)

    def committed_details(self, intent_hash: str) -> TransactionDetails:
        return self._post(
            "/transaction/committed-details",
            {"intent_hash": intent_hash, "opt_ins": {"receipt_output": True}},
            TransactionDetails,
        )

    def close(self) -> None:
        for session in (self.session, self.submit_session):
            if session is not None:
                session.close()
            logger.debug("HTTP session closed.")
