"""
ScryptoClient - Main client for running operations on the ledger.
"""
import logging
import threading
from typing import Dict, Optional, Tuple, Union

from .bech32 import EntityKind
from .config import NetworkConfig, NetworkContext, NetworkProfile
from .exceptions import InputError, InvalidHeaderError
from .gateway.transport import GatewayTransport, get_transport
from .models import ErrorDescriptor, GatewayStatus, TransactionStatus
from .receipt import OperationOutcome, operation_outcome
from .signer import Signer
from .submission import TransactionSubmission
from .transaction.encoding import CanonicalEncoder, TransactionEncoder
from .transaction.header import DEFAULT_VALIDITY_EPOCHS
from .transaction.manifest import Manifest, ManifestBuilder
from .transaction.notary import IntentHash, NotarizedTransaction, assemble_and_notarize

CRYPTO_SCRYPTO_BLUEPRINT_NAME = "CryptoScrypto"

# Package published on enkinet exposing the CryptoScrypto blueprint
CRYPTO_SCRYPTO_PACKAGE_ADDRESS = "package_tdx_21_1pkt7zdllsneytdc9g60xn9jjhhwx7jaqxmeh58l4dwyx7rt5z9428f"


class ScryptoClient:
    """
    Client for running operations on the ledger through a Gateway.

    Every operation follows the same pipeline:
    1. Read the current epoch from the gateway
    2. Assemble and notarize the transaction
    3. Submit it and poll until a terminal status
    4. Fetch the receipt and extract the operation's output slot

    To use this client, you'll need:
    - A network (profile name or NetworkContext)
    - A notary signer
    - A gateway URL, unless the network profile provides one, or a transport
    """

    def __init__(
        self,
        network: Union[str, NetworkProfile, NetworkContext],
        signer: Signer,
        gateway_url: Optional[str] = None,
        transport: Optional[GatewayTransport] = None,
        timeout: Optional[int] = None,
        retry_count: int = 3,
        poll_interval: Optional[float] = None,
        max_query_failures: Optional[int] = None,
        validity_epochs: int = DEFAULT_VALIDITY_EPOCHS,
        encoder: Optional[TransactionEncoder] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the ScryptoClient

        Args:
            network: Network profile name or a resolved NetworkContext
            signer: Notary signer; only borrowed while notarizing
            gateway_url: Gateway URL (defaults to the network profile's gateway)
            transport: Pre-built transport; overrides gateway_url
            timeout: HTTP timeout in seconds
            retry_count: Connection-level retries for HTTP requests
            poll_interval: Seconds between status queries
            max_query_failures: Consecutive transient status failures tolerated (None = unbounded)
            validity_epochs: Length of each transaction's epoch window
            encoder: Transaction encoder (canonical encoder by default)
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ValueError: If no gateway can be determined or the network is unknown
        """
        if signer is None:
            raise ValueError("A notary signer must be provided")

        if isinstance(network, NetworkContext):
            self.network = network
            if transport is None and gateway_url is None:
                raise ValueError("gateway_url or transport is required with an explicit NetworkContext")
        else:
            self.network = NetworkConfig.get_context(network)
            if transport is None:
                gateway_url = NetworkConfig.get_gateway_url(network, override=gateway_url)

        self.signer = signer
        self.gateway_url = gateway_url
        self.poll_interval = poll_interval
        self.max_query_failures = max_query_failures
        self.validity_epochs = validity_epochs
        self.encoder = encoder or CanonicalEncoder()
        self.logger = logger or logging.getLogger(__name__)

        self.address_codec = self.network.address_codec()
        self.hash_codec = self.network.hash_codec()
        self.transport = transport or get_transport(gateway_url, timeout=timeout, retry_count=retry_count)

    @classmethod
    def from_network(
        cls,
        network: Union[str, NetworkProfile],
        signer: Signer,
        gateway_url: Optional[str] = None,
        **kwargs
    ) -> "ScryptoClient":
        """
        Create a client for a named network profile.

        The gateway URL resolves from the override, then
        ``<NETWORK>_GATEWAY_URL``, then the profile.
        """
        return cls(network=network, signer=signer, gateway_url=gateway_url, **kwargs)

    def gateway_status(self) -> GatewayStatus:
        return self.transport.gateway_status()

    def current_epoch(self) -> int:
        return self.gateway_status().ledger_state.epoch

    def build_transaction(
        self,
        manifest: Manifest,
        current_epoch: Optional[int] = None
    ) -> Tuple[NotarizedTransaction, IntentHash]:
        """
        Assemble and notarize a manifest for the current (or given) epoch.

        Raises:
            InvalidHeaderError: If the validity window is empty
            AssemblyError: If the transaction cannot be encoded
        """
        if self.validity_epochs < 1:
            raise InvalidHeaderError(f"validity_epochs must be at least 1, got {self.validity_epochs}")
        epoch = self.current_epoch() if current_epoch is None else current_epoch
        return assemble_and_notarize(
            self.network,
            epoch,
            self.signer,
            manifest,
            validity_epochs=self.validity_epochs,
            encoder=self.encoder,
        )

    def execute(
        self,
        manifest: Manifest,
        slot_index: Optional[int] = None,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> OperationOutcome:
        """
        Run a manifest on the ledger and return the operation's outcome.

        Args:
            manifest: Instructions to execute
            slot_index: Receipt output slot holding the result (defaults to
                ``manifest.result_slot``)
            timeout: Seconds to wait for a terminal status (None = no limit)
            cancel_event: Event that stops the wait when set

        Returns:
            OperationOutcome with output bytes on success, or the error
            descriptor on a committed failure or rejection

        Raises:
            InputError: If the manifest has no result slot and none was given
            AssemblyError: If the transaction cannot be built (before any gateway call)
            SubmissionRejected: If the gateway refuses the transaction
            AwaitError: If waiting stopped early (AwaitCancelled, AwaitTimeoutError
                or StatusQueryError); its ``intent_hash`` and ``submission``
                identify the transaction, which may still commit
            GatewayError: For other gateway failures
        """
        slot = manifest.result_slot if slot_index is None else slot_index
        if slot is None:
            raise InputError("Manifest has no result-producing instruction; pass slot_index explicitly")

        transaction, _ = self.build_transaction(manifest)
        submission = TransactionSubmission(
            self.transport,
            transaction,
            self.hash_codec,
            poll_interval=self.poll_interval,
            max_query_failures=self.max_query_failures,
        )
        submission.submit()
        self.logger.info(f"Transaction submitted: {submission.intent_hash}")

        status = submission.await_terminal(timeout=timeout, cancel_event=cancel_event)
        if status is TransactionStatus.REJECTED:
            # Rejected transactions never commit, so the status carries the reason
            message = submission.last_status.error_message or "Transaction rejected"
            self.logger.warning(f"Transaction {submission.intent_hash} rejected: {message}")
            return OperationOutcome(
                status=status,
                intent_hash=submission.intent_hash,
                error=ErrorDescriptor(status=status.value, message=message),
            )

        details = submission.fetch_details()
        outcome = operation_outcome(details, slot, status, submission.intent_hash)
        if outcome.error is not None:
            self.logger.warning(f"Transaction {submission.intent_hash} failed: {outcome.error.message}")
        return outcome

    def _package_address(self, package_address: Union[str, bytes]) -> bytes:
        if isinstance(package_address, str):
            return self.address_codec.decode(package_address, expected_kind=EntityKind.PACKAGE)
        if len(package_address) != EntityKind.PACKAGE.length:
            raise InputError(
                f"Package address must be {EntityKind.PACKAGE.length} bytes, got {len(package_address)}"
            )
        return bytes(package_address)

    def keccak256_hash(
        self,
        package_address: Union[str, bytes],
        data: bytes,
        **kwargs
    ) -> OperationOutcome:
        """
        Hash data with keccak-256 on the ledger.

        Raises:
            MalformedAddress: If the package address is invalid
        """
        manifest = (
            ManifestBuilder()
            .lock_fee_from_faucet()
            .call_function(
                self._package_address(package_address),
                CRYPTO_SCRYPTO_BLUEPRINT_NAME,
                "keccak256_hash",
                [bytes(data)],
            )
            .build()
        )
        return self.execute(manifest, **kwargs)

    def bls12381_verify(
        self,
        package_address: Union[str, bytes],
        message: bytes,
        public_key: bytes,
        signature: bytes,
        **kwargs
    ) -> OperationOutcome:
        """Verify a BLS12-381 signature on the ledger; the output decodes to a bool."""
        manifest = (
            ManifestBuilder()
            .lock_fee_from_faucet()
            .call_function(
                self._package_address(package_address),
                CRYPTO_SCRYPTO_BLUEPRINT_NAME,
                "bls12381_v1_verify",
                [bytes(message), bytes(public_key), bytes(signature)],
            )
            .build()
        )
        return self.execute(manifest, **kwargs)

    def publish_package(
        self,
        code: bytes,
        definition: bytes,
        metadata: Optional[Dict[str, str]] = None,
        **kwargs
    ) -> OperationOutcome:
        """Publish a package; the output holds the new package address."""
        if not code:
            raise InputError("Package code must not be empty")
        if not definition:
            raise InputError("Package definition must not be empty")
        manifest = (
            ManifestBuilder()
            .lock_fee_from_faucet()
            .publish_package(code, definition, metadata)
            .build()
        )
        return self.execute(manifest, **kwargs)

    def close(self) -> None:
        self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
