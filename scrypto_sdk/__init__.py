"""
Scrypto SDK - build, notarize and submit ledger transactions through a Gateway.
"""
from .bech32 import AddressBech32Codec, EntityKind, HashBech32Codec, HashKind
from .client import CRYPTO_SCRYPTO_PACKAGE_ADDRESS, ScryptoClient
from .config import NetworkConfig, NetworkContext, NetworkProfile
from .exceptions import (
    AssemblyError,
    AwaitCancelled,
    AwaitError,
    AwaitTimeoutError,
    ChecksumFailure,
    InputError,
    InvalidHeaderError,
    InvalidKeyError,
    InvalidStateError,
    MalformedAddress,
    NetworkMismatch,
    ReceiptError,
    ScryptoSdkError,
    StatusQueryError,
    SubmissionRejected,
    ValueDecodeError,
)
from .models import TransactionStatus
from .receipt import OperationOutcome
from .signer import Ed25519Signer, Secp256k1Signer, Signer, signer_from_hex
from .transaction import Curve, Manifest, ManifestBuilder, TransactionHeader
from .version import __version__

__all__ = [
    "ScryptoClient",
    "CRYPTO_SCRYPTO_PACKAGE_ADDRESS",
    "NetworkConfig",
    "NetworkContext",
    "NetworkProfile",
    "AddressBech32Codec",
    "HashBech32Codec",
    "EntityKind",
    "HashKind",
    "Signer",
    "Secp256k1Signer",
    "Ed25519Signer",
    "signer_from_hex",
    "Curve",
    "Manifest",
    "ManifestBuilder",
    "TransactionHeader",
    "TransactionStatus",
    "OperationOutcome",
    "ScryptoSdkError",
    "InputError",
    "MalformedAddress",
    "ChecksumFailure",
    "NetworkMismatch",
    "InvalidKeyError",
    "AssemblyError",
    "InvalidHeaderError",
    "SubmissionRejected",
    "AwaitCancelled",
    "AwaitError",
    "AwaitTimeoutError",
    "StatusQueryError",
    "InvalidStateError",
    "ReceiptError",
    "ValueDecodeError",
    "__version__",
]
