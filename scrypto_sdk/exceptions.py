"""
Exceptions for the Scrypto SDK.
"""
from typing import Any, Dict, Optional


class ScryptoSdkError(Exception):
    """Base exception for all Scrypto SDK errors"""
    pass


class InputError(ScryptoSdkError, ValueError):
    """Raised when user-supplied input is malformed. Detected before any network call."""
    pass


class MalformedAddress(InputError):
    """Raised when a Bech32m address or hash string cannot be decoded"""
    pass


class ChecksumFailure(MalformedAddress):
    """Raised when the Bech32m checksum does not verify"""
    pass


class NetworkMismatch(MalformedAddress):
    """Raised when the human-readable prefix belongs to another network"""
    pass


class InvalidKeyError(InputError):
    """Raised when private key, public key or signature text is malformed"""
    pass


class AssemblyError(ScryptoSdkError):
    """Raised when a transaction cannot be built or serialized. Never retried."""
    pass


class InvalidHeaderError(AssemblyError, ValueError):
    """Raised when a transaction header violates its invariants"""
    pass


class SubmissionRejected(ScryptoSdkError):
    """
    Raised when the gateway refuses a transaction at submission time.

    The caller may build a new transaction (new nonce and epoch window) and
    try again; the rejected one is never retried or polled.
    """

    def __init__(
        self,
        message: str,
        code: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.details = details or {}
        super().__init__(message)


class AwaitError(ScryptoSdkError):
    """
    Raised when waiting for a submitted transaction stopped early.

    The transaction is already with the gateway. ``intent_hash`` identifies
    it and ``submission`` (when set) can resume waiting or fetch the receipt.
    """

    def __init__(self, message: str, submission: Optional[Any] = None):
        self.submission = submission
        self.intent_hash: Optional[str] = getattr(submission, "intent_hash", None)
        super().__init__(message)


class AwaitCancelled(AwaitError):
    """Raised when waiting for a terminal status was cancelled by the caller"""
    pass


class AwaitTimeoutError(AwaitError):
    """Raised when a transaction did not reach a terminal status in time"""
    pass


class StatusQueryError(AwaitError):
    """Raised when status queries kept failing beyond the retry budget"""
    pass


class InvalidStateError(ScryptoSdkError):
    """Raised when a submission operation is called out of order"""
    pass


class ReceiptError(ScryptoSdkError):
    """Raised when a receipt carries neither the requested output nor an error"""
    pass


class ValueDecodeError(ScryptoSdkError, ValueError):
    """Raised when encoded output bytes cannot be decoded into a value"""
    pass
