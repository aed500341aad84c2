"""
Notary signers.

The SDK never generates or stores keys; callers hand in "something that can
sign a hash" and it is only borrowed for the duration of notarization.
"""
from typing import Protocol

from ..transaction.header import NotarySignature, PublicKey


class Signer(Protocol):
    """Protocol for notary signers"""
    public_key: PublicKey

    def sign(self, message_hash: bytes) -> NotarySignature:
        """Sign a 32-byte hash and return the signature"""
        ...


from .local import Ed25519Signer, Secp256k1Signer, signer_from_hex, verify_signature  # noqa: E402

__all__ = ["Signer", "Secp256k1Signer", "Ed25519Signer", "signer_from_hex", "verify_signature"]
