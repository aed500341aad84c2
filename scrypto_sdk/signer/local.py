"""
In-process signers backed by raw private key bytes.
"""
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from ..exceptions import InvalidKeyError
from ..transaction.header import Curve, NotarySignature, PublicKey
from .ec_constants import (
    ED25519_PRIVATE_KEY_LENGTH,
    ED25519_SIGNATURE_LENGTH,
    SECP256K1_MAX,
    SECP256K1_MIN,
    SECP256K1_SIGNATURE_LENGTH,
)

HASH_LENGTH = 32


def _parse_key_bytes(key: Union[str, bytes]) -> bytes:
    if isinstance(key, (bytes, bytearray)):
        return bytes(key)
    text = key.strip()
    if text.startswith("0x"):
        text = text[2:]
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise InvalidKeyError("Private key must be hex encoded") from None


def _check_hash(message_hash: bytes) -> bytes:
    if len(message_hash) != HASH_LENGTH:
        raise ValueError(f"Expected a {HASH_LENGTH}-byte hash, got {len(message_hash)} bytes")
    return bytes(message_hash)


class Secp256k1Signer:
    """
    Secp256k1 signer producing 65-byte recoverable signatures laid out v||r||s.

    Args:
        private_key: 32-byte key, raw or hex (with or without 0x)

    Raises:
        InvalidKeyError: If the key is malformed or out of range
    """

    curve = Curve.SECP256K1

    def __init__(self, private_key: Union[str, bytes]):
        key_bytes = _parse_key_bytes(private_key)
        if len(key_bytes) != 32:
            raise InvalidKeyError(f"Secp256k1 private key must be 32 bytes, got {len(key_bytes)}")
        if not SECP256K1_MIN <= int.from_bytes(key_bytes, "big") <= SECP256K1_MAX:
            raise InvalidKeyError("Secp256k1 private key is outside the curve order")
        try:
            self._key = keys.PrivateKey(key_bytes)
        except ValidationError as e:
            raise InvalidKeyError(f"Invalid secp256k1 private key: {e}") from e
        self.public_key = PublicKey(Curve.SECP256K1, self._key.public_key.to_compressed_bytes())

    @classmethod
    def from_int(cls, value: int) -> "Secp256k1Signer":
        """Build a signer from an integer scalar (test networks only)."""
        if not SECP256K1_MIN <= value <= SECP256K1_MAX:
            raise InvalidKeyError("Secp256k1 private key is outside the curve order")
        return cls(value.to_bytes(32, "big"))

    def sign(self, message_hash: bytes) -> NotarySignature:
        signature = self._key.sign_msg_hash(_check_hash(message_hash))
        raw = bytes((signature.v,)) + signature.r.to_bytes(32, "big") + signature.s.to_bytes(32, "big")
        return NotarySignature(Curve.SECP256K1, raw)

    def __repr__(self) -> str:
        return f"Secp256k1Signer(public_key={self.public_key.hex()})"


class Ed25519Signer:
    """
    Ed25519 signer producing 64-byte signatures.

    Args:
        private_key: 32-byte seed, raw or hex (with or without 0x)

    Raises:
        InvalidKeyError: If the key is malformed
    """

    curve = Curve.ED25519

    def __init__(self, private_key: Union[str, bytes, Ed25519PrivateKey]):
        if isinstance(private_key, Ed25519PrivateKey):
            self._key = private_key
        else:
            key_bytes = _parse_key_bytes(private_key)
            if len(key_bytes) != ED25519_PRIVATE_KEY_LENGTH:
                raise InvalidKeyError(
                    f"Ed25519 private key must be {ED25519_PRIVATE_KEY_LENGTH} bytes, got {len(key_bytes)}"
                )
            self._key = Ed25519PrivateKey.from_private_bytes(key_bytes)
        self.public_key = PublicKey(
            Curve.ED25519,
            self._key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw),
        )

    def sign(self, message_hash: bytes) -> NotarySignature:
        return NotarySignature(Curve.ED25519, self._key.sign(_check_hash(message_hash)))

    def __repr__(self) -> str:
        return f"Ed25519Signer(public_key={self.public_key.hex()})"


def signer_from_hex(private_key: str, curve: Union[str, Curve] = Curve.SECP256K1):
    """
    Create a signer from hex key text.

    Raises:
        InvalidKeyError: If the key text or curve is invalid
    """
    try:
        curve = Curve(curve)
    except ValueError:
        raise InvalidKeyError(f"Unsupported curve '{curve}'") from None
    if curve is Curve.ED25519:
        return Ed25519Signer(private_key)
    return Secp256k1Signer(private_key)


def verify_signature(public_key: PublicKey, message_hash: bytes, signature: NotarySignature) -> bool:
    """
    Verify a notary signature against a public key.

    Returns:
        True if the signature is valid for the hash
    """
    if public_key.curve != signature.curve:
        return False
    message_hash = _check_hash(message_hash)

    if signature.curve is Curve.ED25519:
        if len(signature.signature) != ED25519_SIGNATURE_LENGTH:
            return False
        try:
            Ed25519PublicKey.from_public_bytes(public_key.key).verify(signature.signature, message_hash)
            return True
        except (InvalidSignature, ValueError):
            return False

    if len(signature.signature) != SECP256K1_SIGNATURE_LENGTH:
        return False
    raw = signature.signature
    try:
        sig = keys.Signature(vrs=(raw[0], int.from_bytes(raw[1:33], "big"), int.from_bytes(raw[33:], "big")))
        recovered = sig.recover_public_key_from_msg_hash(message_hash)
    except (BadSignature, ValidationError):
        return False
    return recovered.to_compressed_bytes() == public_key.key
