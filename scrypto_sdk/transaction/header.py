"""
Transaction header and notary public key types.
"""
import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..exceptions import InvalidHeaderError

# Number of epochs a transaction stays valid for, starting at the current epoch
DEFAULT_VALIDITY_EPOCHS = 10

U8_MAX = 0xFF
U16_MAX = 0xFFFF
U32_MAX = 0xFFFF_FFFF
U64_MAX = 0xFFFF_FFFF_FFFF_FFFF


class Curve(str, Enum):
    SECP256K1 = "secp256k1"
    ED25519 = "ed25519"


@dataclass(frozen=True)
class PublicKey:
    curve: Curve
    key: bytes

    def hex(self) -> str:
        return self.key.hex()


def generate_nonce() -> int:
    """Draw a fresh u32 nonce from the OS CSPRNG."""
    return secrets.randbits(32)


def _check_range(name: str, value: int, maximum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidHeaderError(f"{name} must be an integer, got {type(value).__name__}")
    if not 0 <= value <= maximum:
        raise InvalidHeaderError(f"{name} out of range: {value} (allowed 0..{maximum})")


@dataclass(frozen=True)
class TransactionHeader:
    """
    Transaction header; validated on construction.

    The validity window is ``[start_epoch, end_epoch)`` and must be non-empty.
    """
    network_id: int
    start_epoch: int
    end_epoch: int
    nonce: int
    notary_public_key: PublicKey
    notary_is_signatory: bool = False
    tip_percentage: int = 0

    def __post_init__(self):
        _check_range("network_id", self.network_id, U8_MAX)
        _check_range("start_epoch", self.start_epoch, U64_MAX)
        _check_range("end_epoch", self.end_epoch, U64_MAX)
        _check_range("nonce", self.nonce, U32_MAX)
        _check_range("tip_percentage", self.tip_percentage, U16_MAX)
        if self.end_epoch <= self.start_epoch:
            raise InvalidHeaderError(
                f"end_epoch ({self.end_epoch}) must be greater than start_epoch ({self.start_epoch})"
            )
        if not isinstance(self.notary_public_key, PublicKey):
            raise InvalidHeaderError("notary_public_key must be a PublicKey")

    @classmethod
    def for_epoch(
        cls,
        network_id: int,
        current_epoch: int,
        notary_public_key: PublicKey,
        validity_epochs: int = DEFAULT_VALIDITY_EPOCHS,
        nonce: Optional[int] = None,
        notary_is_signatory: bool = False,
        tip_percentage: int = 0
    ) -> "TransactionHeader":
        """Build a header valid from ``current_epoch`` for ``validity_epochs`` epochs."""
        return cls(
            network_id=network_id,
            start_epoch=current_epoch,
            end_epoch=current_epoch + validity_epochs,
            nonce=generate_nonce() if nonce is None else nonce,
            notary_public_key=notary_public_key,
            notary_is_signatory=notary_is_signatory,
            tip_percentage=tip_percentage,
        )


@dataclass(frozen=True)
class NotarySignature:
    """Signature over a hash together with the curve that produced it"""
    curve: Curve
    signature: bytes

    def hex(self) -> str:
        return self.signature.hex()
