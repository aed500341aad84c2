"""
Transaction assembly and notarization.

Builds the header for the current epoch, derives the intent hash from
(header, manifest), has the notary sign it and packages everything into a
submittable :class:`NotarizedTransaction`. Pure computation: no I/O.
"""
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

from ..exceptions import AssemblyError
from .encoding import HASH_LENGTH, CanonicalEncoder, TransactionEncoder
from .header import DEFAULT_VALIDITY_EPOCHS, NotarySignature, TransactionHeader
from .manifest import Manifest

if TYPE_CHECKING:
    from ..bech32 import HashBech32Codec
    from ..config import NetworkContext
    from ..signer import Signer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntentHash:
    """Content hash of (header, manifest); the key for every status query"""
    value: bytes

    def __post_init__(self):
        if len(self.value) != HASH_LENGTH:
            raise ValueError(f"Intent hash must be {HASH_LENGTH} bytes, got {len(self.value)}")

    def hex(self) -> str:
        return self.value.hex()

    def to_bech32(self, codec: "HashBech32Codec") -> str:
        return codec.encode(self.value)


@dataclass(frozen=True)
class NotarizedTransaction:
    """A header-bearing, notary-signed transaction ready for submission"""
    header: TransactionHeader
    manifest: Manifest
    notary_signature: NotarySignature
    intent_hash: IntentHash
    signed_intent_hash: bytes
    payload: bytes

    def to_hex(self) -> str:
        return self.payload.hex()


def compute_intent_hash(
    header: TransactionHeader,
    manifest: Manifest,
    encoder: Optional[TransactionEncoder] = None
) -> IntentHash:
    """Deterministic intent hash of a header and manifest."""
    encoder = encoder or CanonicalEncoder()
    return IntentHash(encoder.hash(encoder.encode_intent(header, manifest)))


def notarize(
    header: TransactionHeader,
    manifest: Manifest,
    signer: "Signer",
    encoder: Optional[TransactionEncoder] = None
) -> Tuple[NotarizedTransaction, IntentHash]:
    """
    Notarize a transaction built from an existing header.

    The notary signs the signed-intent hash. No intent signatures are
    attached, so the notary key must match the header's notary public key.

    Raises:
        AssemblyError: If encoding fails or the signer does not match the header
    """
    encoder = encoder or CanonicalEncoder()
    if signer.public_key != header.notary_public_key:
        raise AssemblyError("Signer public key does not match the header's notary public key")

    try:
        intent = encoder.encode_intent(header, manifest)
        intent_hash = IntentHash(encoder.hash(intent))
        signed_intent = encoder.encode_signed_intent(intent, ())
        signed_intent_hash = encoder.hash(signed_intent)
        notary_signature = signer.sign(signed_intent_hash)
        payload = encoder.encode_notarized(signed_intent, notary_signature)
    except AssemblyError:
        raise
    except (TypeError, ValueError, OverflowError) as e:
        raise AssemblyError(f"Failed to encode transaction: {e}") from e

    logger.debug(f"Notarized transaction with intent hash {intent_hash.hex()[:16]}...")
    transaction = NotarizedTransaction(
        header=header,
        manifest=manifest,
        notary_signature=notary_signature,
        intent_hash=intent_hash,
        signed_intent_hash=signed_intent_hash,
        payload=payload,
    )
    return transaction, intent_hash


def assemble_and_notarize(
    network: "NetworkContext",
    current_epoch: int,
    signer: "Signer",
    manifest: Manifest,
    validity_epochs: int = DEFAULT_VALIDITY_EPOCHS,
    nonce: Optional[int] = None,
    notary_is_signatory: bool = False,
    tip_percentage: int = 0,
    encoder: Optional[TransactionEncoder] = None
) -> Tuple[NotarizedTransaction, IntentHash]:
    """
    Build a header for ``current_epoch`` and notarize ``manifest`` with it.

    Args:
        network: Target network
        current_epoch: Epoch reported by the gateway; the window starts here
        signer: Notary signer, borrowed for this call only
        manifest: Instructions to execute
        validity_epochs: Length of the validity window in epochs
        nonce: Fixed nonce; a fresh random one is drawn when omitted
        notary_is_signatory: Whether the notary also signs as a manifest signer
        tip_percentage: Validator tip
        encoder: Transaction encoder (canonical encoder by default)

    Returns:
        Tuple of (notarized transaction, intent hash)

    Raises:
        InvalidHeaderError: If the header is invalid (e.g. empty epoch window)
        AssemblyError: If the transaction cannot be encoded
    """
    header = TransactionHeader.for_epoch(
        network_id=network.id,
        current_epoch=current_epoch,
        notary_public_key=signer.public_key,
        validity_epochs=validity_epochs,
        nonce=nonce,
        notary_is_signatory=notary_is_signatory,
        tip_percentage=tip_percentage,
    )
    return notarize(header, manifest, signer, encoder=encoder)
