"""
Transaction construction: headers, manifests, encoding and notarization.
"""
from .header import (
    DEFAULT_VALIDITY_EPOCHS,
    Curve,
    NotarySignature,
    PublicKey,
    TransactionHeader,
    generate_nonce,
)
from .manifest import Instruction, Manifest, ManifestBuilder
from .encoding import CanonicalEncoder, CanonicalValueCodec, TransactionEncoder, ValueCodec
from .notary import (
    IntentHash,
    NotarizedTransaction,
    assemble_and_notarize,
    compute_intent_hash,
    notarize,
)

__all__ = [
    "DEFAULT_VALIDITY_EPOCHS",
    "Curve",
    "NotarySignature",
    "PublicKey",
    "TransactionHeader",
    "generate_nonce",
    "Instruction",
    "Manifest",
    "ManifestBuilder",
    "CanonicalEncoder",
    "CanonicalValueCodec",
    "TransactionEncoder",
    "ValueCodec",
    "IntentHash",
    "NotarizedTransaction",
    "assemble_and_notarize",
    "compute_intent_hash",
    "notarize",
]
