"""
Canonical encoding of transactions and call arguments.

The ledger's own serialization format is owned by the ledger runtime. The
SDK talks to it through two narrow interfaces:

- :class:`TransactionEncoder` turns headers, manifests and signatures into
  payload bytes and computes the digests that identify them.
- :class:`ValueCodec` encodes call arguments into manifests and decodes
  receipt outputs back into values.

:class:`CanonicalEncoder` and :class:`CanonicalValueCodec` are the default
implementations: a deterministic tag-length-value layout with Blake2b-256
digests. Equal inputs always give equal bytes, so equal headers and
manifests always give the same intent hash.
"""
import hashlib
import struct
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from ..exceptions import AssemblyError, ValueDecodeError
from .header import Curve, NotarySignature, PublicKey, TransactionHeader
from .manifest import Manifest

HASH_LENGTH = 32

# Payload discriminators
INTENT_DISCRIMINATOR = 0x01
SIGNED_INTENT_DISCRIMINATOR = 0x02
NOTARIZED_DISCRIMINATOR = 0x03
PAYLOAD_PREFIX = b"\x5c"

# Value tags
TAG_UNIT = 0x00
TAG_BOOL = 0x01
TAG_INT = 0x02
TAG_BYTES = 0x03
TAG_STRING = 0x04
TAG_LIST = 0x05
TAG_TUPLE = 0x06
TAG_MAP = 0x07

_CURVE_IDS = {Curve.SECP256K1: 0x00, Curve.ED25519: 0x01}
_INT_BYTES = 16


class ValueCodec(Protocol):
    """Encodes call arguments and decodes receipt outputs"""

    def encode(self, value: Any) -> bytes:
        ...

    def decode(self, data: bytes) -> Any:
        ...


class TransactionEncoder(Protocol):
    """Serializes transaction parts and hashes them"""

    def encode_intent(self, header: TransactionHeader, manifest: Manifest) -> bytes:
        ...

    def encode_signed_intent(self, intent: bytes, intent_signatures: Sequence[NotarySignature]) -> bytes:
        ...

    def encode_notarized(self, signed_intent: bytes, notary_signature: NotarySignature) -> bytes:
        ...

    def hash(self, payload: bytes) -> bytes:
        ...


def _len_prefixed(data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + data


def _curve_id(curve: Curve) -> int:
    try:
        return _CURVE_IDS[Curve(curve)]
    except (KeyError, ValueError):
        raise AssemblyError(f"Unsupported curve {curve!r}") from None


class CanonicalValueCodec:
    """Deterministic tag-length-value codec for call arguments and outputs."""

    def encode(self, value: Any) -> bytes:
        """
        Encode a value.

        Raises:
            AssemblyError: If the value (or a nested one) has no encoding
        """
        out = bytearray()
        self._encode_into(value, out)
        return bytes(out)

    def _encode_into(self, value: Any, out: bytearray) -> None:
        if value is None:
            out.append(TAG_UNIT)
        elif isinstance(value, bool):
            out += bytes((TAG_BOOL, 1 if value else 0))
        elif isinstance(value, int):
            try:
                out.append(TAG_INT)
                out += value.to_bytes(_INT_BYTES, "big", signed=True)
            except OverflowError as e:
                raise AssemblyError(f"Integer {value} does not fit in {_INT_BYTES * 8} bits") from e
        elif isinstance(value, (bytes, bytearray, memoryview)):
            out.append(TAG_BYTES)
            out += _len_prefixed(bytes(value))
        elif isinstance(value, str):
            out.append(TAG_STRING)
            out += _len_prefixed(value.encode("utf-8"))
        elif isinstance(value, (list, tuple)):
            out.append(TAG_LIST if isinstance(value, list) else TAG_TUPLE)
            out += struct.pack(">I", len(value))
            for item in value:
                self._encode_into(item, out)
        elif isinstance(value, dict):
            # Entries sorted by encoded key so dict ordering never leaks into the bytes
            entries = sorted((self.encode(k), self.encode(v)) for k, v in value.items())
            out.append(TAG_MAP)
            out += struct.pack(">I", len(entries))
            for key, item in entries:
                out += key + item
        else:
            raise AssemblyError(f"Cannot encode value of type {type(value).__name__}")

    def decode(self, data: bytes) -> Any:
        """
        Decode a single value that spans all of ``data``.

        Raises:
            ValueDecodeError: If the bytes are truncated, trailing or unknown
        """
        try:
            value, offset = self._decode_at(bytes(data), 0)
        except (IndexError, struct.error, UnicodeDecodeError) as e:
            raise ValueDecodeError(f"Malformed encoded value: {e}") from e
        if offset != len(data):
            raise ValueDecodeError(f"{len(data) - offset} trailing bytes after encoded value")
        return value

    def _decode_at(self, data: bytes, offset: int) -> Tuple[Any, int]:
        tag = data[offset]
        offset += 1
        if tag == TAG_UNIT:
            return None, offset
        if tag == TAG_BOOL:
            flag = data[offset]
            if flag not in (0, 1):
                raise ValueDecodeError(f"Invalid boolean byte {flag}")
            return flag == 1, offset + 1
        if tag == TAG_INT:
            chunk = data[offset:offset + _INT_BYTES]
            if len(chunk) != _INT_BYTES:
                raise ValueDecodeError("Truncated integer")
            return int.from_bytes(chunk, "big", signed=True), offset + _INT_BYTES
        if tag in (TAG_BYTES, TAG_STRING):
            (length,) = struct.unpack_from(">I", data, offset)
            offset += 4
            chunk = data[offset:offset + length]
            if len(chunk) != length:
                raise ValueDecodeError("Truncated byte string")
            return (chunk if tag == TAG_BYTES else chunk.decode("utf-8")), offset + length
        if tag in (TAG_LIST, TAG_TUPLE, TAG_MAP):
            (count,) = struct.unpack_from(">I", data, offset)
            offset += 4
            items: List[Any] = []
            for _ in range(count * (2 if tag == TAG_MAP else 1)):
                item, offset = self._decode_at(data, offset)
                items.append(item)
            if tag == TAG_LIST:
                return items, offset
            if tag == TAG_TUPLE:
                return tuple(items), offset
            return dict(zip(items[0::2], items[1::2])), offset
        raise ValueDecodeError(f"Unknown value tag 0x{tag:02x}")


class CanonicalEncoder:
    """Default transaction encoder: canonical TLV payloads, Blake2b-256 digests."""

    def __init__(self, value_codec: Optional[ValueCodec] = None):
        self.value_codec = value_codec or CanonicalValueCodec()

    def hash(self, payload: bytes) -> bytes:
        return hashlib.blake2b(payload, digest_size=HASH_LENGTH).digest()

    def encode_public_key(self, key: PublicKey) -> bytes:
        return bytes((_curve_id(key.curve),)) + _len_prefixed(key.key)

    def encode_signature(self, signature: NotarySignature) -> bytes:
        return bytes((_curve_id(signature.curve),)) + _len_prefixed(signature.signature)

    def encode_header(self, header: TransactionHeader) -> bytes:
        try:
            return (
                struct.pack(">BQQI", header.network_id, header.start_epoch, header.end_epoch, header.nonce)
                + self.encode_public_key(header.notary_public_key)
                + struct.pack(">?H", header.notary_is_signatory, header.tip_percentage)
            )
        except struct.error as e:
            raise AssemblyError(f"Cannot encode transaction header: {e}") from e

    def encode_manifest(self, manifest: Manifest) -> bytes:
        instructions = [instruction.as_value() for instruction in manifest.instructions]
        return self.value_codec.encode((instructions, list(manifest.blobs)))

    def encode_intent(self, header: TransactionHeader, manifest: Manifest) -> bytes:
        return (
            PAYLOAD_PREFIX
            + bytes((INTENT_DISCRIMINATOR,))
            + _len_prefixed(self.encode_header(header))
            + _len_prefixed(self.encode_manifest(manifest))
        )

    def encode_signed_intent(self, intent: bytes, intent_signatures: Sequence[NotarySignature]) -> bytes:
        signatures = b"".join(self.encode_signature(s) for s in intent_signatures)
        return (
            PAYLOAD_PREFIX
            + bytes((SIGNED_INTENT_DISCRIMINATOR,))
            + _len_prefixed(intent)
            + struct.pack(">I", len(intent_signatures))
            + signatures
        )

    def encode_notarized(self, signed_intent: bytes, notary_signature: NotarySignature) -> bytes:
        return (
            PAYLOAD_PREFIX
            + bytes((NOTARIZED_DISCRIMINATOR,))
            + _len_prefixed(signed_intent)
            + self.encode_signature(notary_signature)
        )
