"""
Bech32m codec for ledger addresses and transaction hashes.

Text form is ``<entity prefix><network hrp suffix>1<data><checksum>``, e.g.
``package_tdx_21_1pkt7zd...``. The data part is the raw identifier regrouped
from 8-bit to 5-bit words (BIP-0173 ``convertbits``) and the checksum uses
the Bech32m constant from BIP-0350. Output is always lower case.

References:
    https://github.com/bitcoin/bips/blob/master/bip-0173.mediawiki
    https://github.com/bitcoin/bips/blob/master/bip-0350.mediawiki
"""
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Tuple, Type, Union

from .exceptions import ChecksumFailure, MalformedAddress, NetworkMismatch

if TYPE_CHECKING:
    from .config import NetworkContext

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
CHARSET_REV = {c: i for i, c in enumerate(CHARSET)}

BECH32M_CONST = 0x2BC830A3
_GENERATORS = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
CHECKSUM_LENGTH = 6


def _polymod(values: Iterable[int]) -> int:
    chk = 1
    for v in values:
        top = chk >> 25
        chk = ((chk & 0x1FFFFFF) << 5) ^ v
        for i in range(5):
            if (top >> i) & 1:
                chk ^= _GENERATORS[i]
    return chk


def _hrp_expand(hrp: str) -> List[int]:
    return [ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp]


def _create_checksum(hrp: str, data: Sequence[int]) -> List[int]:
    polymod = _polymod(_hrp_expand(hrp) + list(data) + [0] * CHECKSUM_LENGTH) ^ BECH32M_CONST
    return [(polymod >> 5 * (5 - i)) & 31 for i in range(CHECKSUM_LENGTH)]


def convertbits(data: Iterable[int], from_bits: int, to_bits: int, pad: bool = True) -> List[int]:
    """
    General power-of-2 base conversion.

    With ``pad=False`` leftover bits must be zero and fewer than ``from_bits``.

    Raises:
        MalformedAddress: If the input does not regroup cleanly
    """
    acc = 0
    bits = 0
    ret: List[int] = []
    maxv = (1 << to_bits) - 1
    max_acc = (1 << (from_bits + to_bits - 1)) - 1
    for value in data:
        if value < 0 or (value >> from_bits):
            raise MalformedAddress(f"Value {value} does not fit in {from_bits} bits")
        acc = ((acc << from_bits) | value) & max_acc
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            ret.append((acc >> bits) & maxv)
    if pad:
        if bits:
            ret.append((acc << (to_bits - bits)) & maxv)
    elif bits >= from_bits or ((acc << (to_bits - bits)) & maxv):
        raise MalformedAddress("Invalid padding in Bech32m data part")
    return ret


def bech32m_encode(hrp: str, data: Sequence[int]) -> str:
    """Encode an HRP and 5-bit words into a Bech32m string."""
    hrp = hrp.lower()
    combined = list(data) + _create_checksum(hrp, data)
    return hrp + "1" + "".join(CHARSET[d] for d in combined)


def bech32m_decode(text: str) -> Tuple[str, List[int]]:
    """
    Decode a Bech32m string into its HRP and 5-bit data words (checksum stripped).

    Raises:
        MalformedAddress: If the string is not structurally valid Bech32
        ChecksumFailure: If the Bech32m checksum does not verify
    """
    if not isinstance(text, str):
        raise MalformedAddress(f"Expected address text, got {type(text).__name__}")
    if any(ord(c) < 33 or ord(c) > 126 for c in text):
        raise MalformedAddress("Address contains characters outside printable ASCII")
    if text.lower() != text and text.upper() != text:
        raise MalformedAddress("Mixed-case Bech32m string")
    text = text.lower()

    pos = text.rfind("1")
    if pos < 1 or pos + CHECKSUM_LENGTH + 1 > len(text):
        raise MalformedAddress(f"Missing or misplaced separator in '{text}'")

    hrp, data_part = text[:pos], text[pos + 1:]
    try:
        data = [CHARSET_REV[c] for c in data_part]
    except KeyError as e:
        raise MalformedAddress(f"Invalid Bech32m character {e.args[0]!r}") from None

    if _polymod(_hrp_expand(hrp) + data) != BECH32M_CONST:
        raise ChecksumFailure(f"Checksum mismatch in '{text}'")
    return hrp, data[:-CHECKSUM_LENGTH]


class _KindMixin:
    """Entity kinds carry their text prefix and the raw byte length they encode."""

    @property
    def prefix(self) -> str:
        return self.value[0]

    @property
    def length(self) -> int:
        return self.value[1]


class EntityKind(_KindMixin, Enum):
    """Addressable ledger entities"""
    PACKAGE = ("package_", 30)
    COMPONENT = ("component_", 30)
    ACCOUNT = ("account_", 30)
    RESOURCE = ("resource_", 30)


class HashKind(_KindMixin, Enum):
    """Transaction identifiers"""
    TRANSACTION_INTENT = ("txid_", 32)
    SIGNED_INTENT = ("signedintent_", 32)
    NOTARIZED_TRANSACTION = ("notarizedtransaction_", 32)


Kind = Union[EntityKind, HashKind]


class _Bech32Codec:
    kinds: Type[Enum]

    def __init__(self, network: "NetworkContext"):
        self.network = network

    def hrp(self, kind: Kind) -> str:
        return f"{kind.prefix}{self.network.hrp_suffix}"

    def encode(self, raw: bytes, kind: Kind) -> str:
        """
        Render a fixed-length identifier as Bech32m text for the bound network.

        Raises:
            MalformedAddress: If ``raw`` is not bytes of the kind's length
        """
        if not isinstance(kind, self.kinds):
            raise TypeError(f"{type(self).__name__} cannot encode {kind!r}")
        if not isinstance(raw, (bytes, bytearray, memoryview)):
            raise MalformedAddress(f"Expected bytes for {kind.name.lower()}, got {type(raw).__name__}")
        raw = bytes(raw)
        if len(raw) != kind.length:
            raise MalformedAddress(
                f"{kind.name.lower()} must be {kind.length} bytes, got {len(raw)}"
            )
        return bech32m_encode(self.hrp(kind), convertbits(raw, 8, 5, pad=True))

    def decode_with_kind(self, text: str) -> Tuple[Kind, bytes]:
        """
        Parse Bech32m text into its entity kind and raw bytes.

        Raises:
            ChecksumFailure: If the checksum does not verify
            NetworkMismatch: If the prefix belongs to another network
            MalformedAddress: For any other structural problem
        """
        hrp, words = bech32m_decode(text)

        kind = next((k for k in self.kinds if hrp.startswith(k.prefix)), None)
        if kind is None:
            raise MalformedAddress(f"Unknown entity prefix in '{hrp}'")
        suffix = hrp[len(kind.prefix):]
        if suffix != self.network.hrp_suffix:
            raise NetworkMismatch(
                f"Address prefix '{hrp}' does not belong to network "
                f"{self.network.name} (expected '{self.hrp(kind)}')"
            )

        raw = bytes(convertbits(words, 5, 8, pad=False))
        if len(raw) != kind.length:
            raise MalformedAddress(
                f"Decoded {kind.name.lower()} is {len(raw)} bytes, expected {kind.length}"
            )
        return kind, raw

    def decode(self, text: str, expected_kind: Optional[Kind] = None) -> bytes:
        """
        Parse Bech32m text into raw bytes, optionally pinning the entity kind.

        Raises:
            MalformedAddress: If the text is invalid or of an unexpected kind
        """
        kind, raw = self.decode_with_kind(text)
        if expected_kind is not None and kind is not expected_kind:
            raise MalformedAddress(
                f"Expected a {expected_kind.name.lower()} address, got {kind.name.lower()}"
            )
        return raw


class AddressBech32Codec(_Bech32Codec):
    """Encoder/decoder for entity addresses on one network"""
    kinds = EntityKind


class HashBech32Codec(_Bech32Codec):
    """Encoder/decoder for transaction hashes on one network"""
    kinds = HashKind

    def encode(self, raw: bytes, kind: Kind = HashKind.TRANSACTION_INTENT) -> str:
        return super().encode(raw, kind)
