"""
Transaction manifests.

A manifest is an ordered program of ledger instructions. The SDK treats it
as an immutable value: it is built here, serialized by the transaction
encoder and never interpreted afterwards. The only shape knowledge kept is
``result_slot``, the receipt output index holding the operation's return
value, which the receipt extractor needs.
"""
import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

DEFAULT_FAUCET_FEE = "5000"

# Well-known entities are referenced by name and resolved by the ledger
FAUCET = "faucet"
PACKAGE_PACKAGE = "package_package"


@dataclass(frozen=True)
class Instruction:
    name: str
    args: Tuple[Any, ...] = ()

    def as_value(self) -> Tuple[Any, ...]:
        return (self.name,) + tuple(self.args)


@dataclass(frozen=True)
class Manifest:
    """Immutable instruction sequence plus the blobs it references"""
    instructions: Tuple[Instruction, ...]
    blobs: Tuple[bytes, ...] = ()
    result_slot: Optional[int] = None

    def __post_init__(self):
        if self.result_slot is not None and not 0 <= self.result_slot < len(self.instructions):
            raise ValueError(
                f"result_slot {self.result_slot} outside manifest of {len(self.instructions)} instructions"
            )

    def __len__(self) -> int:
        return len(self.instructions)


def blob_hash(blob: bytes) -> bytes:
    return hashlib.blake2b(blob, digest_size=32).digest()


class ManifestBuilder:
    """
    Fluent manifest builder.

    Example:
        manifest = (
            ManifestBuilder()
            .lock_fee_from_faucet()
            .call_function(package, "CryptoScrypto", "keccak256_hash", [data])
            .build()
        )
        # manifest.result_slot == 1
    """

    def __init__(self):
        self._instructions = []
        self._blobs = []
        self._result_slot: Optional[int] = None

    def _push(self, instruction: Instruction, returns_result: bool = True) -> "ManifestBuilder":
        self._instructions.append(instruction)
        if returns_result:
            self._result_slot = len(self._instructions) - 1
        return self

    def lock_fee_from_faucet(self, amount: str = DEFAULT_FAUCET_FEE) -> "ManifestBuilder":
        """Lock the transaction fee from the test network faucet."""
        return self._push(Instruction("CALL_METHOD", (FAUCET, "lock_fee", (amount,))), returns_result=False)

    def lock_fee(self, account_address: bytes, amount: str) -> "ManifestBuilder":
        return self._push(
            Instruction("CALL_METHOD", (bytes(account_address), "lock_fee", (amount,))),
            returns_result=False,
        )

    def call_function(
        self,
        package_address: bytes,
        blueprint_name: str,
        function_name: str,
        args: Sequence[Any] = ()
    ) -> "ManifestBuilder":
        return self._push(
            Instruction("CALL_FUNCTION", (bytes(package_address), blueprint_name, function_name, tuple(args)))
        )

    def call_method(
        self,
        component_address: bytes,
        method_name: str,
        args: Sequence[Any] = ()
    ) -> "ManifestBuilder":
        return self._push(Instruction("CALL_METHOD", (bytes(component_address), method_name, tuple(args))))

    def publish_package(
        self,
        code: bytes,
        definition: bytes,
        metadata: Optional[Dict[str, str]] = None
    ) -> "ManifestBuilder":
        """Publish a package; the code travels as a blob referenced by hash."""
        code = bytes(code)
        self._blobs.append(code)
        return self._push(
            Instruction(
                "PUBLISH_PACKAGE",
                (PACKAGE_PACKAGE, blob_hash(code), bytes(definition), dict(metadata or {})),
            )
        )

    def build(self) -> Manifest:
        if not self._instructions:
            raise ValueError("Cannot build an empty manifest")
        return Manifest(
            instructions=tuple(self._instructions),
            blobs=tuple(self._blobs),
            result_slot=self._result_slot,
        )
