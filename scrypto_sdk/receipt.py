"""
Receipt result extraction.

The receipt lists one output per manifest instruction. Which slot holds the
operation's return value depends on the manifest's shape, so the slot index
is always passed in (see ``Manifest.result_slot``). Decoding the located
bytes into a value belongs to the value codec.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from .exceptions import ReceiptError
from .models import ErrorDescriptor, TransactionDetails, TransactionStatus
from .transaction.encoding import CanonicalValueCodec, ValueCodec

logger = logging.getLogger(__name__)


def extract_output(details: TransactionDetails, slot_index: int) -> Optional[bytes]:
    """
    Locate the raw output bytes at ``slot_index``.

    Returns:
        The output bytes, or None if the slot is absent (operation reverted
        or produced no output)

    Raises:
        ReceiptError: If the slot holds text that is not hex
    """
    output = details.get_output(slot_index)
    if output is None:
        return None
    try:
        return bytes.fromhex(output)
    except ValueError as e:
        raise ReceiptError(f"Receipt output {slot_index} is not valid hex: {e}") from e


def extract_error(details: TransactionDetails) -> Optional[ErrorDescriptor]:
    """Return the receipt's error descriptor, if the transaction failed."""
    return details.get_error()


@dataclass(frozen=True)
class OperationOutcome:
    """
    Result of one ledger operation: either output bytes or an error descriptor.

    A committed failure is a normal outcome, not an exception.
    """
    status: TransactionStatus
    intent_hash: str
    output: Optional[bytes] = None
    error: Optional[ErrorDescriptor] = None

    @property
    def ok(self) -> bool:
        return self.status is TransactionStatus.COMMITTED_SUCCESS and self.output is not None

    def decode(self, codec: Optional[ValueCodec] = None) -> Any:
        """
        Decode the output bytes into a value.

        Raises:
            ReceiptError: If there is no output to decode
            ValueDecodeError: If the output bytes are malformed
        """
        if self.output is None:
            message = self.error.message if self.error else "no output"
            raise ReceiptError(f"Operation produced no output: {message}")
        return (codec or CanonicalValueCodec()).decode(self.output)


def operation_outcome(
    details: TransactionDetails,
    slot_index: int,
    status: TransactionStatus,
    intent_hash: str
) -> OperationOutcome:
    """
    Combine the output slot and error descriptor of a receipt.

    Raises:
        ReceiptError: If the receipt has neither the slot nor an error descriptor
    """
    output = extract_output(details, slot_index)
    error = extract_error(details)
    if output is None and error is None:
        raise ReceiptError(
            f"Receipt for {intent_hash} has no output at slot {slot_index} and no error descriptor"
        )
    if output is not None and error is not None:
        logger.warning(f"Receipt for {intent_hash[:24]}... has both an output and an error: {error.message}")
    return OperationOutcome(status=status, intent_hash=intent_hash, output=output, error=error)
