"""
Data models for gateway payloads.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class _GatewayModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class LedgerState(_GatewayModel):
    """Ledger position the gateway answered at"""
    network: str
    state_version: int
    epoch: int
    round: int = 0


class GatewayStatus(_GatewayModel):
    ledger_state: LedgerState
    release_info: Optional[Dict[str, Any]] = None


class SubmissionResult(_GatewayModel):
    """Gateway acknowledgement of a submitted transaction"""
    duplicate: bool = False


class TransactionStatus(str, Enum):
    """Transaction status as reported by the gateway"""
    PENDING = "Pending"
    COMMITTED_SUCCESS = "CommittedSuccess"
    COMMITTED_FAILURE = "CommittedFailure"
    REJECTED = "Rejected"
    UNKNOWN = "Unknown"

    @property
    def is_terminal(self) -> bool:
        return self in (
            TransactionStatus.COMMITTED_SUCCESS,
            TransactionStatus.COMMITTED_FAILURE,
            TransactionStatus.REJECTED,
        )

    @classmethod
    def _missing_(cls, value):
        # The gateway may grow new non-terminal states
        return cls.UNKNOWN


class TransactionStatusResponse(_GatewayModel):
    status: TransactionStatus
    intent_status: Optional[str] = None
    error_message: Optional[str] = None


class ReceiptOutput(_GatewayModel):
    """One per-instruction output slot, hex of the encoded return value"""
    hex: Optional[str] = None
    programmatic_json: Optional[Any] = None


class TransactionReceipt(_GatewayModel):
    status: Optional[str] = None
    output: Optional[List[Optional[ReceiptOutput]]] = None
    error_message: Optional[str] = None


class CommittedTransaction(_GatewayModel):
    intent_hash: Optional[str] = None
    epoch: Optional[int] = None
    receipt: TransactionReceipt = TransactionReceipt()


class ErrorDescriptor(_GatewayModel):
    """Why a committed or rejected transaction failed"""
    status: Optional[str] = None
    message: str


class TransactionDetails(_GatewayModel):
    """Committed transaction details including the receipt"""
    ledger_state: Optional[LedgerState] = None
    transaction: CommittedTransaction

    def get_output(self, index: int) -> Optional[str]:
        """
        Get the hex output of the instruction at ``index``.

        Returns:
            Hex string, or None if the slot is absent or empty
        """
        outputs = self.transaction.receipt.output or []
        if index < 0 or index >= len(outputs):
            return None
        slot = outputs[index]
        if slot is None or slot.hex is None:
            return None
        return slot.hex

    def get_error(self) -> Optional[ErrorDescriptor]:
        """Get the receipt's error descriptor, if any."""
        receipt = self.transaction.receipt
        if not receipt.error_message:
            return None
        return ErrorDescriptor(status=receipt.status, message=receipt.error_message)
