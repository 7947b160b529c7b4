"""
Node client protocol — the network boundary.

Defines the interface that the send flow, the poller and the inbox
depend on, not a concrete implementation. This keeps them testable
and keeps HTTP details out of message logic.

Concrete implementations:
    - JsonRpcClient (real)
    - FakeClient (tests)

One typed record per node call, decoded once at this boundary:
    - list_addresses() → list[str]
    - list_received(address, minconf) → list[ReceivedNote]
    - send_many(from_address, outputs) → operation id
    - get_operation_status(op_ids) → list[OperationHandle]
    - get_transaction(txid) → TransactionInfo

Unlike a fire-and-forget result object, node errors are raised
(RpcError, TransportError): every caller here treats them as terminal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Protocol, runtime_checkable


# =========================================================================
# Records
# =========================================================================


@dataclass(frozen=True)
class ReceivedNote:
    """One shielded note received at an owned address.

    Attributes:
        address: The owned address the note was received at.
        txid: Transaction that created the note.
        amount: Note value.
        memo_hex: Memo field as reported by the node (hex, 512 bytes).
    """

    address: str
    txid: str
    amount: Decimal
    memo_hex: str


@dataclass(frozen=True)
class TransferOutput:
    """One recipient of a shielded transfer."""

    address: str
    amount: Decimal
    memo_hex: str

    def to_param(self) -> dict[str, object]:
        """Shape expected by the node's transfer call."""
        return {
            "address": self.address,
            "amount": float(self.amount),
            "memo": self.memo_hex,
        }


class OperationStatus(str, Enum):
    """Status of an asynchronous node operation."""

    QUEUED = "queued"
    EXECUTING = "executing"
    SUCCESS = "success"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str) -> OperationStatus:
        """Map a node status string, tolerating values this version does not know."""
        try:
            status = cls(raw)
        except ValueError:
            return cls.UNKNOWN
        return status

    @property
    def terminal(self) -> bool:
        """Whether polling stops at this status."""
        return self in (OperationStatus.SUCCESS, OperationStatus.FAILED)


@dataclass(frozen=True)
class OperationError:
    """Error reported for a failed operation."""

    code: int | None
    message: str


@dataclass(frozen=True)
class OperationHandle:
    """Snapshot of an asynchronous operation from one status query.

    Attributes:
        op_id: Operation id returned by the transfer call.
        status: Parsed status. UNKNOWN for unrecognized strings.
        raw_status: Status string exactly as the node sent it.
        txid: Resulting transaction id, present on success.
        error: Failure detail, present on failure.
    """

    op_id: str
    status: OperationStatus
    raw_status: str
    txid: str | None = None
    error: OperationError | None = None


@dataclass(frozen=True)
class TransactionInfo:
    """Wallet metadata for a transaction.

    Attributes:
        txid: Transaction id.
        time: Unix time the wallet first saw the transaction.
        confirmations: Confirmation count (0 while in the mempool).
    """

    txid: str
    time: int
    confirmations: int

    @property
    def timestamp(self) -> datetime:
        """``time`` as an aware UTC datetime."""
        return datetime.fromtimestamp(self.time, tz=timezone.utc)


# =========================================================================
# Protocol
# =========================================================================


@runtime_checkable
class NodeClient(Protocol):
    """Interface for the node operations zmsg needs.

    Methods are async because network I/O is inherently asynchronous.
    """

    async def list_addresses(self) -> list[str]:
        """Shielded addresses controlled by the node, in node order."""
        ...

    async def list_received(self, address: str, minconf: int = 1) -> list[ReceivedNote]:
        """Notes received at ``address`` with at least ``minconf`` confirmations."""
        ...

    async def send_many(self, from_address: str, outputs: list[TransferOutput]) -> str:
        """Start a shielded transfer. Returns the operation id."""
        ...

    async def get_operation_status(self, op_ids: list[str]) -> list[OperationHandle]:
        """Status snapshots for the given operation ids."""
        ...

    async def get_transaction(self, txid: str) -> TransactionInfo:
        """Wallet metadata for ``txid``."""
        ...
