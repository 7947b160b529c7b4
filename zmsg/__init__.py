"""
zmsg — text messages in the memo field of shielded transfers.

A locally running node owns keys, note decryption and transaction
construction; zmsg talks to it over JSON-RPC.

Public API:

    Pure layer (no I/O):
        - ``encode_memo()`` / ``decode_memo()`` — memo wire format.
        - ``encode_typed_frame()`` — opt-in 0xF5 typed framing.
        - ``DecodedMessage``, ``MessageKind`` — decode results.

    Impure layer (network I/O):
        - ``send_message()`` — encode, submit, wait; returns the txid.
        - ``check_messages()`` — messages across every owned address.
        - ``wait_for_operation()`` — poll an async node operation.

    Protocols (for dependency injection):
        - ``NodeClient`` — network boundary.
        - ``JsonRpcTransport`` — HTTP seam under the JSON-RPC client.

    Concrete client:
        - ``JsonRpcClient`` + ``HttpxTransport``.
        - ``load_config()`` — endpoint and credentials.
"""

from zmsg.client import (
    NodeClient,
    OperationError,
    OperationHandle,
    OperationStatus,
    ReceivedNote,
    TransactionInfo,
    TransferOutput,
)
from zmsg.config import NodeConfig, load_config
from zmsg.errors import (
    CodecError,
    ContentTooLarge,
    InvalidMemoHex,
    MalformedFrame,
    MalformedResponse,
    NoAddressesAvailable,
    OperationFailed,
    OperationNotFound,
    PollCancelled,
    PollTimeout,
    RpcError,
    TransportError,
    ZmsgError,
)
from zmsg.inbox import Message, check_messages
from zmsg.jsonrpc_client import JsonRpcClient
from zmsg.memo import (
    MEMO_SIZE,
    TEXT_TYPE_ID,
    DecodedMessage,
    MessageKind,
    decode_memo,
    decode_memo_hex,
    encode_memo,
    encode_memo_hex,
    encode_typed_frame,
)
from zmsg.poller import wait_for_operation
from zmsg.send import DEFAULT_TX_VALUE, send_message
from zmsg.transport import HttpxTransport, JsonRpcTransport

__version__ = "0.1.0"

__all__ = [
    "CodecError",
    "ContentTooLarge",
    "DEFAULT_TX_VALUE",
    "DecodedMessage",
    "HttpxTransport",
    "InvalidMemoHex",
    "JsonRpcClient",
    "JsonRpcTransport",
    "MEMO_SIZE",
    "MalformedFrame",
    "MalformedResponse",
    "Message",
    "MessageKind",
    "NoAddressesAvailable",
    "NodeClient",
    "NodeConfig",
    "OperationError",
    "OperationFailed",
    "OperationHandle",
    "OperationNotFound",
    "OperationStatus",
    "PollCancelled",
    "PollTimeout",
    "ReceivedNote",
    "RpcError",
    "TEXT_TYPE_ID",
    "TransactionInfo",
    "TransferOutput",
    "TransportError",
    "ZmsgError",
    "check_messages",
    "decode_memo",
    "decode_memo_hex",
    "encode_memo",
    "encode_memo_hex",
    "encode_typed_frame",
    "load_config",
    "send_message",
    "wait_for_operation",
]
