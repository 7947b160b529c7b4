"""
Error taxonomy for zmsg.

Every failure surfaced to a caller is a ZmsgError carrying a short
machine-readable ``error_code`` and a ``details`` dict for diagnostics.
The message itself is what the CLI prints.

Categories:
    - TransportError: the node could not be reached or spoke non-JSON
    - RpcError: the node answered with a JSON-RPC error object
    - MalformedResponse: the node answered, but not in the expected shape
    - CodecError: memo encode/decode contract violations
    - OperationFailed / OperationNotFound / PollTimeout / PollCancelled:
      outcomes of waiting on an asynchronous node operation
    - NoAddressesAvailable: nothing to send from

None of these are retried internally.
"""

from __future__ import annotations

import errno
from typing import Any

# Hint shown when the node refuses the connection outright.
NODE_NOT_RUNNING = "failed to connect to zcash daemon, is it running?"


class ZmsgError(Exception):
    """Base class for all zmsg failures."""

    error_code = "ZMSG_ERROR"

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        self.details: dict[str, Any] = details or {}


# =========================================================================
# Node communication
# =========================================================================


class TransportError(ZmsgError):
    """Network-level failure talking to the node."""

    error_code = "CONNECTION_FAILED"


class RpcError(ZmsgError):
    """The node returned a structured JSON-RPC error."""

    error_code = "RPC_ERROR"

    def __init__(self, code: int | None, message: str, *, method: str | None = None) -> None:
        super().__init__(message, details={"code": code, "method": method})
        self.code = code
        self.method = method


class MalformedResponse(ZmsgError):
    """A node response did not have the shape the client expects."""

    error_code = "MALFORMED_RESPONSE"


# =========================================================================
# Memo codec
# =========================================================================


class CodecError(ZmsgError):
    """Base class for memo codec failures."""

    error_code = "CODEC_ERROR"


class MalformedFrame(CodecError):
    """A memo claims a framing it cannot satisfy."""

    error_code = "MALFORMED_FRAME"


class ContentTooLarge(CodecError):
    """Content does not fit in a memo."""

    error_code = "CONTENT_TOO_LARGE"

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"message is {size} bytes, memo capacity is {limit} bytes",
            details={"size": size, "limit": limit},
        )
        self.size = size
        self.limit = limit


class InvalidMemoHex(CodecError):
    """A memo hex string from the node could not be decoded."""

    error_code = "INVALID_MEMO_HEX"


# =========================================================================
# Operations
# =========================================================================


class OperationFailed(ZmsgError):
    """The node reported a failed asynchronous operation."""

    error_code = "OPERATION_FAILED"

    def __init__(self, message: str, *, op_id: str | None = None, code: int | None = None) -> None:
        super().__init__(message, details={"op_id": op_id, "code": code})
        self.op_id = op_id
        self.code = code


class OperationNotFound(ZmsgError):
    """The node has no record of the operation id."""

    error_code = "OPERATION_NOT_FOUND"


class PollTimeout(ZmsgError):
    """Gave up waiting for an operation to reach a terminal status."""

    error_code = "POLL_TIMEOUT"


class PollCancelled(ZmsgError):
    """Waiting for an operation was cancelled by the caller."""

    error_code = "POLL_CANCELLED"


# =========================================================================
# Send flow
# =========================================================================


class NoAddressesAvailable(ZmsgError):
    """No sender given and the node owns no shielded address."""

    error_code = "NO_ADDRESSES"

    def __init__(self) -> None:
        super().__init__(
            "no addresses to send message from! (create one with the zcash-cli)"
        )


# =========================================================================
# Classification
# =========================================================================


def classify_connection_error(exc: BaseException) -> str:
    """Map a connection-level exception to a user-facing message.

    A refused connection almost always means the node is not running,
    so that case gets a hint instead of the raw socket error. httpx
    wraps the socket error a few levels deep (and groups them when
    several addresses were tried), so the whole cause chain is searched.

    Args:
        exc: The exception raised by the HTTP layer.

    Returns:
        Message suitable for a TransportError.
    """
    if _connection_refused(exc):
        return NODE_NOT_RUNNING
    text = str(exc)
    return f"failed to connect to node: {text or type(exc).__name__}"


def _connection_refused(exc: BaseException) -> bool:
    pending = [exc]
    seen: set[int] = set()
    while pending:
        current = pending.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, ConnectionRefusedError):
            return True
        if getattr(current, "errno", None) == errno.ECONNREFUSED:
            return True
        if "refused" in str(current).lower():
            return True
        pending.extend(getattr(current, "exceptions", ()))
        for linked in (current.__cause__, current.__context__):
            if linked is not None:
                pending.append(linked)
    return False
