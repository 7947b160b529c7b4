"""
Node JSON-RPC client — real network implementation of NodeClient.

Translates zcashd-style JSON-RPC responses into the typed records in
client.py. Uses an injectable transport (JsonRpcTransport) so the HTTP
layer can be swapped for test fakes without changing parsing logic.

No retry loops. No message logic beyond response parsing.

Envelope conventions (JSON-RPC 1.0, as served by zcashd):
    - Request:  {"jsonrpc": "1.0", "id": n, "method": ..., "params": [...]}
    - Success:  {"result": ..., "error": null, "id": n}
    - Failure:  {"result": null, "error": {"code": -8, "message": "..."}, "id": n}
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from zmsg.client import (
    OperationError,
    OperationHandle,
    OperationStatus,
    ReceivedNote,
    TransactionInfo,
    TransferOutput,
)
from zmsg.errors import MalformedResponse, RpcError
from zmsg.transport import HttpxTransport, JsonRpcTransport

# JSON-RPC request ID counter (simple, no thread-safety needed for async)
_REQUEST_ID = 0


def _next_request_id() -> int:
    global _REQUEST_ID
    _REQUEST_ID += 1
    return _REQUEST_ID


class JsonRpcClient:
    """Node JSON-RPC client implementing the NodeClient protocol.

    Args:
        url: The node JSON-RPC endpoint URL (e.g. "http://127.0.0.1:8232/").
        transport: Injectable transport for HTTP POST. Defaults to
            HttpxTransport without credentials.
    """

    def __init__(
        self,
        url: str,
        transport: JsonRpcTransport | None = None,
    ) -> None:
        self._url = url
        self._transport = transport or HttpxTransport()

    @property
    def url(self) -> str:
        """The JSON-RPC endpoint URL."""
        return self._url

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Invoke a node method and return its ``result`` member.

        Raises:
            RpcError: If the node returned an error object.
            TransportError: Propagated from the transport.
        """
        payload = {
            "jsonrpc": "1.0",
            "id": _next_request_id(),
            "method": method,
            "params": params if params is not None else [],
        }
        response = await self._transport.post_json(self._url, payload)
        return _unwrap(response, method)

    # -----------------------------------------------------------------
    # NodeClient protocol methods
    # -----------------------------------------------------------------

    async def list_addresses(self) -> list[str]:
        result = await self.call("z_listaddresses")
        return _parse_addresses(result)

    async def list_received(self, address: str, minconf: int = 1) -> list[ReceivedNote]:
        result = await self.call("z_listreceivedbyaddress", [address, minconf])
        return _parse_received(result, address)

    async def send_many(self, from_address: str, outputs: list[TransferOutput]) -> str:
        result = await self.call(
            "z_sendmany",
            [from_address, [output.to_param() for output in outputs]],
        )
        if not isinstance(result, str) or not result:
            raise MalformedResponse(
                "z_sendmany did not return an operation id",
                details={"result": result},
            )
        return result

    async def get_operation_status(self, op_ids: list[str]) -> list[OperationHandle]:
        result = await self.call("z_getoperationstatus", [op_ids])
        return _parse_operation_statuses(result)

    async def get_transaction(self, txid: str) -> TransactionInfo:
        result = await self.call("gettransaction", [txid])
        return _parse_transaction(result, txid)


# =====================================================================
# Response parsing (pure functions, no I/O)
# =====================================================================


def _unwrap(response: dict[str, Any], method: str) -> Any:
    """Return the result member, raising RpcError on an error member."""
    error = response.get("error")
    if error:
        if isinstance(error, dict):
            raise RpcError(
                error.get("code"),
                str(error.get("message") or "unknown rpc error"),
                method=method,
            )
        raise RpcError(None, str(error), method=method)
    if "result" not in response:
        raise MalformedResponse(
            f"{method} response has no result",
            details={"method": method},
        )
    return response["result"]


def _expect_list(result: Any, method: str) -> list[Any]:
    if not isinstance(result, list):
        raise MalformedResponse(
            f"{method} returned {type(result).__name__}, expected a list",
            details={"method": method},
        )
    return result


def _to_decimal(raw: Any) -> Decimal:
    try:
        return Decimal(str(raw))
    except InvalidOperation as exc:
        raise MalformedResponse(f"invalid amount: {raw!r}") from exc


def _parse_addresses(result: Any) -> list[str]:
    addresses = _expect_list(result, "z_listaddresses")
    if not all(isinstance(address, str) for address in addresses):
        raise MalformedResponse("z_listaddresses returned a non-string address")
    return addresses


def _parse_received(result: Any, address: str) -> list[ReceivedNote]:
    """Parse z_listreceivedbyaddress entries, keeping node order."""
    notes: list[ReceivedNote] = []
    for entry in _expect_list(result, "z_listreceivedbyaddress"):
        if not isinstance(entry, dict):
            raise MalformedResponse("received note entry is not an object")
        try:
            txid = entry["txid"]
            amount = entry["amount"]
            memo_hex = entry["memo"]
        except KeyError as exc:
            raise MalformedResponse(
                f"received note is missing {exc.args[0]!r}",
                details={"address": address},
            ) from exc
        notes.append(
            ReceivedNote(
                address=address,
                txid=str(txid),
                amount=_to_decimal(amount),
                memo_hex=str(memo_hex),
            )
        )
    return notes


def _parse_operation_statuses(result: Any) -> list[OperationHandle]:
    """Parse z_getoperationstatus entries.

    Handles:
        - success with result.txid
        - failed with error.{code, message}
        - queued / executing
        - statuses this version does not know (kept as UNKNOWN)
    """
    handles: list[OperationHandle] = []
    for entry in _expect_list(result, "z_getoperationstatus"):
        if not isinstance(entry, dict) or "id" not in entry:
            raise MalformedResponse("operation status entry has no id")
        raw_status = str(entry.get("status", ""))

        txid = None
        op_result = entry.get("result")
        if isinstance(op_result, dict):
            txid = op_result.get("txid")

        error = None
        op_error = entry.get("error")
        if isinstance(op_error, dict):
            error = OperationError(
                code=op_error.get("code"),
                message=str(op_error.get("message", "")),
            )

        handles.append(
            OperationHandle(
                op_id=str(entry["id"]),
                status=OperationStatus.parse(raw_status),
                raw_status=raw_status,
                txid=txid,
                error=error,
            )
        )
    return handles


def _parse_transaction(result: Any, txid: str) -> TransactionInfo:
    if not isinstance(result, dict):
        raise MalformedResponse(
            "gettransaction did not return an object",
            details={"txid": txid},
        )
    try:
        return TransactionInfo(
            txid=str(result.get("txid", txid)),
            time=int(result["time"]),
            confirmations=int(result.get("confirmations", 0)),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedResponse(
            f"gettransaction result is missing a usable time: {exc}",
            details={"txid": txid},
        ) from exc
