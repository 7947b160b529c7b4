"""Command-line entry point: ``zmsg check`` and ``zmsg sendmsg``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from decimal import Decimal, InvalidOperation
from typing import Optional, TextIO

from zmsg.client import OperationHandle
from zmsg.config import NodeConfig, load_config
from zmsg.errors import ZmsgError
from zmsg.inbox import Message, check_messages
from zmsg.jsonrpc_client import JsonRpcClient
from zmsg.send import DEFAULT_TX_VALUE, send_message
from zmsg.transport import HttpxTransport

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 42


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def redact(self, secret: str) -> None:
        if secret and secret not in self._secrets:
            self._secrets.append(secret)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _configure_logging(level_name: str) -> _RedactingFormatter:
    level = getattr(logging, level_name.upper(), logging.WARNING)
    formatter = _RedactingFormatter(
        [],
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=[handler], force=True)
    return formatter


def _amount(text: str) -> Decimal:
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: {text!r}") from None
    if not value.is_finite() or value < 0:
        raise argparse.ArgumentTypeError(f"amount must be a non-negative number: {text!r}")
    return value


def _build_client(config: NodeConfig) -> JsonRpcClient:
    return JsonRpcClient(
        config.url,
        HttpxTransport(timeout=config.timeout, auth=config.auth),
    )


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_message(message: Message, verbose: bool = False) -> str:
    lines = [
        SEPARATOR,
        f"Message (val = {message.value:f})",
        f"To: {message.to}",
    ]
    if verbose:
        if message.timestamp is not None:
            lines.append(f"Time: {message.timestamp.isoformat()}")
        if message.txid is not None:
            lines.append(f"Txid: {message.txid}")
        if message.confirmations is not None:
            lines.append(f"Confirmations: {message.confirmations}")
    lines.append(message.content)
    lines.append(SEPARATOR)
    return "\n".join(lines)


def _progress_printer(stream: TextIO):
    def on_progress(handle: OperationHandle, attempt: int) -> None:
        dots = "." * (attempt % 4 + 1)
        stream.write(f"\r{' ' * 22}\rsending message{dots}")
        stream.flush()

    return on_progress


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _check(client: JsonRpcClient, args: argparse.Namespace) -> int:
    messages = await check_messages(client, include_unconfirmed=args.noconf)
    if not messages:
        print("no messages")
        return 0
    for message in messages:
        print(render_message(message, verbose=args.verbose))
    return 0


async def _sendmsg(client: JsonRpcClient, args: argparse.Namespace) -> int:
    content = " ".join(args.message)
    print(f"message: {content!r}")
    txid = await send_message(
        client,
        args.to,
        content,
        value=args.txval,
        from_address=args.from_address,
        on_progress=_progress_printer(sys.stderr),
    )
    sys.stderr.write("\n")
    print(f"message sent! (txid = {txid})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zmsg",
        description="Send and read messages in shielded transaction memos.",
    )
    parser.add_argument("--rpc-url", help="node JSON-RPC endpoint (overrides config)")
    parser.add_argument("--conf", help="path to the node config file")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="list messages received at your addresses")
    check.add_argument("--verbose", action="store_true", help="show time, txid and confirmations")
    check.add_argument("--noconf", action="store_true", help="include unconfirmed messages")

    send = subparsers.add_parser("sendmsg", help="send a message")
    send.add_argument("--to", required=True, help="address to send message to")
    send.add_argument("--from", dest="from_address", help="address to send message from")
    send.add_argument(
        "--txval",
        type=_amount,
        default=DEFAULT_TX_VALUE,
        help=f"amount to send with the message (default {DEFAULT_TX_VALUE})",
    )
    send.add_argument("message", nargs="+", help="message text")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "sendmsg" and not " ".join(args.message).strip():
        parser.error("no message specified")

    formatter = _configure_logging(args.log_level)
    config = load_config(args.conf, url=args.rpc_url)
    formatter.redact(config.password)
    client = _build_client(config)

    command = _check if args.command == "check" else _sendmsg
    try:
        return asyncio.run(command(client, args))
    except ZmsgError as exc:
        logger.debug("command failed", exc_info=True)
        print(f"error: {exc.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
