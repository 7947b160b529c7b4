"""
Inbox — collects messages received at every address the node owns.

Ordering is address order as returned by the node, then note order per
address. Nothing is re-sorted by time or content.

Notes whose memo decodes to an unformatted or reserved frame are
skipped. A memo that is not valid hex or that carries a malformed
typed frame aborts the whole check: no partial inbox is returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from zmsg.client import NodeClient, TransactionInfo
from zmsg.memo import MessageKind, decode_memo, decode_memo_hex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Message:
    """A message received at one of the node's addresses.

    Attributes:
        to: Owned address the message arrived at.
        content: Decoded message text.
        value: Amount carried by the note.
        timestamp: When the wallet saw the transaction. None when
            metadata was not fetched.
        txid: Transaction that carried the message.
        confirmations: Confirmation count, None when metadata was not fetched.
        kind: Memo framing the message used.
    """

    to: str
    content: str
    value: Decimal
    timestamp: datetime | None = None
    txid: str | None = None
    confirmations: int | None = None
    kind: MessageKind = MessageKind.PLAIN_TEXT


async def check_messages(
    client: NodeClient,
    include_unconfirmed: bool = False,
    *,
    fetch_metadata: bool = True,
) -> list[Message]:
    """Gather messages from every owned address.

    Args:
        client: Node client.
        include_unconfirmed: Also report notes with zero confirmations.
        fetch_metadata: Look up each message's transaction for its time
            and confirmations. One lookup per distinct txid.

    Returns:
        Messages in address order, then node note order.

    Raises:
        InvalidMemoHex: A memo was not valid hex.
        MalformedFrame: A memo carried a malformed typed frame.
        RpcError, TransportError: Propagated from the client.
    """
    minconf = 0 if include_unconfirmed else 1
    transactions: dict[str, TransactionInfo] = {}
    messages: list[Message] = []

    addresses = await client.list_addresses()
    logger.debug("checking %d addresses", len(addresses))

    for address in addresses:
        notes = await client.list_received(address, minconf)
        for note in notes:
            decoded = decode_memo(decode_memo_hex(note.memo_hex))
            if not decoded.visible:
                logger.debug("skipping %s memo in %s", decoded.kind.value, note.txid)
                continue

            info = None
            if fetch_metadata:
                info = transactions.get(note.txid)
                if info is None:
                    info = await client.get_transaction(note.txid)
                    transactions[note.txid] = info

            messages.append(
                Message(
                    to=address,
                    content=decoded.content,
                    value=note.amount,
                    timestamp=info.timestamp if info else None,
                    txid=note.txid,
                    confirmations=info.confirmations if info else None,
                    kind=decoded.kind,
                )
            )

    logger.info("found %d messages across %d addresses", len(messages), len(addresses))
    return messages
