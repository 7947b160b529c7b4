"""
Send flow — puts one message on the wire and waits for it.

Composes the pure memo layer (memo.py) with the network boundary
(client.py) and the poller:

    1. Pick the sender: the given address, or the node's first one.
    2. Encode the message into a memo.
    3. Submit a single-output shielded transfer carrying the memo.
    4. Wait for the node's operation to finish; return its txid.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from zmsg.client import NodeClient, TransferOutput
from zmsg.errors import NoAddressesAvailable
from zmsg.memo import encode_memo, encode_memo_hex
from zmsg.poller import wait_for_operation

logger = logging.getLogger(__name__)

# Value attached to each message transfer.
DEFAULT_TX_VALUE = Decimal("0.00001")


async def choose_sender(client: NodeClient, from_address: str | None = None) -> str:
    """Return ``from_address``, or the node's first address when None.

    Raises:
        NoAddressesAvailable: If the node owns no address.
    """
    if from_address:
        return from_address
    addresses = await client.list_addresses()
    if not addresses:
        raise NoAddressesAvailable()
    logger.info("sending message from %s", addresses[0])
    return addresses[0]


async def send_message(
    client: NodeClient,
    to: str,
    content: str,
    *,
    value: Decimal = DEFAULT_TX_VALUE,
    from_address: str | None = None,
    **poll_options: Any,
) -> str:
    """Send ``content`` to ``to`` in the memo of a shielded transfer.

    Args:
        client: Node client.
        to: Destination address.
        content: Message text. Non-empty, checked by the caller.
        value: Amount to transfer along with the message.
        from_address: Sending address. Defaults to the node's first.
        **poll_options: Forwarded to wait_for_operation() (interval,
            timeout, max_attempts, cancel, on_progress).

    Returns:
        Transaction id of the sent message.

    Raises:
        NoAddressesAvailable: No sender given and the node owns none.
        ContentTooLarge: The message does not fit in a memo.
        OperationFailed: The node could not build the transaction.
    """
    sender = await choose_sender(client, from_address)
    memo_hex = encode_memo_hex(encode_memo(content))

    op_id = await client.send_many(
        sender,
        [TransferOutput(address=to, amount=value, memo_hex=memo_hex)],
    )
    logger.info("transfer submitted as operation %s", op_id)

    return await wait_for_operation(client, op_id, **poll_options)
