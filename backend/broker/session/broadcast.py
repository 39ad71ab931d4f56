"""Shared delivery utilities for sending messages to groups of connections.

Broker operations queue (connection, message) pairs while holding the
broker lock and hand them to deliver() after releasing it.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterable

    from broker.messaging.protocol import ConnectionProtocol

logger = structlog.get_logger()

type Delivery = tuple[ConnectionProtocol, dict[str, Any]]


async def send_safe(connection: ConnectionProtocol, message: dict[str, Any]) -> bool:
    """Send a message, treating delivery failure as non-fatal. Returns True on success."""
    try:
        await connection.send_message(message)
    except (ConnectionError, RuntimeError, OSError) as e:
        logger.debug("delivery failed", connection_id=connection.connection_id, error=str(e))
        return False
    return True


def fan_out(connections: Iterable[ConnectionProtocol], message: dict[str, Any]) -> list[Delivery]:
    return [(connection, message) for connection in connections]


async def deliver(deliveries: Iterable[Delivery]) -> None:
    """Send queued messages, in order per connection and concurrently across connections.

    A recipient that stops reading only delays its own queue; a failed send
    drops the rest of that recipient's queue and nothing else.
    """
    queues: dict[str, tuple[ConnectionProtocol, list[dict[str, Any]]]] = {}
    for connection, message in deliveries:
        queues.setdefault(connection.connection_id, (connection, []))[1].append(message)
    if queues:
        await asyncio.gather(*(_send_in_order(connection, messages) for connection, messages in queues.values()))


async def _send_in_order(connection: ConnectionProtocol, messages: list[dict[str, Any]]) -> None:
    for message in messages:
        if not await send_safe(connection, message):
            return
