from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from broker.messaging.types import (
    ChoiceMessage,
    CreateRoomMessage,
    InviteMessage,
    JoinRoomMessage,
    ListRoomsMessage,
    parse_client_message,
)

if TYPE_CHECKING:
    from broker.messaging.protocol import ConnectionProtocol
    from broker.session.broker import SessionBroker

logger = structlog.get_logger()


class MessageRouter:
    """
    Routes incoming messages to the session broker.

    This class contains pure business logic and can be tested
    without real WebSocket connections.
    """

    def __init__(self, broker: SessionBroker) -> None:
        self._broker = broker

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        # malformed messages are dropped without a reply
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message dropped", connection_id=connection.connection_id, error=str(e))
            return

        if isinstance(message, CreateRoomMessage):
            await self._broker.create_room(connection, name=message.room_name)
        elif isinstance(message, JoinRoomMessage):
            await self._broker.join_room(connection, message.room_id, invite_code=message.invite_code)
        elif isinstance(message, ListRoomsMessage):
            await self._broker.list_rooms(connection)
        elif isinstance(message, ChoiceMessage):
            await self._broker.submit_choice(connection, message.choice)
        elif isinstance(message, InviteMessage):
            await self._broker.request_invite(connection)

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._broker.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._broker.unregister_connection(connection)
