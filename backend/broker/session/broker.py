"""Room lifecycle and move synchronization: creation, joining, rounds, and teardown."""

from __future__ import annotations

import asyncio
import secrets
from typing import TYPE_CHECKING

import structlog

from broker.logic.exceptions import (
    AlreadyInRoomError,
    InvalidInviteCodeError,
    RoomFullError,
    RoomIdExhaustedError,
    RoomNotFoundError,
    ServerAtCapacityError,
    SessionError,
)
from broker.messaging.types import (
    ChoiceMadeMessage,
    ErrorMessage,
    InviteGeneratedMessage,
    JoinedRoomMessage,
    OpponentDisconnectedMessage,
    ResultMessage,
    RoomCreatedMessage,
    RoomListMessage,
    RoomListUpdateMessage,
)
from broker.session.broadcast import deliver, fan_out
from broker.session.codes import format_invite_link, generate_invite_code, generate_room_id
from broker.session.room import Room

if TYPE_CHECKING:
    from collections.abc import Callable

    from pydantic import JsonValue

    from broker.messaging.protocol import ConnectionProtocol
    from broker.session.broadcast import Delivery
    from broker.session.types import RoomInfo

logger = structlog.get_logger()

_MAX_ROOM_ID_ATTEMPTS = 100


class SessionBroker:
    """Single authority over rooms, the connection index, and room codes.

    Owns all session state (_connections, _rooms, _connection_rooms). Every
    public operation applies its state change and queues its outbound
    messages under one lock, then delivers them after releasing it, so no
    event observes another's partial change and a slow recipient never
    stalls other connections.
    """

    def __init__(
        self,
        *,
        max_rooms: int = 1000,
        room_id_factory: Callable[[], str] = generate_room_id,
        invite_code_factory: Callable[[], str] = generate_invite_code,
    ) -> None:
        self._max_rooms = max_rooms
        self._room_id_factory = room_id_factory
        self._invite_code_factory = invite_code_factory
        self._connections: dict[str, ConnectionProtocol] = {}
        self._rooms: dict[str, Room] = {}  # room_id -> Room
        self._connection_rooms: dict[str, str] = {}  # connection_id -> room_id
        self._lock = asyncio.Lock()

    # --- Read accessors ---

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    @property
    def max_rooms(self) -> int:
        return self._max_rooms

    def get_room(self, room_id: str) -> Room | None:
        return self._rooms.get(room_id)

    def room_of(self, connection_id: str) -> Room | None:
        """Return the room a connection is seated in, or None if unaffiliated."""
        room_id = self._connection_rooms.get(connection_id)
        if room_id is None:
            return None
        return self._rooms.get(room_id)

    def is_in_room(self, connection_id: str) -> bool:
        return connection_id in self._connection_rooms

    def get_rooms_info(self) -> list[RoomInfo]:
        """Return the open rooms (fewer than two players) for lobby listings."""
        return [room.to_info() for room in self._rooms.values() if not room.is_full]

    # --- Connection lifecycle ---

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection

    async def unregister_connection(self, connection: ConnectionProtocol) -> None:
        """Forget a closed connection and release its slot, if any.

        The room is destroyed when its last player leaves; otherwise it
        reverts to waiting and the remaining player is told the opponent left.
        """
        connection_id = connection.connection_id
        async with self._lock:
            self._connections.pop(connection_id, None)
            room_id = self._connection_rooms.pop(connection_id, None)
            if room_id is None:
                return
            room = self._rooms.get(room_id)
            if room is None:
                return

            log = logger.bind(room_id=room_id, connection_id=connection_id)
            outbox: list[Delivery] = []
            remaining = room.leave(connection_id)
            if remaining == 0:
                del self._rooms[room_id]
                log.info("room destroyed")
            else:
                log.info("player left room", player_count=remaining)
                outbox += fan_out(self._room_connections(room), OpponentDisconnectedMessage().to_wire())
            outbox += self._room_list_deliveries()

        await deliver(outbox)

    # --- Room operations ---

    async def create_room(self, connection: ConnectionProtocol, name: str | None = None) -> None:
        """Create a room with the requester seated in slot 1."""
        async with self._lock:
            try:
                room = self._create_room(connection.connection_id, name)
            except SessionError as e:
                outbox = [self._error_delivery(connection, e)]
            else:
                created = RoomCreatedMessage(room_id=room.room_id, player_id=1, invite_code=room.invite_code)
                outbox = [(connection, created.to_wire()), *self._room_list_deliveries()]

        await deliver(outbox)

    def _create_room(self, connection_id: str, name: str | None) -> Room:
        if connection_id in self._connection_rooms:
            raise AlreadyInRoomError
        if len(self._rooms) >= self._max_rooms:
            raise ServerAtCapacityError

        room = Room(
            room_id=self._allocate_room_id(),
            invite_code=self._invite_code_factory(),
            name=name or "",
        )
        room.join(connection_id)
        self._rooms[room.room_id] = room
        self._connection_rooms[connection_id] = room.room_id
        logger.info("room created", room_id=room.room_id, connection_id=connection_id)
        return room

    def _allocate_room_id(self) -> str:
        """Draw room ids until one is not taken by a live room."""
        for _ in range(_MAX_ROOM_ID_ATTEMPTS):
            room_id = self._room_id_factory()
            if room_id not in self._rooms:
                return room_id
            logger.debug("room id collision", room_id=room_id)
        raise RoomIdExhaustedError

    async def join_room(
        self,
        connection: ConnectionProtocol,
        room_id: str,
        invite_code: str | None = None,
    ) -> None:
        """Seat the requester in an existing room and confirm to every occupant."""
        connection_id = connection.connection_id
        async with self._lock:
            try:
                room = self._validate_join(connection_id, room_id, invite_code)
            except SessionError as e:
                logger.info("join rejected", room_id=room_id, reason=e.code)
                outbox = [self._error_delivery(connection, e)]
            else:
                room.join(connection_id)
                self._connection_rooms[connection_id] = room_id
                logger.info("player joined room", room_id=room_id, player_count=room.player_count)

                outbox = [
                    (
                        occupant_connection,
                        JoinedRoomMessage(
                            room_id=room_id,
                            player_id=slot,
                            room_name=room.name,
                            opponent_connected=room.is_full,
                        ).to_wire(),
                    )
                    for slot, occupant in room.occupants.items()
                    if (occupant_connection := self._connections.get(occupant)) is not None
                ]
                outbox += self._room_list_deliveries()

        await deliver(outbox)

    def _validate_join(self, connection_id: str, room_id: str, invite_code: str | None) -> Room:
        """Run every admission check before any state is touched."""
        if connection_id in self._connection_rooms:
            raise AlreadyInRoomError
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFoundError
        if room.is_full:
            raise RoomFullError
        if invite_code and not secrets.compare_digest(invite_code.encode(), room.invite_code.encode()):
            raise InvalidInviteCodeError
        return room

    async def list_rooms(self, connection: ConnectionProtocol) -> None:
        async with self._lock:
            message = RoomListMessage(rooms=self.get_rooms_info()).to_wire()
        await deliver([(connection, message)])

    async def submit_choice(self, connection: ConnectionProtocol, move: JsonValue) -> None:
        """Record a move, announce it, and resolve the round once both slots have moved.

        Silently ignored when the connection is not seated in a live room.
        """
        connection_id = connection.connection_id
        async with self._lock:
            room = self.room_of(connection_id)
            if room is None:
                return
            slot = room.slot_of(connection_id)
            if slot is None:
                return

            round_complete = room.submit_choice(slot, move)
            result = room.resolve() if round_complete else None

            recipients = self._room_connections(room)
            outbox = fan_out(recipients, ChoiceMadeMessage(player_id=slot, choice=move).to_wire())
            if result is not None:
                logger.info("round resolved", room_id=room.room_id, outcome=result.outcome)
                outbox += fan_out(
                    recipients,
                    ResultMessage(choices=result.choices, result=str(result.outcome)).to_wire(),
                )

        await deliver(outbox)

    async def request_invite(self, connection: ConnectionProtocol) -> None:
        """Reply with the room's shareable invite token; ignored when unaffiliated."""
        async with self._lock:
            room = self.room_of(connection.connection_id)
            if room is None:
                return
            invite = InviteGeneratedMessage(invite_link=format_invite_link(room.room_id, room.invite_code))

        await deliver([(connection, invite.to_wire())])

    # --- Helpers ---

    def _room_connections(self, room: Room) -> list[ConnectionProtocol]:
        return [self._connections[conn_id] for conn_id in room.occupants.values() if conn_id in self._connections]

    def _error_delivery(self, connection: ConnectionProtocol, error: SessionError) -> Delivery:
        return connection, ErrorMessage(code=error.code, message=error.message).to_wire()

    def _room_list_deliveries(self) -> list[Delivery]:
        """Queue the open-room snapshot for every connection not seated in a room."""
        message = RoomListUpdateMessage(rooms=self.get_rooms_info()).to_wire()
        unaffiliated = [
            connection
            for connection_id, connection in self._connections.items()
            if connection_id not in self._connection_rooms
        ]
        return fan_out(unaffiliated, message)
