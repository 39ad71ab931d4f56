from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, JsonValue, TypeAdapter
from pydantic.alias_generators import to_camel

from broker.logic.enums import SessionErrorCode
from broker.session.types import RoomInfo


class ClientMessageType(StrEnum):
    CREATE_ROOM = "createRoom"
    JOIN_ROOM = "joinRoom"
    LIST_ROOMS = "listRooms"
    CHOICE = "choice"
    INVITE = "invite"


class SessionMessageType(StrEnum):
    ROOM_CREATED = "roomCreated"
    JOINED_ROOM = "joinedRoom"
    ERROR = "error"
    ROOM_LIST = "roomList"
    ROOM_LIST_UPDATE = "roomListUpdate"
    CHOICE_MADE = "choiceMade"
    RESULT = "result"
    INVITE_GENERATED = "inviteGenerated"
    OPPONENT_DISCONNECTED = "opponentDisconnected"


class WireModel(BaseModel):
    """Base for wire messages: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# --- client -> server ---


class CreateRoomMessage(WireModel):
    type: Literal["createRoom"] = "createRoom"
    room_name: str | None = None


class JoinRoomMessage(WireModel):
    type: Literal["joinRoom"] = "joinRoom"
    room_id: str
    invite_code: str | None = None


class ListRoomsMessage(WireModel):
    type: Literal["listRooms"] = "listRooms"


class ChoiceMessage(WireModel):
    # stored as-is: the outcome rules only define the closed move set
    type: Literal["choice"] = "choice"
    choice: JsonValue


class InviteMessage(WireModel):
    type: Literal["invite"] = "invite"


ClientMessage = Annotated[
    CreateRoomMessage | JoinRoomMessage | ListRoomsMessage | ChoiceMessage | InviteMessage,
    Field(discriminator="type"),
]

_client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


def parse_client_message(
    data: dict[str, Any],
) -> CreateRoomMessage | JoinRoomMessage | ListRoomsMessage | ChoiceMessage | InviteMessage:
    """Parse a raw dict into a typed client message."""
    return _client_message_adapter.validate_python(data)


# --- server -> client ---


class RoomCreatedMessage(WireModel):
    type: Literal["roomCreated"] = "roomCreated"
    room_id: str
    player_id: int
    invite_code: str


class JoinedRoomMessage(WireModel):
    type: Literal["joinedRoom"] = "joinedRoom"
    room_id: str
    player_id: int
    room_name: str
    opponent_connected: bool


class ErrorMessage(WireModel):
    type: Literal["error"] = "error"
    code: SessionErrorCode
    message: str


class RoomListMessage(WireModel):
    type: Literal["roomList"] = "roomList"
    rooms: list[RoomInfo]


class RoomListUpdateMessage(WireModel):
    type: Literal["roomListUpdate"] = "roomListUpdate"
    rooms: list[RoomInfo]


class ChoiceMadeMessage(WireModel):
    type: Literal["choiceMade"] = "choiceMade"
    player_id: int
    choice: JsonValue


class ResultMessage(WireModel):
    type: Literal["result"] = "result"
    choices: dict[int, JsonValue]
    result: str


class InviteGeneratedMessage(WireModel):
    type: Literal["inviteGenerated"] = "inviteGenerated"
    invite_link: str


class OpponentDisconnectedMessage(WireModel):
    type: Literal["opponentDisconnected"] = "opponentDisconnected"
