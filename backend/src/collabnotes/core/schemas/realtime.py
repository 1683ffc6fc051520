"""
Realtime wire schemas.

Frames are JSON objects with a ``type`` discriminator; field names are
camelCase on the wire and snake_case in Python.
"""

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from ..models.note import TITLE_MAX_LENGTH


class WireModel(BaseModel):
    """Base for every frame."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# ---------------------------------------------------------------------------
# client -> server
# ---------------------------------------------------------------------------


class JoinRoom(WireModel):
    type: Literal["join-room"]
    note_id: str = Field(min_length=1)


class LeaveRoom(WireModel):
    type: Literal["leave-room"]
    note_id: str = Field(min_length=1)


class SubmitEdit(WireModel):
    type: Literal["submit-edit"]
    note_id: str = Field(min_length=1)
    title: Optional[str] = Field(default=None, max_length=TITLE_MAX_LENGTH)
    content: Optional[str] = None


class CursorSignal(WireModel):
    type: Literal["cursor-signal"]
    note_id: str = Field(min_length=1)
    position: Any


class Ping(WireModel):
    type: Literal["ping"]


ClientMessage = Annotated[
    Union[JoinRoom, LeaveRoom, SubmitEdit, CursorSignal, Ping],
    Field(discriminator="type"),
]

_client_message_adapter = TypeAdapter(ClientMessage)


def parse_client_message(raw: Union[str, bytes]) -> ClientMessage:
    """Parse one inbound frame; raises pydantic.ValidationError on bad input."""
    return _client_message_adapter.validate_json(raw)


# ---------------------------------------------------------------------------
# server -> client
# ---------------------------------------------------------------------------


class MemberInfo(WireModel):
    user_id: str
    user_name: str


class RoomMembers(WireModel):
    type: Literal["room-members"] = "room-members"
    note_id: str
    members: List[MemberInfo]


class MemberJoined(WireModel):
    type: Literal["member-joined"] = "member-joined"
    note_id: str
    user_id: str
    user_name: str


class MemberLeft(WireModel):
    type: Literal["member-left"] = "member-left"
    note_id: str
    user_id: str
    user_name: str


class EditApplied(WireModel):
    type: Literal["edit-applied"] = "edit-applied"
    note_id: str
    title: str
    content: str
    editor: MemberInfo


class CursorUpdated(WireModel):
    type: Literal["cursor-updated"] = "cursor-updated"
    note_id: str
    user_id: str
    user_name: str
    position: Any


class OperationError(WireModel):
    type: Literal["operation-error"] = "operation-error"
    message: str
    note_id: Optional[str] = None


class Pong(WireModel):
    type: Literal["pong"] = "pong"
