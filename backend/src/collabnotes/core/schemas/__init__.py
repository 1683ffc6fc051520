"""
Pydantic schemas for identities, note snapshots, realtime frames and health responses.
"""

from .auth import Identity
from .common import HealthCheckResponse
from .notes import NoteFields, NoteSnapshot
from .realtime import (
    ClientMessage,
    CursorSignal,
    CursorUpdated,
    EditApplied,
    JoinRoom,
    LeaveRoom,
    MemberInfo,
    MemberJoined,
    MemberLeft,
    OperationError,
    Ping,
    Pong,
    RoomMembers,
    SubmitEdit,
    parse_client_message,
)

__all__ = [
    "Identity",
    "HealthCheckResponse",
    "NoteFields",
    "NoteSnapshot",
    # client -> server
    "ClientMessage",
    "JoinRoom",
    "LeaveRoom",
    "SubmitEdit",
    "CursorSignal",
    "Ping",
    "parse_client_message",
    # server -> client
    "MemberInfo",
    "RoomMembers",
    "MemberJoined",
    "MemberLeft",
    "EditApplied",
    "CursorUpdated",
    "OperationError",
    "Pong",
]
