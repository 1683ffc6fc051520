"""Realtime collaboration: presence, rooms, edit and signal relays, and the client."""

from .client import CollabClient, compute_backoff
from .connection import Connection, ConnectionGate
from .hub import CollaborationHub
from .presence import MemberEntry, PresenceRegistry
from .relay import EditRelay, SignalRelay
from .rooms import RoomMembership
from .session import CollaborationSession

__all__ = [
    "Connection",
    "ConnectionGate",
    "PresenceRegistry",
    "MemberEntry",
    "RoomMembership",
    "EditRelay",
    "SignalRelay",
    "CollaborationSession",
    "CollaborationHub",
    "CollabClient",
    "compute_backoff",
]
