"""Domain errors raised by the collaboration layer and its delegates."""

from typing import Optional


class CollabError(Exception):
    """Base class for collaboration errors.

    ``client_message`` is what a client is allowed to see; the exception text
    itself may carry internal detail meant for logs only.
    """

    client_message = "Operation failed"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or self.client_message)
        self.detail = detail or self.client_message


class AuthenticationError(CollabError):
    """Credential missing, malformed, expired, revoked or for an unknown user."""

    client_message = "Authentication failed"


class AccessDeniedError(CollabError):
    """User may not join the requested note room."""

    client_message = "Access denied"


class NoteNotFoundError(CollabError):
    """Referenced note does not exist."""

    client_message = "Note not found"


class NotRoomMemberError(CollabError):
    """Connection submitted to a room it has not joined."""

    client_message = "Join the note before editing"


class ReconnectExhaustedError(CollabError):
    """Client gave up reconnecting after the configured number of retries."""

    client_message = "Reconnect attempts exhausted"
