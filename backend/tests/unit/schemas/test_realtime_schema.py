"""Unit tests for realtime frame parsing and note field schemas."""

import pytest
from pydantic import ValidationError

from src.collabnotes.core.schemas.notes import NoteFields
from src.collabnotes.core.schemas.realtime import (
    CursorSignal,
    EditApplied,
    JoinRoom,
    MemberInfo,
    SubmitEdit,
    parse_client_message,
)


def test_parse_join_room_uses_camel_case():
    message = parse_client_message('{"type": "join-room", "noteId": "n1"}')
    assert isinstance(message, JoinRoom)
    assert message.note_id == "n1"


def test_parse_submit_edit_partial():
    message = parse_client_message('{"type": "submit-edit", "noteId": "n1", "content": "body"}')
    assert isinstance(message, SubmitEdit)
    assert message.title is None
    assert message.content == "body"


def test_parse_cursor_keeps_opaque_position():
    message = parse_client_message(b'{"type": "cursor-signal", "noteId": "n1", "position": [1, 2]}')
    assert isinstance(message, CursorSignal)
    assert message.position == [1, 2]


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "[]",
        '{"noteId": "n1"}',
        '{"type": "explode"}',
        '{"type": "join-room", "noteId": ""}',
        '{"type": "submit-edit", "noteId": "n1", "title": "' + "x" * 201 + '"}',
    ],
)
def test_parse_rejects_bad_frames(raw):
    with pytest.raises(ValidationError):
        parse_client_message(raw)


def test_outbound_frames_serialize_with_aliases():
    frame = EditApplied(
        note_id="n1", title="t", content="c", editor=MemberInfo(user_id="u1", user_name="Una")
    ).to_wire()
    assert frame == {
        "type": "edit-applied",
        "noteId": "n1",
        "title": "t",
        "content": "c",
        "editor": {"userId": "u1", "userName": "Una"},
    }


def test_note_fields_present_skips_absent():
    assert NoteFields(title="only title").present() == {"title": "only title"}
    assert NoteFields(content="").present() == {"content": ""}
    assert NoteFields().present() == {}
