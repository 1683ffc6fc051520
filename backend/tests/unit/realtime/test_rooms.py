"""Unit tests for the room membership protocol."""

import pytest

from src.collabnotes.realtime.presence import PresenceRegistry
from src.collabnotes.realtime.rooms import RoomMembership


@pytest.fixture
def registry():
    return PresenceRegistry()


@pytest.fixture
def rooms(registry, notes):
    return RoomMembership(registry, notes)


@pytest.fixture
def shared_note(notes):
    note_id = notes.add_note("u-alice", title="Plan", content="draft")
    notes.grant(note_id, "u-bob")
    return note_id


@pytest.mark.asyncio
async def test_join_replies_with_full_member_list(rooms, shared_note, make_connection, drain):
    alice, bob = make_connection("token-alice"), make_connection("token-bob")

    assert await rooms.join(alice, shared_note) is True
    assert drain(alice) == [
        {
            "type": "room-members",
            "noteId": shared_note,
            "members": [{"userId": "u-alice", "userName": "Alice"}],
        }
    ]

    assert await rooms.join(bob, shared_note) is True
    bob_frames = drain(bob)
    assert len(bob_frames) == 1
    assert bob_frames[0]["type"] == "room-members"
    assert {m["userId"] for m in bob_frames[0]["members"]} == {"u-alice", "u-bob"}

    # existing members hear about the newcomer, the newcomer hears nothing about itself
    assert drain(alice) == [
        {"type": "member-joined", "noteId": shared_note, "userId": "u-bob", "userName": "Bob"}
    ]


@pytest.mark.asyncio
async def test_rejoin_never_duplicates_user(rooms, registry, shared_note, make_connection, drain):
    alice = make_connection("token-alice")

    for _ in range(3):
        await rooms.join(alice, shared_note)

    assert [m.user_id for m in registry.members(shared_note)] == ["u-alice"]
    last_reply = drain(alice)[-1]
    assert last_reply["members"] == [{"userId": "u-alice", "userName": "Alice"}]


@pytest.mark.asyncio
async def test_second_session_replaces_stale_entry(rooms, registry, shared_note, make_connection, drain):
    stale, fresh, bob = make_connection("token-alice"), make_connection("token-alice"), make_connection("token-bob")
    await rooms.join(stale, shared_note)
    await rooms.join(bob, shared_note)
    drain(stale), drain(bob)

    await rooms.join(fresh, shared_note)

    members = registry.members(shared_note)
    assert sorted(m.user_id for m in members) == ["u-alice", "u-bob"]
    assert any(m.connection is fresh for m in members)
    assert not registry.is_member(shared_note, stale.connection_id)
    # the stale session sent nothing, so it is told nothing
    assert drain(stale) == []
    assert drain(bob) == [
        {"type": "member-joined", "noteId": shared_note, "userId": "u-alice", "userName": "Alice"}
    ]

    # the stale socket going away later must not evict the fresh entry
    rooms.disconnect(stale)
    assert registry.is_member(shared_note, fresh.connection_id)
    assert drain(bob) == []


@pytest.mark.asyncio
async def test_same_connection_rejoin_is_not_rebroadcast(rooms, shared_note, make_connection, drain):
    alice, bob = make_connection("token-alice"), make_connection("token-bob")
    await rooms.join(alice, shared_note)
    await rooms.join(bob, shared_note)
    drain(alice), drain(bob)

    assert await rooms.join(bob, shared_note) is True

    assert drain(alice) == []
    reply = drain(bob)
    assert [f["type"] for f in reply] == ["room-members"]
    assert {m["userId"] for m in reply[0]["members"]} == {"u-alice", "u-bob"}


@pytest.mark.asyncio
async def test_unauthorized_join_is_denied_quietly(rooms, registry, shared_note, make_connection, drain):
    alice, carol = make_connection("token-alice"), make_connection("token-carol")
    await rooms.join(alice, shared_note)
    drain(alice)

    assert await rooms.join(carol, shared_note) is False

    assert drain(carol) == [
        {"type": "operation-error", "message": "Access denied", "noteId": shared_note}
    ]
    assert drain(alice) == []
    assert [m.user_id for m in registry.members(shared_note)] == ["u-alice"]


@pytest.mark.asyncio
async def test_join_unknown_note_is_denied(rooms, registry, make_connection, drain):
    alice = make_connection("token-alice")
    assert await rooms.join(alice, "no-such-note") is False
    assert drain(alice)[0]["message"] == "Access denied"
    assert not registry.has_room("no-such-note")


@pytest.mark.asyncio
async def test_admin_may_join_any_existing_note(rooms, shared_note, make_connection):
    assert await rooms.join(make_connection("token-root"), shared_note) is True


@pytest.mark.asyncio
async def test_access_check_failure_counts_as_denial(rooms, notes, registry, shared_note, make_connection, drain):
    notes.access_error = RuntimeError("connection pool exhausted")
    alice = make_connection("token-alice")

    assert await rooms.join(alice, shared_note) is False

    frames = drain(alice)
    assert frames == [{"type": "operation-error", "message": "Access denied", "noteId": shared_note}]
    assert registry.room_count == 0


@pytest.mark.asyncio
async def test_disconnect_during_access_check_is_not_admitted(registry, shared_note, notes, make_connection):
    alice = make_connection("token-alice")

    class ClosingPolicy:
        async def user_has_note_access(self, user_id, role, note_id):
            alice.close()
            return True

    rooms = RoomMembership(registry, ClosingPolicy())
    assert await rooms.join(alice, shared_note) is False
    assert not registry.has_room(shared_note)


@pytest.mark.asyncio
async def test_leave_notifies_remaining_members(rooms, registry, shared_note, make_connection, drain):
    alice, bob = make_connection("token-alice"), make_connection("token-bob")
    await rooms.join(alice, shared_note)
    await rooms.join(bob, shared_note)
    drain(alice), drain(bob)

    assert rooms.leave(bob, shared_note) is True

    assert drain(alice) == [
        {"type": "member-left", "noteId": shared_note, "userId": "u-bob", "userName": "Bob"}
    ]
    assert drain(bob) == []
    assert not registry.is_member(shared_note, bob.connection_id)


@pytest.mark.asyncio
async def test_leave_without_membership_broadcasts_nothing(rooms, shared_note, make_connection, drain):
    alice, bob = make_connection("token-alice"), make_connection("token-bob")
    await rooms.join(alice, shared_note)
    drain(alice)

    assert rooms.leave(bob, shared_note) is False
    assert drain(alice) == []


@pytest.mark.asyncio
async def test_last_leave_removes_room(rooms, registry, shared_note, make_connection):
    alice = make_connection("token-alice")
    await rooms.join(alice, shared_note)
    rooms.leave(alice, shared_note)
    assert not registry.has_room(shared_note)


@pytest.mark.asyncio
async def test_disconnect_leaves_every_room(rooms, registry, notes, shared_note, make_connection, drain):
    other_note = notes.add_note("u-alice")
    notes.grant(other_note, "u-bob")
    alice, bob = make_connection("token-alice"), make_connection("token-bob")
    for note_id in (shared_note, other_note):
        await rooms.join(alice, note_id)
        await rooms.join(bob, note_id)
    drain(alice), drain(bob)

    left = rooms.disconnect(bob)

    assert sorted(left) == sorted([shared_note, other_note])
    assert registry.rooms_for(bob.connection_id) == []
    frames = drain(alice)
    assert [f["type"] for f in frames] == ["member-left", "member-left"]
    assert {f["noteId"] for f in frames} == {shared_note, other_note}

    # a second cleanup pass finds nothing left to do
    assert rooms.disconnect(bob) == []
    assert drain(alice) == []
