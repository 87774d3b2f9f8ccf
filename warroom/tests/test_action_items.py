import pytest

from warroom.errors import ActionItemNotFound, NotAMember, RoomClosed, RoomValidationError
from warroom.schemas.room import ActionStatus, EndRoomRequest
from warroom.services.action_items import ActionItemTracker


@pytest.fixture
def setup(make_room, make_user, room_manager, db_session):
    host = make_user("hana", "Hana", "Host")
    member = make_user("mia", "Mia", "Mentor")
    room = make_room(host.user_id)
    room_manager.membership.join(room, member.user_id)
    return ActionItemTracker(db_session), room, host, member


def test_new_items_start_pending(setup):
    tracker, room, host, _ = setup
    item = tracker.add(room, host.user_id, "Call the bank about a credit line")
    assert item.status == ActionStatus.PENDING.value
    assert item.created_by == host.user_id
    assert [i.id for i in room.action_items] == [item.id]


def test_status_is_absolute_and_repeatable(setup):
    tracker, room, host, member = setup
    item = tracker.add(room, host.user_id, "Draft layoff plan")

    tracker.set_status(room, member.user_id, item.id, ActionStatus.COMPLETED)
    tracker.set_status(room, host.user_id, item.id, ActionStatus.COMPLETED)
    assert tracker.get(room, item.id).status == "Completed"

    tracker.set_status(room, host.user_id, item.id, ActionStatus.PENDING)
    assert tracker.get(room, item.id).status == "Pending"


def test_toggle_flips_between_states(setup):
    tracker, room, host, _ = setup
    item = tracker.add(room, host.user_id, "Email investors")
    assert tracker.toggle(room, host.user_id, item.id).status == "Completed"
    assert tracker.toggle(room, host.user_id, item.id).status == "Pending"


def test_unknown_item(setup):
    tracker, room, host, _ = setup
    with pytest.raises(ActionItemNotFound):
        tracker.set_status(room, host.user_id, 4242, ActionStatus.COMPLETED)


def test_writes_are_gated(setup, make_user, room_manager):
    tracker, room, host, _ = setup
    outsider = make_user("olga", "Olga", "Outsider")
    with pytest.raises(NotAMember):
        tracker.add(room, outsider.user_id, "Sneak in a task")

    item = tracker.add(room, host.user_id, "Before closing")
    room_manager.end_room(room.room_id, host.user_id, EndRoomRequest())
    with pytest.raises(RoomClosed):
        tracker.add(room, host.user_id, "After closing")
    with pytest.raises(RoomClosed):
        tracker.set_status(room, host.user_id, item.id, ActionStatus.COMPLETED)
    assert tracker.get(room, item.id).status == "Pending"


def test_description_is_required(setup):
    tracker, room, host, _ = setup
    with pytest.raises(RoomValidationError):
        tracker.add(room, host.user_id, "")
    with pytest.raises(RoomValidationError):
        tracker.add(room, host.user_id, "   ")
    item = tracker.add(room, host.user_id, "  Renegotiate the lease ")
    assert item.description == "Renegotiate the lease"
    assert [i.description for i in room.action_items] == ["Renegotiate the lease"]
